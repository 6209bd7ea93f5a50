import pytest

from common.errors import UnknownActionError
from common.models.coordinates import Coordinates
from common.models.place import Meal
from draw_engine.user_action import (
    Add,
    ArchiveCurrent,
    ClearLocation,
    DeleteCurrent,
    Draw,
    Postpone,
    Refresh,
    decode_postback,
    encode_postback,
    label,
)


def test_delete_with_coordinates():
    assert decode_postback("delete_action?lat=35.0&long=139.0") == DeleteCurrent(
        Coordinates(latitude=35.0, longitude=139.0)
    )


def test_delete_without_query():
    assert decode_postback("delete_action") == DeleteCurrent(None)


def test_unknown_action_is_rejected():
    with pytest.raises(UnknownActionError):
        decode_postback("unknown_action")


@pytest.mark.parametrize(
    "data",
    ["lunch_action?lat=35.0", "lunch_action?lat=abc&long=139.0", "lunch_action?long=1"],
)
def test_coordinates_need_both_parameters(data):
    assert decode_postback(data) == Draw(Meal.LUNCH, None)


@pytest.mark.parametrize(
    "data, intent",
    [
        ("lunch_action", Draw(Meal.LUNCH)),
        ("dinner_action", Draw(Meal.DINNER)),
        ("postpone_action", Postpone()),
        ("archive_action", ArchiveCurrent()),
        ("add_action", Add()),
        ("refresh_action", Refresh()),
        ("clear_location_action", ClearLocation()),
    ],
)
def test_known_paths(data, intent):
    assert decode_postback(data) == intent


def test_encoding_carries_coordinates():
    intent = Draw(Meal.DINNER, Coordinates(latitude=35.5, longitude=139.25))

    assert encode_postback(intent) == "dinner_action?lat=35.5&long=139.25"
    assert decode_postback(encode_postback(intent)) == intent


def test_labels():
    assert label(Draw(Meal.LUNCH)) == "🎲 昼"
    assert label(Draw(Meal.DINNER, Coordinates(latitude=1, longitude=2))) == "🎲 夜📍"
    assert label(Postpone()) == "📅 延"
    assert label(DeleteCurrent()) == "❌ 削"
    assert label(ArchiveCurrent()) == "✓ 完"
    assert label(ClearLocation()) == "消"
