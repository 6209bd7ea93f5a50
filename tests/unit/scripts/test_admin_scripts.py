import argparse
import asyncio

from common.errors import MessagingError
from common.models.coordinates import Coordinates
from common.models.place import Meal
from draw_engine.integrations.bing.geocoding import GeocodingError

import geo_location
import label_groups
import migrate_v2

TOKYO = Coordinates(latitude=35.6812, longitude=139.7671)


class DummyGeocoder:
    def geocode(self, place_name):
        if place_name == "Nowhere":
            raise GeocodingError("not found")
        return TOKYO


class DummyLineAPI:
    async def get_jar_label(self, conversation):
        if conversation.id == "G404":
            raise MessagingError("gone", 404)
        return f"label of {conversation.id}"


def run(coroutine):
    return asyncio.run(coroutine)


def test_backfill_sets_coordinates_of_found_places(store_v2, firebase):
    found = run(store_v2.add_place("group_G1", "Ramen-Ya", [Meal.LUNCH]))
    run(store_v2.add_place("group_G1", "Nowhere", [Meal.LUNCH]))

    failures = run(geo_location.backfill(store_v2, DummyGeocoder(), "group_G1"))

    assert list(failures) == ["Nowhere"]
    assert list(firebase.tree["v2"]["group_G1"]["place_coordinates"]) == [found.key]


def test_label_jars_skips_unknown_jars(store_v2, firebase):
    firebase.tree = {"v2": {"group_G1": {}, "group_G404": {}, "weird": {}}}

    labelled = run(label_groups.label_jars(store_v2, DummyLineAPI()))

    assert labelled == ["group_G1"]
    assert firebase.tree["v2"]["group_G1"]["label"] == "label of G1"


def test_label_jars_keeps_going_after_a_failed_write(store_v2, firebase, capsys):
    firebase.tree = {"v2": {"group_G1": {"current_draw": "-a"}, "group_G2": {"current_draw": "-b"}}}
    firebase.fail("PUT", "/v2/group_G1/label.json")

    labelled = run(label_groups.label_jars(store_v2, DummyLineAPI()))

    assert labelled == ["group_G2"]
    assert firebase.tree["v2"]["group_G2"]["label"] == "label of G2"
    assert "label" not in firebase.tree["v2"]["group_G1"]
    assert "Skipping group_G1" in capsys.readouterr().out


def test_migration_requires_confirmation(capsys):
    args = argparse.Namespace(confirm=False, firebase_url="https://x.test", secret_name=None)

    assert asyncio.run(migrate_v2.run(args)) == 1
    assert "--confirm" in capsys.readouterr().out
