import asyncio

from common.helpers.firebase_helper import FirebaseHelper
from common.models.place import Meal
from draw_engine.migration_v2 import collect_places, migrate_v2

BASE_URL = "https://taberando.test"


def run(coroutine):
    return asyncio.run(coroutine)


def test_collect_places_merges_meals():
    entries = {"昼だけ": {"-a": "Soba", "-b": "Udon"}, "夜だけ": {"-c": "Soba"}}

    assert collect_places("user_1", entries) == {
        "Soba": [Meal.LUNCH, Meal.DINNER],
        "Udon": [Meal.LUNCH],
    }


def test_migration_copies_legacy_jars(firebase, firebase_client, store_v2):
    firebase.tree = {
        "group_G1": {
            "昼だけ": {"-a": "Soba"},
            "夜だけ": {"-b": "Soba", "-c": "Yakitori"},
            "pending_shop": "Yakitori",
            "label": "Friends",
            "stats": {},
        },
        "user_U1": "garbage",
        "v2": {"user_U2": {"label": "already migrated"}},
    }

    report = run(migrate_v2(FirebaseHelper(BASE_URL, firebase_client), store_v2))

    assert report.migrated_jars == ["group_G1"]
    assert report.migrated_places == 2
    assert sorted(report.skipped_entries) == ["group_G1/stats", "user_U1"]

    migrated = firebase.tree["v2"]["group_G1"]
    names = migrated["place_id_name"]
    assert sorted(names.values()) == ["Soba", "Yakitori"]
    assert names[migrated["current_draw"]] == "Yakitori"
    assert migrated["label"] == "Friends"
    soba = next(key for key, name in names.items() if name == "Soba")
    assert migrated["places"][soba]["timeslot"] == ["昼", "夜"]
    assert firebase.tree["v2"]["user_U2"] == {"label": "already migrated"}


def test_migration_of_empty_database(firebase, firebase_client, store_v2):
    report = run(migrate_v2(FirebaseHelper(BASE_URL, firebase_client), store_v2))

    assert report.migrated_jars == []
    assert report.migrated_places == 0
