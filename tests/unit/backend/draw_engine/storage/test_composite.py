import asyncio
import random

import pytest

from common.errors import PartialWriteError, TransportError
from common.models.place import Meal
from draw_engine.storage import CompositeFirebaseStore, build_storage
from draw_engine.storage.firebase_v1 import LegacyFirebaseStore
from draw_engine.storage.firebase_v2 import FirebaseStoreV2

BASE_URL = "https://taberando.test"

JAR = "room_R1"


def run(coroutine):
    return asyncio.run(coroutine)


@pytest.fixture
def composite(store_v2, store_v1):
    return CompositeFirebaseStore([store_v2, store_v1])


def test_writes_reach_both_schemas(composite, firebase):
    place = run(composite.add_place(JAR, "Curry", [Meal.DINNER]))
    run(composite.add_label(JAR, "Friends"))

    assert place.key is not None
    assert firebase.tree["v2"][JAR]["place_id_name"][place.key] == "Curry"
    assert list(firebase.tree[JAR]["夜だけ"].values()) == ["Curry"]
    assert firebase.tree["v2"][JAR]["label"] == "Friends"
    assert firebase.tree[JAR]["label"] == "Friends"


def test_draw_only_uses_the_first_backend(composite, firebase):
    place = run(composite.add_place(JAR, "Curry", [Meal.DINNER]))

    assert run(composite.draw(JAR, Meal.DINNER)) == place
    assert firebase.tree["v2"][JAR]["current_draw"] == place.key
    assert "pending_shop" not in firebase.tree[JAR]


def test_delete_place_reaches_both_schemas(composite, firebase):
    place = run(composite.add_place(JAR, "Curry", [Meal.DINNER]))

    run(composite.delete_place(JAR, place))

    assert JAR not in firebase.tree
    assert JAR not in firebase.tree.get("v2", {})


def test_add_place_failing_on_the_legacy_schema_is_partial(composite, firebase):
    firebase.fail("POST", f"/{JAR}/夜だけ.json")

    with pytest.raises(PartialWriteError) as error:
        run(composite.add_place(JAR, "Curry", [Meal.DINNER]))

    assert error.value.operation == "add_place"
    assert error.value.completed_steps == ["v2"]
    assert error.value.failed_step == "v1"
    assert isinstance(error.value.cause, TransportError)
    assert firebase.tree["v2"][JAR]["place_id_name"][error.value.place.key] == "Curry"
    assert JAR not in firebase.tree


def test_delete_place_failing_on_the_legacy_schema_is_partial(composite, firebase):
    place = run(composite.add_place(JAR, "Curry", [Meal.DINNER]))
    (push_id,) = firebase.tree[JAR]["夜だけ"]
    firebase.fail("DELETE", f"/{JAR}/夜だけ/{push_id}.json")

    with pytest.raises(PartialWriteError) as error:
        run(composite.delete_place(JAR, place))

    assert error.value.place == place
    assert error.value.completed_steps == ["v2"]
    assert error.value.failed_step == "v1"
    assert JAR not in firebase.tree.get("v2", {})
    assert list(firebase.tree[JAR]["夜だけ"].values()) == ["Curry"]


def test_failure_on_the_first_backend_is_not_partial(composite, firebase):
    firebase.fail("POST", f"/v2/{JAR}/places.json")

    with pytest.raises(TransportError):
        run(composite.add_place(JAR, "Curry", [Meal.DINNER]))

    assert firebase.tree == {}


def test_remove_drawn_place_reports_the_first_backend(composite):
    place = run(composite.add_place(JAR, "Curry", [Meal.DINNER]))
    run(composite.draw(JAR, Meal.DINNER))

    assert run(composite.remove_drawn_place(JAR, place)) is True
    assert run(composite.get_current_draw(JAR)) is None


def test_composite_needs_a_backend():
    with pytest.raises(ValueError):
        CompositeFirebaseStore([])


def test_build_storage(firebase_client):
    assert isinstance(build_storage("v1", BASE_URL, firebase_client), LegacyFirebaseStore)
    assert isinstance(build_storage("v2", BASE_URL, firebase_client), FirebaseStoreV2)

    composite = build_storage("composite", BASE_URL, firebase_client, random.Random(1))
    assert isinstance(composite.primary, FirebaseStoreV2)
    assert isinstance(composite.backends[1], LegacyFirebaseStore)

    with pytest.raises(ValueError):
        build_storage("v3", BASE_URL, firebase_client)
