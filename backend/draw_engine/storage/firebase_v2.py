"""Normalized (v2) schema of the Firebase store.

Layout under ``{base}/v2/{jar}``::

    places/{key}: {"name": str, "timeslot": [meal token]}
    place_id_name/{key}: str
    timeslots/{meal token}/{key}: true
    place_coordinates/{key}: {"latitude": float, "longitude": float}
    current_draw: key
    label: str
"""

from __future__ import annotations

import asyncio
import random
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from common.errors import DecodeError, PartialWriteError, StorageError
from common.helpers.firebase_helper import FirebaseHelper
from common.logger import custom_logger
from common.models.coordinates import Coordinates
from common.models.place import ALL_MEALS, ApiV2Place, Meal, Place
from draw_engine.jar import Jar
from draw_engine.selection import close_candidates, pick_candidate
from draw_engine.storage.gateway import (
    LABEL_PATH,
    PLACEHOLDER_PLACE_NAME,
    StorageGateway,
)

logger = custom_logger()

SCHEMA_VERSION = "v2"
CURRENT_DRAW_KEY = "current_draw"
PLACES_KEY = "places"
PLACE_NAME_TABLE = "place_id_name"
PLACE_COORDINATES_TABLE = "place_coordinates"
SLOTS_KEY = "timeslots"


class FirebaseStoreV2(StorageGateway):
    name = "v2"

    def __init__(
        self, helper: FirebaseHelper, rng: Optional[random.Random] = None
    ) -> None:
        self.helper = helper
        self.rng = rng or random.Random()

    def url(self, jar: Jar, path: str) -> str:
        return self.helper.url(jar, path)

    async def add_label(self, jar: Jar, label: str) -> str:
        await self.helper.put(self.url(jar, LABEL_PATH), label)
        return label

    async def get_current_draw_key(self, jar: Jar) -> Optional[str]:
        key = await self.helper.get(self.url(jar, CURRENT_DRAW_KEY))
        if key is None:
            return None
        if not isinstance(key, str):
            raise DecodeError(f"current_draw of {jar} is not a key: {key!r}")
        return key

    async def get_place_name(self, jar: Jar, key: str) -> Optional[str]:
        name = await self.helper.get(self.url(jar, f"{PLACE_NAME_TABLE}/{key}"))
        if name is not None and not isinstance(name, str):
            raise DecodeError(f"Name of place {key} in {jar} is not a string")
        return name

    async def get_current_draw(self, jar: Jar) -> Optional[Place]:
        key = await self.get_current_draw_key(jar)
        if key is None:
            return None

        try:
            name = await self.get_place_name(jar, key)
        except StorageError as error:
            logger.warning(
                "Could not resolve the current draw name",
                extra={"jar": jar, "key": key, "error": str(error)},
            )
            name = None
        return Place(key=key, name=name or PLACEHOLDER_PLACE_NAME)

    async def update_current_draw(self, jar: Jar, key: str) -> None:
        await self.helper.put(self.url(jar, CURRENT_DRAW_KEY), key)

    async def get_meal_place_keys(self, jar: Jar, meal: Meal) -> List[str]:
        # shallow: only the keys of the slot are needed
        slot = await self.helper.get(
            self.url(jar, f"{SLOTS_KEY}/{meal.token}"), shallow=True
        )
        if slot is None:
            return []
        if not isinstance(slot, dict):
            raise DecodeError(f"Slot {meal.token} of {jar} is not an object")
        return list(slot.keys())

    async def get_located_places(self, jar: Jar) -> Dict[str, Coordinates]:
        table = await self.helper.get(self.url(jar, PLACE_COORDINATES_TABLE))
        if table is None:
            return {}
        if not isinstance(table, dict):
            raise DecodeError(f"Coordinates table of {jar} is not an object")
        try:
            return {
                key: Coordinates.model_validate(value) for key, value in table.items()
            }
        except ValidationError as error:
            raise DecodeError(f"Invalid coordinates in {jar}: {error}") from error

    async def draw(
        self, jar: Jar, meal: Meal, coordinates: Optional[Coordinates] = None
    ) -> Optional[Place]:
        meal_keys = await self.get_meal_place_keys(jar, meal)
        if not meal_keys:
            return None

        candidates = meal_keys
        if coordinates is not None:
            located = await self.get_located_places(jar)
            candidates = close_candidates(meal_keys, located, coordinates)

        picked = pick_candidate(candidates, self.rng)
        if picked is None:
            return None

        await self.update_current_draw(jar, picked)
        name = await self.get_place_name(jar, picked)
        return Place(key=picked, name=name or PLACEHOLDER_PLACE_NAME)

    async def add_place(self, jar: Jar, name: str, meals: Sequence[Meal]) -> Place:
        payload = ApiV2Place(name=name, timeslot=list(meals))
        created = await self.helper.post(
            self.url(jar, PLACES_KEY), payload.model_dump(mode="json")
        )
        if not isinstance(created, dict) or not isinstance(created.get("name"), str):
            raise DecodeError(f"Unexpected answer when creating a place: {created!r}")

        place = Place(key=created["name"], name=name)
        completed = [f"{PLACES_KEY}/{place.key}"]

        slot_steps = [f"{SLOTS_KEY}/{meal.token}/{place.key}" for meal in meals]
        results = await asyncio.gather(
            *(self.helper.put(self.url(jar, step), True) for step in slot_steps),
            return_exceptions=True,
        )
        for step, result in zip(slot_steps, results):
            if isinstance(result, BaseException):
                self._raise_partial("add_place", jar, place, completed, step, result)
            completed.append(step)

        step = f"{PLACE_NAME_TABLE}/{place.key}"
        try:
            await self.helper.put(self.url(jar, step), name)
        except StorageError as error:
            self._raise_partial("add_place", jar, place, completed, step, error)

        return place

    @staticmethod
    def _raise_partial(
        operation: str,
        jar: Jar,
        place: Place,
        completed: List[str],
        step: str,
        error: BaseException,
    ) -> None:
        if not isinstance(error, StorageError):
            raise error
        logger.error(
            f"{operation} stopped part way; nothing is rolled back",
            extra={
                "jar": jar,
                "key": place.storage_key,
                "completed": completed,
                "failed_step": step,
            },
        )
        if not completed:
            raise error
        raise PartialWriteError(operation, place, completed, step, error) from error

    async def set_place_coordinates(
        self, jar: Jar, place: Place, coordinates: Coordinates
    ) -> None:
        await self.helper.put(
            self.url(jar, f"{PLACE_COORDINATES_TABLE}/{place.storage_key}"),
            coordinates.model_dump(),
        )

    async def remove_drawn_place(self, jar: Jar, place: Optional[Place] = None) -> bool:
        if place is not None:
            drawn_key = await self.get_current_draw_key(jar)
            if drawn_key is None or drawn_key != place.storage_key:
                logger.info(
                    "Current draw changed; leaving it in place",
                    extra={"jar": jar, "expected": place.storage_key, "found": drawn_key},
                )
                return False
        await self.helper.delete(self.url(jar, CURRENT_DRAW_KEY))
        return True

    async def delete_place(self, jar: Jar, place: Place) -> Place:
        key = place.storage_key
        steps: List[str] = [f"{PLACES_KEY}/{key}"]
        steps.extend(f"{SLOTS_KEY}/{meal.token}/{key}" for meal in ALL_MEALS)
        steps.append(f"{PLACE_NAME_TABLE}/{key}")
        steps.append(f"{PLACE_COORDINATES_TABLE}/{key}")

        completed: List[str] = []
        for step in steps:
            try:
                await self.helper.delete(self.url(jar, step))
            except StorageError as error:
                self._raise_partial("delete_place", jar, place, completed, step, error)
            completed.append(step)

        try:
            await self.remove_drawn_place(jar, place)
        except StorageError as error:
            self._raise_partial(
                "delete_place", jar, place, completed, CURRENT_DRAW_KEY, error
            )

        return place

    async def get_all_places(self, jar: Jar) -> List[Place]:
        places: Optional[Dict[str, Any]] = await self.helper.get(
            self.url(jar, PLACES_KEY)
        )
        if not places:
            return []
        try:
            return [
                Place(key=key, name=ApiV2Place.model_validate(value).name)
                for key, value in places.items()
            ]
        except (ValidationError, AttributeError) as error:
            raise DecodeError(f"Invalid places table in {jar}: {error}") from error

    async def get_all_jars(self) -> List[Jar]:
        root = await self.helper.get(self.helper.root_url(), shallow=True)
        if not root:
            return []
        if not isinstance(root, dict):
            raise DecodeError("Root of the v2 schema is not an object")
        return list(root.keys())
