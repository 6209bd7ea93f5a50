"""Legacy (v1) schema of the Firebase store.

Layout under ``{base}/{jar}``::

    昼だけ/{push id}: place name
    夜だけ/{push id}: place name
    pending_shop: place name
    label: str

Places have no generated key: the name is the key. There is no coordinates
table, so proximity draws never find a candidate.
"""

from __future__ import annotations

import random
from typing import Dict, List, Optional, Sequence

from common.errors import DecodeError, PartialWriteError, StorageError
from common.helpers.firebase_helper import FirebaseHelper
from common.logger import custom_logger
from common.models.coordinates import Coordinates
from common.models.place import ALL_MEALS, Meal, Place
from draw_engine.jar import Jar
from draw_engine.selection import pick_candidate
from draw_engine.storage.gateway import LABEL_PATH, StorageGateway

logger = custom_logger()

CURRENT_DRAW_PATH = "pending_shop"


class LegacyFirebaseStore(StorageGateway):
    name = "v1"

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

    async def get_list_of_places(self, jar: Jar, meal: Meal) -> Dict[str, str]:
        places = await self.helper.get(self.url(jar, meal.legacy_path))
        # A meal node disappears once its last place is removed
        if places is None:
            return {}
        if not isinstance(places, dict):
            raise DecodeError(f"{meal.legacy_path} of {jar} is not an object")
        return {k: v for k, v in places.items() if isinstance(v, str)}

    async def get_current_draw(self, jar: Jar) -> Optional[Place]:
        name = await self.helper.get(self.url(jar, CURRENT_DRAW_PATH))
        if name is None:
            return None
        if not isinstance(name, str):
            raise DecodeError(f"pending_shop of {jar} is not a name: {name!r}")
        return Place(name=name)

    async def draw(
        self, jar: Jar, meal: Meal, coordinates: Optional[Coordinates] = None
    ) -> Optional[Place]:
        places = await self.get_list_of_places(jar, meal)
        if not places or coordinates is not None:
            return None

        picked = pick_candidate(places.values(), self.rng)
        if picked is None:
            return None

        await self.helper.put(self.url(jar, CURRENT_DRAW_PATH), picked)
        return Place(name=picked)

    async def add_place(self, jar: Jar, name: str, meals: Sequence[Meal]) -> Place:
        completed: List[str] = []
        for meal in meals:
            try:
                await self.helper.post(self.url(jar, meal.legacy_path), name)
            except StorageError as error:
                if not completed:
                    raise
                raise PartialWriteError(
                    "add_place", Place(name=name), completed, meal.legacy_path, error
                ) from error
            completed.append(meal.legacy_path)
        return Place(name=name)

    async def set_place_coordinates(
        self, jar: Jar, place: Place, coordinates: Coordinates
    ) -> None:
        logger.debug(
            "Legacy schema has no coordinates table; skipping",
            extra={"jar": jar, "place": place.name},
        )

    async def remove_drawn_place(self, jar: Jar, place: Optional[Place] = None) -> bool:
        if place is not None:
            drawn = await self.get_current_draw(jar)
            if drawn is None or drawn.name != place.name:
                return False
        await self.helper.delete(self.url(jar, CURRENT_DRAW_PATH))
        return True

    async def delete_place(self, jar: Jar, place: Place) -> Place:
        # Names are stored under push ids: scan every meal list for matches
        paths_to_delete: List[str] = []
        for meal in ALL_MEALS:
            places = await self.get_list_of_places(jar, meal)
            paths_to_delete.extend(
                f"{meal.legacy_path}/{push_id}"
                for push_id, name in places.items()
                if name == place.name
            )

        completed: List[str] = []
        step = CURRENT_DRAW_PATH
        try:
            for step in paths_to_delete:
                await self.helper.delete(self.url(jar, step))
                completed.append(step)
            step = CURRENT_DRAW_PATH
            await self.remove_drawn_place(jar, place)
        except StorageError as error:
            if not completed:
                raise
            raise PartialWriteError("delete_place", place, completed, step, error) from error
        return place

    async def get_all_places(self, jar: Jar) -> List[Place]:
        names = set()
        for meal in ALL_MEALS:
            names.update((await self.get_list_of_places(jar, meal)).values())
        return [Place(name=name) for name in sorted(names)]

    async def get_all_jars(self) -> List[Jar]:
        root = await self.helper.get(self.helper.root_url(), shallow=True)
        if not root:
            return []
        if not isinstance(root, dict):
            raise DecodeError("Root of the legacy schema is not an object")
        return [key for key in root.keys() if key != "v2"]
