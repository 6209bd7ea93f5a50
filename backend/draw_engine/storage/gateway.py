"""Contract every document store backend of the bot implements."""

from __future__ import annotations

import abc
from typing import List, Optional, Sequence

from common.models.coordinates import Coordinates
from common.models.place import Meal, Place
from draw_engine.jar import Jar

# Name shown when the current draw pointer exists but its name cannot be read
PLACEHOLDER_PLACE_NAME = "???"

LABEL_PATH = "label"


class StorageGateway(abc.ABC):
    """Reads and writes the catalog, current draw, coordinates and label of a jar.

    Multi-step writes (``add_place``, ``delete_place``) are ordered sequences of
    independent REST calls. They may stop part way, which is reported as a
    ``PartialWriteError`` listing the steps that were applied.
    """

    # Step name of this backend inside a composite write
    name = "gateway"

    @abc.abstractmethod
    async def add_label(self, jar: Jar, label: str) -> str:
        ...

    @abc.abstractmethod
    async def get_current_draw(self, jar: Jar) -> Optional[Place]:
        ...

    @abc.abstractmethod
    async def draw(
        self, jar: Jar, meal: Meal, coordinates: Optional[Coordinates] = None
    ) -> Optional[Place]:
        ...

    @abc.abstractmethod
    async def add_place(self, jar: Jar, name: str, meals: Sequence[Meal]) -> Place:
        ...

    @abc.abstractmethod
    async def set_place_coordinates(
        self, jar: Jar, place: Place, coordinates: Coordinates
    ) -> None:
        ...

    @abc.abstractmethod
    async def remove_drawn_place(self, jar: Jar, place: Optional[Place] = None) -> bool:
        """Clear the current draw, only if it is still ``place`` when one is given.

        Returns whether the draw was cleared.
        """

    @abc.abstractmethod
    async def delete_place(self, jar: Jar, place: Place) -> Place:
        ...

    @abc.abstractmethod
    async def get_all_places(self, jar: Jar) -> List[Place]:
        ...

    @abc.abstractmethod
    async def get_all_jars(self) -> List[Jar]:
        ...
