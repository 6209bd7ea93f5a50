"""Draw engine: the operations a conversation can run against its jar.

The engine is stateless; every operation reads the jar through the storage
gateway. Two draws racing on the same jar are not serialized and the last
write of ``current_draw`` wins.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from common.logger import custom_logger
from common.models.conversation import Conversation
from common.models.coordinates import Coordinates
from common.models.place import Meal, Place
from draw_engine.integrations.bing.geocoding import BingGeocoder, GeocodingError
from draw_engine.jar import Jar, JarResolver
from draw_engine.storage.gateway import StorageGateway

logger = custom_logger()


@dataclass(frozen=True)
class Drawn:
    place: Place


@dataclass(frozen=True)
class AlreadyDrawn:
    place: Place


@dataclass(frozen=True)
class NoCandidates:
    meal: Meal


@dataclass(frozen=True)
class NoCandidatesNearby:
    meal: Meal
    coordinates: Coordinates


DrawOutcome = Union[Drawn, AlreadyDrawn, NoCandidates, NoCandidatesNearby]


class DrawEngine:
    def __init__(
        self,
        storage: StorageGateway,
        resolver: Optional[JarResolver] = None,
        geocoder: Optional[BingGeocoder] = None,
    ) -> None:
        self.storage = storage
        self.resolver = resolver or JarResolver()
        self.geocoder = geocoder

    def jar(self, conversation: Conversation) -> Jar:
        return self.resolver.resolve(conversation)

    async def current_draw(self, conversation: Conversation) -> Optional[Place]:
        return await self.storage.get_current_draw(self.jar(conversation))

    async def draw(
        self,
        conversation: Conversation,
        meal: Meal,
        coordinates: Optional[Coordinates] = None,
    ) -> DrawOutcome:
        """Draw a place unless one is already pending for the jar."""
        jar = self.jar(conversation)
        current = await self.storage.get_current_draw(jar)
        if current is not None:
            return AlreadyDrawn(current)

        place = await self.storage.draw(jar, meal, coordinates)
        if place is not None:
            logger.info("Drew a place", extra={"jar": jar, "meal": meal.value})
            return Drawn(place)
        if coordinates is None:
            return NoCandidates(meal)
        return NoCandidatesNearby(meal, coordinates)

    async def postpone(self, conversation: Conversation) -> Optional[Place]:
        """Put the current draw back in the jar.

        Returns the postponed place, or None when nothing was drawn or another
        draw replaced it before it could be cleared.
        """
        jar = self.jar(conversation)
        current = await self.storage.get_current_draw(jar)
        if current is None:
            logger.warning("Nothing to postpone", extra={"jar": jar})
            return None
        if not await self.storage.remove_drawn_place(jar, current):
            return None
        return current

    async def remove_current(self, conversation: Conversation) -> Optional[Place]:
        """Delete the current draw from the jar (used for delete and archive)."""
        jar = self.jar(conversation)
        current = await self.storage.get_current_draw(jar)
        if current is None:
            logger.warning("Nothing to remove", extra={"jar": jar})
            return None
        return await self.storage.delete_place(jar, current)

    async def add_place(
        self, conversation: Conversation, name: str, meals: Sequence[Meal]
    ) -> Place:
        return await self.storage.add_place(self.jar(conversation), name, meals)

    async def locate_place(
        self, conversation: Conversation, place: Place
    ) -> Optional[Coordinates]:
        """Geocode ``place`` and store its coordinates; None when not found."""
        if self.geocoder is None:
            return None
        try:
            coordinates = await asyncio.to_thread(self.geocoder.geocode, place.name)
        except GeocodingError as error:
            logger.info(
                "Place could not be geocoded",
                extra={"place": place.name, "error": str(error)},
            )
            return None
        await self.storage.set_place_coordinates(
            self.jar(conversation), place, coordinates
        )
        return coordinates
