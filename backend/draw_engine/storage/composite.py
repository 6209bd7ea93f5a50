"""Backend writing to every schema generation and reading from the newest."""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

from common.errors import PartialWriteError, StorageError
from common.logger import custom_logger
from common.models.coordinates import Coordinates
from common.models.place import Meal, Place
from draw_engine.jar import Jar
from draw_engine.storage.gateway import StorageGateway

logger = custom_logger()

T = TypeVar("T")


class CompositeFirebaseStore(StorageGateway):
    """Fans writes out to all backends; the first backend is authoritative.

    Draws only change the state of the first backend, so the current draw of
    the other backends goes stale until the migration is complete.

    A write that fails on a backend after an earlier backend applied it raises
    ``PartialWriteError`` whose steps are the backend names, e.g. ``["v2"]``
    completed and ``"v1"`` failed.
    """

    name = "composite"

    def __init__(self, backends: Sequence[StorageGateway]) -> None:
        if not backends:
            raise ValueError("CompositeFirebaseStore needs at least one backend")
        self.backends = list(backends)

    @property
    def primary(self) -> StorageGateway:
        return self.backends[0]

    async def _fan_out(
        self,
        operation: str,
        place: Optional[Place],
        write: Callable[[StorageGateway], Awaitable[T]],
        backends: Optional[Sequence[StorageGateway]] = None,
        completed: Optional[List[str]] = None,
    ) -> List[T]:
        backends = self.backends if backends is None else backends
        completed = [] if completed is None else completed
        results = []
        for backend in backends:
            try:
                results.append(await write(backend))
            except StorageError as error:
                if not completed:
                    raise
                logger.error(
                    "Write stopped part way across backends",
                    extra={
                        "operation": operation,
                        "completed": completed,
                        "failed": backend.name,
                    },
                )
                raise PartialWriteError(
                    operation, place, completed, backend.name, error
                ) from error
            completed.append(backend.name)
        return results

    async def add_label(self, jar: Jar, label: str) -> str:
        await self._fan_out("add_label", None, lambda b: b.add_label(jar, label))
        return label

    async def get_current_draw(self, jar: Jar) -> Optional[Place]:
        return await self.primary.get_current_draw(jar)

    async def draw(
        self, jar: Jar, meal: Meal, coordinates: Optional[Coordinates] = None
    ) -> Optional[Place]:
        return await self.primary.draw(jar, meal, coordinates)

    async def add_place(self, jar: Jar, name: str, meals: Sequence[Meal]) -> Place:
        place = await self.primary.add_place(jar, name, meals)
        await self._fan_out(
            "add_place",
            place,
            lambda b: b.add_place(jar, name, meals),
            backends=self.backends[1:],
            completed=[self.primary.name],
        )
        return place

    async def set_place_coordinates(
        self, jar: Jar, place: Place, coordinates: Coordinates
    ) -> None:
        await self._fan_out(
            "set_place_coordinates",
            place,
            lambda b: b.set_place_coordinates(jar, place, coordinates),
        )

    async def remove_drawn_place(self, jar: Jar, place: Optional[Place] = None) -> bool:
        cleared = await self._fan_out(
            "remove_drawn_place", place, lambda b: b.remove_drawn_place(jar, place)
        )
        return cleared[0]

    async def delete_place(self, jar: Jar, place: Place) -> Place:
        await self._fan_out("delete_place", place, lambda b: b.delete_place(jar, place))
        return place

    async def get_all_places(self, jar: Jar) -> List[Place]:
        return await self.primary.get_all_places(jar)

    async def get_all_jars(self) -> List[Jar]:
        return await self.primary.get_all_jars()
