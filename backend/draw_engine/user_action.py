"""User intents and their postback encoding.

A postback payload is a relative URL: the path selects the intent and the
optional ``lat``/``long`` query parameters carry the user's last location,
eg ``delete_action?lat=35.0&long=139.0``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union
from urllib.parse import parse_qs, urlencode, urlsplit

from common.errors import UnknownActionError
from common.models.coordinates import Coordinates
from common.models.place import Meal

DRAW_LUNCH_ACTION = "lunch_action"
DRAW_DINNER_ACTION = "dinner_action"
POSTPONE_ACTION = "postpone_action"
DELETE_ACTION = "delete_action"
ARCHIVE_ACTION = "archive_action"
ADD_ACTION = "add_action"
REFRESH_ACTION = "refresh_action"
CLEAR_LOCATION_ACTION = "clear_location_action"

SUFFIX_COORDINATES = "📍"
LABEL_DRAW_LUNCH = "🎲 昼"
LABEL_DRAW_DINNER = "🎲 夜"
LABEL_POSTPONE = "📅 延"
LABEL_DELETE_CURRENT = "❌ 削"
LABEL_ARCHIVE_CURRENT = "✓ 完"
LABEL_ADD = "+ 加"
LABEL_CLEAR_LOCATION = "消"


@dataclass(frozen=True)
class Draw:
    meal: Meal
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class Postpone:
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class DeleteCurrent:
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class ArchiveCurrent:
    coordinates: Optional[Coordinates] = None


@dataclass(frozen=True)
class Add:
    name: str = ""
    meals: Tuple[Meal, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Refresh:
    pass


@dataclass(frozen=True)
class WhoAmI:
    pass


@dataclass(frozen=True)
class SetLocation:
    latitude: float
    longitude: float

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(latitude=self.latitude, longitude=self.longitude)


@dataclass(frozen=True)
class ClearLocation:
    pass


Intent = Union[
    Draw,
    Postpone,
    DeleteCurrent,
    ArchiveCurrent,
    Add,
    Refresh,
    WhoAmI,
    SetLocation,
    ClearLocation,
]


def _path_with_coordinates(path: str, coordinates: Optional[Coordinates]) -> str:
    if coordinates is None:
        return path
    latitude, longitude = coordinates.to_query_values()
    return f"{path}?{urlencode({'lat': latitude, 'long': longitude})}"


def encode_postback(intent: Intent) -> str:
    """Serialize an intent into the postback data of a quick reply."""
    if isinstance(intent, Draw):
        path = DRAW_LUNCH_ACTION if intent.meal == Meal.LUNCH else DRAW_DINNER_ACTION
        return _path_with_coordinates(path, intent.coordinates)
    if isinstance(intent, Postpone):
        return _path_with_coordinates(POSTPONE_ACTION, intent.coordinates)
    if isinstance(intent, DeleteCurrent):
        return _path_with_coordinates(DELETE_ACTION, intent.coordinates)
    if isinstance(intent, ArchiveCurrent):
        return _path_with_coordinates(ARCHIVE_ACTION, intent.coordinates)
    if isinstance(intent, Add):
        return ADD_ACTION
    if isinstance(intent, Refresh):
        return REFRESH_ACTION
    if isinstance(intent, ClearLocation):
        return CLEAR_LOCATION_ACTION
    raise ValueError(f"{type(intent).__name__} has no postback encoding")


def _parse_float(values) -> Optional[float]:
    if not values:
        return None
    try:
        return float(values[0])
    except ValueError:
        return None


def _coordinates_from_query(query: str) -> Optional[Coordinates]:
    params = parse_qs(query)
    latitude = _parse_float(params.get("lat"))
    longitude = _parse_float(params.get("long"))
    if latitude is None or longitude is None:
        return None
    return Coordinates(latitude=latitude, longitude=longitude)


def decode_postback(data: str) -> Intent:
    """Parse postback data; raises ``UnknownActionError`` on unknown paths."""
    parts = urlsplit(data)
    path = parts.path.lstrip("/")
    coordinates = _coordinates_from_query(parts.query)

    if path == DRAW_LUNCH_ACTION:
        return Draw(Meal.LUNCH, coordinates)
    if path == DRAW_DINNER_ACTION:
        return Draw(Meal.DINNER, coordinates)
    if path == POSTPONE_ACTION:
        return Postpone(coordinates)
    if path == DELETE_ACTION:
        return DeleteCurrent(coordinates)
    if path == ARCHIVE_ACTION:
        return ArchiveCurrent(coordinates)
    if path == ADD_ACTION:
        return Add()
    if path == REFRESH_ACTION:
        return Refresh()
    if path == CLEAR_LOCATION_ACTION:
        return ClearLocation()
    raise UnknownActionError(f"Unknown action value {path!r}")


def label(intent: Intent) -> str:
    """Text of the quick reply button triggering ``intent``."""
    if isinstance(intent, Draw):
        base = LABEL_DRAW_LUNCH if intent.meal == Meal.LUNCH else LABEL_DRAW_DINNER
        return f"{base}{SUFFIX_COORDINATES}" if intent.coordinates else base
    if isinstance(intent, Postpone):
        return LABEL_POSTPONE
    if isinstance(intent, DeleteCurrent):
        return LABEL_DELETE_CURRENT
    if isinstance(intent, ArchiveCurrent):
        return LABEL_ARCHIVE_CURRENT
    if isinstance(intent, Add):
        return LABEL_ADD
    if isinstance(intent, ClearLocation):
        return LABEL_CLEAR_LOCATION
    raise ValueError(f"No quick reply label for {type(intent).__name__}")
