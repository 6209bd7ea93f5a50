# Built-in imports
from enum import Enum
from typing import List, Optional

# External imports
from pydantic import BaseModel, ConfigDict, Field


class Meal(str, Enum):
    """Time slot a place is registered under, valued by its wire token."""

    LUNCH = "昼"
    DINNER = "夜"

    @property
    def token(self) -> str:
        return self.value

    @property
    def legacy_path(self) -> str:
        """Node holding the flat name list of this meal in the legacy schema."""
        return f"{self.value}だけ"


ALL_MEALS: List[Meal] = [Meal.LUNCH, Meal.DINNER]


class Place(BaseModel):
    """
    Class that represents a restaurant of a jar catalog.

    Attributes:
        key: Optional(str): Storage generated identifier (absent in the legacy schema).
        name: str: Display name of the place.
    """

    model_config = ConfigDict(frozen=True)

    key: Optional[str] = None
    name: str

    @property
    def storage_key(self) -> str:
        """Key under which the place is referenced; the legacy schema keys by name."""
        return self.key if self.key is not None else self.name


class ApiV2Place(BaseModel):
    """Entry of the ``places`` table of the current schema."""

    name: str
    timeslot: List[Meal] = Field(default_factory=list)
