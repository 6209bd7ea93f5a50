"""Geographic coordinates and the haversine great-circle distance.

Coordinates are kept in IEEE-754 single precision so the distances computed
here match the reference values already stored by deployed jars.
"""

# External imports
import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator

EARTH_RADIUS_METERS = np.float32(6371000.0)
CLOSE_PLACE_RADIUS_METERS = 1000.0


class Coordinates(BaseModel):
    """
    Class that represents a point on Earth, in degrees.

    Attributes:
        latitude: float: Latitude in degrees (rounded to float32).
        longitude: float: Longitude in degrees (rounded to float32).
    """

    model_config = ConfigDict(frozen=True)

    latitude: float
    longitude: float

    @field_validator("latitude", "longitude", mode="before")
    @classmethod
    def _to_single_precision(cls, value):
        return float(np.float32(value))

    def distance(self, other: "Coordinates") -> float:
        return distance(self, other)

    def to_query_values(self) -> tuple:
        """Return the shortest textual form of both values, as float32 prints them."""
        return str(np.float32(self.latitude)), str(np.float32(self.longitude))


def distance(a: Coordinates, b: Coordinates) -> float:
    """Haversine distance in meters between ``a`` and ``b``, computed in float32."""
    latitude_a = np.radians(np.float32(a.latitude))
    latitude_b = np.radians(np.float32(b.latitude))

    delta_latitude = np.radians(np.float32(a.latitude) - np.float32(b.latitude))
    delta_longitude = np.radians(np.float32(a.longitude) - np.float32(b.longitude))

    central_angle_inner = np.sin(delta_latitude / np.float32(2.0)) ** 2 + np.cos(
        latitude_a
    ) * np.cos(latitude_b) * np.sin(delta_longitude / np.float32(2.0)) ** 2
    central_angle = np.float32(2.0) * np.arcsin(np.sqrt(central_angle_inner))

    return float(np.float32(central_angle * EARTH_RADIUS_METERS))
