"""Navaid models — user navaids (exported) and system navaids (reference only)."""

from pydantic import Field, field_validator

from rut.contracts.common import GeoPoint, RutModel
from rut.contracts.waypoint import ID_PATTERN


class UserNavaid(RutModel):
    """A user navaid, exported to NAVAID.P01."""

    id: str = Field(..., pattern=ID_PATTERN)
    name: str = ""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0
    magnetic_variation: float = 0.0
    frequency: float = 0.0

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @property
    def coordinate(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class SystemNavaid(RutModel):
    """Read-only reference navaid from the avionics' own database."""

    id: str = Field(..., min_length=1, description="e.g. 'SVD'")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    type: str = Field(default="VOR", description="'VOR', 'NDB' ...")

    @property
    def coordinate(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)
