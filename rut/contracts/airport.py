"""Airport models — user airports (exported) and system airports (reference only)."""

from pydantic import Field, field_validator

from rut.contracts.common import Blob, GeoPoint, RutModel

AIRPORT_ID_PATTERN = r"^[A-Z0-9-]{4,5}$"


class UserAirport(RutModel):
    """A user airport, exported to AIRPORT.P01.

    The three blob fields hold AIRPORT.P01 bytes whose meaning is not
    known. They are carried through import/export unchanged; an empty
    blob means nothing was preserved and the exporter writes its own
    value (or zeros).
    """

    id: str = Field(..., pattern=AIRPORT_ID_PATTERN)
    name: str = ""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0
    magnetic_variation: float = 0.0

    raw_unknown1: Blob = Field(default=b"", max_length=4, description="Record bytes 12-15")
    usage: Blob = Field(default=b"", max_length=4, description="Record bytes 16-19")
    longest_runway: Blob = Field(default=b"", max_length=4, description="Record bytes 28-31")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @property
    def coordinate(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)


class SystemAirport(RutModel):
    """Read-only reference airport from the avionics' own database.

    Referenced by routes, never written to the P01 tables.
    """

    id: str = Field(..., min_length=1, description="ICAO code, e.g. 'ESSA'")
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    @property
    def coordinate(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)
