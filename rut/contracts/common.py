"""Base classes and shared types for Rut contracts.

Unit conventions (all contracts):
- **Coordinates**: WGS84 decimal degrees
- **Elevations**: feet AMSL
- **Magnetic variation**: degrees, east positive
- **Navaid frequencies**: MHz (VOR) or kHz (NDB), as entered by the pilot

The A109 tables store every float as big-endian float32, so values that
went through an export/import cycle keep float32 precision only.
"""

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer


def _blob_from_hex(value: Any) -> Any:
    if isinstance(value, str):
        return bytes.fromhex(value)
    return value


# Raw bytes carried through unchanged; JSON form is a lowercase hex string.
Blob = Annotated[
    bytes,
    BeforeValidator(_blob_from_hex),
    PlainSerializer(lambda b: b.hex(), return_type=str, when_used="json"),
]


class RutModel(BaseModel):
    """Base model with JSON-friendly serialization.

    - Enums stay enum members in memory (the managed/custom split hangs
      off ``WaypointType``) and serialize as their string values.
    - ``to_dict()`` produces a JSON-safe dict (datetimes as ISO 8601,
      opaque blobs as hex).
    - ``from_dict()`` hydrates from such a dict.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        validate_assignment=True,
    )

    def to_dict(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RutModel":
        """Create model instance from a dict produced by ``to_dict()``."""
        return cls.model_validate(data)


class GeoPoint(BaseModel):
    """WGS84 geographic coordinate."""

    latitude: float
    longitude: float

    model_config = ConfigDict(frozen=True)
