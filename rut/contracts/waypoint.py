"""UserWaypoint — a user-defined point exported to WAYPOINT.P01.

Waypoint ids are the 5-character keys the A109 route table refers to.
Managed waypoints (every type but ``CUSTOM``) carry an id equal to their
name, both following the ``{prefix}{NN}`` serial assigned on renumbering.
"""

from pydantic import Field, field_validator

from rut.contracts.common import GeoPoint, RutModel
from rut.contracts.enums import WaypointType

# A–Z, 0–9 and hyphen: the characters the 6-bit codec can carry.
ID_PATTERN = r"^[A-Z0-9-]{1,5}$"


class UserWaypoint(RutModel):
    """A waypoint owned by the document and exported to the P01 tables."""

    id: str = Field(..., pattern=ID_PATTERN)
    name: str = ""
    type: WaypointType = WaypointType.WPT
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)
    elevation: float = 0.0

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return v.strip()

    @property
    def is_managed(self) -> bool:
        return self.type.is_managed

    @property
    def coordinate(self) -> GeoPoint:
        return GeoPoint(latitude=self.latitude, longitude=self.longitude)
