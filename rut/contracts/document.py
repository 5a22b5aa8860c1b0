"""NavigationDocument — owner of every entity array.

The document is the arena routes point into. Lookups go through
``find()`` / ``coordinate_of()`` with an explicit (kind, id) pair.
Documents are treated as values: services return a new document rather
than mutating the one they were given.
"""

from datetime import datetime, timezone

from pydantic import Field

from rut.contracts.airport import SystemAirport, UserAirport
from rut.contracts.common import GeoPoint, RutModel
from rut.contracts.enums import RoutePointKind
from rut.contracts.navaid import SystemNavaid, UserNavaid
from rut.contracts.route import Route, RoutePointRef
from rut.contracts.waypoint import UserWaypoint

PointEntity = UserAirport | UserNavaid | UserWaypoint | SystemAirport | SystemNavaid

_ARRAYS: dict[RoutePointKind, str] = {
    RoutePointKind.USER_AIRPORT: "user_airports",
    RoutePointKind.USER_NAVAID: "user_navaids",
    RoutePointKind.USER_WAYPOINT: "user_waypoints",
    RoutePointKind.SYSTEM_AIRPORT: "system_airports",
    RoutePointKind.SYSTEM_NAVAID: "system_navaids",
}


class NavigationDocument(RutModel):
    """Routes plus the user (exported) and system (reference) point databases."""

    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    routes: list[Route] = Field(default_factory=list)

    # User data: editable, exported to the P01 tables
    user_airports: list[UserAirport] = Field(default_factory=list)
    user_navaids: list[UserNavaid] = Field(default_factory=list)
    user_waypoints: list[UserWaypoint] = Field(default_factory=list)

    # System data: read-only, referenced but never exported
    system_airports: list[SystemAirport] = Field(default_factory=list)
    system_navaids: list[SystemNavaid] = Field(default_factory=list)

    def entities(self, kind: RoutePointKind) -> list[PointEntity]:
        """The array a ``RoutePointKind`` resolves against."""
        return getattr(self, _ARRAYS[kind])

    def ids(self, kind: RoutePointKind) -> set[str]:
        return {e.id for e in self.entities(kind)}

    def find(self, kind: RoutePointKind, ref_id: str) -> PointEntity | None:
        for entity in self.entities(kind):
            if entity.id == ref_id:
                return entity
        return None

    def resolve(self, ref: RoutePointRef) -> PointEntity | None:
        return self.find(ref.kind, ref.ref_id)

    def coordinate_of(self, ref: RoutePointRef) -> GeoPoint | None:
        """Coordinate of the referenced point, or *None* if it does not resolve."""
        entity = self.resolve(ref)
        if entity is None:
            return None
        return entity.coordinate

    def route_by_id(self, route_id: str) -> Route | None:
        """Look up a route by its stable ``id``."""
        for route in self.routes:
            if route.id == route_id:
                return route
        return None

    def index_map(self, kind: RoutePointKind) -> dict[str, int]:
        """``{id: position}`` for one array (first occurrence wins)."""
        result: dict[str, int] = {}
        for i, entity in enumerate(self.entities(kind)):
            result.setdefault(entity.id, i)
        return result

    # --- reference passes (in place; callers work on a copy) ---

    def replace_references(self, kind: RoutePointKind, mapping: dict[str, str]) -> None:
        """Rewrite every ``kind`` reference through ``{old_id: new_id}`` in one pass."""
        if not mapping:
            return
        for route in self.routes:
            if any(p.kind == kind and p.ref_id in mapping for p in route.points):
                route.points = [
                    RoutePointRef(kind=p.kind, ref_id=mapping[p.ref_id])
                    if p.kind == kind and p.ref_id in mapping else p
                    for p in route.points
                ]

    def remove_references(self, kind: RoutePointKind, ref_ids: set[str]) -> None:
        """Drop every ``kind`` reference to one of ``ref_ids`` from all routes."""
        for route in self.routes:
            if any(p.kind == kind and p.ref_id in ref_ids for p in route.points):
                route.points = [
                    p for p in route.points if not (p.kind == kind and p.ref_id in ref_ids)
                ]
