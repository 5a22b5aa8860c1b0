"""Route and RoutePointRef — ordered point sequence exported to ROUTE.P01.

A route does not embed its points. Each ``RoutePointRef`` is a weak
(kind, id) handle resolved against the owning ``NavigationDocument``;
renaming or deleting the target is followed by an explicit pass over
every route (see ``rut.services``).
"""

from uuid import uuid4

from pydantic import Field

from rut.contracts.common import RutModel
from rut.contracts.enums import RoutePointKind

# A109 limit: points listed per ROUTE.P01 record.
MAX_ROUTE_POINTS = 40


class RoutePointRef(RutModel):
    """Reference to a point of the document, by kind and id."""

    kind: RoutePointKind
    ref_id: str = Field(..., min_length=1)

    @property
    def key(self) -> tuple[RoutePointKind, str]:
        return (self.kind, self.ref_id)


class Route(RutModel):
    """An ordered sequence of point references.

    ``id`` is stable for the lifetime of the route. ``route_id`` is the
    short, unique, user-visible identifier (at most 15 characters of the
    6-bit alphabet); it changes when the route is renamed.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    route_id: str = Field(..., pattern=r"^[A-Z0-9-]{1,15}$")
    name: str = ""
    points: list[RoutePointRef] = Field(default_factory=list)

    def references(self, kind: RoutePointKind, ref_id: str) -> bool:
        return any(p.kind == kind and p.ref_id == ref_id for p in self.points)
