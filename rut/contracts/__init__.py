"""Rut data contracts — Pydantic v2 models for the navigation document.

Ownership
---------

``NavigationDocument`` owns every entity array:

- ``Route``: ordered ``RoutePointRef`` handles, never embedded points
- ``UserAirport`` / ``UserNavaid`` / ``UserWaypoint``: user databases,
  exported to the A109 P01 tables
- ``SystemAirport`` / ``SystemNavaid``: reference data of the avionics'
  own database, referenced by routes but never exported

Calculated (never stored)
-------------------------
- ``ImportReport``: outcome of an import run
- ``GeoPoint``: resolved coordinate of a route point
"""

from rut.contracts.enums import A109FileType, RoutePointKind, WaypointType
from rut.contracts.common import Blob, GeoPoint, RutModel
from rut.contracts.result import ImportReport, ServiceError
from rut.contracts.waypoint import UserWaypoint
from rut.contracts.airport import SystemAirport, UserAirport
from rut.contracts.navaid import SystemNavaid, UserNavaid
from rut.contracts.route import MAX_ROUTE_POINTS, Route, RoutePointRef
from rut.contracts.document import NavigationDocument, PointEntity

__all__ = [
    # Enums
    "A109FileType",
    "RoutePointKind",
    "WaypointType",
    # Common
    "Blob",
    "GeoPoint",
    "RutModel",
    # Result
    "ImportReport",
    "ServiceError",
    # Domain models
    "UserWaypoint",
    "UserAirport",
    "SystemAirport",
    "UserNavaid",
    "SystemNavaid",
    "MAX_ROUTE_POINTS",
    "Route",
    "RoutePointRef",
    "NavigationDocument",
    "PointEntity",
]
