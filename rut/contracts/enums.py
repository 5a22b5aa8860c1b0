"""Enumerations shared across all Rut contracts."""

from enum import Enum


class WaypointType(str, Enum):
    """Role of a user waypoint.

    Every type except ``CUSTOM`` is *managed*: its id and name follow a
    type-prefixed serial number (``WPT01``, ``IP02`` ...) that is
    reassigned when the route is renumbered.
    """
    CUSTOM = "CUSTOM"
    WPT = "WPT"
    IP = "IP"
    TGT = "TGT"
    HLD = "HLD"
    CLI = "CLI"
    DES = "DES"

    @property
    def is_managed(self) -> bool:
        return self is not WaypointType.CUSTOM

    @property
    def prefix(self) -> str:
        """Serial-number prefix; short enough for a 5-char id."""
        if self is WaypointType.CUSTOM:
            return "CST"
        return self.value


class RoutePointKind(str, Enum):
    """Which document array a route point refers to."""
    USER_AIRPORT = "userAirport"
    USER_NAVAID = "userNavaid"
    USER_WAYPOINT = "userWaypoint"
    SYSTEM_AIRPORT = "systemAirport"
    SYSTEM_NAVAID = "systemNavaid"

    @property
    def is_airport(self) -> bool:
        return self in (RoutePointKind.USER_AIRPORT, RoutePointKind.SYSTEM_AIRPORT)


class A109FileType(str, Enum):
    """Members of an A109 file set."""
    AIRPORT = "AIRPORT.P01"
    NAVAID = "NAVAID.P01"
    WAYPOINT = "WAYPOINT.P01"
    ROUTE = "ROUTE.P01"
    PILOTE = "PILOTE.HD"
    CARACTER = "CARACTER.P01"

    @property
    def is_table(self) -> bool:
        return self not in (A109FileType.PILOTE, A109FileType.CARACTER)
