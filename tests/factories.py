"""Document builders shared by the test suites."""

from __future__ import annotations

from rut.contracts import (
    NavigationDocument,
    Route,
    RoutePointKind,
    RoutePointRef,
    SystemAirport,
    UserAirport,
    UserNavaid,
    UserWaypoint,
    WaypointType,
)

UA = RoutePointKind.USER_AIRPORT
UN = RoutePointKind.USER_NAVAID
UW = RoutePointKind.USER_WAYPOINT
SA = RoutePointKind.SYSTEM_AIRPORT
SN = RoutePointKind.SYSTEM_NAVAID


def ref(kind: RoutePointKind, ref_id: str) -> RoutePointRef:
    return RoutePointRef(kind=kind, ref_id=ref_id)


def make_sample_document() -> NavigationDocument:
    """Two routes over two user airports, one navaid, three waypoints and a system airport.

    - ESSA-ESGG: ESSA, WPT01, ARL, WPT02, ESGG
    - BROMMA:    ESSB (system), IP01, ESSA
    """
    return NavigationDocument(
        user_airports=[
            UserAirport(id="ESSA", name="Arlanda", latitude=59.651944, longitude=17.918611,
                        elevation=137.0, magnetic_variation=5.5),
            UserAirport(id="ESGG", name="Landvetter", latitude=57.6628, longitude=12.2798,
                        elevation=506.0),
        ],
        user_navaids=[
            UserNavaid(id="ARL", name="Arlanda VOR", latitude=59.65, longitude=17.95,
                       frequency=116.0, magnetic_variation=5.0),
        ],
        user_waypoints=[
            UserWaypoint(id="WPT01", name="WPT01", type=WaypointType.WPT, latitude=59.0, longitude=18.0),
            UserWaypoint(id="WPT02", name="WPT02", type=WaypointType.WPT, latitude=58.5, longitude=16.0),
            UserWaypoint(id="IP01", name="IP01", type=WaypointType.IP, latitude=58.0, longitude=15.0),
        ],
        system_airports=[
            SystemAirport(id="ESSB", latitude=59.354, longitude=17.94),
        ],
        routes=[
            Route(route_id="ESSA-ESG", name="ESSA-ESGG", points=[
                ref(UA, "ESSA"), ref(UW, "WPT01"), ref(UN, "ARL"), ref(UW, "WPT02"), ref(UA, "ESGG"),
            ]),
            Route(route_id="BROMMA", name="BROMMA", points=[
                ref(SA, "ESSB"), ref(UW, "IP01"), ref(UA, "ESSA"),
            ]),
        ],
    )
