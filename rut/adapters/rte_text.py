"""Plain-text RTE route files.

Import accepts ``NAME LAT LON`` lines (whitespace separated) as well as
the export format below. Export writes one file per route::

    ROUTE,<name>
    POINT,<id>,<lat>,<lon>
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from rut.adapters.errors import RutFormatError
from rut.adapters.exported_file import ExportedFile, sanitized_filename
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import RoutePointKind, WaypointType
from rut.contracts.route import Route, RoutePointRef
from rut.contracts.waypoint import UserWaypoint
from rut.services.identifiers import sanitized_name

logger = logging.getLogger(__name__)

IMPORTED_ROUTE_ID = "RTE01"
IMPORTED_ROUTE_NAME = "Imported RTE"


def _parse_line(line: str) -> tuple[str, str, str] | None:
    if line.upper().startswith("POINT,"):
        parts = [p.strip() for p in line.split(",")]
        return (parts[1], parts[2], parts[3]) if len(parts) >= 4 else None
    parts = line.split()
    return (parts[0], parts[1], parts[2]) if len(parts) >= 3 else None


def parse_rte(data: bytes, filename: str = "route.rte") -> NavigationDocument:
    """Decode an RTE text file into a document with one route.

    Every point becomes a ``WPT`` user waypoint with id ``R0000``,
    ``R0001`` ... Lines that do not parse are skipped.

    Raises:
        RutFormatError: the file is not UTF-8 text.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise RutFormatError("RTE file is not valid UTF-8.", filename) from exc

    route_name = IMPORTED_ROUTE_NAME
    waypoints: list[UserWaypoint] = []

    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        if line.upper().startswith("ROUTE,"):
            route_name = line.split(",", 1)[1].strip() or route_name
            continue

        parsed = _parse_line(line)
        if parsed is None:
            logger.debug("%s:%d: not a point line", filename, line_no)
            continue
        name, lat, lon = parsed
        waypoint_id = f"R{len(waypoints):04d}"
        try:
            waypoints.append(UserWaypoint(
                id=waypoint_id,
                name=sanitized_name(name, 15) or waypoint_id,
                type=WaypointType.WPT,
                latitude=float(lat),
                longitude=float(lon),
            ))
        except (ValueError, ValidationError) as exc:
            logger.debug("%s:%d: skipped (%s)", filename, line_no, exc)

    if not waypoints:
        logger.info("%s: no route points found", filename)
        return NavigationDocument()

    route = Route(
        route_id=IMPORTED_ROUTE_ID,
        name=route_name,
        points=[RoutePointRef(kind=RoutePointKind.USER_WAYPOINT, ref_id=wp.id) for wp in waypoints],
    )
    logger.info("%s: %d points", filename, len(waypoints))
    return NavigationDocument(routes=[route], user_waypoints=waypoints)


def export_rte(document: NavigationDocument, routes: list[Route] | None = None) -> list[ExportedFile]:
    """One RTE file per route (all routes when *routes* is empty).

    Points that do not resolve are left out; a route with no resolvable
    point produces no file.
    """
    files = []
    for route in routes or document.routes:
        lines = [f"ROUTE,{route.name}"]
        for ref in route.points:
            entity = document.resolve(ref)
            if entity is not None:
                lines.append(f"POINT,{entity.id},{entity.latitude},{entity.longitude}")
        if len(lines) == 1:
            continue
        files.append(ExportedFile(
            filename=sanitized_filename(route.name, "rte"),
            data=("\n".join(lines) + "\n").encode("utf-8"),
            media_type="text/plain",
        ))
    return files
