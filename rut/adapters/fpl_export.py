"""Garmin FlightPlan v1 (.fpl) export, one file per route."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from rut.adapters.exported_file import ExportedFile, sanitized_filename
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import RoutePointKind
from rut.contracts.route import Route

FPL_NS = "http://www8.garmin.com/xmlschemas/FlightPlan/v1"
FILE_DESCRIPTION = "Exported from Rut"

_WAYPOINT_TYPES = {
    RoutePointKind.USER_WAYPOINT: "USER WAYPOINT",
    RoutePointKind.USER_AIRPORT: "AIRPORT",
    RoutePointKind.SYSTEM_AIRPORT: "AIRPORT",
    RoutePointKind.USER_NAVAID: "VOR",
    RoutePointKind.SYSTEM_NAVAID: "VOR",
}


def _text(parent: ET.Element, tag: str, value: str = "") -> ET.Element:
    el = ET.SubElement(parent, tag)
    el.text = value
    return el


def _coord(value: float) -> str:
    return f"{value:.6f}"


def build_flight_plan(document: NavigationDocument, route: Route) -> bytes | None:
    """FPL XML for one route, or *None* when no point resolves."""
    table: dict[str, tuple[str, float, float]] = {}
    ordered: list[str] = []
    for ref in route.points:
        entity = document.resolve(ref)
        if entity is None:
            continue
        table.setdefault(entity.id, (_WAYPOINT_TYPES[ref.kind], entity.latitude, entity.longitude))
        ordered.append(entity.id)

    if not ordered:
        return None

    root = ET.Element("flight-plan", xmlns=FPL_NS)
    _text(root, "file-description", FILE_DESCRIPTION)

    waypoint_table = ET.SubElement(root, "waypoint-table")
    for ident in sorted(table):
        wp_type, lat, lon = table[ident]
        wp = ET.SubElement(waypoint_table, "waypoint")
        _text(wp, "identifier", ident)
        _text(wp, "type", wp_type)
        _text(wp, "country-code")
        _text(wp, "lat", _coord(lat))
        _text(wp, "lon", _coord(lon))
        _text(wp, "comment", ident)

    route_el = ET.SubElement(root, "route")
    _text(route_el, "route-name", route.name)
    _text(route_el, "route-description")
    _text(route_el, "flight-plan-index", "1")
    for ident in ordered:
        point = ET.SubElement(route_el, "route-point")
        _text(point, "waypoint-identifier", ident)
        _text(point, "waypoint-type", table[ident][0])
        _text(point, "waypoint-country-code")

    ET.indent(root, space="  ")
    return ET.tostring(root, encoding="UTF-8", xml_declaration=True) + b"\n"


def export_fpl(document: NavigationDocument, routes: list[Route] | None = None) -> list[ExportedFile]:
    """One FPL file per route (all routes when *routes* is empty)."""
    files = []
    for route in routes or document.routes:
        xml = build_flight_plan(document, route)
        if xml is None:
            continue
        files.append(ExportedFile(
            filename=sanitized_filename(route.name, "fpl"),
            data=xml,
            media_type="application/xml",
        ))
    return files
