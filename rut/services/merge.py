"""Document merge: fold an imported document into the live one.

Pipeline:
1. Normalize incoming route ids and waypoint ids against the base so
   nothing collides (incoming references follow renamed waypoints).
2. Drop incoming routes that duplicate a route already merged.
3. Bring in the waypoints the accepted routes need (all waypoints when
   the import has no routes), and every airport/navaid whose id is new.

The base document is never modified; a new document is returned.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from rut.contracts.common import GeoPoint
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import RoutePointKind
from rut.contracts.route import Route, RoutePointRef
from rut.services.identifiers import make_unique_id, make_unique_route_id, route_id_base

logger = logging.getLogger(__name__)

# Degrees, per axis.
COORDINATE_TOLERANCE = 0.00001


def normalize_incoming(base: NavigationDocument, incoming: NavigationDocument) -> NavigationDocument:
    """Copy of *incoming* whose route ids and waypoint ids are free in *base*."""
    doc = incoming.model_copy(deep=True)

    used_route_ids = {r.route_id for r in base.routes}
    for route in doc.routes:
        route.route_id = make_unique_route_id(route_id_base(route.name or route.route_id), used_route_ids)
        used_route_ids.add(route.route_id)

    used_ids = {wp.id for wp in base.user_waypoints}
    renamed: dict[str, str] = {}
    for wp in doc.user_waypoints:
        if wp.id in used_ids:
            new_id = make_unique_id(wp.id, used_ids)
            logger.debug("Incoming waypoint %s renamed to %s", wp.id, new_id)
            renamed[wp.id] = new_id
            wp.id = new_id
        used_ids.add(wp.id)
    doc.replace_references(RoutePointKind.USER_WAYPOINT, renamed)
    return doc


def _close(a: GeoPoint, b: GeoPoint) -> bool:
    # Rounded so that 59.00001 vs 59.0 is inside the tolerance.
    return (
        round(abs(a.latitude - b.latitude), 9) <= COORDINATE_TOLERANCE
        and round(abs(a.longitude - b.longitude), 9) <= COORDINATE_TOLERANCE
    )


def same_point(
    ref: RoutePointRef, owner: NavigationDocument,
    other: RoutePointRef, other_owner: NavigationDocument,
) -> bool:
    """Same (kind, id), or same kind at the same coordinate.

    A reference that does not resolve matches nothing but itself.
    """
    if ref.key == other.key:
        return True
    if ref.kind != other.kind:
        return False
    a = owner.coordinate_of(ref)
    b = other_owner.coordinate_of(other)
    if a is None or b is None:
        return False
    return _close(a, b)


def is_duplicate_route(
    route: Route, owner: NavigationDocument,
    existing: Route, existing_owner: NavigationDocument,
) -> bool:
    """Same name (case-insensitive), same length, and every position the same point."""
    if route.name.casefold() != existing.name.casefold():
        return False
    if len(route.points) != len(existing.points):
        return False
    return all(
        same_point(a, owner, b, existing_owner)
        for a, b in zip(route.points, existing.points)
    )


def merge_documents(base: NavigationDocument, incoming: NavigationDocument) -> NavigationDocument:
    """Merge *incoming* into a copy of *base* and return it.

    Never fails. Re-merging a document that was already merged adds no
    route.
    """
    normalized = normalize_incoming(base, incoming)
    merged = base.model_copy(deep=True)

    candidates: list[tuple[Route, NavigationDocument]] = [(r, base) for r in base.routes]
    route_uuids = {r.id for r in merged.routes}
    needed_waypoints: set[str] = set()
    added = 0

    for route in normalized.routes:
        if any(is_duplicate_route(route, normalized, r, owner) for r, owner in candidates):
            logger.info("Skipping duplicate route %r", route.name)
            continue
        if route.id in route_uuids:
            route.id = str(uuid4())
        route_uuids.add(route.id)
        merged.routes.append(route)
        candidates.append((route, normalized))
        needed_waypoints.update(
            p.ref_id for p in route.points if p.kind == RoutePointKind.USER_WAYPOINT
        )
        added += 1

    waypoint_ids = merged.ids(RoutePointKind.USER_WAYPOINT)
    for wp in normalized.user_waypoints:
        if normalized.routes and wp.id not in needed_waypoints:
            continue
        if wp.id not in waypoint_ids:
            merged.user_waypoints.append(wp)
            waypoint_ids.add(wp.id)

    for kind in (
        RoutePointKind.USER_AIRPORT,
        RoutePointKind.USER_NAVAID,
        RoutePointKind.SYSTEM_AIRPORT,
        RoutePointKind.SYSTEM_NAVAID,
    ):
        ids = merged.ids(kind)
        target = merged.entities(kind)
        for entity in normalized.entities(kind):
            if entity.id not in ids:
                target.append(entity)
                ids.add(entity.id)

    logger.info(
        "Merged %d of %d incoming routes (%d routes total)",
        added, len(normalized.routes), len(merged.routes),
    )
    return merged
