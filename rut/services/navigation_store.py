"""NavigationStore — the live document and the editing operations on it.

Every mutation works on a deep copy of the current document and swaps
it in with a single assignment at the end, so a failed operation leaves
the store untouched and readers never see a half-applied change.

The store is a plain object; callers own its lifetime (the API keeps one
on ``app.state``).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from rut.contracts.airport import UserAirport
from rut.contracts.common import GeoPoint
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import RoutePointKind, WaypointType
from rut.contracts.navaid import UserNavaid
from rut.contracts.route import Route
from rut.contracts.waypoint import UserWaypoint
from rut.services.identifiers import (
    make_unique_id,
    make_unique_route_id,
    next_available_id,
    renumber_managed_waypoints,
    route_id_base,
    sanitized_name,
)
from rut.services.merge import merge_documents

logger = logging.getLogger(__name__)

EARTH_RADIUS_NM = 3440.065
MAX_NAME_LENGTH = 15


class NotFoundError(LookupError):
    """Raised when an operation names a route or entity the document does not have."""

    def __init__(self, what: str, ident: str | int):
        self.what = what
        self.ident = ident
        super().__init__(f"{what} not found: {ident}")


@dataclass(frozen=True)
class MapPoint:
    """A resolved route point, ready to draw."""

    coordinate: GeoPoint
    name: str
    index_in_route: int  # 1-based
    kind: RoutePointKind


def haversine_nm(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance in nautical miles."""
    la1, lo1 = math.radians(a.latitude), math.radians(a.longitude)
    la2, lo2 = math.radians(b.latitude), math.radians(b.longitude)
    h = math.sin((la2 - la1) / 2) ** 2 + math.cos(la1) * math.cos(la2) * math.sin((lo2 - lo1) / 2) ** 2
    return 2 * math.asin(math.sqrt(h)) * EARTH_RADIUS_NM


def looks_like_airport_id(value: str) -> bool:
    """Four alphanumerics starting with ``E`` (Northern European ICAO block)."""
    return len(value) == 4 and value.startswith("E") and value.isalnum()


class NavigationStore:
    """Holds the live ``NavigationDocument`` and the active route."""

    def __init__(self, document: NavigationDocument | None = None, active_route_id: str | None = None):
        self._document = document or NavigationDocument()
        self.active_route_id = active_route_id

    # --- state ---

    @property
    def document(self) -> NavigationDocument:
        return self._document

    @property
    def routes(self) -> list[Route]:
        return self._document.routes

    @property
    def active_route(self) -> Route | None:
        if self.active_route_id is None:
            return None
        return self._document.route_by_id(self.active_route_id)

    def set_active_route(self, route_id: str | None) -> None:
        if route_id is not None and self._document.route_by_id(route_id) is None:
            raise NotFoundError("route", route_id)
        self.active_route_id = route_id

    def replace_document(self, document: NavigationDocument) -> None:
        """Swap in a whole document (e.g. loaded from disk)."""
        self._commit(document)
        if self.active_route_id is None and document.routes:
            self.active_route_id = document.routes[0].id

    def _draft(self) -> NavigationDocument:
        return self._document.model_copy(deep=True)

    def _commit(self, document: NavigationDocument) -> None:
        self._document = document
        if self.active_route_id is not None and document.route_by_id(self.active_route_id) is None:
            self.active_route_id = document.routes[0].id if document.routes else None

    def _route(self, doc: NavigationDocument, route_id: str) -> Route:
        route = doc.route_by_id(route_id)
        if route is None:
            raise NotFoundError("route", route_id)
        return route

    @staticmethod
    def _index(entities: list, ident: str, what: str) -> int:
        for i, entity in enumerate(entities):
            if entity.id == ident:
                return i
        raise NotFoundError(what, ident)

    # --- merge / routes ---

    def add_or_merge(self, incoming: NavigationDocument) -> NavigationDocument:
        """Merge *incoming* into the live document; activate the first route if none is."""
        merged = merge_documents(self._document, incoming)
        self._commit(merged)
        if self.active_route_id is None and merged.routes:
            self.active_route_id = merged.routes[0].id
        return merged

    def delete_route(self, route_id: str) -> None:
        """Remove a route and the points only it referenced.

        Entities no remaining route references, but that the deleted route
        did not reference either, stay.
        """
        doc = self._draft()
        route = self._route(doc, route_id)
        doc.routes = [r for r in doc.routes if r.id != route_id]

        remaining = {p.key for r in doc.routes for p in r.points}
        orphans = {p.key for p in route.points} - remaining
        for kind in RoutePointKind:
            ids = {ref_id for k, ref_id in orphans if k == kind}
            if ids:
                target = doc.entities(kind)
                target[:] = [e for e in target if e.id not in ids]

        logger.info("Deleted route %s (%d orphaned points removed)", route.route_id, len(orphans))
        self._commit(doc)

    def update_route_name(self, route_id: str, name: str) -> Route:
        """Rename a route; its route_id follows the new name."""
        doc = self._draft()
        route = self._route(doc, route_id)
        cleaned = sanitized_name(name, MAX_NAME_LENGTH)
        used = {r.route_id for r in doc.routes if r.id != route_id}
        route.name = cleaned
        route.route_id = make_unique_route_id(route_id_base(cleaned), used)
        self._commit(doc)
        return route

    # --- create ---

    def _create(self, kind: RoutePointKind, entity):
        doc = self._draft()
        target = doc.entities(kind)
        used = {e.id for e in target}
        if entity.id in used:
            entity = entity.model_copy(update={"id": make_unique_id(entity.id, used)})
        else:
            entity = entity.model_copy()
        target.append(entity)
        self._commit(doc)
        return entity

    def create_user_airport(self, airport: UserAirport) -> UserAirport:
        return self._create(RoutePointKind.USER_AIRPORT, airport)

    def create_user_navaid(self, navaid: UserNavaid) -> UserNavaid:
        return self._create(RoutePointKind.USER_NAVAID, navaid)

    def create_user_waypoint(self, waypoint: UserWaypoint) -> UserWaypoint:
        return self._create(RoutePointKind.USER_WAYPOINT, waypoint)

    # --- update ---

    @staticmethod
    def _final_id(original_id: str, new_id: str, used: set[str]) -> str:
        requested = sanitized_name(new_id, 5) or original_id
        if requested != original_id and requested in used:
            resolved = make_unique_id(requested, used)
            logger.info("Id conflict resolved: requested %r, assigned %r", requested, resolved)
            return resolved
        return requested

    def update_waypoint(
        self,
        original_id: str,
        *,
        new_id: str,
        name: str,
        type: WaypointType,
        latitude: float,
        longitude: float,
        elevation: float = 0.0,
    ) -> UserWaypoint:
        """Edit a user waypoint.

        An id change follows into every route; a managed type renumbers the
        routes that contain the waypoint.
        """
        doc = self._draft()
        idx = self._index(doc.user_waypoints, original_id, "waypoint")
        final_id = self._final_id(original_id, new_id, doc.ids(RoutePointKind.USER_WAYPOINT))

        wp = doc.user_waypoints[idx]
        wp.id = final_id
        wp.name = sanitized_name(name, MAX_NAME_LENGTH)
        wp.type = type
        wp.latitude = latitude
        wp.longitude = longitude
        wp.elevation = elevation
        if final_id != original_id:
            doc.replace_references(RoutePointKind.USER_WAYPOINT, {original_id: final_id})

        if type.is_managed:
            affected = [r.id for r in doc.routes if r.references(RoutePointKind.USER_WAYPOINT, final_id)]
            if affected:
                doc = renumber_managed_waypoints(doc, affected)

        self._commit(doc)
        return doc.user_waypoints[idx]

    def update_airport(
        self,
        original_id: str,
        *,
        new_id: str,
        name: str,
        latitude: float,
        longitude: float,
        elevation: float = 0.0,
        magnetic_variation: float = 0.0,
    ) -> UserAirport:
        doc = self._draft()
        idx = self._index(doc.user_airports, original_id, "airport")
        final_id = self._final_id(original_id, new_id, doc.ids(RoutePointKind.USER_AIRPORT))

        ap = doc.user_airports[idx]
        ap.id = final_id
        ap.name = sanitized_name(name, MAX_NAME_LENGTH)
        ap.latitude = latitude
        ap.longitude = longitude
        ap.elevation = elevation
        ap.magnetic_variation = magnetic_variation
        if final_id != original_id:
            doc.replace_references(RoutePointKind.USER_AIRPORT, {original_id: final_id})

        self._commit(doc)
        return ap

    def update_navaid(
        self,
        original_id: str,
        *,
        new_id: str,
        name: str,
        latitude: float,
        longitude: float,
        elevation: float = 0.0,
        magnetic_variation: float = 0.0,
        frequency: float = 0.0,
    ) -> UserNavaid:
        doc = self._draft()
        idx = self._index(doc.user_navaids, original_id, "navaid")
        final_id = self._final_id(original_id, new_id, doc.ids(RoutePointKind.USER_NAVAID))

        nv = doc.user_navaids[idx]
        nv.id = final_id
        nv.name = sanitized_name(name, MAX_NAME_LENGTH)
        nv.latitude = latitude
        nv.longitude = longitude
        nv.elevation = elevation
        nv.magnetic_variation = magnetic_variation
        nv.frequency = frequency
        if final_id != original_id:
            doc.replace_references(RoutePointKind.USER_NAVAID, {original_id: final_id})

        self._commit(doc)
        return nv

    def _waypoint_at(self, doc: NavigationDocument, route_id: str, index: int) -> tuple[Route, UserWaypoint | None]:
        route = self._route(doc, route_id)
        if not 0 <= index < len(route.points):
            raise NotFoundError(f"point of route {route.route_id}", index)
        ref = route.points[index]
        if ref.kind != RoutePointKind.USER_WAYPOINT:
            return route, None
        return route, doc.find(RoutePointKind.USER_WAYPOINT, ref.ref_id)

    def update_waypoint_type(
        self,
        route_id: str,
        index: int,
        new_type: WaypointType,
        custom_id: str | None = None,
    ) -> UserWaypoint | None:
        """Change the type of the waypoint at *index* of a route.

        ``CUSTOM`` keeps the id unless a free *custom_id* is given; a
        managed type renumbers the route. Non-waypoint points are left
        alone (returns *None*).
        """
        doc = self._draft()
        route, wp = self._waypoint_at(doc, route_id, index)
        if wp is None:
            return None

        wp.type = new_type
        if new_type is WaypointType.CUSTOM:
            requested = sanitized_name(custom_id or "", 5)
            taken = doc.ids(RoutePointKind.USER_WAYPOINT) - {wp.id}
            if requested and requested not in taken and requested != wp.id:
                old_id = wp.id
                wp.id = requested
                doc.replace_references(RoutePointKind.USER_WAYPOINT, {old_id: requested})
        else:
            doc = renumber_managed_waypoints(doc, [route.id])

        self._commit(doc)
        return doc.find(RoutePointKind.USER_WAYPOINT, self._route(doc, route_id).points[index].ref_id)

    def update_waypoint_coordinate(self, route_id: str, index: int, latitude: float, longitude: float) -> UserWaypoint | None:
        doc = self._draft()
        _, wp = self._waypoint_at(doc, route_id, index)
        if wp is None:
            return None
        wp.latitude = latitude
        wp.longitude = longitude
        self._commit(doc)
        return wp

    # --- delete ---

    def _delete(self, kind: RoutePointKind, ident: str) -> bool:
        doc = self._draft()
        target = doc.entities(kind)
        kept = [e for e in target if e.id != ident]
        if len(kept) == len(target):
            return False
        target[:] = kept
        doc.remove_references(kind, {ident})
        self._commit(doc)
        return True

    def delete_user_airport(self, airport_id: str) -> bool:
        return self._delete(RoutePointKind.USER_AIRPORT, airport_id)

    def delete_user_navaid(self, navaid_id: str) -> bool:
        return self._delete(RoutePointKind.USER_NAVAID, navaid_id)

    def delete_user_waypoint(self, waypoint_id: str) -> bool:
        return self._delete(RoutePointKind.USER_WAYPOINT, waypoint_id)

    # --- ids ---

    def renumber_waypoints(self, route_ids: Iterable[str]) -> None:
        self._commit(renumber_managed_waypoints(self._document, route_ids))

    def next_available_id(self, waypoint_type: WaypointType) -> str:
        return next_available_id(waypoint_type, self._document.ids(RoutePointKind.USER_WAYPOINT))

    # --- geometry ---

    def map_points(self, route: Route) -> list[MapPoint]:
        """Resolved points of *route*; unresolved references are skipped."""
        points = []
        for i, ref in enumerate(route.points):
            entity = self._document.resolve(ref)
            if entity is not None:
                points.append(MapPoint(coordinate=entity.coordinate, name=entity.id, index_in_route=i + 1, kind=ref.kind))
        return points

    def leg_distances_nm(self, route: Route) -> list[float]:
        points = self.map_points(route)
        return [haversine_nm(a.coordinate, b.coordinate) for a, b in zip(points, points[1:])]

    def derive_user_airports(self) -> list[UserAirport]:
        """Create user airports for route points that look like airports but are not one.

        Points that already are a system or user airport are skipped.
        Returns the airports added.
        """
        doc = self._draft()
        system_ids = doc.ids(RoutePointKind.SYSTEM_AIRPORT)
        user_ids = doc.ids(RoutePointKind.USER_AIRPORT)
        derived: dict[str, UserAirport] = {}

        for route in doc.routes:
            for point in self.map_points(route):
                ident = point.name
                if point.kind == RoutePointKind.SYSTEM_AIRPORT or ident in system_ids or ident in user_ids:
                    continue
                if looks_like_airport_id(ident) and ident not in derived:
                    derived[ident] = UserAirport(
                        id=ident,
                        name=ident,
                        latitude=point.coordinate.latitude,
                        longitude=point.coordinate.longitude,
                    )

        if derived:
            doc.user_airports.extend(derived.values())
            logger.info("Derived %d user airports from route points", len(derived))
            self._commit(doc)
        return list(derived.values())
