"""A109 file set codec — NavigationDocument <-> the six A109 files.

Usage::

    from rut.adapters.a109_fileset import decode_a109_file_set, encode_a109_file_set

    file_set = encode_a109_file_set(document, date(2025, 11, 7))
    for filename, data in file_set.files().items():
        ...

    document = decode_a109_file_set({"AIRPORT.P01": raw, "ROUTE.P01": raw2})
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from rut.adapters import a109_records as records
from rut.adapters.a109_header import (
    make_caracter,
    make_pilote,
    parse_caracter,
    parse_pilote_header,
    verify_checksums,
)
from rut.adapters.a109_records import TableLayout
from rut.adapters.errors import TableTruncation, UnrecognizedFileTypeError
from rut.contracts.airport import UserAirport
from rut.contracts.document import NavigationDocument
from rut.contracts.enums import A109FileType, RoutePointKind
from rut.contracts.navaid import UserNavaid
from rut.contracts.route import MAX_ROUTE_POINTS, Route
from rut.contracts.waypoint import UserWaypoint
from rut.services.identifiers import make_unique_route_id, route_id_base

logger = logging.getLogger(__name__)

LAYOUTS: dict[A109FileType, TableLayout] = {
    A109FileType.AIRPORT: records.AIRPORT_TABLE,
    A109FileType.NAVAID: records.NAVAID_TABLE,
    A109FileType.WAYPOINT: records.WAYPOINT_TABLE,
    A109FileType.ROUTE: records.ROUTE_TABLE,
}

# Filename keywords, checked in this order.
_KEYWORDS = (
    ("AIRPORT", A109FileType.AIRPORT),
    ("NAVAID", A109FileType.NAVAID),
    ("WAYPOINT", A109FileType.WAYPOINT),
    ("ROUTE", A109FileType.ROUTE),
    ("PILOTE", A109FileType.PILOTE),
    ("CARACTER", A109FileType.CARACTER),
)

TABLE_TRAILER = 4
MAX_MEMBERSHIP = 0xF8


@dataclass
class A109FileSet:
    """The six encoded buffers plus export warnings."""

    pilote_hd: bytes
    airport_p01: bytes
    navaid_p01: bytes
    waypoint_p01: bytes
    route_p01: bytes
    caracter_p01: bytes
    truncations: list[TableTruncation] = field(default_factory=list)

    def files(self) -> dict[str, bytes]:
        """``{filename: bytes}`` in the order the avionics loader expects."""
        return {
            A109FileType.PILOTE.value: self.pilote_hd,
            A109FileType.AIRPORT.value: self.airport_p01,
            A109FileType.NAVAID.value: self.navaid_p01,
            A109FileType.WAYPOINT.value: self.waypoint_p01,
            A109FileType.ROUTE.value: self.route_p01,
            A109FileType.CARACTER.value: self.caracter_p01,
        }


@dataclass
class DecodeContext:
    """Entity arrays route db indexes fall back to when a table is not in the set."""

    airports: Sequence[UserAirport] = ()
    navaids: Sequence[UserNavaid] = ()
    waypoints: Sequence[UserWaypoint] = ()

    @classmethod
    def from_document(cls, document: NavigationDocument) -> DecodeContext:
        return cls(
            airports=list(document.user_airports),
            navaids=list(document.user_navaids),
            waypoints=list(document.user_waypoints),
        )


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def airport_usage_counts(routes: Iterable[Route]) -> Counter[str]:
    """Route usage per user airport: one per occurrence, plus one per route start and end."""
    counts: Counter[str] = Counter()
    for route in routes:
        if not route.points:
            continue
        for end in (route.points[0], route.points[-1]):
            if end.kind == RoutePointKind.USER_AIRPORT:
                counts[end.ref_id] += 1
        for ref in route.points:
            if ref.kind == RoutePointKind.USER_AIRPORT:
                counts[ref.ref_id] += 1
    return counts


def navaid_usage_counts(routes: Iterable[Route]) -> Counter[str]:
    counts: Counter[str] = Counter()
    for route in routes:
        for ref in route.points:
            if ref.kind == RoutePointKind.USER_NAVAID:
                counts[ref.ref_id] += 1
    return counts


def waypoint_route_membership(routes: Iterable[Route]) -> dict[str, int]:
    """WAYPOINT.P01 byte 21 per waypoint: ``(first route index + 1) * 8``, capped at 0xF8."""
    membership: dict[str, int] = {}
    for route_index, route in enumerate(routes):
        value = min((route_index + 1) * 8, MAX_MEMBERSHIP)
        for ref in route.points:
            if ref.kind == RoutePointKind.USER_WAYPOINT:
                membership.setdefault(ref.ref_id, value)
    return membership


def _clamp(items: list, layout: TableLayout, truncations: list[TableTruncation]) -> list:
    if len(items) > layout.capacity:
        warning = TableTruncation(layout.filename, len(items), layout.capacity)
        logger.warning("Export truncated: %s", warning)
        truncations.append(warning)
    return items[: layout.capacity]


def encode_a109_file_set(document: NavigationDocument, when: date | None = None) -> A109FileSet:
    """Encode *document* into a complete A109 file set dated *when* (default: today).

    Never fails: arrays beyond table capacity and routes beyond 40
    listable points are cut, with a ``TableTruncation`` recorded for each.
    """
    when = when or date.today()
    truncations: list[TableTruncation] = []

    airports = _clamp(document.user_airports, records.AIRPORT_TABLE, truncations)
    navaids = _clamp(document.user_navaids, records.NAVAID_TABLE, truncations)
    waypoints = _clamp(document.user_waypoints, records.WAYPOINT_TABLE, truncations)
    routes = _clamp(document.routes, records.ROUTE_TABLE, truncations)

    airport_usage = airport_usage_counts(routes)
    navaid_usage = navaid_usage_counts(routes)
    membership = waypoint_route_membership(routes)

    airport_index = _first_positions(airports)
    navaid_index = _first_positions(navaids)
    waypoint_index = _first_positions(waypoints)

    route_records = []
    for route in routes:
        listed = len(records.listed_points(route))
        if listed > MAX_ROUTE_POINTS:
            warning = TableTruncation(records.ROUTE_TABLE.filename, listed, MAX_ROUTE_POINTS, subject=route.route_id)
            logger.warning("Export truncated: %s", warning)
            truncations.append(warning)
        route_records.append(records.encode_route(route, airport_index, navaid_index, waypoint_index))

    tables = {
        A109FileType.AIRPORT: records.pack_table(
            records.AIRPORT_TABLE,
            [records.encode_airport(a, airport_usage[a.id]) for a in airports],
        ),
        A109FileType.NAVAID: records.pack_table(
            records.NAVAID_TABLE,
            [records.encode_navaid(n, navaid_usage[n.id]) for n in navaids],
        ),
        A109FileType.WAYPOINT: records.pack_table(
            records.WAYPOINT_TABLE,
            [records.encode_waypoint(w, membership.get(w.id, 0)) for w in waypoints],
        ),
        A109FileType.ROUTE: records.pack_table(
            records.ROUTE_TABLE, route_records, empty_record=records.EMPTY_ROUTE_RECORD,
        ),
    }

    caracter = make_caracter(when, tables)
    sizes = {file_type: len(data) for file_type, data in tables.items()}
    sizes[A109FileType.CARACTER] = len(caracter)
    pilote = make_pilote(when, sizes)

    logger.info(
        "Encoded A109 set (%s): %d airports, %d navaids, %d waypoints, %d routes",
        when.isoformat(), len(airports), len(navaids), len(waypoints), len(routes),
    )
    return A109FileSet(
        pilote_hd=pilote,
        airport_p01=tables[A109FileType.AIRPORT],
        navaid_p01=tables[A109FileType.NAVAID],
        waypoint_p01=tables[A109FileType.WAYPOINT],
        route_p01=tables[A109FileType.ROUTE],
        caracter_p01=caracter,
        truncations=truncations,
    )


def _first_positions(entities: Sequence[Any]) -> dict[str, int]:
    positions: dict[str, int] = {}
    for i, entity in enumerate(entities):
        positions.setdefault(entity.id, i)
    return positions


# ---------------------------------------------------------------------------
# File type detection
# ---------------------------------------------------------------------------


_CANONICAL_SIZES = {
    records.WAYPOINT_TABLE.file_size: A109FileType.WAYPOINT,
    records.ROUTE_TABLE.file_size: A109FileType.ROUTE,
    116: A109FileType.CARACTER,
    44: A109FileType.PILOTE,
}


def _airport_or_navaid(data: bytes) -> A109FileType:
    if len(data) > records.HEADER_SIZE and data[records.HEADER_SIZE] == records.NAVAID_MARKER:
        return A109FileType.NAVAID
    return A109FileType.AIRPORT


def detect_file_type(filename: str, data: bytes) -> A109FileType:
    """Identify an A109 file from its name, else from its size.

    Checks run in this order:
    1. A keyword in the file name.
    2. The exact size of a full file (4020, 2820, 50020, 116 and 44 bytes).
    3. The record-size remainder of the payload after the 16-byte header,
       with and without the 4-byte trailer.

    An unnamed 44-byte file is therefore PILOTE.HD even though its payload
    would also fit one 28-byte waypoint record; a one-waypoint table is
    recognized only by its name.

    Raises:
        UnrecognizedFileTypeError: neither name nor size is conclusive.
    """
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].upper()
    for keyword, file_type in _KEYWORDS:
        if keyword in name:
            return file_type

    size = len(data)
    if size == records.AIRPORT_TABLE.file_size:
        return _airport_or_navaid(data)
    if size in _CANONICAL_SIZES:
        return _CANONICAL_SIZES[size]

    for payload in (size - records.HEADER_SIZE, size - records.HEADER_SIZE - TABLE_TRAILER):
        if payload <= 0:
            continue
        if payload % records.AIRPORT_TABLE.record_size == 0:
            return _airport_or_navaid(data)
        if payload % records.WAYPOINT_TABLE.record_size == 0:
            return A109FileType.WAYPOINT
        if payload % records.ROUTE_TABLE.record_size == 0:
            return A109FileType.ROUTE

    raise UnrecognizedFileTypeError(filename)


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def _decode_slots(layout: TableLayout, data: bytes, decoder: Callable[[bytes], Any]) -> list[Any]:
    """One entry per table slot; *None* where the slot holds nothing usable."""
    return [decoder(record) for _, record in records.iter_records(data, layout.record_size)]


def _compact(slots: Iterable[Any], label: str) -> list[Any]:
    result, seen = [], set()
    for entity in slots:
        if entity is None:
            continue
        if entity.id in seen:
            logger.debug("Duplicate %s id %r ignored", label, entity.id)
            continue
        seen.add(entity.id)
        result.append(entity)
    return result


def decode_routes(
    data: bytes,
    airports: Sequence[UserAirport | None],
    navaids: Sequence[UserNavaid | None],
    waypoints: Sequence[UserWaypoint | None],
) -> list[Route]:
    """Decode ROUTE.P01 against the given table rows.

    Routes that end up with no points are dropped. Route ids come from
    the route names, unique within the decoded set.
    """
    routes: list[Route] = []
    used: set[str] = set()
    for slot, record in records.iter_records(data, records.ROUTE_TABLE.record_size):
        decoded = records.decode_route(record, airports, navaids, waypoints)
        if decoded is None:
            continue
        if not decoded.points:
            logger.debug("Route slot %d (%r) has no resolvable points, dropped", slot, decoded.name)
            continue
        route_id = make_unique_route_id(route_id_base(decoded.name), used)
        used.add(route_id)
        routes.append(Route(route_id=route_id, name=decoded.name or route_id, points=decoded.points))
    return routes


def decode_table(file_type: A109FileType, data: bytes, context: DecodeContext | None = None) -> list[Any]:
    """Decode one P01 table into its entity list.

    Route db indexes resolve against *context*.
    """
    context = context or DecodeContext()
    if file_type == A109FileType.AIRPORT:
        return _compact(_decode_slots(records.AIRPORT_TABLE, data, records.decode_airport), "airport")
    if file_type == A109FileType.NAVAID:
        return _compact(_decode_slots(records.NAVAID_TABLE, data, records.decode_navaid), "navaid")
    if file_type == A109FileType.WAYPOINT:
        return _compact(_decode_slots(records.WAYPOINT_TABLE, data, records.decode_waypoint), "waypoint")
    if file_type == A109FileType.ROUTE:
        return decode_routes(data, context.airports, context.navaids, context.waypoints)
    raise ValueError(f"{file_type.value} is not a record table")


def decode_a109_file_set(
    files: Mapping[str, bytes] | Iterable[tuple[str, bytes]],
    context: DecodeContext | None = None,
    warnings: list[str] | None = None,
) -> NavigationDocument:
    """Decode any subset of an A109 file set into a new document.

    Routes resolve against the tables decoded from the same set and fall
    back to *context* for tables the set does not contain. CARACTER.P01
    checksums are verified when present; mismatches are logged and
    appended to *warnings*, never raised.

    Raises:
        UnrecognizedFileTypeError: a file could not be identified.
    """
    context = context or DecodeContext()
    items = files.items() if isinstance(files, Mapping) else files

    by_type: dict[A109FileType, bytes] = {}
    for filename, data in items:
        file_type = detect_file_type(filename, data)
        if file_type in by_type:
            logger.warning("Duplicate %s in file set, using %s", file_type.value, filename)
        by_type[file_type] = data

    airport_rows: Sequence[UserAirport | None] = context.airports
    navaid_rows: Sequence[UserNavaid | None] = context.navaids
    waypoint_rows: Sequence[UserWaypoint | None] = context.waypoints
    if A109FileType.AIRPORT in by_type:
        airport_rows = _decode_slots(records.AIRPORT_TABLE, by_type[A109FileType.AIRPORT], records.decode_airport)
    if A109FileType.NAVAID in by_type:
        navaid_rows = _decode_slots(records.NAVAID_TABLE, by_type[A109FileType.NAVAID], records.decode_navaid)
    if A109FileType.WAYPOINT in by_type:
        waypoint_rows = _decode_slots(
            records.WAYPOINT_TABLE, by_type[A109FileType.WAYPOINT], records.decode_waypoint,
        )

    document = NavigationDocument(
        user_airports=_compact(airport_rows, "airport") if A109FileType.AIRPORT in by_type else [],
        user_navaids=_compact(navaid_rows, "navaid") if A109FileType.NAVAID in by_type else [],
        user_waypoints=_compact(waypoint_rows, "waypoint") if A109FileType.WAYPOINT in by_type else [],
    )
    if A109FileType.ROUTE in by_type:
        document.routes = decode_routes(by_type[A109FileType.ROUTE], airport_rows, navaid_rows, waypoint_rows)

    _check_control_files(by_type, warnings)

    logger.info(
        "Decoded A109 set: %d airports, %d navaids, %d waypoints, %d routes",
        len(document.user_airports), len(document.user_navaids),
        len(document.user_waypoints), len(document.routes),
    )
    return document


def _check_control_files(by_type: dict[A109FileType, bytes], warnings: list[str] | None) -> None:
    if A109FileType.PILOTE in by_type:
        header = parse_pilote_header(by_type[A109FileType.PILOTE])
        if header is not None:
            logger.debug("PILOTE.HD dated %04d-%02d-%02d", header.year, header.month, header.day)

    caracter = by_type.get(A109FileType.CARACTER)
    if caracter is None:
        return
    if parse_caracter(caracter) is None:
        _warn(warnings, "CARACTER.P01 is not valid, checksums not verified")
        return

    tables = {t: data for t, data in by_type.items() if t.is_table}
    for file_type in verify_checksums(caracter, tables):
        _warn(warnings, f"{file_type.value}: checksum does not match CARACTER.P01")


def _warn(warnings: list[str] | None, message: str) -> None:
    logger.warning(message)
    if warnings is not None:
        warnings.append(message)
