"""A109 P01 record codecs — one fixed-size record per airport/navaid/waypoint/route.

Every P01 table is a 16-byte presence header followed by ``capacity``
fixed-size records, zero-padded to a fixed file length:

=============  ======  ===========  =========
Table          Record  Capacity     File size
=============  ======  ===========  =========
AIRPORT.P01    40 B    100          4020 B
NAVAID.P01     40 B    100          4020 B
WAYPOINT.P01   28 B    100          2820 B
ROUTE.P01      500 B   100          50020 B
=============  ======  ===========  =========

Floats are big-endian IEEE-754 float32; text uses the 6-bit codec.
Record decoders return *None* for empty slots and for records that do not
hold a valid entity; one bad record never fails the table.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from pydantic import ValidationError

from rut.adapters.sixbit import (
    decode_string,
    decode_waypoint_id,
    encode_string,
    encode_waypoint_id,
    sanitize,
)
from rut.contracts.airport import UserAirport
from rut.contracts.enums import RoutePointKind, WaypointType
from rut.contracts.navaid import UserNavaid
from rut.contracts.route import MAX_ROUTE_POINTS, Route, RoutePointRef
from rut.contracts.waypoint import UserWaypoint

logger = logging.getLogger(__name__)

HEADER_SIZE = 16
TABLE_CAPACITY = 100

_F32 = struct.Struct(">f")
_F32_MAX = 3.4028234663852886e38

# Navaid record marker (byte 0); also tells NAVAID.P01 from AIRPORT.P01.
NAVAID_MARKER = 0xE0

# Route point entry type codes (entry byte 11)
POINT_AIRPORT = 0x5C
POINT_WAYPOINT = 0x6C
POINT_NAVAID = 0x7C
POINT_TERMINATOR = 0x8C

# Logistics header endpoint type bits (record byte 16)
LOGISTICS_NONE = 0b010
LOGISTICS_SYSTEM_AIRPORT = 0b100
LOGISTICS_USER_AIRPORT = 0b101
DEFAULT_ROUTE_STATUS = 0x48  # (NONE << 5) | (NONE << 2)

ROUTE_POINTS_OFFSET = 20
ROUTE_POINT_SIZE = 12


@dataclass(frozen=True)
class TableLayout:
    """Geometry of one P01 table."""

    filename: str
    record_size: int
    file_size: int
    capacity: int = TABLE_CAPACITY


AIRPORT_TABLE = TableLayout("AIRPORT.P01", record_size=40, file_size=4020)
NAVAID_TABLE = TableLayout("NAVAID.P01", record_size=40, file_size=4020)
WAYPOINT_TABLE = TableLayout("WAYPOINT.P01", record_size=28, file_size=2820)
ROUTE_TABLE = TableLayout("ROUTE.P01", record_size=500, file_size=50020)


# ---------------------------------------------------------------------------
# Table framing
# ---------------------------------------------------------------------------


def presence_header(count: int, capacity: int = TABLE_CAPACITY) -> bytes:
    """Build the 16-byte table header for ``count`` populated slots.

    Bytes 0-12 are an MSB-first bitmap of the populated slots, byte 13 is
    ``128`` for a full table and ``129 + count`` otherwise, byte 14 is
    ``count * 2`` and byte 15 is zero.
    """
    n = max(0, min(capacity, count))
    header = bytearray(HEADER_SIZE)
    for i in range(n):
        header[i // 8] |= 1 << (7 - i % 8)
    header[13] = 128 if n == capacity else 129 + n
    header[14] = n * 2
    return bytes(header)


def pack_table(layout: TableLayout, records: Sequence[bytes], empty_record: bytes | None = None) -> bytes:
    """Assemble header + records + empty slots, padded to the table's file size.

    ``records`` beyond the capacity are ignored; callers clamp and warn.
    """
    records = list(records[: layout.capacity])
    empty = empty_record if empty_record is not None else bytes(layout.record_size)

    data = bytearray(presence_header(len(records), layout.capacity))
    for record in records:
        data += record
    data += empty * (layout.capacity - len(records))

    if len(data) < layout.file_size:
        data += bytes(layout.file_size - len(data))
    return bytes(data[: layout.file_size])


def iter_records(data: bytes, record_size: int) -> Iterator[tuple[int, bytes]]:
    """Yield ``(slot, record)`` for every complete record after the header."""
    slot = 0
    offset = HEADER_SIZE
    while offset + record_size <= len(data):
        yield slot, bytes(data[offset: offset + record_size])
        slot += 1
        offset += record_size


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _pack_f32(value: float) -> bytes:
    return _F32.pack(max(-_F32_MAX, min(_F32_MAX, value)))


def _unpack_f32(record: bytes, offset: int) -> float:
    return _F32.unpack_from(record, offset)[0]


def _text(record: bytes, start: int, end: int) -> str:
    return decode_string(record[start:end]).strip()


# ---------------------------------------------------------------------------
# AIRPORT.P01
# ---------------------------------------------------------------------------


def airport_usage_byte(usage_count: int) -> int:
    """Derived usage value (record byte 17) for an airport without a preserved blob."""
    if usage_count <= 0:
        return 6
    if usage_count == 1:
        return 14
    return 30


def encode_airport(airport: UserAirport, usage_count: int = 0) -> bytes:
    """Encode one 40-byte AIRPORT.P01 record."""
    record = bytearray(AIRPORT_TABLE.record_size)
    record[0:4] = encode_string(airport.id, 5, 4)
    record[4:12] = encode_string(airport.name, 10, 8)

    if len(airport.raw_unknown1) == 4:
        record[12:16] = airport.raw_unknown1
    if len(airport.usage) == 4:
        record[16:20] = airport.usage
    else:
        record[17] = airport_usage_byte(usage_count)

    record[20:24] = _pack_f32(airport.latitude)
    record[24:28] = _pack_f32(airport.longitude)
    if len(airport.longest_runway) == 4:
        record[28:32] = airport.longest_runway
    record[32:36] = _pack_f32(airport.magnetic_variation)
    record[36:40] = _pack_f32(airport.elevation)
    return bytes(record)


def decode_airport(record: bytes) -> UserAirport | None:
    """Decode one AIRPORT.P01 record; *None* for empty or invalid slots."""
    airport_id = _text(record, 0, 4)
    if not airport_id:
        return None
    try:
        return UserAirport(
            id=airport_id,
            name=_text(record, 4, 12),
            raw_unknown1=record[12:16],
            usage=record[16:20],
            latitude=_unpack_f32(record, 20),
            longitude=_unpack_f32(record, 24),
            longest_runway=record[28:32],
            magnetic_variation=_unpack_f32(record, 32),
            elevation=_unpack_f32(record, 36),
        )
    except ValidationError as exc:
        logger.debug("Skipping airport record %r: %s", airport_id, exc)
        return None


# ---------------------------------------------------------------------------
# NAVAID.P01
# ---------------------------------------------------------------------------


def navaid_usage_flag(usage_count: int) -> int:
    """Usage flag (record byte 2) from the number of route references."""
    if usage_count <= 0:
        return 0x30
    if usage_count == 1:
        return 0x70
    return 0xF0


def encode_navaid(navaid: UserNavaid, usage_count: int = 0) -> bytes:
    """Encode one 40-byte NAVAID.P01 record."""
    record = bytearray(NAVAID_TABLE.record_size)
    record[0] = NAVAID_MARKER
    record[2] = navaid_usage_flag(usage_count)
    record[4:8] = encode_string(navaid.id, 5, 4)
    record[8:16] = encode_string(navaid.name, 10, 8)
    record[20:24] = _pack_f32(navaid.frequency)
    record[24:28] = _pack_f32(navaid.longitude)
    record[28:32] = _pack_f32(navaid.latitude)
    record[32:36] = _pack_f32(navaid.magnetic_variation)
    record[36:40] = _pack_f32(navaid.elevation)
    return bytes(record)


def decode_navaid(record: bytes) -> UserNavaid | None:
    """Decode one NAVAID.P01 record; *None* unless byte 0 carries the navaid marker."""
    if record[0] != NAVAID_MARKER:
        return None
    navaid_id = _text(record, 4, 8)
    if not navaid_id:
        return None
    try:
        return UserNavaid(
            id=navaid_id,
            name=_text(record, 8, 16),
            frequency=_unpack_f32(record, 20),
            longitude=_unpack_f32(record, 24),
            latitude=_unpack_f32(record, 28),
            magnetic_variation=_unpack_f32(record, 32),
            elevation=_unpack_f32(record, 36),
        )
    except ValidationError as exc:
        logger.debug("Skipping navaid record %r: %s", navaid_id, exc)
        return None


# ---------------------------------------------------------------------------
# WAYPOINT.P01
# ---------------------------------------------------------------------------


def encode_waypoint(waypoint: UserWaypoint, route_membership: int = 0) -> bytes:
    """Encode one 28-byte WAYPOINT.P01 record.

    ``route_membership`` is the precomputed byte 21 value
    (``(first_route_index + 1) * 8``, or 0 when on no route).
    """
    record = bytearray(WAYPOINT_TABLE.record_size)
    record[0:4] = _pack_f32(waypoint.latitude)
    record[4:8] = _pack_f32(waypoint.longitude)
    record[8:20] = encode_string(waypoint.name, 15, 12)
    record[21] = route_membership & 0xFF
    record[24:28] = encode_waypoint_id(waypoint.id)
    return bytes(record)


def decode_waypoint(record: bytes) -> UserWaypoint | None:
    """Decode one WAYPOINT.P01 record.

    All-zero id bytes mark an empty slot. The id is read with the
    waypoint-id transform, falling back to the plain 6-bit decode.
    The table carries no waypoint type, so decoded waypoints are ``WPT``.
    """
    id_raw = record[24:28]
    if not any(id_raw):
        return None

    waypoint_id = decode_waypoint_id(id_raw).strip()
    if not waypoint_id:
        waypoint_id = decode_string(id_raw).strip()
    if not waypoint_id:
        return None

    name = _text(record, 8, 20)
    try:
        return UserWaypoint(
            id=waypoint_id,
            name=name or waypoint_id,
            type=WaypointType.WPT,
            latitude=_unpack_f32(record, 0),
            longitude=_unpack_f32(record, 4),
            elevation=0.0,
        )
    except ValidationError as exc:
        logger.debug("Skipping waypoint record %r: %s", waypoint_id, exc)
        return None


# ---------------------------------------------------------------------------
# ROUTE.P01
# ---------------------------------------------------------------------------


@dataclass
class DecodedRoute:
    """Name and resolved points of one ROUTE.P01 record."""

    name: str
    points: list[RoutePointRef] = field(default_factory=list)


def _empty_route_record() -> bytes:
    record = bytearray(ROUTE_TABLE.record_size)
    record[16] = DEFAULT_ROUTE_STATUS
    for slot in range(MAX_ROUTE_POINTS):
        record[ROUTE_POINTS_OFFSET + slot * ROUTE_POINT_SIZE + 11] = POINT_TERMINATOR
    return bytes(record)


EMPTY_ROUTE_RECORD = _empty_route_record()


def listed_points(route: Route) -> list[RoutePointRef]:
    """Points written to the record's point list.

    A system-airport start or end is carried by the logistics header only.
    """
    points = route.points
    last = len(points) - 1
    listed = []
    for i, ref in enumerate(points):
        if i == 0 and ref.kind == RoutePointKind.SYSTEM_AIRPORT:
            continue
        if i == last and ref.kind == RoutePointKind.SYSTEM_AIRPORT:
            continue
        listed.append(ref)
    return listed


def _logistics_entry(ref: RoutePointRef, airport_index: dict[str, int]) -> tuple[bytes, int, int]:
    """``(3 id bytes, db index, type bits)`` for an airport endpoint."""
    id3 = encode_string(ref.ref_id, 4, 4)[:3]
    if ref.kind == RoutePointKind.USER_AIRPORT and ref.ref_id in airport_index:
        return id3, (airport_index[ref.ref_id] + 1) * 2, LOGISTICS_USER_AIRPORT
    if ref.kind == RoutePointKind.SYSTEM_AIRPORT:
        return id3, 0, LOGISTICS_SYSTEM_AIRPORT
    return id3, 0, LOGISTICS_NONE


_POINT_TYPE_CODES = {
    RoutePointKind.USER_AIRPORT: POINT_AIRPORT,
    RoutePointKind.SYSTEM_AIRPORT: POINT_AIRPORT,
    RoutePointKind.USER_WAYPOINT: POINT_WAYPOINT,
    RoutePointKind.USER_NAVAID: POINT_NAVAID,
    RoutePointKind.SYSTEM_NAVAID: POINT_NAVAID,
}


def route_record_name(route: Route) -> str:
    """Name written to bytes 0-7, reduced to the 6-bit alphabet.

    A name with no encodable character would leave byte 0 null, which
    marks an empty slot, so the route id stands in for it.
    """
    return sanitize(route.name) or sanitize(route.route_id) or "ROUTE"


def encode_route(
    route: Route,
    airport_index: dict[str, int],
    navaid_index: dict[str, int],
    waypoint_index: dict[str, int],
) -> bytes:
    """Encode one 500-byte ROUTE.P01 record.

    The ``*_index`` maps give each exported entity's table position; a
    point's db index byte is ``(position + 1) * 2``, or 0 for system and
    unresolved points. Points past ``MAX_ROUTE_POINTS`` are dropped.
    """
    record = bytearray(EMPTY_ROUTE_RECORD)
    record[0:8] = encode_string(route_record_name(route), 10, 8)

    first = route.points[0] if route.points else None
    last = route.points[-1] if route.points else None
    start_is_airport = first is not None and first.kind.is_airport
    end_is_airport = last is not None and last.kind.is_airport

    status = DEFAULT_ROUTE_STATUS
    if start_is_airport or end_is_airport:
        start_bits = dest_bits = LOGISTICS_NONE
        if start_is_airport:
            id3, db_index, start_bits = _logistics_entry(first, airport_index)
            record[8:11] = id3
            record[11] = db_index
        if end_is_airport:
            id3, db_index, dest_bits = _logistics_entry(last, airport_index)
            record[12:15] = id3
            record[15] = db_index
        status = (start_bits << 5) | (dest_bits << 2)
    record[16] = status

    points = listed_points(route)[:MAX_ROUTE_POINTS]
    record[17] = len(points) // 8
    record[18] = (len(points) % 8) * 32

    indexes = {
        RoutePointKind.USER_AIRPORT: airport_index,
        RoutePointKind.USER_NAVAID: navaid_index,
        RoutePointKind.USER_WAYPOINT: waypoint_index,
    }
    for slot, ref in enumerate(points):
        offset = ROUTE_POINTS_OFFSET + slot * ROUTE_POINT_SIZE
        position = indexes.get(ref.kind, {}).get(ref.ref_id)
        record[offset] = (position + 1) * 2 if position is not None else 0
        record[offset + 4: offset + 8] = encode_string(ref.ref_id, 5, 4)
        record[offset + 11] = _POINT_TYPE_CODES[ref.kind]

    return bytes(record)


def _logistics_ident(id3: bytes) -> str:
    return decode_string(bytes(id3) + b"\x00").strip()


def decode_route(
    record: bytes,
    airports: Sequence[UserAirport | None],
    navaids: Sequence[UserNavaid | None],
    waypoints: Sequence[UserWaypoint | None],
) -> DecodedRoute | None:
    """Decode one ROUTE.P01 record against the tables its db indexes point into.

    A db index ``b`` refers to row ``b // 2 - 1`` of the table named by the
    entry's type code; rows outside the supplied arrays and *None* rows
    (empty table slots) are dropped from the route. Entries with db index
    0 are system points: airports and navaids come back as system
    references, waypoints are dropped.
    System-airport endpoints are restored from the logistics header.
    """
    if record[0] == 0:
        return None

    name = _text(record, 0, 8)
    count = min(record[17] * 8 + (record[18] >> 5), MAX_ROUTE_POINTS)

    tables = {
        POINT_AIRPORT: (RoutePointKind.USER_AIRPORT, RoutePointKind.SYSTEM_AIRPORT, airports),
        POINT_NAVAID: (RoutePointKind.USER_NAVAID, RoutePointKind.SYSTEM_NAVAID, navaids),
        POINT_WAYPOINT: (RoutePointKind.USER_WAYPOINT, None, waypoints),
    }

    points: list[RoutePointRef] = []
    for slot in range(count):
        offset = ROUTE_POINTS_OFFSET + slot * ROUTE_POINT_SIZE
        db_byte = record[offset]
        type_code = record[offset + 11]
        if type_code == POINT_TERMINATOR:
            break
        if type_code not in tables:
            logger.debug("Route %r: unknown point type 0x%02X in slot %d", name, type_code, slot)
            continue

        user_kind, system_kind, entities = tables[type_code]
        if db_byte == 0:
            ident = _text(record, offset + 4, offset + 8)
            if system_kind is not None and ident:
                points.append(RoutePointRef(kind=system_kind, ref_id=ident))
            continue

        row = db_byte // 2 - 1
        entity = entities[row] if 0 <= row < len(entities) else None
        if entity is not None:
            points.append(RoutePointRef(kind=user_kind, ref_id=entity.id))
        else:
            logger.debug("Route %r: db index %d out of range, point dropped", name, db_byte)

    status = record[16]
    if (status >> 5) & 0b111 == LOGISTICS_SYSTEM_AIRPORT:
        ident = _logistics_ident(record[8:11])
        if ident:
            points.insert(0, RoutePointRef(kind=RoutePointKind.SYSTEM_AIRPORT, ref_id=ident))
    if (status >> 2) & 0b111 == LOGISTICS_SYSTEM_AIRPORT:
        ident = _logistics_ident(record[12:15])
        if ident:
            points.append(RoutePointRef(kind=RoutePointKind.SYSTEM_AIRPORT, ref_id=ident))

    return DecodedRoute(name=name, points=points)
