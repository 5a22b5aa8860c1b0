"""A109 control files: CARACTER.P01 (date + table checksums) and PILOTE.HD.

CARACTER.P01 layout (116 bytes)::

    0-3     55 AA 55 AA magic
    4-11    "DTD{day}{month:02}{year:04}" as 6-bit text, byte 7 low bits = 10
    12-13   packed date: (day << 3 | m >> 1), (m & 1) << 7 | (year - 2000)
            with m = month - 1
    14      0x40
    16/28/40/52  0x80 sentinels
    68      WAYPOINT.P01 checksum
    80      AIRPORT.P01 checksum
    92      NAVAID.P01 checksum
    104     ROUTE.P01 checksum

A checksum slot is two big-endian signed 32-bit sums over the table read
as big-endian signed 16-bit words: even word indices into A, odd into B.

PILOTE.HD is the same date as ASCII (12 bytes, space padded) followed by
eight big-endian int32: year, month, day and the byte lengths of the
airport, navaid, waypoint, route and caracter files.
"""

from __future__ import annotations

import logging
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date

from rut.adapters.sixbit import decode_string, encode_string
from rut.contracts.enums import A109FileType

logger = logging.getLogger(__name__)

CARACTER_SIZE = 116
CARACTER_MAGIC = b"\x55\xAA\x55\xAA"
PILOTE_SIZE = 44

_SENTINEL_OFFSETS = (16, 28, 40, 52)
CHECKSUM_OFFSETS: dict[A109FileType, int] = {
    A109FileType.WAYPOINT: 68,
    A109FileType.AIRPORT: 80,
    A109FileType.NAVAID: 92,
    A109FileType.ROUTE: 104,
}

_CHECKSUM = struct.Struct(">ii")
_PILOTE_FIELDS = struct.Struct(">8i")


def _wrap_i32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def checksum(data: bytes) -> tuple[int, int]:
    """Two wrapping signed-32 sums of the big-endian int16 words of *data*.

    A trailing odd byte is ignored.
    """
    words = struct.unpack(f">{len(data) // 2}h", data[: len(data) // 2 * 2])
    return _wrap_i32(sum(words[0::2])), _wrap_i32(sum(words[1::2]))


def date_string(when: date) -> str:
    return f"DTD{when.day}{when.month:02}{when.year:04}"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def make_caracter(when: date, tables: Mapping[A109FileType, bytes]) -> bytes:
    """Build CARACTER.P01 for *when* over the four table buffers."""
    data = bytearray(CARACTER_SIZE)
    data[0:4] = CARACTER_MAGIC

    date_bytes = bytearray(encode_string(date_string(when), 10, 8))
    date_bytes[7] = (date_bytes[7] & 0xFC) | 0x02
    data[4:12] = date_bytes

    month_idx = when.month - 1
    year_offset = when.year - 2000
    data[12] = ((when.day << 3) | (month_idx >> 1)) & 0xFF
    data[13] = (((month_idx & 1) << 7) | (year_offset & 0x1F)) & 0xFF
    data[14] = 0x40
    for offset in _SENTINEL_OFFSETS:
        data[offset] = 0x80

    for file_type, offset in CHECKSUM_OFFSETS.items():
        _CHECKSUM.pack_into(data, offset, *checksum(tables.get(file_type, b"")))

    return bytes(data)


def make_pilote(when: date, sizes: Mapping[A109FileType, int]) -> bytes:
    """Build PILOTE.HD for *when* and the byte lengths of the other five files."""
    ascii_date = date_string(when).encode("ascii")[:12].ljust(12, b" ")
    return ascii_date + _PILOTE_FIELDS.pack(
        when.year,
        when.month,
        when.day,
        sizes.get(A109FileType.AIRPORT, 0),
        sizes.get(A109FileType.NAVAID, 0),
        sizes.get(A109FileType.WAYPOINT, 0),
        sizes.get(A109FileType.ROUTE, 0),
        sizes.get(A109FileType.CARACTER, 0),
    )


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PiloteHeader:
    date_text: str
    year: int
    month: int
    day: int
    sizes: dict[A109FileType, int]


@dataclass(frozen=True)
class CaracterInfo:
    date_text: str
    day: int
    month: int
    year: int
    checksums: dict[A109FileType, tuple[int, int]]


def parse_pilote_header(data: bytes) -> PiloteHeader | None:
    """Read PILOTE.HD back; *None* when the buffer is too short."""
    if len(data) < PILOTE_SIZE:
        logger.warning("PILOTE.HD too short (%d bytes)", len(data))
        return None
    fields = _PILOTE_FIELDS.unpack_from(data, 12)
    sizes = dict(zip(
        (A109FileType.AIRPORT, A109FileType.NAVAID, A109FileType.WAYPOINT,
         A109FileType.ROUTE, A109FileType.CARACTER),
        fields[3:],
    ))
    return PiloteHeader(
        date_text=data[:12].decode("ascii", errors="replace").strip(),
        year=fields[0],
        month=fields[1],
        day=fields[2],
        sizes=sizes,
    )


def parse_caracter(data: bytes) -> CaracterInfo | None:
    """Read CARACTER.P01 back; *None* when magic or length is wrong."""
    if len(data) < CARACTER_SIZE or data[0:4] != CARACTER_MAGIC:
        logger.warning("CARACTER.P01 has no valid header")
        return None

    # Drop the forced low bits of byte 7 before decoding the text.
    date_bytes = bytearray(data[4:12])
    date_bytes[7] &= 0xFC
    month_idx = ((data[12] & 0x07) << 1) | (data[13] >> 7)

    return CaracterInfo(
        date_text=decode_string(bytes(date_bytes)).strip(),
        day=data[12] >> 3,
        month=month_idx + 1,
        year=2000 + (data[13] & 0x1F),
        checksums={
            file_type: _CHECKSUM.unpack_from(data, offset)
            for file_type, offset in CHECKSUM_OFFSETS.items()
        },
    )


def verify_checksums(caracter: bytes, tables: Mapping[A109FileType, bytes]) -> list[A109FileType]:
    """Tables whose stored CARACTER.P01 checksum disagrees with their bytes.

    Only tables present in *tables* are checked. An unreadable CARACTER.P01
    yields an empty list.
    """
    info = parse_caracter(caracter)
    if info is None:
        return []
    mismatched = []
    for file_type, stored in info.checksums.items():
        if file_type in tables and checksum(tables[file_type]) != stored:
            mismatched.append(file_type)
    return mismatched
