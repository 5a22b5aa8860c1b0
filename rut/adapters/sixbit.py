"""A109 6-bit text codec.

The A109 tables store text as 6-bit codes packed five to a 32-bit
big-endian word, at bit offsets 26, 20, 14, 8 and 2 (the two low bits of
each word are unused). Code 0 terminates the string.

Alphabet:
- 11      -> "-"
- 14..23  -> "0".."9"
- 30..55  -> "A".."Z"

Waypoint ids in WAYPOINT.P01 use a variant: the packed word ``v`` is
stored as ``(v >> 1) | 0x80000000``.
"""

from __future__ import annotations

import string
import struct

__all__ = [
    "ALPHABET",
    "decode_string",
    "decode_waypoint_id",
    "encode_string",
    "encode_waypoint_id",
    "sanitize",
]

ALPHABET = string.ascii_uppercase + string.digits + "-"

CHAR_TO_CODE: dict[str, int] = {"-": 11}
CHAR_TO_CODE.update({c: 14 + i for i, c in enumerate(string.digits)})
CHAR_TO_CODE.update({c: 30 + i for i, c in enumerate(string.ascii_uppercase)})

CODE_TO_CHAR: dict[int, str] = {code: c for c, code in CHAR_TO_CODE.items()}

_SHIFTS = (26, 20, 14, 8, 2)
_WORD = struct.Struct(">I")
_WAYPOINT_ID_MARKER = 0x80000000


def sanitize(text: str) -> str:
    """Upper-case *text* and drop every character outside the alphabet.

    >>> sanitize("Es-sa 01!")
    'ES-SA01'
    """
    return "".join(c for c in text.upper() if c in CHAR_TO_CODE)


def encode_string(text: str, max_chars: int, total_bytes: int) -> bytes:
    """Pack *text* into exactly *total_bytes* bytes.

    The text is upper-cased and truncated to *max_chars*; characters
    outside the alphabet and missing characters are null codes, so a space
    ends the decoded text. Each started group of five codes takes one
    4-byte word; the result is zero-padded or cut to *total_bytes*.

    >>> encode_string("ESSA", 5, 4).hex()
    '8b0c1e00'
    """
    codes = [CHAR_TO_CODE.get(c, 0) for c in text.upper()[:max_chars]]
    codes.extend([0] * (max_chars - len(codes)))

    out = bytearray()
    for start in range(0, max_chars, 5):
        word = 0
        for i, code in enumerate(codes[start:start + 5]):
            word |= (code & 0x3F) << _SHIFTS[i]
        out += _WORD.pack(word)

    return bytes(out[:total_bytes]).ljust(total_bytes, b"\x00")


def decode_string(data: bytes) -> str:
    """Unpack 6-bit text, stopping at the first null code.

    Unknown codes decode as a space; decoding never fails. A trailing
    partial word is ignored.
    """
    chars: list[str] = []
    for offset in range(0, len(data) - 3, 4):
        (word,) = _WORD.unpack_from(data, offset)
        for shift in _SHIFTS:
            code = (word >> shift) & 0x3F
            if code == 0:
                return "".join(chars)
            chars.append(CODE_TO_CHAR.get(code, " "))
    return "".join(chars)


def encode_waypoint_id(waypoint_id: str) -> bytes:
    """Encode a waypoint id for WAYPOINT.P01 bytes 24-27."""
    (word,) = _WORD.unpack(encode_string(waypoint_id, 5, 4))
    return _WORD.pack((word >> 1) | _WAYPOINT_ID_MARKER)


def decode_waypoint_id(data: bytes) -> str:
    """Reverse ``encode_waypoint_id``: clear the marker bit, shift back, decode."""
    (word,) = _WORD.unpack(bytes(data[:4]))
    restored = ((word & 0x7FFFFFFF) << 1) & 0xFFFFFFFF
    return decode_string(_WORD.pack(restored))
