"""Named output buffer shared by the route exporters."""

from __future__ import annotations

import re
from dataclasses import dataclass

_INVALID_FILENAME_CHARS = re.compile(r'[/\\?%*|:"<>]')


@dataclass(frozen=True)
class ExportedFile:
    filename: str
    data: bytes
    media_type: str = "application/octet-stream"


def sanitized_filename(name: str, ext: str) -> str:
    """Route name as a filename: path and shell metacharacters become ``_``.

    >>> sanitized_filename("ESSA/ESGG", "rte")
    'ESSA_ESGG.rte'
    """
    base = name or "route"
    return f"{_INVALID_FILENAME_CHARS.sub('_', base)}.{ext}"
