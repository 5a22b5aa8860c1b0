"""Import/export exceptions and warnings.

Only whole-file structural problems raise. Field-level anomalies (empty
id, bad coordinates, dangling db index) are skipped record by record.
"""

from __future__ import annotations

from dataclasses import dataclass


class RutFormatError(Exception):
    """Base exception for a file that cannot be read.

    ``kind`` is the machine-readable code reported back to API and CLI
    callers.
    """

    kind = "importFailed"

    def __init__(self, message: str, filename: str | None = None):
        self.filename = filename
        super().__init__(message)


class A109Error(RutFormatError):
    """Base exception for all A109 codec errors."""

    kind = "a109Error"


class UnrecognizedFileTypeError(A109Error):
    """Raised when neither the filename nor the payload size identifies a table."""

    kind = "unrecognizedFileType"

    def __init__(self, filename: str):
        super().__init__(f"Could not identify A109 file type. File: {filename}", filename)


class UnsupportedFileError(RutFormatError):
    """Raised for a file whose extension no importer handles."""

    kind = "unsupportedFile"

    def __init__(self, filename: str):
        super().__init__(f"Unsupported file type: {filename}", filename)


@dataclass(frozen=True)
class TableTruncation:
    """Export warning: more entities than the table (or route record) holds."""

    filename: str
    count: int
    capacity: int
    subject: str | None = None

    kind = "tableTruncated"

    def __str__(self) -> str:
        what = f"{self.filename} ({self.subject})" if self.subject else self.filename
        return f"{what}: {self.count} entries, only {self.capacity} exported"
