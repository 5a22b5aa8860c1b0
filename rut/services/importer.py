"""Multi-file import into a NavigationStore.

All A109 files of one call are decoded together as a single file set,
with the store's arrays standing in for tables the set does not carry.
RTE text files are decoded one by one. Decoded documents are merged into
an accumulator in order; the accumulator is merged into the store once
at the end, so the store changes in one step.

A file that fails is reported in the ``ImportReport`` and never stops
the others.
"""

from __future__ import annotations

import io
import logging
import zipfile
from collections.abc import Iterable
from pathlib import PurePosixPath

from rut.adapters.a109_fileset import DecodeContext, decode_a109_file_set, detect_file_type
from rut.adapters.errors import RutFormatError, UnsupportedFileError
from rut.adapters.rte_text import parse_rte
from rut.contracts.document import NavigationDocument
from rut.contracts.result import ImportReport, ServiceError
from rut.services.merge import merge_documents
from rut.services.navigation_store import NavigationStore

logger = logging.getLogger(__name__)

A109_EXTENSIONS = {".p01", ".hd"}
RTE_EXTENSIONS = {".rte", ".txt"}
ZIP_EXTENSIONS = {".zip"}


def _extension(filename: str) -> str:
    return PurePosixPath(filename.replace("\\", "/")).suffix.lower()


def _error(exc: RutFormatError, filename: str) -> ServiceError:
    return ServiceError(code=exc.kind, message=str(exc), details={"filename": exc.filename or filename})


def expand_archives(
    files: Iterable[tuple[str, bytes]],
    errors: list[ServiceError],
) -> list[tuple[str, bytes]]:
    """Replace every zip archive by its member files (directories and dotfiles skipped)."""
    expanded: list[tuple[str, bytes]] = []
    for filename, data in files:
        if _extension(filename) not in ZIP_EXTENSIONS:
            expanded.append((filename, data))
            continue
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                for info in archive.infolist():
                    name = PurePosixPath(info.filename)
                    if info.is_dir() or any(part.startswith((".", "__MACOSX")) for part in name.parts):
                        continue
                    expanded.append((name.name, archive.read(info)))
        except zipfile.BadZipFile as exc:
            logger.warning("%s: not a valid zip archive", filename)
            errors.append(ServiceError(
                code="invalidArchive", message=f"Not a valid zip archive: {exc}", details={"filename": filename},
            ))
    return expanded


def _count(report: ImportReport, doc: NavigationDocument) -> None:
    report.routes += len(doc.routes)
    report.route_points += sum(len(r.points) for r in doc.routes)
    report.airports += len(doc.user_airports)
    report.navaids += len(doc.user_navaids)
    report.waypoints += len(doc.user_waypoints)


def import_files(store: NavigationStore, files: Iterable[tuple[str, bytes]]) -> ImportReport:
    """Decode *files* and merge everything they contain into *store*."""
    report = ImportReport()
    expanded = expand_archives(files, report.errors)
    report.files = len(expanded)

    a109_files: list[tuple[str, bytes]] = []
    rte_files: list[tuple[str, bytes]] = []
    for filename, data in expanded:
        ext = _extension(filename)
        if ext in RTE_EXTENSIONS:
            rte_files.append((filename, data))
            continue
        try:
            detect_file_type(filename, data)
        except RutFormatError as exc:
            if ext not in A109_EXTENSIONS:
                exc = UnsupportedFileError(filename)
            logger.warning("Skipping %s: %s", filename, exc)
            report.errors.append(_error(exc, filename))
            continue
        a109_files.append((filename, data))

    accumulator = NavigationDocument()

    if a109_files:
        decoded = decode_a109_file_set(
            a109_files,
            context=DecodeContext.from_document(store.document),
            warnings=report.warnings,
        )
        _count(report, decoded)
        accumulator = merge_documents(accumulator, decoded)

    for filename, data in rte_files:
        try:
            decoded = parse_rte(data, filename)
        except RutFormatError as exc:
            logger.warning("Skipping %s: %s", filename, exc)
            report.errors.append(_error(exc, filename))
            continue
        _count(report, decoded)
        accumulator = merge_documents(accumulator, decoded)

    if report.total_items:
        store.add_or_merge(accumulator)
        store.derive_user_airports()

    logger.info("%s (%d files, %d errors)", report.summary(), report.files, len(report.errors))
    return report
