"""Command-line entry point for A109 file sets.

Usage:
    rut-a109 decode AIRPORT.P01 ROUTE.P01 ... -o doc.json
    rut-a109 decode A109.zip -o doc.json
    rut-a109 encode doc.json OUTDIR --date 2025-11-07 [--zip]
    rut-a109 merge base.json incoming.json -o merged.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import zipfile
from datetime import date
from pathlib import Path

from rut.adapters.a109_fileset import decode_a109_file_set, encode_a109_file_set
from rut.adapters.errors import RutFormatError
from rut.contracts.document import NavigationDocument
from rut.contracts.result import ServiceError
from rut.services.importer import expand_archives
from rut.services.merge import merge_documents

logger = logging.getLogger(__name__)


def _read_document(path: Path) -> NavigationDocument:
    return NavigationDocument.model_validate(json.loads(path.read_text(encoding="utf-8")))


def _write_document(document: NavigationDocument, output: Path | None) -> None:
    text = json.dumps(document.to_dict(), indent=2, ensure_ascii=False)
    if output is None:
        print(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        logger.info("Wrote %s", output)


def cmd_decode(args: argparse.Namespace) -> int:
    errors: list[ServiceError] = []
    files = expand_archives([(path.name, path.read_bytes()) for path in args.files], errors)
    if errors:
        for error in errors:
            logger.error("%s: %s", error.details["filename"], error.message)
        return 1
    document = decode_a109_file_set(files)
    _write_document(document, args.output)
    return 0


def cmd_encode(args: argparse.Namespace) -> int:
    document = _read_document(args.document)
    file_set = encode_a109_file_set(document, args.date)

    args.outdir.mkdir(parents=True, exist_ok=True)
    if args.zip:
        archive_path = args.outdir / "A109.zip"
        with zipfile.ZipFile(archive_path, "w", zipfile.ZIP_DEFLATED) as archive:
            for filename, data in file_set.files().items():
                archive.writestr(filename, data)
        logger.info("Wrote %s", archive_path)
    else:
        for filename, data in file_set.files().items():
            (args.outdir / filename).write_bytes(data)
        logger.info("Wrote %d files to %s", len(file_set.files()), args.outdir)

    for warning in file_set.truncations:
        logger.warning("%s", warning)
    return 0


def cmd_merge(args: argparse.Namespace) -> int:
    merged = merge_documents(_read_document(args.base), _read_document(args.incoming))
    _write_document(merged, args.output)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rut-a109", description="A109 route/waypoint file sets")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("decode", help="Decode A109 files into a document JSON")
    p.add_argument("files", type=Path, nargs="+", help="A109 files (any subset of the set) or zip archives")
    p.add_argument("-o", "--output", type=Path, help="Output JSON (default: stdout)")
    p.set_defaults(func=cmd_decode)

    p = sub.add_parser("encode", help="Encode a document JSON into an A109 file set")
    p.add_argument("document", type=Path, help="Document JSON")
    p.add_argument("outdir", type=Path, help="Output directory")
    p.add_argument("--date", type=date.fromisoformat, default=None, help="File set date, YYYY-MM-DD (default: today)")
    p.add_argument("--zip", action="store_true", help="Write A109.zip instead of six files")
    p.set_defaults(func=cmd_encode)

    p = sub.add_parser("merge", help="Merge one document JSON into another")
    p.add_argument("base", type=Path)
    p.add_argument("incoming", type=Path)
    p.add_argument("-o", "--output", type=Path, required=True)
    p.set_defaults(func=cmd_merge)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)
    except RutFormatError as exc:
        logger.error("%s: %s", exc.kind, exc)
        return 1
    except (OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
