"""A109 file set import (multipart upload) and export (zip download)."""

from __future__ import annotations

import io
import zipfile
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, Response, UploadFile

from rut.adapters.a109_fileset import encode_a109_file_set
from rut.api.deps import get_store
from rut.services.importer import import_files
from rut.services.navigation_store import NavigationStore

router = APIRouter(prefix="/a109", tags=["a109"])

EXPORT_ARCHIVE_NAME = "A109.zip"


@router.post("/import")
async def import_a109(
    files: list[UploadFile],
    store: NavigationStore = Depends(get_store),
) -> dict:
    """Import A109 tables, RTE text files or zip archives of either.

    Fails with 400 only when every uploaded file failed.
    """
    payload = [(f.filename or "upload", await f.read()) for f in files]
    report = import_files(store, payload)

    data = report.model_dump(mode="json")
    data["summary"] = report.summary()
    if report.errors and len(report.errors) >= report.files and not report.total_items:
        raise HTTPException(status_code=400, detail=data)
    return data


@router.get("/export")
async def export_a109(
    day: date | None = Query(default=None, alias="date", description="Date written to PILOTE.HD / CARACTER.P01"),
    store: NavigationStore = Depends(get_store),
) -> Response:
    """The six A109 files of the live document, zipped."""
    file_set = encode_a109_file_set(store.document, day)

    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as archive:
        for filename, data in file_set.files().items():
            archive.writestr(filename, data)

    headers = {"Content-Disposition": f'attachment; filename="{EXPORT_ARCHIVE_NAME}"'}
    if file_set.truncations:
        headers["X-A109-Warnings"] = "; ".join(str(t) for t in file_set.truncations)
    return Response(content=buf.getvalue(), media_type="application/zip", headers=headers)
