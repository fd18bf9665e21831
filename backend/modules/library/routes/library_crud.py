"""PrintVault — Library file CRUD, upload, manual edits and single-file auto-tag."""

import logging
import os
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.base import FileType, SUPPORTED_EXTENSIONS
from core.config import settings
from core.db import get_db
from core.rate_limit import UPLOAD_LIMIT, limiter
from modules.library import services
from modules.library.models import LibraryFile
from modules.library.schemas import (
    DescribeResponse, DescriptionUpdate, LibraryFileResponse, TagsUpdate, UploadResponse,
)

log = logging.getLogger("printvault.api")

router = APIRouter(tags=["Library"])


def _get_or_404(db: Session, file_id: int) -> LibraryFile:
    library_file = db.query(LibraryFile).filter(LibraryFile.id == file_id).first()
    if not library_file:
        raise HTTPException(status_code=404, detail="File not found")
    return library_file


@router.get("/library", response_model=list[LibraryFileResponse])
def list_files(
    tag: Optional[str] = None,
    file_type: Optional[FileType] = None,
    search: Optional[str] = Query(None, max_length=200),
    limit: int = Query(500, ge=1, le=5000),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    """List library files, newest first."""
    query = db.query(LibraryFile)
    if file_type:
        query = query.filter(LibraryFile.file_type == file_type)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            LibraryFile.original_name.ilike(pattern),
            LibraryFile.description.ilike(pattern),
        ))
    files = query.order_by(LibraryFile.id.desc()).all()
    if tag:
        # tags is a JSON column; filter in Python so it works on any backend
        wanted = tag.strip().lower()
        files = [f for f in files if wanted in (f.tags or [])]
    return files[offset:offset + limit]


@router.post("/library/upload", response_model=UploadResponse, status_code=201)
@limiter.limit(UPLOAD_LIMIT)
async def upload_file(request: Request, file: UploadFile = File(...), db: Session = Depends(get_db)):
    """Upload a .3mf, .stl or .gcode file into the library."""
    fname = file.filename or ""
    ext = os.path.splitext(fname)[1].lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Allowed: {', '.join(sorted(SUPPORTED_EXTENSIONS))}",
        )

    max_bytes = settings.upload_max_bytes
    content = await file.read(max_bytes + 1)
    if len(content) > max_bytes:
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum upload size is {max_bytes // (1024 * 1024)} MB.",
        )
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")

    try:
        library_file = services.store_upload(db, content, fname)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    existing = services.find_by_hash(db, library_file.file_hash, exclude_id=library_file.id)
    if existing:
        log.info(f"Upload {fname!r} duplicates library file {existing.id}")

    response = UploadResponse.model_validate(library_file)
    response.duplicate_of = existing.id if existing else None
    return response


@router.get("/library/{file_id}", response_model=LibraryFileResponse)
def get_file(file_id: int, db: Session = Depends(get_db)):
    return _get_or_404(db, file_id)


@router.get("/library/{file_id}/thumbnail")
def get_thumbnail(file_id: int, db: Session = Depends(get_db)):
    """Embedded plate thumbnail saved when a 3MF was ingested."""
    library_file = _get_or_404(db, file_id)
    if not library_file.thumbnail_path or not os.path.isfile(library_file.thumbnail_path):
        raise HTTPException(status_code=404, detail="Thumbnail not found")
    return FileResponse(library_file.thumbnail_path, media_type="image/png")


@router.put("/library/{file_id}/description", response_model=LibraryFileResponse)
def update_description(file_id: int, body: DescriptionUpdate, db: Session = Depends(get_db)):
    library_file = _get_or_404(db, file_id)
    library_file.description = body.description.strip()
    db.commit()
    db.refresh(library_file)
    return library_file


@router.put("/library/{file_id}/tags", response_model=LibraryFileResponse)
def update_tags(file_id: int, body: TagsUpdate, db: Session = Depends(get_db)):
    library_file = _get_or_404(db, file_id)
    library_file.tags = body.tags
    db.commit()
    db.refresh(library_file)
    return library_file


@router.post("/library/{file_id}/auto-tag", response_model=DescribeResponse)
def auto_tag_file(file_id: int, db: Session = Depends(get_db)):
    """Describe one file now and store the result. Not tracked as a background job."""
    library_file = _get_or_404(db, file_id)
    result = services.describe_library_file(library_file)
    services.apply_describe_result(library_file, result)
    db.commit()
    return DescribeResponse(file_id=file_id, **result.to_dict())


@router.delete("/library/{file_id}", status_code=204)
def delete_file(file_id: int, db: Session = Depends(get_db)):
    library_file = _get_or_404(db, file_id)
    try:
        services.delete_library_file(db, library_file)
    except OSError as e:
        log.error(f"Failed to delete library file {file_id}: {e}")
        raise HTTPException(status_code=500, detail="Could not remove file from disk")
