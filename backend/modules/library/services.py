"""
modules/library/services.py — Ingest, describe and delete library files.

Route handlers and bulk jobs share these helpers. The per-item factories at the
bottom build the callables handed to BulkOperationRunner: each item opens its
own session, so items can run on worker threads without sharing a Session.
"""

import hashlib
import logging
import os
import re
import uuid
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from sqlalchemy.orm import Session

from core.base import FileType, SUPPORTED_EXTENSIONS
from core.bulk_runner import ItemResult
from core.config import settings
from core.db import SessionLocal
from modules.library.describer import DescribeResult, ModelDescriber, describe_model
from modules.library.models import LibraryFile
from modules.library.threemf_metadata import extract_3mf_thumbnail

log = logging.getLogger("printvault.library")

HASH_CHUNK_SIZE = 1024 * 1024
THUMBNAIL_DIR = "thumbnails"

_UNSAFE_CHARS = re.compile(r"[^\w.\- ]+")


def compute_file_hash(path: str, chunk_size: int = HASH_CHUNK_SIZE) -> str:
    """SHA-256 hex digest of a file's bytes, read in chunks."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            digest.update(chunk)
    return digest.hexdigest()


def detect_file_type(name: str) -> FileType:
    """Map a filename to a FileType. Raises ValueError for unsupported extensions."""
    try:
        return FileType.from_filename(name)
    except ValueError:
        raise ValueError(
            f"Unsupported file type: {name!r} (expected one of {', '.join(sorted(SUPPORTED_EXTENSIONS))})"
        )


def sanitize_filename(name: str) -> str:
    """Basename only, with path separators and odd characters replaced."""
    base = os.path.basename((name or "").replace("\\", "/")).strip()
    base = _UNSAFE_CHARS.sub("_", base).strip(". ")
    return base or "model"


def library_root() -> Path:
    root = Path(settings.library_dir)
    root.mkdir(parents=True, exist_ok=True)
    return root


# ──────────────────────────────────────────────
# Describe
# ──────────────────────────────────────────────

def apply_describe_result(library_file: LibraryFile, result: DescribeResult) -> None:
    library_file.description = result.description
    library_file.tags = list(result.tags)
    library_file.language = result.language


def describe_library_file(library_file: LibraryFile, describer: Optional[ModelDescriber] = None) -> DescribeResult:
    """Run the describer on a stored file. The display name decides which analyzers apply."""
    name = library_file.original_name or library_file.file_name
    if describer is not None:
        return describer.describe(library_file.file_path, name)
    return describe_model(library_file.file_path, name)


# ──────────────────────────────────────────────
# Ingest
# ──────────────────────────────────────────────

def find_by_hash(db: Session, file_hash: str, exclude_id: Optional[int] = None) -> Optional[LibraryFile]:
    """Oldest library file with this content hash, if any."""
    q = db.query(LibraryFile).filter(LibraryFile.file_hash == file_hash)
    if exclude_id is not None:
        q = q.filter(LibraryFile.id != exclude_id)
    return q.order_by(LibraryFile.id.asc()).first()


def ingest_file(
    db: Session,
    path: str,
    original_name: Optional[str] = None,
    describe: Optional[bool] = None,
    commit: bool = True,
) -> LibraryFile:
    """Catalogue a file that is already on disk.

    Raises ValueError for unsupported types and OSError if the file cannot be read.
    """
    original_name = original_name or os.path.basename(path)
    file_type = detect_file_type(original_name)
    abs_path = os.path.realpath(path)

    library_file = LibraryFile(
        file_name=os.path.basename(abs_path),
        original_name=original_name,
        file_type=file_type,
        file_size=os.path.getsize(abs_path),
        file_path=abs_path,
        file_hash=compute_file_hash(abs_path),
        tags=[],
    )

    if settings.describe_on_ingest if describe is None else describe:
        apply_describe_result(library_file, describe_library_file(library_file))

    db.add(library_file)
    db.flush()
    thumbnail = save_thumbnail(library_file)
    library_file.thumbnail_path = thumbnail
    if commit:
        try:
            db.commit()
        except Exception:
            db.rollback()
            _unlink_quietly(thumbnail)
            raise
        db.refresh(library_file)
    log.info(f"Ingested {original_name} as library file {library_file.id} ({library_file.file_size} bytes)")
    return library_file


def save_thumbnail(library_file: LibraryFile) -> Optional[str]:
    """Write a 3MF's embedded plate thumbnail to <library_dir>/thumbnails/<id>.png.

    Returns the stored path, or None when there is nothing to store. A failed
    write is logged and leaves the file without a thumbnail.
    """
    if library_file.file_type != FileType.THREEMF:
        return None
    data = extract_3mf_thumbnail(library_file.file_path)
    if not data:
        return None
    target = library_root() / THUMBNAIL_DIR / f"{library_file.id}.png"
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    except OSError as e:
        log.warning(f"Could not save thumbnail for library file {library_file.id}: {e}")
        return None
    return str(target.resolve())


def store_upload(db: Session, content: bytes, original_name: str) -> LibraryFile:
    """Write uploaded bytes into the library as <id>_<name> and catalogue them."""
    safe_name = sanitize_filename(original_name)
    detect_file_type(safe_name)

    root = library_root()
    staging = root / f".upload-{uuid.uuid4().hex}{os.path.splitext(safe_name)[1].lower()}"
    staging.write_bytes(content)

    final = None
    thumbnail = None
    try:
        library_file = ingest_file(db, str(staging), original_name=safe_name, commit=False)
        thumbnail = library_file.thumbnail_path
        final = root / f"{library_file.id}_{safe_name}"
        os.replace(staging, final)
        library_file.file_name = final.name
        library_file.file_path = str(final.resolve())
        db.commit()
    except Exception:
        db.rollback()
        for path in (staging, final, thumbnail):
            _unlink_quietly(path)
        raise
    db.refresh(library_file)
    return library_file


def find_unscanned_files(db: Session, library_dir: Optional[str] = None) -> List[str]:
    """Supported files under library_dir with no LibraryFile row yet, in path order."""
    root = Path(library_dir) if library_dir else library_root()
    if not root.is_dir():
        return []
    known = {p for (p,) in db.query(LibraryFile.file_path).all()}
    found = []
    for path in sorted(root.rglob("*")):
        if not path.is_file() or path.name.startswith("."):
            continue
        if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
            continue
        abs_path = str(path.resolve())
        if abs_path not in known:
            found.append(abs_path)
    return found


def select_auto_tag_targets(db: Session, file_ids: Optional[Iterable[int]] = None, only_untagged: bool = False) -> List[int]:
    """Ids an auto-tag run should process. Requested ids are kept even when unknown."""
    if file_ids is not None:
        ids = list(dict.fromkeys(file_ids))
        if not only_untagged:
            return ids
        rows = db.query(LibraryFile).filter(LibraryFile.id.in_(ids)).all()
        tagged = {f.id for f in rows if f.tags}
        return [i for i in ids if i not in tagged]

    rows = db.query(LibraryFile).order_by(LibraryFile.id.asc()).all()
    if only_untagged:
        rows = [f for f in rows if not f.tags]
    return [f.id for f in rows]


# ──────────────────────────────────────────────
# Delete
# ──────────────────────────────────────────────

def _unlink_quietly(path) -> None:
    if not path:
        return
    try:
        os.remove(path)
    except FileNotFoundError:
        pass


def _move_aside(path: Optional[str]) -> Optional[Path]:
    """Rename a file to a hidden sibling. None if it is already gone."""
    if not path:
        return None
    source = Path(path)
    aside = source.with_name(f".deleting-{uuid.uuid4().hex}-{source.name}")
    try:
        os.replace(source, aside)
    except FileNotFoundError:
        return None
    return aside


def delete_library_file(db: Session, library_file: LibraryFile) -> None:
    """Delete the row, then the file and its thumbnail from disk.

    The file is renamed aside before the commit and renamed back if the commit
    fails, so the row and the file go together or not at all. A file already
    gone from disk is not an error. An OSError from the rename propagates and
    leaves the row in place.
    """
    file_id = library_file.id
    name = library_file.original_name
    file_path = library_file.file_path
    thumbnail = library_file.thumbnail_path

    aside = _move_aside(file_path)
    try:
        db.delete(library_file)
        db.commit()
    except Exception:
        db.rollback()
        if aside is not None:
            os.replace(aside, file_path)
        raise

    for path in (aside, thumbnail):
        try:
            _unlink_quietly(path)
        except OSError as e:
            log.warning(f"Library file {file_id} deleted but {path} could not be removed: {e}")
    log.info(f"Deleted library file {file_id} ({name})")


# ──────────────────────────────────────────────
# Per-item callables for bulk jobs
# ──────────────────────────────────────────────

SessionFactory = Callable[[], Session]


def make_auto_tag_item(
    session_factory: SessionFactory = SessionLocal,
    describer: Optional[ModelDescriber] = None,
) -> Callable[[int], ItemResult]:
    def auto_tag_item(file_id: int) -> ItemResult:
        db = session_factory()
        try:
            library_file = db.query(LibraryFile).filter(LibraryFile.id == file_id).first()
            if not library_file:
                return ItemResult.failed(file_id, "File not found")
            result = describe_library_file(library_file, describer)
            apply_describe_result(library_file, result)
            db.commit()
            return ItemResult.ok(file_id, tags=list(result.tags))
        finally:
            db.close()
    return auto_tag_item


def make_delete_item(session_factory: SessionFactory = SessionLocal) -> Callable[[int], ItemResult]:
    def delete_item(file_id: int) -> ItemResult:
        db = session_factory()
        try:
            library_file = db.query(LibraryFile).filter(LibraryFile.id == file_id).first()
            if not library_file:
                return ItemResult.failed(file_id, "File not found")
            delete_library_file(db, library_file)
            return ItemResult.ok(file_id)
        finally:
            db.close()
    return delete_item


def make_scan_item(
    session_factory: SessionFactory = SessionLocal,
    describe: Optional[bool] = None,
) -> Callable[[str], ItemResult]:
    def scan_item(path: str) -> ItemResult:
        db = session_factory()
        try:
            # Another ingest may have picked the file up since the scan listing
            existing = db.query(LibraryFile).filter(LibraryFile.file_path == path).first()
            if existing:
                return ItemResult.ok(path, file_id=existing.id, skipped=True)
            library_file = ingest_file(db, path, describe=describe)
            return ItemResult.ok(path, file_id=library_file.id)
        finally:
            db.close()
    return scan_item
