"""PrintVault — Library bulk jobs: auto-tag-all, bulk-delete, scan.

Each job type has a start endpoint (409 while a run of that type is active),
a status endpoint for polling, and a cancel endpoint. Work runs on a background
thread through the shared BulkOperationRunner.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from core.base import BackgroundJobType
from core.bulk_runner import BulkOperationRunner
from core.db import get_db
from core.dependencies import get_bulk_runner, get_job_tracker
from core.job_tracker import ConflictError, JobTracker
from core.rate_limit import JOB_START_LIMIT, limiter
from core.schemas import CancelResponse, JobStatusResponse
from modules.library import services
from modules.library.schemas import AutoTagAllRequest, BulkDeleteRequest, BulkStartResponse

log = logging.getLogger("printvault.api")

router = APIRouter(tags=["Library Jobs"])


def _start(runner: BulkOperationRunner, job_type: BackgroundJobType, targets, per_item) -> BulkStartResponse:
    try:
        status = runner.submit(job_type, targets, per_item)
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return BulkStartResponse(accepted=True, status=JobStatusResponse.from_status(status))


def _cancel(tracker: JobTracker, job_type: BackgroundJobType) -> CancelResponse:
    requested = tracker.cancel(job_type)
    return CancelResponse(
        type=job_type,
        cancel_requested=requested,
        status=JobStatusResponse.from_status(tracker.status(job_type)),
    )


# ──────────────────────────────────────────────
# Auto-tag
# ──────────────────────────────────────────────

@router.post("/library/auto-tag-all", response_model=BulkStartResponse)
@limiter.limit(JOB_START_LIMIT)
def start_auto_tag_all(
    request: Request,
    body: Optional[AutoTagAllRequest] = None,
    db: Session = Depends(get_db),
    runner: BulkOperationRunner = Depends(get_bulk_runner),
):
    """Describe and tag the requested files, or the whole library when no ids are given."""
    body = body or AutoTagAllRequest()
    targets = services.select_auto_tag_targets(db, body.file_ids, body.only_untagged)
    log.info(f"Auto-tag requested for {len(targets)} file(s)")
    return _start(runner, BackgroundJobType.AUTO_TAG, targets, services.make_auto_tag_item())


@router.get("/library/auto-tag-status", response_model=JobStatusResponse)
def auto_tag_status(tracker: JobTracker = Depends(get_job_tracker)):
    return JobStatusResponse.from_status(tracker.status(BackgroundJobType.AUTO_TAG))


@router.post("/library/auto-tag-cancel", response_model=CancelResponse)
def cancel_auto_tag(tracker: JobTracker = Depends(get_job_tracker)):
    return _cancel(tracker, BackgroundJobType.AUTO_TAG)


# ──────────────────────────────────────────────
# Bulk delete
# ──────────────────────────────────────────────

@router.post("/library/bulk-delete", response_model=BulkStartResponse)
@limiter.limit(JOB_START_LIMIT)
def start_bulk_delete(
    request: Request,
    body: BulkDeleteRequest,
    runner: BulkOperationRunner = Depends(get_bulk_runner),
):
    """Delete the given files from disk and the library. Unknown ids count as failures."""
    targets = list(dict.fromkeys(body.file_ids))
    log.info(f"Bulk delete requested for {len(targets)} file(s)")
    return _start(runner, BackgroundJobType.BULK_DELETE, targets, services.make_delete_item())


@router.get("/library/bulk-delete-status", response_model=JobStatusResponse)
def bulk_delete_status(tracker: JobTracker = Depends(get_job_tracker)):
    return JobStatusResponse.from_status(tracker.status(BackgroundJobType.BULK_DELETE))


@router.post("/library/bulk-delete-cancel", response_model=CancelResponse)
def cancel_bulk_delete(tracker: JobTracker = Depends(get_job_tracker)):
    return _cancel(tracker, BackgroundJobType.BULK_DELETE)


# ──────────────────────────────────────────────
# Library scan
# ──────────────────────────────────────────────

@router.post("/library/scan", response_model=BulkStartResponse)
@limiter.limit(JOB_START_LIMIT)
def start_library_scan(
    request: Request,
    db: Session = Depends(get_db),
    runner: BulkOperationRunner = Depends(get_bulk_runner),
):
    """Ingest supported files found in the library directory that are not catalogued yet."""
    targets = services.find_unscanned_files(db)
    log.info(f"Library scan found {len(targets)} new file(s)")
    return _start(runner, BackgroundJobType.LIBRARY_SCAN, targets, services.make_scan_item())


@router.get("/library/scan-status", response_model=JobStatusResponse)
def library_scan_status(tracker: JobTracker = Depends(get_job_tracker)):
    return JobStatusResponse.from_status(tracker.status(BackgroundJobType.LIBRARY_SCAN))


@router.post("/library/scan-cancel", response_model=CancelResponse)
def cancel_library_scan(tracker: JobTracker = Depends(get_job_tracker)):
    return _cancel(tracker, BackgroundJobType.LIBRARY_SCAN)
