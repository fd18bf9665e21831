"""PrintVault — Background job status and cancellation.

The UI's job tracker panel polls GET /jobs while anything is running.
Status reads never fail: a type that has never run reports running=false
with zeroed counters.
"""

from fastapi import APIRouter, Depends

from core.base import BackgroundJobType
from core.dependencies import get_job_tracker
from core.job_tracker import JobTracker
from core.schemas import CancelResponse, JobStatusResponse

router = APIRouter(tags=["Background Jobs"])


@router.get("/jobs", response_model=list[JobStatusResponse])
def list_jobs(tracker: JobTracker = Depends(get_job_tracker)):
    return [JobStatusResponse.from_status(s) for s in tracker.all_statuses().values()]


@router.get("/jobs/{job_type}/status", response_model=JobStatusResponse)
def job_status(job_type: BackgroundJobType, tracker: JobTracker = Depends(get_job_tracker)):
    return JobStatusResponse.from_status(tracker.status(job_type))


@router.post("/jobs/{job_type}/cancel", response_model=CancelResponse)
def cancel_job(job_type: BackgroundJobType, tracker: JobTracker = Depends(get_job_tracker)):
    """Request cancellation. The run stops after its in-flight items; poll status to observe it."""
    requested = tracker.cancel(job_type)
    return CancelResponse(
        type=job_type,
        cancel_requested=requested,
        status=JobStatusResponse.from_status(tracker.status(job_type)),
    )
