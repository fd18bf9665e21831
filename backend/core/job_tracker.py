# core/job_tracker.py — Process-wide registry of long-running background jobs
#
# One JobState per BackgroundJobType. The UI polls status() every ~500-1000ms while
# a BulkOperationRunner advances the counters from its worker threads. All state
# lives in memory: a restart starts every job type out as not-running.

import logging
import threading
import time
from dataclasses import dataclass, asdict
from typing import Callable, Dict, Optional, Union

from core.base import BackgroundJobType

log = logging.getLogger("printvault.jobs")


class JobTrackerError(Exception):
    """Base class for job tracker failures."""


class ConflictError(JobTrackerError):
    """Raised when starting a job type that already has a run in progress."""

    def __init__(self, job_type: BackgroundJobType):
        self.job_type = job_type
        super().__init__(f"A '{job_type.value}' job is already running")


class NotRunningError(JobTrackerError):
    """Raised when advancing a job type that has no run in progress."""

    def __init__(self, job_type: BackgroundJobType):
        self.job_type = job_type
        super().__init__(f"No '{job_type.value}' job is running")


@dataclass(frozen=True)
class JobStatus:
    """Read-only snapshot of one job type, safe to hand to the API layer."""
    type: BackgroundJobType
    running: bool = False
    total: int = 0
    processed: int = 0
    completed_count: int = 0
    failed_count: int = 0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    cancel_requested: bool = False
    elapsed_time: int = 0

    @property
    def progress_percent(self) -> int:
        if self.total <= 0:
            return 0
        return round(self.processed * 100 / self.total)

    def to_dict(self):
        d = asdict(self)
        d["type"] = self.type.value
        d["progress_percent"] = self.progress_percent
        return d


@dataclass
class _JobState:
    running: bool = False
    total: int = 0
    processed: int = 0
    completed_count: int = 0
    failed_count: int = 0
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    cancel_requested: bool = False


def _coerce_type(job_type: Union[BackgroundJobType, str]) -> BackgroundJobType:
    if isinstance(job_type, BackgroundJobType):
        return job_type
    return BackgroundJobType(job_type)


class JobTracker:
    """
    Thread-safe registry of background job progress, keyed by job type.

    Every mutation and every snapshot takes the same short-lived lock; no caller
    holds it while doing per-item work, so status polls never wait on a slow item.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._lock = threading.Lock()
        self._jobs: Dict[BackgroundJobType, _JobState] = {
            t: _JobState() for t in BackgroundJobType
        }

    def start(self, job_type: Union[BackgroundJobType, str], total: int) -> JobStatus:
        """Begin a run. Raises ConflictError if this type is already running."""
        job_type = _coerce_type(job_type)
        if total < 0:
            raise ValueError("total must be >= 0")
        with self._lock:
            state = self._jobs[job_type]
            if state.running:
                log.warning(f"Rejected '{job_type.value}' start: a run is already in progress")
                raise ConflictError(job_type)
            self._jobs[job_type] = _JobState(
                running=True,
                total=total,
                started_at=self._clock(),
            )
            snapshot = self._snapshot(job_type)
        log.info(f"Job '{job_type.value}' started with {total} item(s)")
        return snapshot

    def advance(self, job_type: Union[BackgroundJobType, str], success: bool) -> JobStatus:
        """Record one processed item. Raises NotRunningError if the job is idle."""
        job_type = _coerce_type(job_type)
        with self._lock:
            state = self._jobs[job_type]
            if not state.running:
                raise NotRunningError(job_type)
            if state.processed >= state.total:
                log.warning(
                    f"Job '{job_type.value}' advanced past its total ({state.total}); ignoring"
                )
                return self._snapshot(job_type)
            state.processed += 1
            if success:
                state.completed_count += 1
            else:
                state.failed_count += 1
            return self._snapshot(job_type)

    def cancel(self, job_type: Union[BackgroundJobType, str]) -> bool:
        """Ask the active run to stop. Returns False when nothing is running.

        The run keeps reporting running=True until its runner observes the flag
        and calls finish().
        """
        job_type = _coerce_type(job_type)
        with self._lock:
            state = self._jobs[job_type]
            if not state.running:
                return False
            state.cancel_requested = True
        log.info(f"Cancellation requested for job '{job_type.value}'")
        return True

    def is_cancelled(self, job_type: Union[BackgroundJobType, str]) -> bool:
        job_type = _coerce_type(job_type)
        with self._lock:
            return self._jobs[job_type].cancel_requested

    def finish(self, job_type: Union[BackgroundJobType, str]) -> JobStatus:
        """Mark the run as done. Counters keep their last values for the final poll."""
        job_type = _coerce_type(job_type)
        with self._lock:
            state = self._jobs[job_type]
            state.running = False
            state.finished_at = self._clock()
            snapshot = self._snapshot(job_type)
        log.info(
            f"Job '{job_type.value}' finished: {snapshot.processed}/{snapshot.total} processed, "
            f"{snapshot.completed_count} ok, {snapshot.failed_count} failed"
            + (" (cancelled)" if snapshot.cancel_requested else "")
        )
        return snapshot

    def status(self, job_type: Union[BackgroundJobType, str]) -> JobStatus:
        """Snapshot of one job type. Never fails, even if the type has never run."""
        job_type = _coerce_type(job_type)
        with self._lock:
            return self._snapshot(job_type)

    def all_statuses(self) -> Dict[BackgroundJobType, JobStatus]:
        with self._lock:
            return {t: self._snapshot(t) for t in BackgroundJobType}

    def _snapshot(self, job_type: BackgroundJobType) -> JobStatus:
        # Caller holds self._lock
        state = self._jobs[job_type]
        elapsed = 0
        if state.started_at is not None:
            end = self._clock() if state.running else (state.finished_at or state.started_at)
            elapsed = max(0, int(end - state.started_at))
        return JobStatus(
            type=job_type,
            running=state.running,
            total=state.total,
            processed=state.processed,
            completed_count=state.completed_count,
            failed_count=state.failed_count,
            started_at=state.started_at,
            finished_at=state.finished_at,
            cancel_requested=state.cancel_requested,
            elapsed_time=elapsed,
        )
