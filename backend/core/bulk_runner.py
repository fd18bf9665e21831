# core/bulk_runner.py — Cancellable bulk loop driving one JobTracker run
#
# Used by auto-tag-all, bulk-delete and library-scan. Each target is handed to a
# per-item callable returning an ItemResult; the runner folds results into the
# tracker's completed/failed counters and checks the cancel flag before every item.

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional, Sequence, Union

from core.base import BackgroundJobType
from core.job_tracker import JobStatus, JobTracker

log = logging.getLogger("printvault.jobs")


@dataclass(frozen=True)
class ItemResult:
    """Outcome of one bulk item: success, or failure with an error message."""
    success: bool
    target: Any = None
    error: Optional[str] = None
    detail: Optional[dict] = None

    @classmethod
    def ok(cls, target: Any = None, **detail) -> 'ItemResult':
        return cls(success=True, target=target, detail=detail or None)

    @classmethod
    def failed(cls, target: Any = None, error: Union[str, BaseException] = "failed") -> 'ItemResult':
        if isinstance(error, BaseException):
            error = f"{type(error).__name__}: {error}"
        return cls(success=False, target=target, error=error)


PerItem = Callable[[Any], ItemResult]


class BulkOperationRunner:
    """
    Drives a list of targets through a per-item callable under one JobTracker run.

    max_workers > 1 processes items in parallel; every worker pulls its next
    target from a shared cursor and checks the cancel flag first, so workers stop
    picking up items as soon as cancellation is requested. Items already in
    flight are allowed to complete.
    """

    def __init__(self, tracker: JobTracker, max_workers: int = 1):
        self.tracker = tracker
        self.max_workers = max(1, int(max_workers))

    def run(self, job_type: BackgroundJobType, targets: Sequence[Any], per_item: PerItem) -> JobStatus:
        """Start the job and process it on the calling thread. Returns the final status.

        Raises ConflictError if a job of this type is already running.
        """
        targets = list(targets)
        self.tracker.start(job_type, len(targets))
        return self._drive(job_type, targets, per_item)

    def submit(self, job_type: BackgroundJobType, targets: Sequence[Any], per_item: PerItem) -> JobStatus:
        """Start the job now and process it on a background thread.

        The start happens synchronously so a ConflictError reaches the caller;
        returns the initial status snapshot.
        """
        targets = list(targets)
        initial = self.tracker.start(job_type, len(targets))

        def _background():
            try:
                self._drive(job_type, targets, per_item)
            except Exception:
                log.error(f"Background job '{job_type.value}' aborted", exc_info=True)

        threading.Thread(target=_background, daemon=True, name=f"bulk-{job_type.value}").start()
        return initial

    def _drive(self, job_type: BackgroundJobType, targets: List[Any], per_item: PerItem) -> JobStatus:
        try:
            if self.max_workers == 1 or len(targets) <= 1:
                self._worker(job_type, iter(targets), threading.Lock(), per_item)
            else:
                cursor = iter(targets)
                cursor_lock = threading.Lock()
                workers = min(self.max_workers, len(targets))
                with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"bulk-{job_type.value}") as pool:
                    futures = [
                        pool.submit(self._worker, job_type, cursor, cursor_lock, per_item)
                        for _ in range(workers)
                    ]
                    for future in futures:
                        # Re-raises a fatal error from any worker
                        future.result()
        finally:
            final = self.tracker.finish(job_type)
        return final

    def _worker(self, job_type: BackgroundJobType, cursor: Iterator[Any], cursor_lock: threading.Lock, per_item: PerItem) -> None:
        try:
            while True:
                if self.tracker.is_cancelled(job_type):
                    return
                with cursor_lock:
                    try:
                        target = next(cursor)
                    except StopIteration:
                        return
                result = self._process(target, per_item)
                if not result.success:
                    log.warning(f"[{job_type.value}] item {target!r} failed: {result.error}")
                self.tracker.advance(job_type, result.success)
        except Exception:
            # Any error outside a single item aborts the run; the other workers stop at their next item
            self.tracker.cancel(job_type)
            raise

    @staticmethod
    def _process(target: Any, per_item: PerItem) -> ItemResult:
        try:
            result = per_item(target)
        except Exception as e:
            return ItemResult.failed(target, e)
        if isinstance(result, ItemResult):
            return result
        # Plain truthy/falsy returns are accepted for simple callables
        return ItemResult(success=bool(result), target=target)
