"""
PrintVault — Core request dependencies.

The job tracker and bulk runner are created once per app in create_app() and
kept on app.state; routes reach them through these FastAPI dependencies.
"""

from fastapi import Request

from core.bulk_runner import BulkOperationRunner
from core.job_tracker import JobTracker


def get_job_tracker(request: Request) -> JobTracker:
    return request.app.state.job_tracker


def get_bulk_runner(request: Request) -> BulkOperationRunner:
    return request.app.state.bulk_runner
