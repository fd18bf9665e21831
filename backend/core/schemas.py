"""
core/schemas.py — Core/general Pydantic schemas.
"""

from typing import Optional
from pydantic import BaseModel

from core.base import BackgroundJobType


class HealthCheck(BaseModel):
    status: str = "ok"
    version: str
    database: str


class JobStatusResponse(BaseModel):
    """Progress of one background job type, as polled by the UI."""
    type: BackgroundJobType
    running: bool
    total: int
    processed: int
    completed_count: int
    failed_count: int
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    cancel_requested: bool = False
    elapsed_time: int = 0
    progress_percent: int = 0

    @classmethod
    def from_status(cls, status) -> 'JobStatusResponse':
        return cls(**status.to_dict())


class CancelResponse(BaseModel):
    type: BackgroundJobType
    cancel_requested: bool
    status: JobStatusResponse
