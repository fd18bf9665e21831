"""Library routes package — assembles all sub-routers."""

from fastapi import APIRouter
from .duplicates import router as duplicates_router
from .library_jobs import router as library_jobs_router
from .library_crud import router as library_crud_router

router = APIRouter()
# Static paths (/library/duplicates, /library/scan-status, ...) must register
# before library_crud's parameterized /library/{file_id} endpoints.
router.include_router(duplicates_router)
router.include_router(library_jobs_router)
router.include_router(library_crud_router)

__all__ = ["router"]
