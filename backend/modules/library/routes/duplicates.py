"""PrintVault — Duplicate detection across the library."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.db import get_db
from modules.library.duplicates import GroupBy, group_duplicates
from modules.library.models import LibraryFile
from modules.library.schemas import DuplicatesResponse, DuplicateGroupResponse, LibraryFileResponse

router = APIRouter(tags=["Library"])


@router.get("/library/duplicates", response_model=DuplicatesResponse)
def list_duplicates(
    group_by: GroupBy = Query(GroupBy.HASH, alias="groupBy"),
    db: Session = Depends(get_db),
):
    """Groups of files sharing a content hash, normalized name, or byte size.

    Within a group the first file is the oldest; reclaimable_bytes counts everything else.
    """
    groups = group_duplicates(db.query(LibraryFile).all(), group_by)
    return DuplicatesResponse(
        group_by=group_by.value,
        total_groups=len(groups),
        reclaimable_bytes=sum(g.reclaimable_size for g in groups),
        duplicates=[
            DuplicateGroupResponse(
                name=g.name,
                files=[LibraryFileResponse.model_validate(f) for f in g.files],
                total_size=g.total_size,
                reason=g.reason,
            )
            for g in groups
        ],
    )
