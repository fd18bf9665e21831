"""
modules/library/schemas.py — Pydantic schemas for the library domain.
"""

from datetime import datetime
from typing import Dict, Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from core.base import FileType
from core.schemas import JobStatusResponse


# ============== Library File Schemas ==============

class LibraryFileResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    original_name: str
    file_type: FileType
    file_size: int
    thumbnail_path: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = []
    language: Optional[str] = None
    file_hash: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("tags", mode="before")
    @classmethod
    def _none_tags(cls, v):
        return v or []


class UploadResponse(LibraryFileResponse):
    duplicate_of: Optional[int] = None


class DescriptionUpdate(BaseModel):
    description: str = Field(..., max_length=5000)


class TagsUpdate(BaseModel):
    tags: List[str] = Field(default_factory=list, max_length=100)

    @field_validator("tags")
    @classmethod
    def _normalize(cls, v: List[str]) -> List[str]:
        seen = []
        for tag in v:
            tag = (tag or "").strip().lower()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


# ============== Describe Schemas ==============

class ContainerMetadataResponse(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    designer: Optional[str] = None
    application: Optional[str] = None
    license: Optional[str] = None
    print_settings: Optional[Dict[str, str]] = None


class DescribeResponse(BaseModel):
    file_id: int
    description: str
    tags: List[str]
    language: str = "en"
    metadata: Optional[ContainerMetadataResponse] = None


# ============== Duplicate Schemas ==============

class DuplicateGroupResponse(BaseModel):
    name: str
    files: List[LibraryFileResponse]
    total_size: int
    reason: Optional[str] = None


class DuplicatesResponse(BaseModel):
    group_by: str
    total_groups: int
    reclaimable_bytes: int
    duplicates: List[DuplicateGroupResponse]


# ============== Bulk Job Schemas ==============

class BulkDeleteRequest(BaseModel):
    file_ids: List[int] = Field(..., min_length=1)


class AutoTagAllRequest(BaseModel):
    # None means every file in the library
    file_ids: Optional[List[int]] = None
    only_untagged: bool = False


class BulkStartResponse(BaseModel):
    accepted: bool
    status: JobStatusResponse
