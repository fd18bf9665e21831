"""
core/base.py — Declarative Base and shared enums.

All ORM models import Base from here.
Enums shared between core services and domain modules live here
to avoid circular imports.
"""

from enum import Enum
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# SQLAlchemy 2.x defaults to using enum member NAMES as DB values.
# We want member VALUES (lowercase strings) instead.
_ENUM_VALUES = lambda x: [e.value for e in x]


class BackgroundJobType(str, Enum):
    """Long-running operations tracked by the JobTracker. One run per type at a time."""
    VIDEO_MATCH = "video-match"
    LIBRARY_SCAN = "library-scan"
    AUTO_TAG = "auto-tag"
    BULK_DELETE = "bulk-delete"


class FileType(str, Enum):
    """Model file formats accepted into the library."""
    THREEMF = "3mf"
    STL = "stl"
    GCODE = "gcode"

    @classmethod
    def from_filename(cls, filename: str) -> 'FileType':
        """Resolve a FileType from a filename's extension. Raises ValueError if unsupported."""
        if not filename or "." not in filename:
            raise ValueError(f"Unsupported file type: {filename!r}")
        ext = filename.rsplit(".", 1)[1].lower().strip()
        return cls(ext)


SUPPORTED_EXTENSIONS = {f".{t.value}" for t in FileType}
