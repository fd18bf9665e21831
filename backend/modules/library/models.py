"""
modules/library/models.py — ORM models for the model file library.

Owns tables: library_files
"""

from typing import List
from sqlalchemy import (
    Column, Integer, String, BigInteger, DateTime, Enum as SQLEnum, Text, JSON
)
from sqlalchemy.sql import func

from core.base import Base, FileType, _ENUM_VALUES


class LibraryFile(Base):
    """
    A catalogued model file (3MF, STL or gcode) on disk.

    description/tags are written by the auto-describer or edited by hand.
    file_hash is the SHA-256 of the file bytes and drives exact-duplicate grouping.
    """
    __tablename__ = "library_files"

    id = Column(Integer, primary_key=True)
    file_name = Column(String(500), nullable=False)      # name on disk, e.g. "12_benchy.3mf"
    original_name = Column(String(500), nullable=False)  # name as uploaded/found
    file_type = Column(SQLEnum(FileType, values_callable=_ENUM_VALUES), nullable=False)
    file_size = Column(BigInteger, nullable=False, default=0)
    file_path = Column(String(1000), nullable=False, unique=True)
    thumbnail_path = Column(String(1000))

    # Derived by the describer (or edited by a user)
    description = Column(Text)
    tags = Column(JSON, default=list)
    language = Column(String(8))

    file_hash = Column(String(64), index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    @property
    def tag_list(self) -> List[str]:
        return list(self.tags or [])

    def __repr__(self):
        return f"<LibraryFile {self.id} {self.original_name}>"
