"""duplicates.py — Group library files that look like copies of each other.

groupBy "hash" finds exact copies (identical content digest). "name" and "size"
are heuristics: same name or same byte count does not mean same content, and
the group reason says so.

Members of every group are ordered by id ascending. Callers rely on the first
member being the oldest upload ("keep the first, delete the rest"); this holds
as long as ids are assigned in ingestion order and never reassigned.
"""

import os
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional


class GroupBy(str, Enum):
    HASH = "hash"
    NAME = "name"
    SIZE = "size"


REASONS = {
    GroupBy.HASH: "same content hash",
    GroupBy.NAME: "similar filename (content may differ)",
    GroupBy.SIZE: "same file size (content may differ)",
}


@dataclass
class DuplicateGroup:
    name: str
    files: List[Any] = field(default_factory=list)
    total_size: int = 0
    reason: Optional[str] = None

    @property
    def reclaimable_size(self) -> int:
        """Bytes freed by keeping only the oldest member."""
        return sum(_size(f) for f in self.files[1:])


def _size(f) -> int:
    return getattr(f, "file_size", None) or 0


def _display_name(f) -> str:
    return getattr(f, "original_name", None) or getattr(f, "file_name", None) or f"file {f.id}"


def normalize_filename(name: str) -> str:
    """Case- and extension-insensitive key for name grouping."""
    stem, _ext = os.path.splitext((name or "").strip())
    return stem.strip().lower()


def _hash_key(f) -> Optional[Hashable]:
    return getattr(f, "file_hash", None) or None


def _name_key(f) -> Optional[Hashable]:
    key = normalize_filename(_display_name(f))
    return key or None


def _size_key(f) -> Optional[Hashable]:
    return getattr(f, "file_size", None)


_KEY_FUNCS: Dict[GroupBy, Callable[[Any], Optional[Hashable]]] = {
    GroupBy.HASH: _hash_key,
    GroupBy.NAME: _name_key,
    GroupBy.SIZE: _size_key,
}


def _group_name(group_by: GroupBy, key: Hashable, oldest) -> str:
    if group_by == GroupBy.SIZE:
        return f"{key} bytes"
    if group_by == GroupBy.NAME:
        return key
    return _display_name(oldest)


def group_duplicates(files: Iterable[Any], group_by: GroupBy = GroupBy.HASH) -> List[DuplicateGroup]:
    """Partition files by the chosen key and return every partition with 2+ members.

    Files without a key (no hash, no size) are never grouped. Groups come back
    largest total size first.
    """
    group_by = GroupBy(group_by)
    key_func = _KEY_FUNCS[group_by]

    buckets: Dict[Hashable, List[Any]] = defaultdict(list)
    for f in files:
        key = key_func(f)
        if key is None:
            continue
        buckets[key].append(f)

    groups = []
    for key, members in buckets.items():
        if len(members) < 2:
            continue
        members = sorted(members, key=lambda f: f.id)
        groups.append(DuplicateGroup(
            name=_group_name(group_by, key, members[0]),
            files=members,
            total_size=sum(_size(f) for f in members),
            reason=REASONS[group_by],
        ))

    groups.sort(key=lambda g: (-g.total_size, g.files[0].id))
    return groups
