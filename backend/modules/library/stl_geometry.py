"""stl_geometry.py — Bounding-box and shape profile for binary STL files.

Reads the 80-byte header, the triangle count and at most MAX_SAMPLED_TRIANGLES
triangle records, so the cost per file is bounded whatever its size.
ASCII STL (header starting with "solid") is not supported and yields None.

Public API:
    analyze_stl_geometry(file_path) -> GeometryProfile | None
    analyze_model_dimensions(width, depth, height, triangle_count=0) -> GeometryProfile
"""

import logging
import math
import struct
from dataclasses import dataclass, field, asdict
from typing import List, Optional

log = logging.getLogger("printvault.library")

HEADER_SIZE = 80
COUNT_SIZE = 4
# 12 bytes normal + 3 x 12 bytes vertices + 2 bytes attribute
TRIANGLE_RECORD_SIZE = 50
MAX_SAMPLED_TRIANGLES = 10000

_VERTICES = struct.Struct("<12x9f2x")

MINIATURE_MAX_MM = 30
SMALL_MAX_MM = 100
LARGE_MIN_MM = 200
VERTICAL_ASPECT = 2.5
FLAT_ASPECT = 0.2
CUBIC_TOLERANCE = 0.1
HIGH_DETAIL_TRIANGLES = 100000
LOW_POLY_TRIANGLES = 1000


@dataclass
class GeometryProfile:
    width: float
    depth: float
    height: float
    triangle_count: int
    dimensions: str
    tags: List[str] = field(default_factory=list)
    features: List[str] = field(default_factory=list)

    def to_dict(self):
        return asdict(self)


def _round_mm(value: float) -> int:
    # Half-up rounding; round() would send 2.5 to 2
    return int(math.floor(value + 0.5))


def analyze_model_dimensions(width: float, depth: float, height: float, triangle_count: int = 0) -> GeometryProfile:
    """Classify a model by size, proportions and mesh density.

    Size bands: < 30mm miniature, 30-100mm small, > 200mm large.
    Models between 100mm and 200mm get no size tag.
    """
    tags = []
    features = []

    max_dim = max(width, depth, height)

    if max_dim < MINIATURE_MAX_MM:
        tags.append("miniature")
        features.append("small model (< 30mm)")
    elif max_dim < SMALL_MAX_MM:
        tags.append("small")
        features.append("small to medium size")
    elif max_dim > LARGE_MIN_MM:
        tags.append("large")
        features.append("large print (> 200mm)")

    footprint = max(width, depth)
    if footprint > 0:
        aspect_ratio = height / footprint
    elif height > 0:
        aspect_ratio = math.inf
    else:
        aspect_ratio = None

    if aspect_ratio is not None:
        if aspect_ratio > VERTICAL_ASPECT:
            tags.append("vertical")
            features.append("tall vertical design")
        elif aspect_ratio < FLAT_ASPECT:
            tags.append("flat")
            features.append("flat/thin design")

    tolerance = max_dim * CUBIC_TOLERANCE
    if abs(width - depth) < tolerance and abs(width - height) < tolerance:
        features.append("cubic/symmetrical")

    if triangle_count > HIGH_DETAIL_TRIANGLES:
        features.append("high detail model")
    elif 0 < triangle_count < LOW_POLY_TRIANGLES:
        features.append("low poly design")

    return GeometryProfile(
        width=width,
        depth=depth,
        height=height,
        triangle_count=triangle_count,
        dimensions=f"{_round_mm(width)}×{_round_mm(depth)}×{_round_mm(height)}mm",
        tags=tags,
        features=features,
    )


def analyze_stl_geometry(file_path: str) -> Optional[GeometryProfile]:
    """
    Measure a binary STL by sampling its first triangles.

    Args:
        file_path: Path to the .stl file

    Returns:
        GeometryProfile, or None for ASCII STL, truncated or unreadable files
    """
    try:
        with open(file_path, "rb") as fh:
            header = fh.read(HEADER_SIZE)
            if len(header) < HEADER_SIZE:
                log.debug(f"[stl] {file_path}: short header, not a binary STL")
                return None
            if b"solid" in header.lower():
                log.debug(f"[stl] {file_path}: ASCII STL is not supported")
                return None

            count_bytes = fh.read(COUNT_SIZE)
            if len(count_bytes) < COUNT_SIZE:
                return None
            (triangle_count,) = struct.unpack("<I", count_bytes)

            sampled = min(triangle_count, MAX_SAMPLED_TRIANGLES)
            body = fh.read(sampled * TRIANGLE_RECORD_SIZE)
    except OSError as e:
        log.warning(f"[stl] Error reading {file_path}: {e}")
        return None

    if len(body) < sampled * TRIANGLE_RECORD_SIZE:
        log.debug(f"[stl] {file_path}: truncated, expected {sampled} triangle records")
        return None

    min_x = min_y = min_z = math.inf
    max_x = max_y = max_z = -math.inf
    for values in _VERTICES.iter_unpack(body):
        for i in (0, 3, 6):
            x, y, z = values[i], values[i + 1], values[i + 2]
            if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
                continue
            min_x, max_x = min(min_x, x), max(max_x, x)
            min_y, max_y = min(min_y, y), max(max_y, y)
            min_z, max_z = min(min_z, z), max(max_z, z)

    if min_x == math.inf:
        # No usable vertices (empty mesh)
        width = depth = height = 0.0
    else:
        width = max_x - min_x
        depth = max_y - min_y
        height = max_z - min_z

    return analyze_model_dimensions(width, depth, height, triangle_count)
