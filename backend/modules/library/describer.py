"""describer.py — Automatic description and tags for a single library file.

Combines filename heuristics, 3MF metadata and STL geometry into a
DescribeResult. Each step is isolated: a failure in one is logged and the
others still run. describe() never raises.

Public API:
    ModelDescriber().describe(file_path, file_name) -> DescribeResult
    describe_model(file_path, file_name) -> DescribeResult
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from modules.library.classifier import FilenameAnalysis, analyze_filename
from modules.library.stl_geometry import GeometryProfile, analyze_stl_geometry
from modules.library.text_normalizer import clean_html_text, detect_language, truncate_description
from modules.library.threemf_metadata import ContainerMetadata, extract_3mf_metadata

log = logging.getLogger("printvault.describer")

DEFAULT_TAG = "3d-model"
MAX_DESCRIPTION_LENGTH = 300

_EXTENSION_RE = re.compile(r"\.(3mf|stl|gcode)$", re.IGNORECASE)


def strip_model_extension(file_name: str) -> str:
    return _EXTENSION_RE.sub("", str(file_name or ""))


@dataclass
class DescribeResult:
    description: str = ""
    tags: List[str] = field(default_factory=list)
    language: str = "en"
    metadata: Optional[ContainerMetadata] = None

    def to_dict(self):
        return {
            "description": self.description,
            "tags": list(self.tags),
            "language": self.language,
            "metadata": self.metadata.to_dict() if self.metadata else None,
        }


class ModelDescriber:
    """Stateless orchestrator; one instance may be shared across worker threads."""

    def __init__(
        self,
        max_length: int = MAX_DESCRIPTION_LENGTH,
        filename_analyzer: Callable[[str], FilenameAnalysis] = analyze_filename,
        metadata_extractor: Callable[[str], Optional[ContainerMetadata]] = extract_3mf_metadata,
        geometry_analyzer: Callable[[str], Optional[GeometryProfile]] = analyze_stl_geometry,
    ):
        self.max_length = max_length
        self._analyze_filename = filename_analyzer
        self._extract_metadata = metadata_extractor
        self._analyze_geometry = geometry_analyzer

    def describe(self, file_path: str, file_name: str) -> DescribeResult:
        try:
            return self._describe(file_path, file_name)
        except Exception:
            log.error(f"Auto-describe failed for {file_name!r}", exc_info=True)
            return DescribeResult(
                description=strip_model_extension(file_name),
                tags=[DEFAULT_TAG],
                metadata=None,
            )

    def _describe(self, file_path: str, file_name: str) -> DescribeResult:
        log.info(f"Auto-analyzing: {file_name}")
        result = DescribeResult()
        tags: List[str] = []
        lower_name = str(file_name or "").lower()

        # 1. Filename heuristics
        filename_analysis = FilenameAnalysis()
        try:
            filename_analysis = self._analyze_filename(file_name)
            tags.extend(sorted(filename_analysis.tags))
        except Exception:
            log.warning(f"Filename analysis failed for {file_name!r}", exc_info=True)

        # 2. Embedded 3MF metadata
        if lower_name.endswith(".3mf"):
            try:
                metadata = self._extract_metadata(file_path)
                if metadata:
                    result.metadata = metadata
                    if metadata.title and metadata.title != file_name:
                        result.description = clean_html_text(metadata.title)
                    if metadata.description:
                        cleaned = clean_html_text(metadata.description)
                        result.description = cleaned
                        result.language = detect_language(cleaned)
                    # Designer credit is taken as a sign the model was remixed from someone else's
                    if metadata.designer:
                        tags.append("remix")
            except Exception:
                log.warning(f"3MF metadata step failed for {file_name!r}", exc_info=True)

        # 3. STL geometry
        geometry: Optional[GeometryProfile] = None
        if lower_name.endswith(".stl"):
            try:
                geometry = self._analyze_geometry(file_path)
                if geometry:
                    tags.extend(geometry.tags)
            except Exception:
                geometry = None
                log.warning(f"STL geometry step failed for {file_name!r}", exc_info=True)

        # 4. Fallback description
        if not result.description:
            parts = []
            if filename_analysis.features:
                parts.append(filename_analysis.features[0])
            if geometry and geometry.dimensions:
                parts.append(geometry.dimensions)
            if geometry and geometry.features:
                parts.append(geometry.features[0])
            result.description = " - ".join(parts) or strip_model_extension(file_name) or file_name or "Untitled model"

        # 5. Length cap
        result.description = truncate_description(result.description, self.max_length)

        # 6. Dedupe, drop empties, default
        seen = set()
        for tag in tags:
            if tag and tag not in seen:
                seen.add(tag)
                result.tags.append(tag)
        if not result.tags:
            result.tags.append(DEFAULT_TAG)

        log.info(f"  Generated description: {result.description}")
        log.info(f"  Generated tags: {', '.join(result.tags)}")
        return result


_default_describer = ModelDescriber()


def describe_model(file_path: str, file_name: str) -> DescribeResult:
    """Describe one file with the default describer."""
    return _default_describer.describe(file_path, file_name)
