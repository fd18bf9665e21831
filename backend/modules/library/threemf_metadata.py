"""
3MF metadata extraction for library files.
Pulls title, description, designer, application and license out of the
embedded 3D model XML, print settings out of the slicer config and the
plate thumbnail image.

The model XML is matched with targeted patterns rather than parsed, so files
with malformed or truncated markup still yield whatever fields are readable.
"""

import logging
import re
import zipfile
from dataclasses import dataclass, asdict
from typing import Dict, Optional

log = logging.getLogger("printvault.library")

MODEL_ENTRY_PATHS = ("3D/3dmodel.model", "3dmodel.model")

# Bambu Studio / Orca key=value settings, first one present wins
CONFIG_ENTRY_PATHS = ("Metadata/model_settings.config", "Metadata/slice_info.config")

# Plate renders first, then the generic container thumbnails
THUMBNAIL_FALLBACK_PATHS = (
    "Auxiliaries/.thumbnails/thumbnail_small.png",
    "Auxiliaries/.thumbnails/thumbnail_3mf.png",
)
_PLATE_THUMBNAIL_RE = re.compile(r"^Metadata/plate_(\d+)\.png$", re.IGNORECASE)


def _metadata_pattern(names: str) -> re.Pattern:
    return re.compile(
        r"<metadata\s+name=[\"'](?:" + names + r")[\"'][^>]*>(.*?)</metadata>",
        re.IGNORECASE | re.DOTALL,
    )


_TITLE_RE = _metadata_pattern("Title")
_DESCRIPTION_RE = _metadata_pattern("Description")
# Whichever of these appears first in the document wins
_DESIGNER_RE = _metadata_pattern("Designer|Author|Creator")
_APPLICATION_RE = _metadata_pattern("Application")
_LICENSE_RE = _metadata_pattern("License")


@dataclass
class ContainerMetadata:
    title: Optional[str] = None
    description: Optional[str] = None
    designer: Optional[str] = None
    application: Optional[str] = None
    license: Optional[str] = None
    print_settings: Optional[Dict[str, str]] = None

    def to_dict(self):
        return {k: v for k, v in asdict(self).items() if v is not None}


def _find_model_entry(zf: zipfile.ZipFile) -> Optional[str]:
    names = set(zf.namelist())
    for path in MODEL_ENTRY_PATHS:
        if path in names:
            return path
    return None


def parse_model_metadata(xml_content: str) -> ContainerMetadata:
    """Match the known metadata elements in a 3D model XML document."""
    metadata = ContainerMetadata()
    for attr, pattern in (
        ("title", _TITLE_RE),
        ("description", _DESCRIPTION_RE),
        ("designer", _DESIGNER_RE),
        ("application", _APPLICATION_RE),
        ("license", _LICENSE_RE),
    ):
        match = pattern.search(xml_content)
        if match:
            setattr(metadata, attr, match.group(1))
    return metadata


def parse_config_file(content: str) -> Dict[str, str]:
    """
    Parse slicer config text of `key = value` lines.

    Blank lines, `#` / `;` comments and markup lines are skipped, as is any
    line without a key before its first `=`. Later keys overwrite earlier ones.
    """
    config = {}
    for line in (content or "").splitlines():
        line = line.strip()
        if not line or line[0] in "#;<":
            continue
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            config[key] = value.strip()
    return config


def _read_print_settings(zf: zipfile.ZipFile) -> Optional[Dict[str, str]]:
    names = set(zf.namelist())
    for path in CONFIG_ENTRY_PATHS:
        if path in names:
            try:
                content = zf.read(path).decode("utf-8", errors="replace")
            except Exception as e:
                log.warning(f"[3mf] unreadable {path}: {e}")
                return None
            return parse_config_file(content) or None
    return None


def _find_thumbnail_entry(zf: zipfile.ZipFile) -> Optional[str]:
    plates = []
    for name in zf.namelist():
        match = _PLATE_THUMBNAIL_RE.match(name)
        if match:
            plates.append((int(match.group(1)), name))
    if plates:
        return min(plates)[1]
    names = set(zf.namelist())
    for path in THUMBNAIL_FALLBACK_PATHS:
        if path in names:
            return path
    return None


def extract_3mf_metadata(file_path: str) -> Optional[ContainerMetadata]:
    """
    Read the embedded model metadata from a .3mf file.

    Args:
        file_path: Path to the .3mf file

    Returns:
        ContainerMetadata (fields absent from the XML stay None), or None if the
        file is not a zip archive or has no 3dmodel.model entry
    """
    try:
        with zipfile.ZipFile(file_path, "r") as zf:
            entry = _find_model_entry(zf)
            if entry is None:
                log.debug(f"[3mf] {file_path}: no 3dmodel.model entry")
                return None
            xml_content = zf.read(entry).decode("utf-8", errors="replace")
            print_settings = _read_print_settings(zf)
    except Exception as e:
        log.warning(f"Error extracting 3MF metadata from {file_path}: {e}")
        return None

    metadata = parse_model_metadata(xml_content)
    metadata.print_settings = print_settings
    return metadata


def extract_3mf_thumbnail(file_path: str) -> Optional[bytes]:
    """PNG bytes of the lowest-numbered plate thumbnail, or None if there is none."""
    try:
        with zipfile.ZipFile(file_path, "r") as zf:
            entry = _find_thumbnail_entry(zf)
            if entry is None:
                return None
            return zf.read(entry)
    except Exception as e:
        log.warning(f"Error extracting 3MF thumbnail from {file_path}: {e}")
        return None
