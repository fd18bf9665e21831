"""classifier.py — Keyword heuristics mapping a model filename to category tags.

Categories deliberately share keywords ("holder" is functional, household,
medical, kitchen, office and tool), so one filename can collect several tags.
"""

import re
from dataclasses import dataclass, field
from typing import List, Set

# Order matters only for readability; every category is checked.
CATEGORY_KEYWORDS = {
    "functional": ["bracket", "mount", "holder", "clip", "hook", "stand", "organizer", "adapter",
                   "tool", "jig", "fixture", "rack", "shelf"],
    "decorative": ["vase", "pot", "planter", "ornament", "decoration", "statue", "sculpture", "plant pot"],
    "toy": ["toy", "figure", "miniature", "figurine", "character", "dragon", "robot", "doll", "action figure"],
    "mechanical": ["gear", "bearing", "hinge", "wheel", "axle", "pulley", "spring", "cam", "crank"],
    "storage": ["box", "case", "container", "tray", "drawer", "bin", "organizer", "shelf"],
    "household": ["coaster", "opener", "spoon", "fork", "cup", "plate", "bowl", "bottle", "dispenser", "holder"],
    "game": ["dice", "token", "card", "board", "chess", "puzzle", "mini"],
    "electronics": ["enclosure", "raspberry", "arduino", "pi", "esp", "pcb", "cable", "case", "box"],
    "automotive": ["car", "vehicle", "wheel", "bumper", "spoiler", "mount"],
    "medical": ["splint", "brace", "prosthetic", "organizer", "holder"],
    "wearable": ["headband", "glasses", "earring", "necklace", "bracelet", "ring", "pendant", "jewelry",
                 "costume", "mask", "helmet", "crown", "tiara", "badge", "pin"],
    "kitchen": ["holder", "organizer", "rack", "dispenser", "container", "utensil"],
    "office": ["organizer", "holder", "stand", "caddy", "desk"],
    "garden": ["planter", "pot", "bed", "fence"],
    "tool": ["holder", "organizer", "stand", "rack", "wall mount"],
}

# (keywords, tags) — any keyword present adds every tag
KEYWORD_RULES = [
    (("remix", "mod", "modified"), ("remix",)),
    (("benchy", "3dbenchy"), ("calibration",)),
    (("calibration", "test"), ("calibration",)),
    (("prototype",), ("prototype",)),
    (("bambu", "ams"), ("bambu-lab",)),
    (("prusa", "mk3", "mk4"), ("prusa",)),
    (("ender", "creality"), ("creality",)),
    (("flexible", "tpu", "flex"), ("flexible",)),
    (("strong", "reinforced", "heavy", "structural"), ("reinforced",)),
    (("light", "lightweight"), ("lightweight",)),
    (("rack",), ("storage", "functional")),
    (("measure", "tape"), ("tool", "functional")),
]

_YEAR_RE = re.compile(r"20\d{2}")
_PART_RE = re.compile(r"part\s*\d+")
_PIECE_RE = re.compile(r"\d+.*piece")


@dataclass
class FilenameAnalysis:
    tags: Set[str] = field(default_factory=set)
    features: List[str] = field(default_factory=list)


def analyze_filename(file_name: str) -> FilenameAnalysis:
    """Derive category tags and notable features from a filename. Never raises."""
    lower = (file_name or "").lower()
    result = FilenameAnalysis()

    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            result.tags.add(category)

    if "spool" in lower or "filament" in lower:
        result.tags.add("3d-printing")
        if "holder" in lower:
            result.tags.add("functional")

    for keywords, tags in KEYWORD_RULES:
        if any(keyword in lower for keyword in keywords):
            result.tags.update(tags)

    year = _YEAR_RE.search(lower)
    if year:
        result.features.append(f"{year.group(0)} themed")

    if "assembly" in lower or "set" in lower or _PART_RE.search(lower) or _PIECE_RE.search(lower):
        result.tags.add("assembly")

    return result
