"""
Library tests — filename keyword heuristics.

Run: pytest tests/test_library/test_classifier.py -v
"""

import sys
from pathlib import Path

import pytest

BACKEND_DIR = Path(__file__).resolve().parents[2] / "backend"
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from modules.library.classifier import analyze_filename


class TestCategories:

    def test_holder_is_multi_category(self):
        tags = analyze_filename("phone_holder_v2.stl").tags
        assert {"functional", "household", "kitchen", "office", "tool", "medical"} <= tags

    def test_case_insensitive(self):
        assert "decorative" in analyze_filename("Spiral_VASE.3mf").tags

    @pytest.mark.parametrize("name, tag", [
        ("gearbox.stl", "mechanical"),
        ("dice_tower.stl", "game"),
        ("arduino_enclosure.3mf", "electronics"),
        ("dragon.stl", "toy"),
        ("garden_planter.stl", "garden"),
        ("helmet.stl", "wearable"),
    ])
    def test_single_keyword(self, name, tag):
        assert tag in analyze_filename(name).tags

    def test_no_keywords(self):
        result = analyze_filename("xyzzy.stl")
        assert result.tags == set()
        assert result.features == []


class TestKeywordRules:

    @pytest.mark.parametrize("name, tag", [
        ("3DBenchy.stl", "calibration"),
        ("temp_tower_test.gcode", "calibration"),
        ("arm_remix.3mf", "remix"),
        ("ams_riser.3mf", "bambu-lab"),
        ("mk4_fan_duct.stl", "prusa"),
        ("ender3_knob.stl", "creality"),
        ("tpu_gasket.stl", "flexible"),
        ("reinforced_hinge.stl", "reinforced"),
        ("lightweight_drone_arm.stl", "lightweight"),
        ("prototype_v1.stl", "prototype"),
    ])
    def test_rule_tags(self, name, tag):
        assert tag in analyze_filename(name).tags

    def test_rack_adds_storage_and_functional(self):
        assert {"storage", "functional"} <= analyze_filename("spice_rack.stl").tags

    def test_tape_measure(self):
        assert {"tool", "functional"} <= analyze_filename("tape_dispenser.stl").tags

    def test_spool_holder(self):
        assert {"3d-printing", "functional"} <= analyze_filename("spool_holder.stl").tags

    def test_filament_without_holder(self):
        tags = analyze_filename("filament_clip.stl").tags
        assert "3d-printing" in tags


class TestFeatures:

    def test_year_feature(self):
        assert analyze_filename("xmas_ornament_2023.stl").features == ["2023 themed"]

    @pytest.mark.parametrize("name", [
        "chess_set.3mf",
        "robot_part2.stl",
        "robot part 3.stl",
        "gun_assembly.stl",
        "12_piece_puzzle.stl",
    ])
    def test_assembly(self, name):
        assert "assembly" in analyze_filename(name).tags


class TestRobustness:

    @pytest.mark.parametrize("name", ["", None, ".stl", "ñandú_🦖.3mf", "a" * 5000])
    def test_never_raises(self, name):
        result = analyze_filename(name)
        assert isinstance(result.tags, set)
