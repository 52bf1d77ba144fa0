"""Tests for preset export and loading."""

import json

import pytest

from motionfields.core.controls import ColorState, ControlState
from motionfields.io.presets import PresetExporter, load_preset, validate_preset


@pytest.fixture
def exporter():
    return PresetExporter(precision=2)


class TestPresetExporter:
    def test_build_full_preset(self, exporter):
        preset = exporter.build_preset(
            ControlState(drift=33.333),
            ColorState(),
            {"bass": (12.3456, 7.891)},
            anchor_space="normalized",
        )
        assert preset["metadata"]["version"] == "1.0"
        assert preset["controls"]["drift"] == 33.33
        assert preset["colors"]["background"] == "#1a1a2e"
        assert preset["anchors"] == {"space": "normalized", "positions": {"bass": [12.35, 7.89]}}

    def test_omitted_sections(self, exporter):
        preset = exporter.build_preset()
        assert set(preset) == {"metadata"}

    def test_export_and_load(self, exporter, tmp_path):
        preset = exporter.build_preset(ControlState(grain=40), ColorState())
        path = exporter.export(preset, tmp_path / "nested" / "preset.json")

        assert path.exists()
        loaded = load_preset(path)
        assert loaded == preset

    def test_json_is_valid(self, exporter):
        text = exporter.to_json(exporter.build_preset(ControlState()))
        assert json.loads(text)["controls"]["fieldScale"] == 0.0


class TestLoadPreset:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_preset(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_preset(path)

    def test_unknown_keys_are_kept_for_later(self, tmp_path):
        path = tmp_path / "extra.json"
        path.write_text(json.dumps({"controls": {"drift": 10, "wobble": 3}}))
        assert load_preset(path)["controls"]["wobble"] == 3


class TestValidatePreset:
    def test_must_be_object(self):
        with pytest.raises(ValueError):
            validate_preset([1, 2, 3])

    def test_sections_must_be_objects(self):
        with pytest.raises(ValueError, match="controls"):
            validate_preset({"controls": [1]})

    def test_anchor_shape(self):
        with pytest.raises(ValueError, match="bass"):
            validate_preset({"anchors": {"positions": {"bass": [1, 2, 3]}}})

    def test_unknown_anchor_space(self):
        with pytest.raises(ValueError, match="polar"):
            validate_preset({"anchors": {"space": "polar", "positions": {"bass": [1, 2]}}})

    @pytest.mark.parametrize("pos", [["a", "b"], [1, None], [True, 2]])
    def test_anchor_coordinates_must_be_numbers(self, pos):
        with pytest.raises(ValueError, match="bass"):
            validate_preset({"anchors": {"positions": {"bass": pos}}})

    def test_known_spaces(self):
        for space in ("pixels", "normalized"):
            preset = {"anchors": {"space": space, "positions": {"bass": [10, 20.5]}}}
            assert validate_preset(preset) is preset

    def test_empty_is_fine(self):
        assert validate_preset({}) == {}
