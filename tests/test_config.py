"""Tests for intake and capture configuration."""

import json

import pytest
from pydantic import ValidationError

from forensic_intake.codes import IntakeCode
from forensic_intake.config import CaptureScope, IntakeConfig, intake_config_from_dict, load_intake_config
from forensic_intake.kernel.errors import BannedVocabulary, IntakeConfigError


class TestCaptureScope:
    """Tests for CaptureScope."""

    def test_empty_allow_list_denies_all(self):
        scope = CaptureScope()
        assert scope.is_allowed("#main") is False

    def test_allow_list(self):
        scope = CaptureScope(allowed_selectors=["#main", "nav"])
        assert scope.is_allowed("#main") is True
        assert scope.is_allowed("footer") is False

    def test_allow_all(self):
        assert CaptureScope(allow_all_selectors=True).is_allowed("footer") is True

    @pytest.mark.parametrize("selector", ["", "   ", None, 3])
    def test_blank_or_non_string_never_allowed(self, selector):
        assert CaptureScope(allow_all_selectors=True).is_allowed(selector) is False

    def test_selector_objects_flattened(self):
        scope = CaptureScope(allowed_selectors=["#main", {"id": "checkout", "css": "form.checkout"}, {"query": "nav"}])
        assert scope.allowed_selectors == ["#main", "checkout", "form.checkout", "nav"]

    def test_bad_selector_entry_rejected(self):
        with pytest.raises(ValidationError):
            CaptureScope(allowed_selectors=[5])

    def test_unknown_fields_rejected(self):
        with pytest.raises(ValidationError):
            CaptureScope(allow_everything=True)


class TestIntakeConfig:
    """Tests for IntakeConfig."""

    def _base(self, tmp_path):
        return {
            "target_url": "https://shop.example/",
            "complaint_groups": [{"anchor": "P1", "assertions": ["A"]}],
            "output_dir": str(tmp_path),
        }

    def test_valid(self, tmp_path):
        config = intake_config_from_dict(self._base(tmp_path))
        config.require_inputs()
        assert config.capture_scope.is_allowed("#main") is False
        assert config.complaint_materials == ""

    def test_requires_output_dir(self, tmp_path):
        data = self._base(tmp_path)
        del data["output_dir"]
        with pytest.raises(IntakeConfigError, match="output_dir"):
            intake_config_from_dict(data).require_inputs()

    def test_requires_some_input(self, tmp_path):
        data = self._base(tmp_path)
        del data["complaint_groups"]
        with pytest.raises(IntakeConfigError):
            intake_config_from_dict(data).require_inputs()

    def test_rejects_both_inputs(self, tmp_path):
        data = self._base(tmp_path)
        data["run_units"] = [{"condition": "B"}]
        with pytest.raises(IntakeConfigError, match="not both"):
            intake_config_from_dict(data).require_inputs()

    def test_banned_target_domain_rejected(self, tmp_path):
        data = self._base(tmp_path)
        data["target_domain"] = "pass.example"
        with pytest.raises(BannedVocabulary):
            intake_config_from_dict(data).require_inputs()

    def test_validation_error_wrapped(self):
        with pytest.raises(IntakeConfigError) as excinfo:
            intake_config_from_dict({"complaint_groups": []})
        assert excinfo.value.code == IntakeCode.INTAKE_CONFIG

    def test_unknown_field_rejected(self, tmp_path):
        data = self._base(tmp_path)
        data["user_agent"] = "custom"
        with pytest.raises(IntakeConfigError):
            intake_config_from_dict(data)

    def test_load_from_file(self, tmp_path):
        path = tmp_path / "intake.json"
        path.write_text(json.dumps(self._base(tmp_path)), encoding="utf-8")
        config = load_intake_config(path)
        assert isinstance(config, IntakeConfig)
        assert config.complaint_groups[0].anchor == "P1"

    def test_load_invalid_json(self, tmp_path):
        path = tmp_path / "intake.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(IntakeConfigError, match="not valid JSON"):
            load_intake_config(path)

    def test_load_non_object(self, tmp_path):
        path = tmp_path / "intake.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(IntakeConfigError):
            load_intake_config(path)

    def test_load_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_intake_config(tmp_path / "missing.json")
