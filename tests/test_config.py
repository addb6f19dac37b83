"""Tests for configuration loading and validation."""

import pytest

from kwscope.config import (
    ConfigValidationError,
    get_lifecycle_config,
    get_ranking_config,
    get_trend_config,
    load_config,
    validate_config,
)


class TestLoadConfig:
    """Defaults, user overrides and errors."""

    def test_defaults(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        config = load_config()

        assert config["ranking"]["top_n"] == 10
        assert config["lifecycle"]["yoy_months_required"] == 24
        assert config["lifecycle"]["has_yoy_data"] is None
        assert config["trend"]["top_percentile"] == 15

    def test_local_file_deep_merged(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        (tmp_path / "kwscope.yaml").write_text("ranking:\n  brand_name: acme\n")
        config = load_config()

        assert config["ranking"]["brand_name"] == "acme"
        assert config["ranking"]["top_n"] == 10

    def test_explicit_path(self, tmp_path):
        path = tmp_path / "custom.yaml"
        path.write_text("trend:\n  top_percentile: 5\nlifecycle:\n  has_yoy_data: true\n")
        config = load_config(str(path))

        assert config["trend"]["top_percentile"] == 5
        assert config["lifecycle"]["has_yoy_data"] is True

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(str(tmp_path / "nope.yaml"))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("ranking:\n  top_n: 0\n  weights: {volume: 1}\n")
        with pytest.raises(ConfigValidationError) as exc:
            load_config(str(path))

        assert len(exc.value.errors) == 2
        assert any("ranking" in e for e in exc.value.errors)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("ranking: [unclosed\n")
        with pytest.raises(ConfigValidationError):
            load_config(str(path))

    def test_non_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigValidationError):
            load_config(str(path))

    def test_skip_validation(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("ranking:\n  top_n: 0\n")
        assert load_config(str(path), validate=False)["ranking"]["top_n"] == 0


class TestValidateConfig:
    def test_extra_top_level_allowed(self):
        assert validate_config({"host_app": {"anything": 1}}) == []

    def test_bad_percentile(self):
        errors = validate_config({"trend": {"top_percentile": 0}})
        assert errors and errors[0].startswith("trend.top_percentile")


class TestSectionGetters:
    def test_defaults_without_config(self):
        assert get_ranking_config(None) == {"top_n": 10, "brand_name": ""}
        assert get_lifecycle_config(None)["has_yoy_data"] is None
        assert get_trend_config(None)["top_percentile"] == 15.0

    def test_overrides(self):
        assert get_ranking_config({"ranking": {"top_n": 3}})["top_n"] == 3
