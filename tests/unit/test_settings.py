"""
Unit tests for pipeline configuration loading.
"""

import pytest
import yaml
from pydantic import ValidationError

from src.config import load_settings


@pytest.fixture
def config_file(tmp_path):
    """Write a YAML config and return its path"""
    def _write(content: dict) -> str:
        path = tmp_path / "pipeline.yaml"
        path.write_text(yaml.safe_dump(content))
        return str(path)
    return _write


class TestLoadSettings:
    """Tests for load_settings"""

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        """Test built-in defaults apply when the default file is absent"""
        monkeypatch.chdir(tmp_path)
        settings = load_settings(environ={})

        assert settings.location.cache_enabled is True
        assert settings.location.default_store_prefix == "23"
        assert settings.location.default_dc_prefix == "9"
        assert settings.validation.strict_mode is False
        assert settings.validation.max_timestamp_future_hours == 24
        assert settings.validation.max_timestamp_past_days == 365
        assert settings.cutover.enabled is False
        assert settings.cutover.gap_days == 30
        assert settings.cutover.batch_size == 1000
        assert settings.cutover.parallel_processing is True
        assert settings.kafka.topics == ["movements"]

    def test_reads_yaml(self, config_file):
        path = config_file({
            "validation": {"strict_mode": True},
            "cutover": {"enabled": True, "gap_days": 7, "base_url": "http://api.test"},
        })
        settings = load_settings(path, environ={})

        assert settings.validation.strict_mode is True
        assert settings.cutover.enabled is True
        assert settings.cutover.gap_days == 7
        assert settings.cutover.base_url == "http://api.test"

    def test_environment_overrides_yaml(self, config_file):
        path = config_file({"cutover": {"gap_days": 7}})
        settings = load_settings(path, environ={
            "CUTOVER_GAP_DAYS": "14",
            "CUTOVER_PARALLEL_PROCESSING": "false",
            "KAFKA_TOPICS": "movements, movements-replay",
            "DB_PASSWORD": "secret",
        })

        assert settings.cutover.gap_days == 14
        assert settings.cutover.parallel_processing is False
        assert settings.kafka.topics == ["movements", "movements-replay"]
        assert settings.database.password == "secret"

    def test_empty_environment_value_ignored(self, config_file):
        path = config_file({"cutover": {"gap_days": 7}})
        settings = load_settings(path, environ={"CUTOVER_GAP_DAYS": ""})
        assert settings.cutover.gap_days == 7

    def test_config_path_from_environment(self, config_file):
        path = config_file({"location": {"default_store_prefix": "24"}})
        settings = load_settings(environ={"PIPELINE_CONFIG": path})
        assert settings.location.default_store_prefix == "24"

    def test_missing_explicit_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "missing.yaml", environ={})

    def test_enabled_cutover_requires_base_url(self, config_file):
        path = config_file({"cutover": {"enabled": True}})
        with pytest.raises(ValidationError):
            load_settings(path, environ={})

    def test_negative_gap_rejected(self, config_file):
        path = config_file({"cutover": {"gap_days": -1}})
        with pytest.raises(ValidationError):
            load_settings(path, environ={})

    def test_non_mapping_file_rejected(self, tmp_path):
        path = tmp_path / "pipeline.yaml"
        path.write_text("- just\n- a list\n")
        with pytest.raises(ValueError):
            load_settings(path, environ={})
