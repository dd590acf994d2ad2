"""Tests for ossmultipart configuration loading."""

import tempfile
from pathlib import Path

import pydantic
import pytest
import yaml

from ossmultipart.config import ClientConfig, load_config


def _write_yaml(data) -> Path:
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        f.flush()
    return Path(f.name)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_load_example_config(self):
        """Loading the example config file populates all sections."""
        config = load_config(
            Path(__file__).resolve().parent.parent / "ossmultipart.example.yaml"
        )
        assert config.endpoint.host == "oss-cn-hangzhou.aliyuncs.com"
        assert config.endpoint.scheme == "https"
        assert config.endpoint.path_style is False
        assert config.transport.timeout == 30.0
        assert config.upload.part_size == 16 * 1024 * 1024
        assert config.upload.concurrency == 8
        assert config.logging.format == "json"
        assert config.metrics.enabled is False

    def test_load_minimal_config(self):
        """An empty YAML document uses defaults for every field."""
        config = load_config(_write_yaml({}))
        assert config == ClientConfig()

    def test_endpoint_as_string(self):
        config = load_config(_write_yaml({"endpoint": "oss.example.com"}))
        assert config.endpoint.host == "oss.example.com"
        assert config.endpoint.scheme == "https"

    def test_explicit_part_size_wins(self):
        config = load_config(_write_yaml({"upload": {"part_size": 1000, "part_size_mb": 5}}))
        assert config.upload.part_size == 1000

    def test_invalid_concurrency(self):
        with pytest.raises(pydantic.ValidationError):
            load_config(_write_yaml({"upload": {"concurrency": 0}}))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_defaults_instance(self):
        """ClientConfig() with no arguments uses sane defaults."""
        config = ClientConfig()
        assert config.endpoint.host == "oss.aliyuncs.com"
        assert config.endpoint.path_style is False
        assert config.upload.part_size == 8 * 1024 * 1024
        assert config.logging.level == "INFO"
        assert config.metrics.enabled is False
