"""
Unit tests for configuration management.

Tests YAML loading, Settings validation, and sensitive data redaction.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from object_store.config import (
    REDACTION_MARKER,
    ConfigurationError,
    Settings,
    get_safe_config,
    get_settings,
    is_sensitive_key,
    load_yaml_config,
    redact_sensitive_values,
)

if TYPE_CHECKING:
    from pathlib import Path


VALID_CONFIG = {
    "service": {"name": "object_store", "version": "0.1.0"},
    "storage": {
        "path": "./data/objects",
        "database_path": "./data/metadata.db",
        "max_upload_size_mb": 100,
        "chunk_size_bytes": 65536,
    },
    "auth": {"token": "s3cret-token"},
    "server": {"host": "127.0.0.1", "port": 3000, "cors_origins": ["*"]},
    "logging": {"level": "INFO", "format": "json"},
}

VALID_CONFIG_YAML = """
service:
  name: object_store
  version: 0.1.0

storage:
  path: "./data/objects"
  database_path: "./data/metadata.db"
  max_upload_size_mb: 100
  chunk_size_bytes: 65536

auth:
  token: "s3cret-token"

server:
  host: "127.0.0.1"
  port: 3000
  cors_origins:
    - "*"

logging:
  level: "INFO"
  format: "json"
"""


@pytest.mark.unit
class TestLoadYamlConfig:
    """Tests for YAML configuration loading."""

    def test_load_valid_config(self, tmp_path: Path) -> None:
        """Valid YAML file loads successfully."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(VALID_CONFIG_YAML)

        result = load_yaml_config(config_file)

        assert result["storage"]["database_path"] == "./data/metadata.db"
        assert result["server"]["port"] == 3000

    def test_missing_file_raises_error(self, tmp_path: Path) -> None:
        """Missing config file raises ConfigurationError."""
        with pytest.raises(ConfigurationError) as exc_info:
            load_yaml_config(tmp_path / "does_not_exist.yaml")

        assert "not found" in str(exc_info.value)

    def test_empty_file_raises_error(self, tmp_path: Path) -> None:
        """Empty config file raises ConfigurationError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("")

        with pytest.raises(ConfigurationError) as exc_info:
            load_yaml_config(config_file)

        assert "empty" in str(exc_info.value)

    def test_invalid_yaml_raises_error(self, tmp_path: Path) -> None:
        """Malformed YAML raises ConfigurationError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigurationError):
            load_yaml_config(config_file)

    def test_non_dict_yaml_raises_error(self, tmp_path: Path) -> None:
        """YAML that is not a mapping raises ConfigurationError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- item1\n- item2")

        with pytest.raises(ConfigurationError) as exc_info:
            load_yaml_config(config_file)

        assert "mapping" in str(exc_info.value)


@pytest.mark.unit
class TestSettings:
    """Tests for Settings validation."""

    def test_valid_config_creates_settings(self) -> None:
        """Valid configuration creates Settings instance."""
        settings = Settings(**VALID_CONFIG)

        assert settings.storage.path == "./data/objects"
        assert settings.auth.token == "s3cret-token"
        assert settings.server.cors_origins == ["*"]

    def test_upload_cap_in_bytes(self) -> None:
        """Megabyte cap converts to bytes."""
        settings = Settings(**VALID_CONFIG)

        assert settings.storage.max_upload_bytes == 100 * 1024 * 1024

    def test_missing_section_raises_error(self) -> None:
        """Missing entire section raises ValidationError."""
        config = {k: v for k, v in VALID_CONFIG.items() if k != "auth"}

        with pytest.raises(ValidationError) as exc_info:
            Settings(**config)

        assert "auth" in str(exc_info.value)

    def test_extra_field_raises_error(self) -> None:
        """Extra field raises ValidationError (extra='forbid')."""
        config = {
            **VALID_CONFIG,
            "storage": {**VALID_CONFIG["storage"], "unknown": "value"},
        }

        with pytest.raises(ValidationError) as exc_info:
            Settings(**config)

        assert "extra" in str(exc_info.value).lower()

    @pytest.mark.parametrize("field", ["max_upload_size_mb", "chunk_size_bytes"])
    def test_non_positive_sizes_rejected(self, field: str) -> None:
        """Size limits must be positive."""
        config = {**VALID_CONFIG, "storage": {**VALID_CONFIG["storage"], field: 0}}

        with pytest.raises(ValidationError):
            Settings(**config)

    def test_empty_token_rejected(self) -> None:
        """An empty bearer token would make auth meaningless."""
        config = {**VALID_CONFIG, "auth": {"token": ""}}

        with pytest.raises(ValidationError):
            Settings(**config)


@pytest.mark.unit
class TestGetSettings:
    """Tests for get_settings function."""

    def test_loads_valid_config(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Should load valid configuration from CONFIG_PATH."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(VALID_CONFIG_YAML)
        monkeypatch.setenv("CONFIG_PATH", str(config_file))

        settings = get_settings()

        assert settings.service.name == "object_store"
        assert settings.storage.chunk_size_bytes == 65536

    def test_settings_are_cached(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Repeated calls return the same instance."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(VALID_CONFIG_YAML)
        monkeypatch.setenv("CONFIG_PATH", str(config_file))

        assert get_settings() is get_settings()

    def test_invalid_values_raise_configuration_error(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        """Validation failures surface as ConfigurationError."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(VALID_CONFIG_YAML.replace("port: 3000", "port: not-a-port"))
        monkeypatch.setenv("CONFIG_PATH", str(config_file))

        with pytest.raises(ConfigurationError) as exc_info:
            get_settings()

        assert "validation failed" in str(exc_info.value)


@pytest.mark.unit
class TestSensitiveKeyDetection:
    """Tests for sensitive key detection."""

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("api_key", True),
            ("password", True),
            ("token", True),
            ("auth", True),
            ("key", False),
            ("database_path", False),
            ("port", False),
        ],
    )
    def test_is_sensitive_key(self, key: str, expected: bool) -> None:
        """Correctly identifies sensitive keys."""
        assert is_sensitive_key(key) == expected


@pytest.mark.unit
class TestSensitiveDataRedaction:
    """Tests for sensitive value redaction."""

    def test_redact_nested_values(self) -> None:
        """Redacts sensitive values at any depth."""
        data = {"server": {"host": "localhost"}, "backends": [{"token": "abc"}]}

        result = redact_sensitive_values(data, REDACTION_MARKER)

        assert result["server"]["host"] == "localhost"
        assert result["backends"][0]["token"] == REDACTION_MARKER

    def test_safe_config_hides_bearer_token(
        self,
        monkeypatch: pytest.MonkeyPatch,
        tmp_path: Path,
    ) -> None:
        """The configured token never appears in the loggable config."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(VALID_CONFIG_YAML)
        monkeypatch.setenv("CONFIG_PATH", str(config_file))

        safe = get_safe_config()

        assert "s3cret-token" not in str(safe)
        assert safe["storage"]["path"] == "./data/objects"
