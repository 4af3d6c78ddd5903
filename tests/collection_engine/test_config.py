"""Unit tests for CollectionSettings."""

from __future__ import annotations

import logging
import os

import pytest
from pydantic import ValidationError

from taskchain import CollectionSettings


@pytest.mark.unit
class TestCollectionSettingsDefaults:
    def test_defaults(self):
        settings = CollectionSettings()
        assert settings.logger_name == "taskchain"
        assert settings.progress_level == logging.INFO
        assert settings.unnamed_prefix == "task-"
        assert settings.strict_attach_points is True

    def test_frozen(self):
        settings = CollectionSettings()
        with pytest.raises(ValidationError):
            settings.logger_name = "other"  # type: ignore[misc]


@pytest.mark.unit
class TestProgressLevel:
    def test_level_name_is_parsed(self):
        assert CollectionSettings(progress_level="debug").progress_level == logging.DEBUG

    def test_numeric_string_is_parsed(self):
        assert CollectionSettings(progress_level="30").progress_level == 30

    def test_unknown_level_rejected(self):
        with pytest.raises(ValidationError):
            CollectionSettings(progress_level="LOUD")

    def test_empty_prefix_rejected(self):
        with pytest.raises(ValidationError):
            CollectionSettings(unnamed_prefix="")


@pytest.mark.unit
class TestFromEnv:
    def test_reads_prefixed_variables(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TASKCHAIN_LOGGER_NAME", "deploy")
        monkeypatch.setenv("TASKCHAIN_PROGRESS_LEVEL", "WARNING")
        monkeypatch.setenv("TASKCHAIN_STRICT_ATTACH_POINTS", "false")
        settings = CollectionSettings.from_env(dotenv_path=str(tmp_path / "missing.env"))
        assert settings.logger_name == "deploy"
        assert settings.progress_level == logging.WARNING
        assert settings.strict_attach_points is False

    def test_loads_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TASKCHAIN_UNNAMED_PREFIX", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("TASKCHAIN_UNNAMED_PREFIX=step-\n")
        try:
            settings = CollectionSettings.from_env(dotenv_path=str(env_file))
            assert settings.unnamed_prefix == "step-"
        finally:
            os.environ.pop("TASKCHAIN_UNNAMED_PREFIX", None)

    def test_custom_prefix(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BUILD_LOGGER_NAME", "build")
        settings = CollectionSettings.from_env(
            prefix="BUILD_", dotenv_path=str(tmp_path / "missing.env")
        )
        assert settings.logger_name == "build"
