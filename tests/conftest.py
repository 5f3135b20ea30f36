"""Shared fixtures for hv_maped tests."""

from pathlib import Path

import pytest

from hv_maped.settings import AppSettings


@pytest.fixture
def settings_file(tmp_path: Path) -> Path:
    """Ini file isolated from the user's configuration."""
    return tmp_path / "settings.ini"


@pytest.fixture
def settings(settings_file: Path) -> AppSettings:
    return AppSettings(settings_file=settings_file)
