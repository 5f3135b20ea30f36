"""
Settings package for hv_maped.

Modular configuration management using Qt's QSettings for cross-platform
storage.

Usage:
    from hv_maped.settings import AppSettings

    settings = AppSettings()
    result = settings.validate()
"""

from .core import AppSettings
from .types import ConfigVersion, ConfigError, ValidationResult
from .paths import PathSettings
from .editor import EditorSettings
from .logging import LoggingSettings

__all__ = [
    "AppSettings",
    "ConfigVersion",
    "ConfigError",
    "ValidationResult",
    "PathSettings",
    "EditorSettings",
    "LoggingSettings",
]
