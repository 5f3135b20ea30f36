"""
Settings validation system for hv_maped.
"""

import logging
from pathlib import Path
from typing import List, TYPE_CHECKING

from .types import ValidationResult

if TYPE_CHECKING:
    from .core import AppSettings

logger = logging.getLogger(__name__)


class SettingsValidator:
    """Validates configuration settings."""

    def __init__(self, settings: "AppSettings"):
        self.settings = settings

    def _check_dir(self, label: str, path: "Path | None", errors: List[str], warnings: List[str]) -> None:
        if path is None:
            warnings.append(f"{label} not set")
        elif not path.exists():
            errors.append(f"{label} does not exist: {path}")
        elif not path.is_dir():
            errors.append(f"{label} is not a directory: {path}")

    def validate(self) -> ValidationResult:
        """Validate current configuration."""
        errors: List[str] = []
        warnings: List[str] = []
        paths = self.settings.paths

        self._check_dir("Textures directory", paths.textures_dir, errors, warnings)
        self._check_dir("Things directory", paths.things_dir, errors, warnings)

        definitions = paths.property_definitions_file
        if definitions is not None and not definitions.is_file():
            errors.append(f"Property definitions file does not exist: {definitions}")

        # Drop recent files that are gone
        recent_files = paths.recent_files
        valid_recent = [f for f in recent_files if Path(f).exists()]
        for file_path in recent_files:
            if file_path not in valid_recent:
                warnings.append(f"Recent file no longer exists: {file_path}")
        if len(valid_recent) != len(recent_files):
            self.settings.settings.setValue("paths/recent_files", valid_recent)
            self.settings.settings.sync()

        if errors:
            logger.debug(f"Settings validation failed: {errors}")

        return ValidationResult(is_valid=len(errors) == 0, errors=errors, warnings=warnings)
