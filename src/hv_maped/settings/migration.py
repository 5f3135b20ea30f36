"""
Settings migration for hv_maped.

Each step upgrades the stored values of one configuration version to the
next one; steps are chained until `ConfigVersion.CURRENT` is reached.
"""

import logging
from typing import Callable, Dict, Tuple, TYPE_CHECKING

from .types import ConfigVersion

if TYPE_CHECKING:
    from PySide6.QtCore import QSettings

logger = logging.getLogger(__name__)

MigrationStep = Tuple[str, Callable[[], None]]


class SettingsMigrator:
    """Brings stored settings up to the current configuration version."""

    def __init__(self, settings: "QSettings"):
        self.settings = settings
        self._steps: Dict[str, MigrationStep] = {
            ConfigVersion.V1_0.value: (ConfigVersion.V1_1.value, self._frame_time_to_seconds),
        }

    def ensure_version(self) -> None:
        """Stamp new configurations, upgrade old ones."""
        current = ConfigVersion.CURRENT.value
        stored = str(self.settings.value("app/version", ""))

        if not stored:
            self.settings.setValue("app/version", current)
            self.settings.setValue("app/first_run", True)
            self.settings.sync()
            logger.info("No stored configuration, starting with defaults")
            return
        if stored == current:
            return

        version = stored
        while version != current:
            step = self._steps.get(version)
            if step is None:
                logger.warning(f"No migration from configuration version {version}, values kept as stored")
                break
            target, migrate = step
            logger.info(f"Migrating configuration {version} -> {target}")
            migrate()
            version = target

        self.settings.setValue("app/version", current)
        self.settings.setValue("app/migrated_from", stored)
        self.settings.sync()

    def _frame_time_to_seconds(self) -> None:
        """1.0 stored the animation frame time in integer milliseconds."""
        legacy = self.settings.value("editor/default_animation_ms", None)
        if legacy is None:
            return
        try:
            seconds = int(str(legacy)) / 1000
        except ValueError:
            logger.warning(f"Dropped unreadable frame time setting: {legacy}")
        else:
            self.settings.setValue("editor/default_frame_time", seconds)
            logger.debug(f"Frame time {legacy} ms -> {seconds} s")
        self.settings.remove("editor/default_animation_ms")
