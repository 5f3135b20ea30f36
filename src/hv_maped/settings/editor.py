"""
Editor defaults for hv_maped.
"""

import logging
from typing import Optional, Tuple

from ..properties import ResolutionStrategy
from .base import SettingsSection

logger = logging.getLogger(__name__)

SCHEMA_DECISION_ASK = "ask"

DEFAULT_FRAME_TIME = 0.1
DEFAULT_ATLAS_GRID = (1, 1)
DEFAULT_TEXTURE_SCALE = 1.0


class EditorSettings(SettingsSection):
    """Defaults used when creating animations and textures."""

    @property
    def default_frame_time(self) -> float:
        """Seconds per frame for new animations (0.01-60 s)."""
        value = self._get_float("editor/default_frame_time", DEFAULT_FRAME_TIME)
        return max(0.01, min(60.0, value))

    @default_frame_time.setter
    def default_frame_time(self, value: float) -> None:
        self._set("editor/default_frame_time", max(0.01, min(60.0, value)))

    @property
    def default_atlas_grid(self) -> Tuple[int, int]:
        """(rows, cols) of new atlas animations."""
        rows = max(1, self._get_int("editor/default_atlas_rows", DEFAULT_ATLAS_GRID[0]))
        cols = max(1, self._get_int("editor/default_atlas_cols", DEFAULT_ATLAS_GRID[1]))
        return rows, cols

    @default_atlas_grid.setter
    def default_atlas_grid(self, value: Tuple[int, int]) -> None:
        rows, cols = value
        if rows < 1 or cols < 1:
            logger.warning(f"Invalid atlas grid {rows}x{cols}, keeping current: {self.default_atlas_grid}")
            return
        self.settings.setValue("editor/default_atlas_rows", rows)
        self._set("editor/default_atlas_cols", cols)

    @property
    def default_texture_scale(self) -> float:
        """Scale applied to newly assigned textures."""
        value = self._get_float("editor/default_texture_scale", DEFAULT_TEXTURE_SCALE)
        return value if value > 0 else DEFAULT_TEXTURE_SCALE

    @default_texture_scale.setter
    def default_texture_scale(self, value: float) -> None:
        if value <= 0:
            logger.warning(f"Invalid texture scale: {value}, keeping current: {self.default_texture_scale}")
            return
        self._set("editor/default_texture_scale", value)

    @property
    def schema_decision(self) -> Optional[ResolutionStrategy]:
        """Preconfigured answer to schema drift on load, None to ask every time."""
        value = self._get_str("editor/schema_decision", SCHEMA_DECISION_ASK)
        if value == SCHEMA_DECISION_ASK:
            return None
        try:
            return ResolutionStrategy(value)
        except ValueError:
            logger.warning(f"Invalid schema decision '{value}' in settings, asking instead")
            return None

    @schema_decision.setter
    def schema_decision(self, value: Optional[ResolutionStrategy]) -> None:
        self._set("editor/schema_decision", value.value if value else SCHEMA_DECISION_ASK)
