"""
Path-related settings for hv_maped.
"""

from pathlib import Path
from typing import List, Optional, Union

from .base import SettingsSection

MAX_RECENT_FILES = 10


class PathSettings(SettingsSection):
    """Manages resource directories and recently used files."""

    def _get_path(self, key: str) -> Optional[Path]:
        path_str = self._get_str(key, "")
        return Path(path_str) if path_str else None

    def _set_path(self, key: str, value: Optional[Path]) -> None:
        self._set(key, str(value) if value else "")

    @property
    def textures_dir(self) -> Optional[Path]:
        """Directory scanned for texture images."""
        return self._get_path("paths/textures")

    @textures_dir.setter
    def textures_dir(self, value: Optional[Path]) -> None:
        self._set_path("paths/textures", value)

    @property
    def things_dir(self) -> Optional[Path]:
        """Directory scanned for thing definition .ini files."""
        return self._get_path("paths/things")

    @things_dir.setter
    def things_dir(self, value: Optional[Path]) -> None:
        self._set_path("paths/things", value)

    @property
    def property_definitions_file(self) -> Optional[Path]:
        """Optional .ini file declaring custom brush and thing properties."""
        return self._get_path("paths/property_definitions")

    @property_definitions_file.setter
    def property_definitions_file(self, value: Optional[Path]) -> None:
        self._set_path("paths/property_definitions", value)

    @property
    def export_dir(self) -> Optional[Path]:
        """Default directory for JSON exports."""
        return self._get_path("paths/export")

    @export_dir.setter
    def export_dir(self, value: Optional[Path]) -> None:
        self._set_path("paths/export", value)

    @property
    def recent_files(self) -> List[str]:
        """Get list of recently opened files, most recent first."""
        return self._get_list("paths/recent_files", [])

    def add_recent_file(self, file_path: Union[str, Path]) -> None:
        """Move a file to the top of the recent files list."""
        file_str = str(file_path)
        recent = [f for f in self.recent_files if f != file_str]
        recent.insert(0, file_str)
        self._set("paths/recent_files", recent[:MAX_RECENT_FILES])

    def clear_recent_files(self) -> None:
        self._set("paths/recent_files", [])
