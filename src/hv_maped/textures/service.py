"""
Texture namespace built from a directory of images.

Responsibilities:
    * Scan a textures directory recursively for supported images
    * Read image sizes with Pillow (header only)
    * Rebuild the namespace on reload and swap it in one step
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError


@dataclass(frozen=True)
class TextureInfo:
    """A texture known to the registry."""

    name: str
    path: Path
    width: int
    height: int

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height


class TextureRegistry:
    """Name to texture lookup.

    Textures are named after their file stem. Lookups of names that are not
    (or no longer) present return None, entities keep their stale names.
    """

    SUPPORTED_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tga", ".webp"})

    def __init__(self, textures_dir: Optional[Path] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.textures_dir = Path(textures_dir) if textures_dir else None
        self._textures: Dict[str, TextureInfo] = {}

        if self.textures_dir is not None:
            self.reload()

    def reload(self, textures_dir: Optional[Path] = None) -> int:
        """Rescan the textures directory and replace the namespace.

        Args:
            textures_dir: New directory to scan, defaults to the current one

        Returns:
            Number of registered textures

        Raises:
            RuntimeError: If no directory is configured or it does not exist
        """
        if textures_dir is not None:
            self.textures_dir = Path(textures_dir)
        if self.textures_dir is None or not self.textures_dir.is_dir():
            raise RuntimeError(f"Textures path is invalid: {self.textures_dir}")

        textures: Dict[str, TextureInfo] = {}
        files = sorted(
            p for p in self.textures_dir.rglob("*")
            if p.is_file() and p.suffix.lower() in self.SUPPORTED_EXTENSIONS
        )
        for file_path in files:
            name = file_path.stem
            if name in textures:
                self.logger.warning(
                    f"Texture '{name}' at {file_path} ignored, already loaded from {textures[name].path}"
                )
                continue
            try:
                with Image.open(file_path) as img:
                    width, height = img.size
            except (OSError, UnidentifiedImageError) as e:
                self.logger.error(f"Failed to read texture {file_path}: {e}")
                continue
            textures[name] = TextureInfo(name, file_path, width, height)

        self._textures = textures
        self.logger.info(f"Loaded {len(textures)} textures from {self.textures_dir}")
        return len(textures)

    def get(self, name: str) -> Optional[TextureInfo]:
        return self._textures.get(name)

    def size(self, name: str) -> Optional[Tuple[int, int]]:
        info = self._textures.get(name)
        return info.size if info else None

    def names(self) -> List[str]:
        return sorted(self._textures)

    def __contains__(self, name: object) -> bool:
        return name in self._textures

    def __len__(self) -> int:
        return len(self._textures)
