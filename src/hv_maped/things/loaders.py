"""
Loaders for thing definition files.

Each .ini file holds one section per thing:

    [Lamp]
    width = 32
    height = 32
    id = 7          ; unique, in [0, 65534]
    preview = lamp

Broken sections and unreadable files are logged and skipped so one bad
definition never prevents the rest of the catalog from loading.
"""

import configparser
import logging
from pathlib import Path
from typing import List

from .models import ThingDefinition

REQUIRED_KEYS = ("width", "height", "id", "preview")


class ThingsFileLoader:
    """Reads `ThingDefinition`s from .ini files."""

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @staticmethod
    def _new_parser() -> configparser.ConfigParser:
        parser = configparser.ConfigParser(
            delimiters=("=",), inline_comment_prefixes=(";",), interpolation=None
        )
        parser.optionxform = str  # type: ignore[assignment,method-assign]
        return parser

    def load_file(self, ini_file: Path) -> List[ThingDefinition]:
        """Read every valid definition of one file, in file order.

        Args:
            ini_file: Path to the .ini file

        Returns:
            Parsed definitions; empty if the file cannot be read
        """
        parser = self._new_parser()
        try:
            with ini_file.open("r", encoding="utf-8") as f:
                parser.read_file(f, source=str(ini_file))
        except (OSError, UnicodeDecodeError, configparser.Error) as e:
            self.logger.error(f"Error reading things file {ini_file}: {e}")
            return []

        definitions: List[ThingDefinition] = []
        for section in parser.sections():
            values = parser[section]
            missing = [key for key in REQUIRED_KEYS if key not in values]
            if missing:
                self.logger.error(f"{ini_file}: [{section}] missing {', '.join(missing)}")
                continue
            try:
                definitions.append(
                    ThingDefinition(
                        id=int(values["id"]),
                        name=section.strip(),
                        width=float(values["width"]),
                        height=float(values["height"]),
                        preview=values["preview"].strip(),
                        source_file=ini_file,
                    )
                )
            except ValueError as e:
                self.logger.error(f"{ini_file}: [{section}] invalid definition: {e}")

        return definitions

    def load_directory(self, things_dir: Path) -> List[ThingDefinition]:
        """Read all .ini files under `things_dir`, in sorted path order."""
        files = sorted(p for p in things_dir.rglob("*.ini") if p.is_file())
        self.logger.debug(f"Found {len(files)} things files in {things_dir}")

        definitions: List[ThingDefinition] = []
        for ini_file in files:
            definitions.extend(self.load_file(ini_file))
        return definitions
