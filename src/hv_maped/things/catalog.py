"""
Catalog of thing definitions.

Merges the definitions registered natively by the host with the ones read
from .ini files into one namespace keyed by ID. On an ID collision the
file-defined entry wins; the collision is recorded as a `DuplicateId` and
logged, loading goes on.
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..errors import DuplicateId
from .loaders import ThingsFileLoader
from .models import ThingDefinition


class ThingsCatalog:
    """ID to `ThingDefinition` lookup with atomic reload.

    Example:
        >>> catalog = ThingsCatalog()
        >>> catalog.register_native([ThingDefinition(7, "Torch", 16, 16, "torch")])
        >>> _ = catalog.reload(Path("things"))  # things/lamp.ini defines Lamp with id 7
        >>> catalog.get(7).name
        'Lamp'
    """

    def __init__(self, things_dir: Optional[Path] = None):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self.things_dir = Path(things_dir) if things_dir else None
        self.loader = ThingsFileLoader()

        self._native: Dict[int, ThingDefinition] = {}
        self._file_defined: Dict[int, ThingDefinition] = {}
        self._things: Dict[int, ThingDefinition] = {}
        self._conflicts: List[DuplicateId] = []
        self._native_conflicts: List[DuplicateId] = []
        self._file_conflicts: List[DuplicateId] = []

        if self.things_dir is not None:
            self.reload()

    # === Population ===

    def register_native(self, definitions: Iterable[ThingDefinition]) -> None:
        """Register host-defined things.

        Natively registered definitions follow the same identity rules as
        file-defined ones and are shadowed by them on collision.
        """
        native = dict(self._native)
        native_conflicts = list(self._native_conflicts)
        for definition in definitions:
            existing = native.get(definition.id)
            if existing is not None:
                conflict = DuplicateId(definition.id, kept=existing.name, shadowed=definition.name)
                native_conflicts.append(conflict)
                self.logger.warning(str(conflict))
                continue
            native[definition.id] = definition

        self._native = native
        self._native_conflicts = native_conflicts
        self._swap(self._file_defined)

    def reload(self, things_dir: Optional[Path] = None) -> int:
        """Rebuild the file-defined namespace and swap it in.

        Args:
            things_dir: New directory to scan, defaults to the current one

        Returns:
            Number of things in the merged namespace

        Raises:
            RuntimeError: If no directory is configured or it does not exist
        """
        if things_dir is not None:
            self.things_dir = Path(things_dir)
        if self.things_dir is None or not self.things_dir.is_dir():
            raise RuntimeError(f"Things path is invalid: {self.things_dir}")

        file_defined: Dict[int, ThingDefinition] = {}
        file_conflicts: List[DuplicateId] = []
        for definition in self.loader.load_directory(self.things_dir):
            existing = file_defined.get(definition.id)
            if existing is not None:
                conflict = DuplicateId(definition.id, kept=existing.name, shadowed=definition.name)
                file_conflicts.append(conflict)
                self.logger.error(
                    f"{conflict}: {definition.source_file} skipped, already defined in {existing.source_file}"
                )
                continue
            file_defined[definition.id] = definition

        self._file_conflicts = file_conflicts
        self._swap(file_defined)
        self.logger.info(
            f"Loaded {len(file_defined)} file-defined things from {self.things_dir}, "
            f"{len(self._things)} things in total"
        )
        return len(self._things)

    def _swap(self, file_defined: Dict[int, ThingDefinition]) -> None:
        things = dict(self._native)
        conflicts = self._native_conflicts + self._file_conflicts
        for thing_id, definition in file_defined.items():
            native = things.get(thing_id)
            if native is not None:
                conflict = DuplicateId(thing_id, kept=definition.name, shadowed=native.name)
                conflicts.append(conflict)
                self.logger.warning(str(conflict))
            things[thing_id] = definition

        self._file_defined = file_defined
        self._things = things
        self._conflicts = conflicts

    # === Queries ===

    def get(self, thing_id: int) -> Optional[ThingDefinition]:
        """Definition for `thing_id`, None if unknown (e.g. stale after reload)."""
        return self._things.get(thing_id)

    def name_of(self, thing_id: int) -> str:
        definition = self._things.get(thing_id)
        return definition.name if definition else "unknown"

    def definitions(self) -> List[ThingDefinition]:
        return [self._things[k] for k in sorted(self._things)]

    @property
    def conflicts(self) -> List[DuplicateId]:
        """Every ID collision behind the current namespace.

        Covers native registrations sharing an ID, files of the last reload
        sharing an ID and file-defined things shadowing native ones.
        """
        return list(self._conflicts)

    def __contains__(self, thing_id: object) -> bool:
        return thing_id in self._things

    def __len__(self) -> int:
        return len(self._things)
