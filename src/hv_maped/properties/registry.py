"""
Registry of the current property schemas for brushes and things.

Names live in one namespace per entity kind shared by three sources:
built-in reserved names, definitions declared by the application and
definitions read from a property definition file. Declaring a name twice,
from any combination of sources, is an error.

Reserved names are backed by dedicated entity fields (`Brush.collision`,
`ThingInstance.angle`, `ThingInstance.draw_height`), so they block user
declarations but are not part of the user schemas returned here.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

from ..errors import DuplicateProperty
from .loaders import load_definitions_file
from .models import EntityKind, PropertyDefinition, PropertySchema, PropertyType


class PropertySource(Enum):
    """Where a property name was declared."""

    BUILTIN = "built-in"
    APPLICATION = "application"
    FILE = "file"


RESERVED_PROPERTIES: Dict[EntityKind, Tuple[PropertyDefinition, ...]] = {
    EntityKind.BRUSH: (
        PropertyDefinition.of("collision", PropertyType.BOOL, True),
    ),
    EntityKind.THING: (
        PropertyDefinition.of("angle", PropertyType.F64, 0.0),
        PropertyDefinition.of("draw_height", PropertyType.I8, 0),
    ),
}


class PropertyRegistry:
    """Holds the application's current brush and thing property schemas."""

    def __init__(self) -> None:
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")
        self._sources: Dict[EntityKind, Dict[str, PropertySource]] = {
            kind: {d.name: PropertySource.BUILTIN for d in RESERVED_PROPERTIES[kind]}
            for kind in EntityKind
        }
        self._schemas: Dict[EntityKind, PropertySchema] = {
            kind: PropertySchema() for kind in EntityKind
        }

    # === Declaration ===

    def declare(
        self,
        kind: EntityKind,
        definition: PropertyDefinition,
        source: PropertySource = PropertySource.APPLICATION,
    ) -> None:
        """Add a user property to the schema of `kind`.

        Raises:
            DuplicateProperty: If the name is reserved or already declared
        """
        if source is PropertySource.BUILTIN:
            raise ValueError("Built-in properties cannot be declared at runtime")

        existing = self._sources[kind].get(definition.name)
        if existing is not None:
            raise DuplicateProperty(definition.name, existing.value, source.value)

        schema = self._schemas[kind].copy()
        schema.add(definition)
        self._schemas[kind] = schema
        self._sources[kind][definition.name] = source
        self.logger.debug(
            f"Declared {kind.value} property '{definition.name}' "
            f"({definition.type.label}) from {source.value}"
        )

    def declare_many(
        self,
        kind: EntityKind,
        definitions: Iterable[PropertyDefinition],
        source: PropertySource = PropertySource.APPLICATION,
    ) -> None:
        for definition in definitions:
            self.declare(kind, definition, source)

    def load_definitions_file(self, path: Path) -> int:
        """Declare every definition found in a property definition file.

        The whole file is validated against the registry before anything is
        declared, so a collision leaves the registry unchanged.

        Returns:
            Number of declared properties

        Raises:
            DuplicateProperty: On a name collision with any source
            ValueError: If the file is malformed
        """
        parsed = load_definitions_file(path)

        for kind, definitions in parsed.items():
            seen: Dict[str, PropertySource] = dict(self._sources[kind])
            for definition in definitions:
                if definition.name in seen:
                    raise DuplicateProperty(
                        definition.name, seen[definition.name].value, PropertySource.FILE.value
                    )
                seen[definition.name] = PropertySource.FILE

        count = 0
        for kind, definitions in parsed.items():
            self.declare_many(kind, definitions, PropertySource.FILE)
            count += len(definitions)

        self.logger.info(f"Loaded {count} property definitions from {path}")
        return count

    # === Queries ===

    def schema(self, kind: EntityKind) -> PropertySchema:
        """Copy of the current user schema for `kind`."""
        return self._schemas[kind].copy()

    @property
    def brush_schema(self) -> PropertySchema:
        return self.schema(EntityKind.BRUSH)

    @property
    def thing_schema(self) -> PropertySchema:
        return self.schema(EntityKind.THING)

    def reserved(self, kind: EntityKind) -> Tuple[PropertyDefinition, ...]:
        return RESERVED_PROPERTIES[kind]

    def is_reserved(self, kind: EntityKind, name: str) -> bool:
        return self._sources[kind].get(name) is PropertySource.BUILTIN

    def source_of(self, kind: EntityKind, name: str) -> Optional[PropertySource]:
        return self._sources[kind].get(name)
