"""
Reconciliation of stored property mappings against a target schema.

Drift is judged on (name, type) pairs only; default values never count as
drift. Resolution is explicit: the caller picks one `ResolutionStrategy` per
load and every entity of the document is reconciled with it.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

from .models import PropertySchema, PropertyType, Value


class ResolutionStrategy(Enum):
    """How to settle schema drift for one load."""

    ADOPT_APPLICATION = "adopt-application"
    """Conform entities to the application schema."""

    ADOPT_MAP = "adopt-map"
    """Keep the schema recorded in the file for this session."""


@dataclass(frozen=True)
class SchemaDrift:
    """Difference between a saved and a current schema.

    Attributes:
        missing: Names in the current schema absent from the saved one
        extra: Names in the saved schema absent from the current one
        retyped: Names present in both with different types
    """

    missing: Tuple[str, ...] = ()
    extra: Tuple[str, ...] = ()
    retyped: Tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.missing or self.extra or self.retyped)

    def merged(self, other: "SchemaDrift") -> "SchemaDrift":
        """Union of two drifts, keeping first-seen order."""

        def union(a: Tuple[str, ...], b: Tuple[str, ...]) -> Tuple[str, ...]:
            return a + tuple(n for n in b if n not in a)

        return SchemaDrift(
            missing=union(self.missing, other.missing),
            extra=union(self.extra, other.extra),
            retyped=union(self.retyped, other.retyped),
        )

    def __str__(self) -> str:
        if self.is_empty:
            return "no drift"
        parts = []
        if self.missing:
            parts.append(f"missing {', '.join(self.missing)}")
        if self.extra:
            parts.append(f"extra {', '.join(self.extra)}")
        if self.retyped:
            parts.append(f"retyped {', '.join(self.retyped)}")
        return "; ".join(parts)


@dataclass(frozen=True)
class DriftReport:
    """Schema drift of a whole file, per entity kind."""

    brush: SchemaDrift = field(default_factory=SchemaDrift)
    thing: SchemaDrift = field(default_factory=SchemaDrift)

    @property
    def has_drift(self) -> bool:
        return not (self.brush.is_empty and self.thing.is_empty)

    def __str__(self) -> str:
        return f"brushes: {self.brush}, things: {self.thing}"


def compare_schemas(saved: PropertySchema, current: PropertySchema) -> SchemaDrift:
    """Compute the drift between a file's schema and the current one."""
    return compare_signatures(saved.signature(), current.signature())


def compare_signatures(
    saved_sig: Dict[str, PropertyType], current_sig: Dict[str, PropertyType]
) -> SchemaDrift:
    """Drift between two name to type mappings."""
    return SchemaDrift(
        missing=tuple(n for n in current_sig if n not in saved_sig),
        extra=tuple(n for n in saved_sig if n not in current_sig),
        retyped=tuple(
            n for n in current_sig if n in saved_sig and saved_sig[n] is not current_sig[n]
        ),
    )


def target_schema(
    saved: PropertySchema, current: PropertySchema, strategy: ResolutionStrategy
) -> PropertySchema:
    """Schema a document ends up with after resolution."""
    if strategy is ResolutionStrategy.ADOPT_APPLICATION:
        return current.copy()
    return saved.copy()


def reconcile_properties(
    properties: Dict[str, Value],
    saved: PropertySchema,
    current: PropertySchema,
    strategy: ResolutionStrategy,
) -> Dict[str, Value]:
    """Return the property mapping of one entity after resolution.

    Under ADOPT_APPLICATION a stored value survives only when both its name
    and type match the current schema; every other current name gets its
    default. Under ADOPT_MAP the stored mapping is kept, ordered as the saved
    schema.

    Args:
        properties: Mapping decoded from the file, conforming to `saved`
        saved: Schema recorded in the file
        current: Application schema
        strategy: Chosen resolution
    """
    if strategy is ResolutionStrategy.ADOPT_APPLICATION:
        result: Dict[str, Value] = {}
        for definition in current:
            value = properties.get(definition.name)
            if value is not None and value.type is definition.type:
                result[definition.name] = value
            else:
                result[definition.name] = definition.default
        return result

    return {d.name: properties.get(d.name, d.default) for d in saved}
