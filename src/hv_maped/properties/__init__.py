"""
Typed user properties package.

Provides the property value union, schemas, the registry assembling the
current schemas and reconciliation of stored mappings after schema drift.
"""

from .models import (
    TYPE_INFO,
    EntityKind,
    PropertyDefinition,
    PropertySchema,
    PropertyType,
    TypeInfo,
    Value,
)
from .registry import RESERVED_PROPERTIES, PropertyRegistry, PropertySource
from .reconciliation import (
    DriftReport,
    ResolutionStrategy,
    SchemaDrift,
    compare_schemas,
    compare_signatures,
    reconcile_properties,
    target_schema,
)
from .loaders import load_definitions_file, parse_definition

__all__ = [
    "TYPE_INFO",
    "EntityKind",
    "PropertyDefinition",
    "PropertySchema",
    "PropertyType",
    "TypeInfo",
    "Value",
    "RESERVED_PROPERTIES",
    "PropertyRegistry",
    "PropertySource",
    "DriftReport",
    "ResolutionStrategy",
    "SchemaDrift",
    "compare_schemas",
    "compare_signatures",
    "reconcile_properties",
    "target_schema",
    "load_definitions_file",
    "parse_definition",
]
