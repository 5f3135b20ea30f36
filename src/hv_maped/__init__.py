"""
hv_maped: document model and file formats of a 2D map editor

Convex brushes, placeable things, typed user properties with schema
reconciliation, motion paths, texture animations, props and the binary codec
persisting all of them.
"""

__version__ = "0.1.0"
__author__ = "hv_maped Contributors"

# Errors
from .errors import (
    MapModelError, InvalidGeometry, InvalidPath, DuplicateId, DuplicateProperty,
    SchemaMismatch, FileFormatError, MalformedRecord, UnsupportedVersion
)

# Main data models
from .geometry import Vec2, Hull, ConvexPolygon
from .properties import (
    EntityKind, PropertyType, Value, PropertyDefinition, PropertySchema,
    PropertyRegistry, ResolutionStrategy
)
from .motion import LoopMode, Movement, Waypoint, MotionPath
from .textures import ListAnimation, AtlasAnimation, TextureSettings, TextureRegistry
from .things import ThingDefinition, ThingInstance, ThingsCatalog
from .maps import Brush, Document, Prop

# Codec and services
from .codec import PendingLoad, PendingProps, load_document, write_document
from .maps.service import MapService
from .settings import AppSettings
from .utils.logging_config import setup_logging

__all__ = [
    # Errors
    'MapModelError',
    'InvalidGeometry',
    'InvalidPath',
    'DuplicateId',
    'DuplicateProperty',
    'SchemaMismatch',
    'FileFormatError',
    'MalformedRecord',
    'UnsupportedVersion',

    # Data models
    'Vec2',
    'Hull',
    'ConvexPolygon',
    'EntityKind',
    'PropertyType',
    'Value',
    'PropertyDefinition',
    'PropertySchema',
    'PropertyRegistry',
    'ResolutionStrategy',
    'LoopMode',
    'Movement',
    'Waypoint',
    'MotionPath',
    'ListAnimation',
    'AtlasAnimation',
    'TextureSettings',
    'TextureRegistry',
    'ThingDefinition',
    'ThingInstance',
    'ThingsCatalog',
    'Brush',
    'Document',
    'Prop',

    # Codec and services
    'PendingLoad',
    'PendingProps',
    'load_document',
    'write_document',
    'MapService',
    'AppSettings',

    # Logging
    'setup_logging',
]
