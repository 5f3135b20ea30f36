"""
Things package.

Thing definitions, placed instances, the .ini loader and the catalog merging
file-defined and natively registered definitions.
"""

from .models import MAX_THING_ID, ThingDefinition, ThingInstance
from .loaders import ThingsFileLoader
from .catalog import ThingsCatalog

__all__ = [
    "MAX_THING_ID",
    "ThingDefinition",
    "ThingInstance",
    "ThingsFileLoader",
    "ThingsCatalog",
]
