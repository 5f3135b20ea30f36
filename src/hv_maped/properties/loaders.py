"""
Loader for property definition files.

Format (ini, one section per entity kind):

    [brush]
    friction = f32:0.5
    secret   = bool:false   ; inline comment

    [thing]
    health = u16:100
    label  = string

The default part after ':' is optional and falls back to the zero value of
the type.
"""

import configparser
import logging
from pathlib import Path
from typing import Dict, List

from .models import EntityKind, PropertyDefinition, PropertyType, Value

logger = logging.getLogger(__name__)


def parse_definition(name: str, text: str) -> PropertyDefinition:
    """Parse one `type:default` entry.

    Raises:
        ValueError: If the type is unknown or the default does not parse
    """
    type_label, sep, default_text = text.partition(":")
    prop_type = PropertyType.from_label(type_label)
    if sep:
        default = Value.parse(prop_type, default_text)
    else:
        default = Value.default(prop_type)
    return PropertyDefinition(name.strip(), prop_type, default)


def load_definitions_file(path: Path) -> Dict[EntityKind, List[PropertyDefinition]]:
    """Read property definitions from an ini file.

    Args:
        path: File to read

    Returns:
        Definitions per entity kind, in file order

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is malformed or contains an invalid entry
    """
    parser = configparser.ConfigParser(
        delimiters=("=",), inline_comment_prefixes=(";", "#"), interpolation=None
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]

    with open(path, "r", encoding="utf-8") as f:
        try:
            parser.read_file(f, source=str(path))
        except configparser.Error as e:
            raise ValueError(f"{path}: {e}") from e

    result: Dict[EntityKind, List[PropertyDefinition]] = {kind: [] for kind in EntityKind}
    for section in parser.sections():
        try:
            kind = EntityKind(section.strip().lower())
        except ValueError:
            logger.warning(f"{path}: ignoring unknown section [{section}]")
            continue

        for name, text in parser.items(section):
            try:
                result[kind].append(parse_definition(name, text))
            except ValueError as e:
                raise ValueError(f"{path}: [{section}] {name}: {e}") from e

    logger.debug(
        f"Parsed {len(result[EntityKind.BRUSH])} brush and "
        f"{len(result[EntityKind.THING])} thing property definitions from {path}"
    )
    return result
