"""
Binary codec package.

Reads and writes documents (.hv), animation sets (.anms) and prop sets
(.prps). Document and props loads are two-phase: `read_*` returns a pending
value, `resolve(strategy)` builds the result once schema drift is settled.
"""

from .binary import BinaryReader, BinaryWriter
from .files import (
    ANIMATIONS_FORMAT,
    ANIMATIONS_SUFFIX,
    DOCUMENT_FORMAT,
    DOCUMENT_SUFFIX,
    PROPS_FORMAT,
    PROPS_SUFFIX,
    FormatTag,
    PendingLoad,
    PendingProps,
    atomic_write,
    decode_animations,
    decode_document,
    decode_props,
    encode_animations,
    encode_document,
    encode_props,
    load_document,
    load_props,
    read_animations,
    read_document,
    read_props,
    write_animations,
    write_document,
    write_props,
)

__all__ = [
    "BinaryReader",
    "BinaryWriter",
    "ANIMATIONS_FORMAT",
    "ANIMATIONS_SUFFIX",
    "DOCUMENT_FORMAT",
    "DOCUMENT_SUFFIX",
    "PROPS_FORMAT",
    "PROPS_SUFFIX",
    "FormatTag",
    "PendingLoad",
    "PendingProps",
    "atomic_write",
    "decode_animations",
    "decode_document",
    "decode_props",
    "encode_animations",
    "encode_document",
    "encode_props",
    "load_document",
    "load_props",
    "read_animations",
    "read_document",
    "read_props",
    "write_animations",
    "write_document",
    "write_props",
]
