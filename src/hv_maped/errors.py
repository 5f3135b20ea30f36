"""
Error kinds raised by the hv_maped document model and codec.

Geometry and reconciliation errors are recoverable at the operation boundary.
File errors (`MalformedRecord`, `UnsupportedVersion`) are terminal for a load
attempt and never leave a previously loaded document partially overwritten.
"""

from typing import Any, Optional


class MapModelError(Exception):
    """Base class for all document model errors."""
    pass


class InvalidGeometry(MapModelError, ValueError):
    """A polygon operation would break convexity or degenerate the shape.

    The operation is rejected and the polygon keeps its previous state.
    """
    pass


class InvalidPath(MapModelError, ValueError):
    """A motion path edit would leave the path with invalid waypoints."""
    pass


class DuplicateId(MapModelError):
    """Two thing definitions share the same ID.

    Not fatal: a file-defined definition wins over a native one, otherwise
    the first registered one is kept and the other one is shadowed.
    Instances are collected by the catalog so the host can report them.

    Attributes:
        thing_id: The contested ID
        kept: Name of the definition that stays registered
        shadowed: Name of the definition that was discarded
    """

    def __init__(self, thing_id: int, kept: str, shadowed: str):
        self.thing_id = thing_id
        self.kept = kept
        self.shadowed = shadowed
        super().__init__(
            f"Thing ID {thing_id} defined twice: '{kept}' shadows '{shadowed}'"
        )


class DuplicateProperty(MapModelError):
    """A property name is declared by more than one source."""

    def __init__(self, name: str, existing_source: str, new_source: str):
        self.name = name
        self.existing_source = existing_source
        self.new_source = new_source
        super().__init__(
            f"Property '{name}' already declared by {existing_source}, "
            f"cannot declare it again from {new_source}"
        )


class SchemaMismatch(MapModelError):
    """Property schemas recorded in a file differ from the application ones.

    Raised by the loaders when a decision is required. The pending load is
    attached so the caller can finish it with an explicit strategy.

    Attributes:
        pending: The phase-1 load result awaiting `resolve(strategy)`
        report: Per entity kind schema drift
    """

    def __init__(self, pending: Any, report: Any):
        self.pending = pending
        self.report = report
        super().__init__(f"Property schema mismatch: {report}")


class FileFormatError(MapModelError):
    """Base class for errors raised while reading a persisted file."""

    def __init__(self, file_kind: str, message: str):
        self.file_kind = file_kind
        super().__init__(message)


class MalformedRecord(FileFormatError):
    """A binary section is corrupt or truncated.

    Attributes:
        file_kind: Kind of file being read ("document", "animations", "props")
        section: Section being decoded when the error occurred
        offset: Absolute byte offset in the stream, if known
    """

    def __init__(
        self, file_kind: str, section: str, offset: Optional[int], message: str
    ):
        self.section = section
        self.offset = offset
        location = f"{file_kind}/{section}"
        if offset is not None:
            location += f" @ byte {offset}"
        super().__init__(file_kind, f"Malformed record in {location}: {message}")


class UnsupportedVersion(FileFormatError):
    """The stream starts with an unknown format tag."""

    def __init__(self, file_kind: str, tag: bytes):
        self.tag = tag
        super().__init__(
            file_kind, f"Unsupported {file_kind} format tag: {tag!r}"
        )
