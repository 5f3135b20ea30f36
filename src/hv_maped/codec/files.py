"""
The three persisted file kinds and the two-phase document load.

Every stream starts with a format tag (4-byte magic + u16 version):

    .hv    HVMP  document
    .anms  HVAN  animations only
    .prps  HVPR  props only

Document layout after the tag:

    u64 brush count, u64 thing count, u64 animation count, u64 prop count
    brush schema record, thing schema record
    animation records, brush records, thing records, prop records
    extension sections ([u16 tag][u64 length][payload]) until end of stream

Every record is framed as `[u64 length][payload]`. Unknown extension tags
are skipped.

Loading is split in two phases: `decode_*`/`read_*` parse the whole stream
and return a pending value that reports schema drift; `resolve(strategy)`
materializes the result. Nothing is ever partially loaded: any file error is
raised before a document exists.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, TypeVar, TYPE_CHECKING

from ..errors import MalformedRecord, SchemaMismatch, UnsupportedVersion
from ..maps.models import Brush, Document, IdAllocator
from ..maps.props import Prop
from ..properties import (
    DriftReport,
    PropertySchema,
    PropertyType,
    ResolutionStrategy,
    SchemaDrift,
    Value,
    compare_schemas,
    compare_signatures,
    reconcile_properties,
    target_schema,
)
from ..textures import Animation
from ..things import ThingInstance
from .binary import BinaryReader, BinaryWriter
from .records import (
    read_brush,
    read_named_animation,
    read_prop,
    read_schema,
    read_thing,
    write_brush,
    write_named_animation,
    write_prop,
    write_schema,
    write_thing,
)

if TYPE_CHECKING:
    from ..properties import PropertyRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class FormatTag:
    """Magic and version identifying a file kind."""

    file_kind: str
    magic: bytes
    version: int

    def write(self, w: BinaryWriter) -> None:
        w.raw(self.magic)
        w.u16(self.version)

    def check(self, r: BinaryReader) -> None:
        """Read the tag and verify it.

        Raises:
            MalformedRecord: If the stream ends inside a matching tag
            UnsupportedVersion: If the magic or version is unknown
        """
        head = r.peek(min(4, r.remaining))
        if not self.magic.startswith(head):
            raise UnsupportedVersion(self.file_kind, head)
        magic = r.take(4)
        version = r.u16()
        if version != self.version:
            raise UnsupportedVersion(self.file_kind, magic + version.to_bytes(2, "little"))


DOCUMENT_FORMAT = FormatTag("document", b"HVMP", 1)
ANIMATIONS_FORMAT = FormatTag("animations", b"HVAN", 1)
PROPS_FORMAT = FormatTag("props", b"HVPR", 1)

DOCUMENT_SUFFIX = ".hv"
ANIMATIONS_SUFFIX = ".anms"
PROPS_SUFFIX = ".prps"

# =============================================================================
# PENDING LOADS
# =============================================================================


def _conform_prop(prop: Prop, brush_schema: PropertySchema, thing_schema: PropertySchema) -> Prop:
    brushes = []
    for brush in prop.brushes:
        copy = brush.copy()
        copy.properties = reconcile_properties(
            brush.properties, brush_schema, brush_schema, ResolutionStrategy.ADOPT_APPLICATION
        )
        brushes.append(copy)
    things = []
    for thing in prop.things:
        copy = thing.copy()
        copy.properties = reconcile_properties(
            thing.properties, thing_schema, thing_schema, ResolutionStrategy.ADOPT_APPLICATION
        )
        things.append(copy)
    return Prop(brushes, things, prop.pivot)


@dataclass
class PendingLoad:
    """A fully parsed document awaiting a schema decision.

    Attributes:
        saved_brush_schema: Brush schema recorded in the file
        saved_thing_schema: Thing schema recorded in the file
        current_brush_schema: Application brush schema at load time
        current_thing_schema: Application thing schema at load time
        report: Drift between saved and current schemas
        source: File the data was read from, if any
    """

    saved_brush_schema: PropertySchema
    saved_thing_schema: PropertySchema
    current_brush_schema: PropertySchema
    current_thing_schema: PropertySchema
    animations: Dict[str, Animation]
    brushes: List[Brush]
    things: List[ThingInstance]
    props: List[Prop]
    report: DriftReport = field(init=False)
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        self.report = DriftReport(
            brush=compare_schemas(self.saved_brush_schema, self.current_brush_schema),
            thing=compare_schemas(self.saved_thing_schema, self.current_thing_schema),
        )

    @property
    def needs_decision(self) -> bool:
        return self.report.has_drift

    def resolve(self, strategy: Optional[ResolutionStrategy] = None) -> Document:
        """Materialize the document.

        Without drift the file is accepted as-is and `strategy` is ignored.
        Can be called more than once; each call builds an independent
        document.

        Raises:
            SchemaMismatch: If there is drift and no strategy was given
        """
        if not self.needs_decision:
            return self._build(self.saved_brush_schema, self.saved_thing_schema, None)

        if strategy is None:
            raise SchemaMismatch(self, self.report)

        logger.info(f"Resolving schema drift ({self.report}) with {strategy.value}")
        brush_schema = target_schema(self.saved_brush_schema, self.current_brush_schema, strategy)
        thing_schema = target_schema(self.saved_thing_schema, self.current_thing_schema, strategy)
        return self._build(brush_schema, thing_schema, strategy)

    def _build(
        self,
        brush_schema: PropertySchema,
        thing_schema: PropertySchema,
        strategy: Optional[ResolutionStrategy],
    ) -> Document:
        def conform(properties: Dict[str, Value], saved: PropertySchema, current: PropertySchema) -> Dict[str, Value]:
            if strategy is None:
                return dict(properties)
            return reconcile_properties(properties, saved, current, strategy)

        brushes: Dict[int, Brush] = {}
        for brush in self.brushes:
            copy = brush.copy()
            copy.properties = conform(brush.properties, self.saved_brush_schema, self.current_brush_schema)
            brushes[copy.id] = copy

        things: Dict[int, ThingInstance] = {}
        for thing in self.things:
            copy = thing.copy()
            copy.properties = conform(thing.properties, self.saved_thing_schema, self.current_thing_schema)
            things[copy.id] = copy

        if strategy is ResolutionStrategy.ADOPT_APPLICATION:
            props = [_conform_prop(p, brush_schema, thing_schema) for p in self.props]
        else:
            props = [Prop.capture(p.brushes, p.things, p.pivot) for p in self.props]

        return Document(
            brush_schema=brush_schema.copy(),
            thing_schema=thing_schema.copy(),
            animations=dict(self.animations),
            brushes=brushes,
            things=things,
            props=props,
            ids=IdAllocator(),
        )


@dataclass
class PendingProps:
    """Parsed props awaiting a schema decision.

    A props file records no schema; every member's stored (name, type) set is
    compared with the current schema of its kind. Without current schemas
    the props are accepted as stored.
    """

    props: List[Prop]
    current_brush_schema: Optional[PropertySchema] = None
    current_thing_schema: Optional[PropertySchema] = None
    report: DriftReport = field(init=False)
    source: Optional[Path] = None

    def __post_init__(self) -> None:
        brush_drift = SchemaDrift()
        thing_drift = SchemaDrift()
        if self.current_brush_schema is not None and self.current_thing_schema is not None:
            brush_sig = self.current_brush_schema.signature()
            thing_sig = self.current_thing_schema.signature()
            for prop in self.props:
                for brush in prop.brushes:
                    brush_drift = brush_drift.merged(compare_signatures(_signature(brush.properties), brush_sig))
                for thing in prop.things:
                    thing_drift = thing_drift.merged(compare_signatures(_signature(thing.properties), thing_sig))
        self.report = DriftReport(brush=brush_drift, thing=thing_drift)

    @property
    def needs_decision(self) -> bool:
        return self.report.has_drift

    def resolve(self, strategy: Optional[ResolutionStrategy] = None) -> List[Prop]:
        """Materialize the props.

        ADOPT_APPLICATION conforms every member to the current schemas,
        ADOPT_MAP keeps the stored properties untouched.

        Raises:
            SchemaMismatch: If there is drift and no strategy was given
        """
        if not self.needs_decision:
            return [Prop.capture(p.brushes, p.things, p.pivot) for p in self.props]
        if strategy is None:
            raise SchemaMismatch(self, self.report)

        logger.info(f"Resolving props schema drift ({self.report}) with {strategy.value}")
        if strategy is ResolutionStrategy.ADOPT_APPLICATION:
            assert self.current_brush_schema is not None and self.current_thing_schema is not None
            return [_conform_prop(p, self.current_brush_schema, self.current_thing_schema) for p in self.props]
        return [Prop.capture(p.brushes, p.things, p.pivot) for p in self.props]


def _signature(properties: Dict[str, Value]) -> Dict[str, PropertyType]:
    return {name: value.type for name, value in properties.items()}


# =============================================================================
# DOCUMENT
# =============================================================================


def encode_document(document: Document) -> bytes:
    """Serialize a document to bytes."""
    w = BinaryWriter()
    DOCUMENT_FORMAT.write(w)
    for count in (len(document.brushes), len(document.things), len(document.animations), len(document.props)):
        w.u64(count)
    with w.record():
        write_schema(w, document.brush_schema)
    with w.record():
        write_schema(w, document.thing_schema)
    for texture, animation in document.animations.items():
        with w.record():
            write_named_animation(w, texture, animation)
    for brush in document.brushes.values():
        with w.record():
            write_brush(w, brush)
    for thing in document.things.values():
        with w.record():
            write_thing(w, thing)
    for prop in document.props:
        with w.record():
            write_prop(w, prop)
    return w.getvalue()


def _read_records(r: BinaryReader, section: str, count: int, decode: Callable[[BinaryReader], T]) -> List[T]:
    with r.in_section(section):
        return [decode(r.record()) for _ in range(count)]


def decode_document(
    data: bytes,
    registry: Optional["PropertyRegistry"] = None,
    source: Optional[Path] = None,
) -> PendingLoad:
    """Parse a document stream (phase 1).

    Args:
        data: Encoded document
        registry: Provides the current schemas; without it the saved
            schemas are taken as current and no drift is possible
        source: File name, kept on the pending load for messages

    Raises:
        UnsupportedVersion: On an unknown format tag
        MalformedRecord: On any corrupt or truncated section
    """
    r = BinaryReader(data, DOCUMENT_FORMAT.file_kind)
    DOCUMENT_FORMAT.check(r)

    with r.in_section("counts"):
        brush_count, thing_count, animation_count, prop_count = (r.u64() for _ in range(4))

    with r.in_section("brush schema"):
        brush_schema = read_schema(r.record())
    with r.in_section("thing schema"):
        thing_schema = read_schema(r.record())

    animations: Dict[str, Animation] = {}
    with r.in_section("animations"):
        for _ in range(animation_count):
            start = r.offset
            texture, animation = read_named_animation(r.record())
            if texture in animations:
                raise r.error(f"animation for texture '{texture}' stored twice", start)
            animations[texture] = animation

    brushes = _read_records(r, "brushes", brush_count, read_brush)
    things = _read_records(r, "things", thing_count, read_thing)
    props = _read_records(r, "props", prop_count, read_prop)

    with r.in_section("entities"):
        seen = set()
        for entity in [*brushes, *things]:
            if entity.id in seen:
                raise r.error(f"entity id {entity.id} used twice")
            seen.add(entity.id)
        for brush in brushes:
            if not brush_schema.matches(brush.properties):
                raise r.error(f"brush {brush.id} properties do not match the file's brush schema")
        for thing in things:
            if not thing_schema.matches(thing.properties):
                raise r.error(f"thing {thing.id} properties do not match the file's thing schema")

    with r.in_section("extensions"):
        while not r.at_end:
            tag = r.u16()
            payload = r.record()
            logger.debug(f"Skipping unknown extension section {tag} ({payload.remaining} bytes)")

    if registry is not None:
        current_brush, current_thing = registry.brush_schema, registry.thing_schema
    else:
        current_brush, current_thing = brush_schema.copy(), thing_schema.copy()

    pending = PendingLoad(
        saved_brush_schema=brush_schema,
        saved_thing_schema=thing_schema,
        current_brush_schema=current_brush,
        current_thing_schema=current_thing,
        animations=animations,
        brushes=brushes,
        things=things,
        props=props,
        source=source,
    )
    logger.debug(
        f"Decoded document: {len(brushes)} brushes, {len(things)} things, "
        f"{len(animations)} animations, {len(props)} props; drift: {pending.report}"
    )
    return pending


# =============================================================================
# ANIMATIONS
# =============================================================================


def encode_animations(animations: Dict[str, Animation]) -> bytes:
    w = BinaryWriter()
    ANIMATIONS_FORMAT.write(w)
    w.u64(len(animations))
    for texture, animation in animations.items():
        with w.record():
            write_named_animation(w, texture, animation)
    return w.getvalue()


def decode_animations(data: bytes) -> Dict[str, Animation]:
    """Parse an animations stream. Animations carry no properties, no decision is needed."""
    r = BinaryReader(data, ANIMATIONS_FORMAT.file_kind)
    ANIMATIONS_FORMAT.check(r)
    with r.in_section("count"):
        count = r.u64()
    animations: Dict[str, Animation] = {}
    with r.in_section("animations"):
        for _ in range(count):
            start = r.offset
            texture, animation = read_named_animation(r.record())
            if texture in animations:
                raise r.error(f"animation for texture '{texture}' stored twice", start)
            animations[texture] = animation
        r.expect_end("the last animation")
    return animations


# =============================================================================
# PROPS
# =============================================================================


def encode_props(props: List[Prop]) -> bytes:
    w = BinaryWriter()
    PROPS_FORMAT.write(w)
    w.u64(len(props))
    for prop in props:
        with w.record():
            write_prop(w, prop)
    return w.getvalue()


def decode_props(
    data: bytes,
    registry: Optional["PropertyRegistry"] = None,
    source: Optional[Path] = None,
) -> PendingProps:
    """Parse a props stream (phase 1).

    Without a registry the props are accepted as stored.
    """
    r = BinaryReader(data, PROPS_FORMAT.file_kind)
    PROPS_FORMAT.check(r)
    with r.in_section("count"):
        count = r.u64()
    props = _read_records(r, "props", count, read_prop)
    with r.in_section("props"):
        r.expect_end("the last prop")

    if registry is None:
        return PendingProps(props, source=source)
    return PendingProps(props, registry.brush_schema, registry.thing_schema, source=source)


# =============================================================================
# FILES
# =============================================================================


def atomic_write(path: Path, data: bytes) -> Path:
    """Write through a temporary file in the same directory, then replace."""
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
    return path


def _read_bytes(path: Path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def write_document(document: Document, path: Path) -> Path:
    path = atomic_write(path, encode_document(document))
    logger.info(f"Saved document to {path}")
    return path


def read_document(path: Path, registry: Optional["PropertyRegistry"] = None) -> PendingLoad:
    """Parse a document file (phase 1). See `decode_document`."""
    path = Path(path)
    try:
        return decode_document(_read_bytes(path), registry, source=path)
    except (MalformedRecord, UnsupportedVersion) as e:
        logger.error(f"Failed to read {path}: {e}")
        raise


def load_document(
    path: Path,
    registry: Optional["PropertyRegistry"] = None,
    strategy: Optional[ResolutionStrategy] = None,
) -> Document:
    """Read and resolve a document in one call.

    Raises:
        SchemaMismatch: On drift without a strategy; `error.pending` can be
            resolved later with an explicit choice
    """
    return read_document(path, registry).resolve(strategy)


def write_animations(animations: Dict[str, Animation], path: Path) -> Path:
    path = atomic_write(path, encode_animations(animations))
    logger.info(f"Saved {len(animations)} animations to {path}")
    return path


def read_animations(path: Path) -> Dict[str, Animation]:
    return decode_animations(_read_bytes(Path(path)))


def write_props(props: List[Prop], path: Path) -> Path:
    path = atomic_write(path, encode_props(props))
    logger.info(f"Saved {len(props)} props to {path}")
    return path


def read_props(path: Path, registry: Optional["PropertyRegistry"] = None) -> PendingProps:
    path = Path(path)
    return decode_props(_read_bytes(path), registry, source=path)


def load_props(
    path: Path,
    registry: Optional["PropertyRegistry"] = None,
    strategy: Optional[ResolutionStrategy] = None,
) -> List[Prop]:
    return read_props(path, registry).resolve(strategy)
