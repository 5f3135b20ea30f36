"""Tests for the binary codec and the two-phase load."""

from pathlib import Path

import pytest

from hv_maped.codec import (
    BinaryWriter,
    decode_animations,
    decode_document,
    decode_props,
    encode_animations,
    encode_document,
    encode_props,
    load_document,
    read_document,
    write_document,
)
from hv_maped.errors import MalformedRecord, SchemaMismatch, UnsupportedVersion
from hv_maped.geometry import ConvexPolygon, Vec2
from hv_maped.maps import Document
from hv_maped.motion import LoopMode, MotionPath, Movement
from hv_maped.properties import (
    EntityKind,
    PropertyDefinition,
    PropertyRegistry,
    PropertyType,
    ResolutionStrategy,
    Value,
)
from hv_maped.textures import AtlasAnimation, ListAnimation, TextureSettings


def make_registry() -> PropertyRegistry:
    registry = PropertyRegistry()
    registry.declare_many(EntityKind.BRUSH, [
        PropertyDefinition.of("friction", PropertyType.F32, 0.3),
        PropertyDefinition.of("secret", PropertyType.BOOL),
        PropertyDefinition.of("seed", PropertyType.U128, (1 << 100) + 5),
    ])
    registry.declare_many(EntityKind.THING, [
        PropertyDefinition.of("health", PropertyType.U16, 100),
        PropertyDefinition.of("offset", PropertyType.I128, -(1 << 90)),
        PropertyDefinition.of("label", PropertyType.STRING, "héllo"),
        PropertyDefinition.of("weight", PropertyType.F64, 2.5),
    ])
    return registry


def make_document(registry: PropertyRegistry) -> Document:
    document = Document.new(registry)
    document.set_default_animation("water", ListAnimation.of([("water1", 0.5), ("water2", 0.25)]))

    path = MotionPath.from_positions(
        [(0, 0), (10, 0), (10, 10)],
        Movement(max_speed=50, min_speed=5, accel_travel_percentage=20, standby_time=1),
        LoopMode.PING_PONG,
    )
    document.add_brush(
        ConvexPolygon([(0, 0), (4, 0), (8, 0), (4, 6)]),
        TextureSettings("water", offset_x=3, scale_x=-2, angle=30, height=-5, parallax_y=0.5, scroll_x=1),
        path=path,
        collision=False,
    )
    sprite = document.add_brush(
        ConvexPolygon.rectangle((20, 20), 4, 4),
        TextureSettings("fire", sprite=True, height=10),
    )
    sprite.set_animation_override(AtlasAnimation("fire", rows=2, cols=3, frame_time=0.2))

    thing = document.add_thing(7, (3.5, -2), angle=45, draw_height=-3)
    document.set_thing_property(thing.id, "label", Value(PropertyType.STRING, "door"))
    document.add_thing(65534, (0, 0), path=MotionPath.from_positions([(0, 0), (1, 1)], loop_mode=LoopMode.LOOP))

    document.props.append(document.capture_prop([sprite.id], [thing.id], (20, 20)))
    return document


class TestDocumentRoundTrip:
    """Test documents survive encode and decode unchanged."""

    def test_round_trip(self) -> None:
        """Test decode(encode(D)) == D."""
        registry = make_registry()
        document = make_document(registry)

        pending = decode_document(encode_document(document), registry)

        assert not pending.needs_decision
        assert pending.resolve() == document

    def test_round_trip_without_registry(self) -> None:
        """Test the saved schemas are used when no registry is given."""
        document = make_document(make_registry())
        assert decode_document(encode_document(document)).resolve() == document

    def test_empty_document(self) -> None:
        """Test an empty document encodes to a tag, counts and schemas."""
        document = Document()
        data = encode_document(document)
        assert data[:4] == b"HVMP"
        assert decode_document(data).resolve() == document

    def test_identities_continue_after_load(self) -> None:
        """Test new entities never reuse a loaded identity."""
        registry = make_registry()
        loaded = decode_document(encode_document(make_document(registry)), registry).resolve()
        used = set(loaded.brushes) | set(loaded.things)
        brush = loaded.add_brush(ConvexPolygon.rectangle((0, 0), 1, 1))
        assert brush.id > max(used)

    def test_tiny_negative_angles(self) -> None:
        """Test angles that wrap to exactly 360 are stored as 0 and survive."""
        document = Document()
        thing = document.add_thing(1, (0, 0), angle=-1e-20)
        brush = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2), TextureSettings("a", angle=-1e-14))

        assert thing.angle == 0.0
        assert brush.texture.angle == 0.0
        assert decode_document(encode_document(document)).resolve() == document

    def test_files(self, tmp_path: Path) -> None:
        """Test writing and reading through the file system."""
        registry = make_registry()
        document = make_document(registry)
        path = write_document(document, tmp_path / "level.hv")

        assert load_document(path, registry) == document
        assert [p.name for p in tmp_path.iterdir()] == ["level.hv"]


class TestSchemaDrift:
    """Test the two-phase load when schemas differ."""

    def _drifted(self):
        saved = make_registry()
        document = make_document(saved)
        current = PropertyRegistry()
        current.declare(EntityKind.BRUSH, PropertyDefinition.of("friction", PropertyType.F32, 0.9))
        current.declare(EntityKind.THING, PropertyDefinition.of("health", PropertyType.U32, 1))
        current.declare(EntityKind.THING, PropertyDefinition.of("mana", PropertyType.U8, 7))
        return document, current

    def test_decision_required(self) -> None:
        """Test drift without a strategy raises SchemaMismatch with the pending load."""
        document, current = self._drifted()
        pending = decode_document(encode_document(document), current)

        assert pending.needs_decision
        assert pending.report.thing.retyped == ("health",)
        assert pending.report.thing.missing == ("mana",)
        with pytest.raises(SchemaMismatch) as error:
            pending.resolve()
        assert error.value.pending is pending

    def test_adopt_application(self) -> None:
        """Test every entity conforms to the application schema."""
        document, current = self._drifted()
        loaded = decode_document(encode_document(document), current).resolve(
            ResolutionStrategy.ADOPT_APPLICATION
        )

        assert loaded.brush_schema == current.brush_schema
        assert loaded.thing_schema == current.thing_schema
        assert loaded.schema_violations() == []
        for thing in loaded.things.values():
            assert thing.properties["health"] == Value(PropertyType.U32, 1)
            assert thing.properties["mana"] == Value(PropertyType.U8, 7)
        for brush in loaded.brushes.values():
            assert brush.properties == {"friction": Value(PropertyType.F32, 0.3)}
        for prop in loaded.props:
            assert all(current.thing_schema.matches(t.properties) for t in prop.things)

    def test_adopt_map(self) -> None:
        """Test the file's schema is kept for the session."""
        document, current = self._drifted()
        loaded = decode_document(encode_document(document), current).resolve(ResolutionStrategy.ADOPT_MAP)
        assert loaded == document

    def test_load_document_propagates_mismatch(self, tmp_path: Path) -> None:
        """Test the one-call loader asks for a decision too."""
        document, current = self._drifted()
        path = write_document(document, tmp_path / "level.hv")
        with pytest.raises(SchemaMismatch):
            load_document(path, current)
        assert load_document(path, current, ResolutionStrategy.ADOPT_MAP) == document


class TestMalformedFiles:
    """Test errors on corrupt or foreign streams."""

    @pytest.mark.parametrize(
        "data",
        [b"XXXX\x01\x00", b"HVMP\x02\x00", b"HVAN\x01\x00" + bytes(8), b"JUNK", b"JUNK\x01", b"J"],
    )
    def test_unsupported_tag(self, data: bytes) -> None:
        """Test unknown magic or version is rejected before anything else."""
        with pytest.raises(UnsupportedVersion):
            decode_document(data)

    def test_truncated_header(self) -> None:
        """Test a stream too short for a tag."""
        with pytest.raises(MalformedRecord):
            decode_document(b"HV")

    def test_truncated_body(self) -> None:
        """Test a cut stream reports where decoding stopped."""
        data = encode_document(make_document(make_registry()))
        with pytest.raises(MalformedRecord) as error:
            decode_document(data[:-3])
        assert error.value.offset is not None
        assert error.value.file_kind == "document"

    def test_read_document_keeps_file_errors(self, tmp_path: Path) -> None:
        """Test file errors are raised from the reader."""
        path = tmp_path / "broken.hv"
        path.write_bytes(b"HVMP\x01\x00\x05")
        with pytest.raises(MalformedRecord):
            read_document(path)

    def test_unknown_extension_is_skipped(self) -> None:
        """Test trailing extension sections are ignored."""
        document = make_document(make_registry())
        w = BinaryWriter()
        with w.section(0x7F01):
            w.string("written by a newer version")
            w.f64(1.0)

        data = encode_document(document) + w.getvalue()

        assert decode_document(data).resolve() == document

    def test_truncated_extension(self) -> None:
        """Test an extension section shorter than announced."""
        w = BinaryWriter()
        with w.section(1):
            w.u32(0)
        data = encode_document(Document()) + w.getvalue()[:-1]
        with pytest.raises(MalformedRecord):
            decode_document(data)


class TestAnimationsFile:
    """Test the animations-only file kind."""

    def test_round_trip(self) -> None:
        """Test both variants survive."""
        animations = {
            "water": ListAnimation.of([("water1", 0.5), ("water2", 0.25)]),
            "fire": AtlasAnimation("fire", 4, 4, 0.1),
            "lava": AtlasAnimation("lava", 1, 3, 0.1, frame_times=(0.1, 0.2, 0.3)),
        }
        assert decode_animations(encode_animations(animations)) == animations

    def test_trailing_bytes(self) -> None:
        """Test bytes after the last record are rejected."""
        with pytest.raises(MalformedRecord):
            decode_animations(encode_animations({}) + b"\x00")

    def test_wrong_kind(self) -> None:
        """Test a document is not an animations file."""
        with pytest.raises(UnsupportedVersion):
            decode_animations(encode_document(Document()))


class TestPropsFile:
    """Test the props-only file kind."""

    def test_round_trip(self) -> None:
        """Test props survive without a registry."""
        document = make_document(make_registry())
        pending = decode_props(encode_props(document.props))
        assert not pending.needs_decision
        assert pending.resolve() == document.props

    def test_drift_against_registry(self) -> None:
        """Test members are compared with the current schemas."""
        document = make_document(make_registry())
        current = PropertyRegistry()
        current.declare(EntityKind.THING, PropertyDefinition.of("mana", PropertyType.U8, 7))

        pending = decode_props(encode_props(document.props), current)

        assert pending.needs_decision
        assert "mana" in pending.report.thing.missing
        with pytest.raises(SchemaMismatch):
            pending.resolve()
        props = pending.resolve(ResolutionStrategy.ADOPT_APPLICATION)
        assert props[0].things[0].properties == {"mana": Value(PropertyType.U8, 7)}
        assert props[0].pivot == Vec2(20, 20)
