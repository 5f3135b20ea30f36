"""Tests for document editing and props."""

import pytest

from hv_maped.errors import InvalidGeometry
from hv_maped.geometry import ConvexPolygon, Vec2
from hv_maped.maps import Document, Prop
from hv_maped.motion import MotionPath, Waypoint
from hv_maped.properties import (
    EntityKind,
    PropertyDefinition,
    PropertyRegistry,
    PropertySchema,
    PropertyType,
    Value,
)
from hv_maped.textures import ListAnimation, TextureSettings


@pytest.fixture
def registry() -> PropertyRegistry:
    registry = PropertyRegistry()
    registry.declare(EntityKind.BRUSH, PropertyDefinition.of("friction", PropertyType.F32, 0.5))
    registry.declare(EntityKind.THING, PropertyDefinition.of("health", PropertyType.U16, 100))
    return registry


@pytest.fixture
def document(registry: PropertyRegistry) -> Document:
    return Document.new(registry)


class TestDocument:
    """Test entity management on a document."""

    def test_new_entities_get_defaults(self, document: Document) -> None:
        """Test missing properties are filled from the schema."""
        brush = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        thing = document.add_thing(7, (1, 1))
        assert brush.properties == {"friction": Value(PropertyType.F32, 0.5)}
        assert thing.properties == {"health": Value(PropertyType.U16, 100)}
        assert brush.id != thing.id

    def test_non_conforming_properties(self, document: Document) -> None:
        """Test entities must match the schema exactly."""
        with pytest.raises(ValueError):
            document.add_thing(7, (0, 0), properties={"mana": Value(PropertyType.U8, 1)})

    def test_set_property(self, document: Document) -> None:
        """Test property updates are type checked."""
        thing = document.add_thing(7, (0, 0))
        document.set_thing_property(thing.id, "health", Value(PropertyType.U16, 5))
        assert thing.properties["health"].data == 5
        with pytest.raises(ValueError):
            document.set_thing_property(thing.id, "health", Value(PropertyType.I8, 5))
        with pytest.raises(KeyError):
            document.set_thing_property(thing.id, "mana", Value(PropertyType.U8, 5))

    def test_ids_are_never_reused(self, document: Document) -> None:
        """Test identities keep increasing after removal."""
        first = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        document.remove_brush(first.id)
        second = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        assert second.id > first.id

    def test_animation_override_wins(self, document: Document) -> None:
        """Test the brush override beats the texture default."""
        brush = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2), TextureSettings("water"))
        default = ListAnimation.of([("water", 1.0), ("water2", 1.0)])
        override = ListAnimation.of([("lava", 1.0)])

        document.set_default_animation("water", default)
        assert document.animation_for(brush) == default

        brush.set_animation_override(override)
        document.set_default_animation("water", ListAnimation.of([("ice", 1.0)]))
        assert document.animation_for(brush) == override

        brush.set_animation_override(None)
        assert document.animation_for(brush).frames[0].texture == "ice"

    def test_override_needs_texture(self, document: Document) -> None:
        """Test untextured brushes cannot be animated."""
        brush = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        with pytest.raises(ValueError):
            brush.set_animation_override(ListAnimation.of([("lava", 1.0)]))


    def test_subtract_brush(self, document: Document) -> None:
        """Test targets are replaced by their remaining pieces, the subtractor stays."""
        target = document.add_brush(ConvexPolygon.rectangle((2, 2), 4, 4), TextureSettings("wall"))
        document.set_brush_property(target.id, "friction", Value(PropertyType.F32, 0.25))
        covered = document.add_brush(ConvexPolygon.rectangle((4, 4), 1, 1))
        cutter = document.add_brush(ConvexPolygon.rectangle((4, 4), 4, 4))

        replaced = document.subtract_brush(cutter.id, [target.id, covered.id])

        assert replaced[covered.id] == []
        assert len(replaced[target.id]) == 2
        assert set(document.brushes) == {cutter.id} | {b.id for b in replaced[target.id]}
        for piece in replaced[target.id]:
            assert piece.texture == TextureSettings("wall")
            assert piece.properties == {"friction": Value(PropertyType.F32, 0.25)}

    def test_subtract_brush_without_overlap(self, document: Document) -> None:
        """Test nothing changes when one target is out of reach."""
        near = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        far = document.add_brush(ConvexPolygon.rectangle((50, 50), 2, 2))
        cutter = document.add_brush(ConvexPolygon.rectangle((1, 1), 2, 2))

        with pytest.raises(InvalidGeometry):
            document.subtract_brush(cutter.id, [near.id, far.id])
        assert set(document.brushes) == {near.id, far.id, cutter.id}


class TestProps:
    """Test prop capture and stamping."""

    def test_stamp_translates_by_pivot(self, document: Document) -> None:
        """Test a brush centered at (5,5) stamped at (10,10) lands at (15,15)."""
        brush = document.add_brush(ConvexPolygon.rectangle((5, 5), 2, 2))
        prop = document.capture_prop([brush.id], [], (0, 0))

        brushes, things = document.stamp_prop(prop, (10, 10))

        assert things == []
        assert brushes[0].center == Vec2(15, 15)
        assert brushes[0].id != brush.id
        assert brushes[0].id in document.brushes
        assert brush.center == Vec2(5, 5)

    def test_capture_is_a_deep_copy(self, document: Document) -> None:
        """Test later edits of the source do not reach the prop."""
        thing = document.add_thing(7, (1, 1), path=MotionPath.from_positions([(0, 0), (1, 0)]))
        prop = document.capture_prop([], [thing.id], (0, 0))
        thing.translate((5, 5))
        thing.path.append(Waypoint(Vec2(2, 2)))
        assert prop.things[0].position == Vec2(1, 1)
        assert len(prop.things[0].path) == 2

    def test_stamps_are_independent(self, document: Document) -> None:
        """Test two stamps share no state with each other or the prop."""
        thing = document.add_thing(7, (0, 0))
        prop = document.capture_prop([], [thing.id], (0, 0))
        _, first = document.stamp_prop(prop, (1, 1))
        _, second = document.stamp_prop(prop, (1, 1))
        first[0].translate((1, 0))
        assert second[0].position == Vec2(1, 1)
        assert prop.things[0].position == Vec2(0, 0)

    def test_stamp_conforms_properties(self, document: Document) -> None:
        """Test stamped members adopt the document schema."""
        foreign = Document(thing_schema=PropertySchema([PropertyDefinition.of("mana", PropertyType.U8, 3)]))
        thing = foreign.add_thing(7, (0, 0))
        prop = foreign.capture_prop([], [thing.id], (0, 0))

        _, things = document.stamp_prop(prop, (0, 0))

        assert things[0].properties == {"health": Value(PropertyType.U16, 100)}

    def test_stamp_out_of_range_keeps_document(self, document: Document) -> None:
        """Test a stamp that would collapse a brush inserts nothing."""
        brush = document.add_brush(ConvexPolygon([(0, 0), (1, 0), (0, 1)]))
        prop = document.capture_prop([brush.id], [], (0, 0))
        next_id = document.ids.next_id

        with pytest.raises(InvalidGeometry):
            document.stamp_prop(prop, (1e16, 0))
        assert list(document.brushes) == [brush.id]
        assert document.ids.next_id == next_id

    def test_empty_prop(self) -> None:
        """Test a prop needs at least one member."""
        with pytest.raises(ValueError):
            Prop([], [], Vec2(0, 0))

    def test_hull(self, document: Document) -> None:
        """Test the prop hull covers its members."""
        brush = document.add_brush(ConvexPolygon.rectangle((0, 0), 2, 2))
        thing = document.add_thing(7, (5, 5))
        prop = document.capture_prop([brush.id], [thing.id], (0, 0))
        assert prop.hull.right == 5
        assert prop.hull.left == -1
