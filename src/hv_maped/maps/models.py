"""
Data models of an editable map document.

The `Document` is the aggregate root: it owns the property schemas used by
its entities, the default texture animations, every brush and thing keyed by
identity, and the props kept with the map. All entity mutations keep the
property mappings conforming to the document schemas.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, TYPE_CHECKING

from ..geometry import ConvexPolygon, Hull, Vec2
from ..motion import MotionPath
from ..properties import EntityKind, PropertySchema, Value, reconcile_properties, ResolutionStrategy
from ..textures import Animation, TextureMapping, TextureSettings, texture_mapping
from ..things import ThingInstance

if TYPE_CHECKING:
    from ..properties import PropertyRegistry
    from .props import Prop

logger = logging.getLogger(__name__)


@dataclass
class Brush:
    """A convex polygonal map surface.

    Attributes:
        id: Document-unique identity
        polygon: Shape, always a valid convex polygon
        texture: Texture settings, None for an untextured brush
        path: Optional movement, relative to the polygon center
        collision: Whether the brush blocks movement
        properties: User property values
    """

    id: int
    polygon: ConvexPolygon
    texture: Optional[TextureSettings] = None
    path: Optional[MotionPath] = None
    collision: bool = True
    properties: Dict[str, Value] = field(default_factory=dict)

    @property
    def center(self) -> Vec2:
        return self.polygon.center

    @property
    def hull(self) -> Hull:
        return self.polygon.hull

    def translate(self, delta: Sequence[float]) -> None:
        """Move the brush; its path follows since it is relative."""
        self.polygon.translate(delta)

    def set_animation_override(self, animation: Optional[Animation]) -> None:
        """Set or clear (with None) the brush-specific animation.

        Raises:
            ValueError: If the brush has no texture
        """
        if self.texture is None:
            raise ValueError(f"Brush {self.id} has no texture to animate")
        self.texture = self.texture.with_animation(animation)

    def texture_mapping(
        self,
        texture_size: Tuple[int, int],
        animation: Optional[Animation] = None,
        elapsed: float = 0.0,
    ) -> Optional[TextureMapping]:
        """Mapping of the texture on the current polygon, None if untextured."""
        if self.texture is None:
            return None
        return texture_mapping(self.polygon, self.texture, texture_size, animation, elapsed)

    def copy(self, new_id: Optional[int] = None) -> "Brush":
        """Deep copy, optionally under a new identity."""
        return Brush(
            id=self.id if new_id is None else new_id,
            polygon=self.polygon.copy(),
            texture=self.texture,
            path=self.path.copy() if self.path else None,
            collision=self.collision,
            properties=dict(self.properties),
        )


class IdAllocator:
    """Hands out increasing entity identities."""

    def __init__(self, next_id: int = 0):
        self._next = next_id

    @property
    def next_id(self) -> int:
        return self._next

    def allocate(self) -> int:
        value = self._next
        self._next += 1
        return value

    def reserve(self, used_id: int) -> None:
        """Make sure `used_id` is never handed out."""
        if used_id >= self._next:
            self._next = used_id + 1

    def __call__(self) -> int:
        return self.allocate()


@dataclass
class Document:
    """A map: schemas, default animations, entities and props.

    Equality is structural; the identity allocator state is not compared.
    """

    brush_schema: PropertySchema = field(default_factory=PropertySchema)
    thing_schema: PropertySchema = field(default_factory=PropertySchema)
    animations: Dict[str, Animation] = field(default_factory=dict)
    brushes: Dict[int, Brush] = field(default_factory=dict)
    things: Dict[int, ThingInstance] = field(default_factory=dict)
    props: List["Prop"] = field(default_factory=list)
    ids: IdAllocator = field(default_factory=IdAllocator, compare=False, repr=False)

    def __post_init__(self) -> None:
        for entity_id in list(self.brushes) + list(self.things):
            self.ids.reserve(entity_id)
        problems = self.schema_violations()
        if problems:
            raise ValueError(f"Document entities do not match its schemas: {problems[0]}")

    @classmethod
    def new(cls, registry: "PropertyRegistry") -> "Document":
        """Empty document using the registry's current schemas."""
        return cls(brush_schema=registry.brush_schema, thing_schema=registry.thing_schema)

    def schema(self, kind: EntityKind) -> PropertySchema:
        return self.brush_schema if kind is EntityKind.BRUSH else self.thing_schema

    def schema_violations(self) -> List[str]:
        """Describe every entity whose properties do not match its schema."""
        problems = []
        for brush in self.brushes.values():
            if not self.brush_schema.matches(brush.properties):
                problems.append(f"brush {brush.id}")
        for thing in self.things.values():
            if not self.thing_schema.matches(thing.properties):
                problems.append(f"thing {thing.id}")
        return problems

    def _conformed(self, kind: EntityKind, properties: Optional[Dict[str, Value]]) -> Dict[str, Value]:
        schema = self.schema(kind)
        if properties is None:
            return schema.defaults()
        if not schema.matches(properties):
            raise ValueError(
                f"{kind.value} properties {sorted(properties)} do not match schema {schema.names()}"
            )
        return {d.name: properties[d.name] for d in schema}

    # === Brushes ===

    def add_brush(
        self,
        polygon: ConvexPolygon,
        texture: Optional[TextureSettings] = None,
        path: Optional[MotionPath] = None,
        collision: bool = True,
        properties: Optional[Dict[str, Value]] = None,
    ) -> Brush:
        """Create a brush with a new identity; missing properties get defaults."""
        brush = Brush(
            id=self.ids.allocate(),
            polygon=polygon,
            texture=texture,
            path=path,
            collision=collision,
            properties=self._conformed(EntityKind.BRUSH, properties),
        )
        self.brushes[brush.id] = brush
        return brush

    def remove_brush(self, brush_id: int) -> Brush:
        return self.brushes.pop(brush_id)

    def subtract_brush(self, subtractor_id: int, target_ids: Iterable[int]) -> Dict[int, List[Brush]]:
        """Cut the area of one brush out of others.

        Each target is replaced by brushes with new identities, one per
        remaining convex piece, sharing the target's texture, path and
        properties. A target covered entirely is removed. The subtractor is
        kept.

        Returns:
            The new brushes keyed by the ID of the target they replace

        Raises:
            InvalidGeometry: If a target does not overlap the subtractor;
                nothing is changed then
            KeyError: If an ID is unknown
        """
        subtractor = self.brushes[subtractor_id].polygon
        results = {
            target_id: self.brushes[target_id].polygon.subtract(subtractor)
            for target_id in target_ids
            if target_id != subtractor_id
        }

        replaced: Dict[int, List[Brush]] = {}
        for target_id, pieces in results.items():
            target = self.brushes.pop(target_id)
            replaced[target_id] = []
            for piece in pieces:
                brush = target.copy(new_id=self.ids.allocate())
                brush.polygon = piece
                self.brushes[brush.id] = brush
                replaced[target_id].append(brush)
        logger.debug(f"Subtracted brush {subtractor_id} from {sorted(results)}")
        return replaced

    def set_brush_property(self, brush_id: int, name: str, value: Value) -> None:
        self._set_property(EntityKind.BRUSH, self.brushes[brush_id].properties, name, value)

    # === Things ===

    def add_thing(
        self,
        thing_id: int,
        position: Sequence[float],
        angle: float = 0.0,
        draw_height: int = 0,
        path: Optional[MotionPath] = None,
        properties: Optional[Dict[str, Value]] = None,
    ) -> ThingInstance:
        """Place a thing with a new identity; missing properties get defaults."""
        thing = ThingInstance(
            id=self.ids.allocate(),
            thing_id=thing_id,
            position=Vec2(float(position[0]), float(position[1])),
            angle=angle,
            draw_height=draw_height,
            path=path,
            properties=self._conformed(EntityKind.THING, properties),
        )
        self.things[thing.id] = thing
        return thing

    def remove_thing(self, thing_id: int) -> ThingInstance:
        return self.things.pop(thing_id)

    def set_thing_property(self, instance_id: int, name: str, value: Value) -> None:
        self._set_property(EntityKind.THING, self.things[instance_id].properties, name, value)

    def _set_property(
        self, kind: EntityKind, properties: Dict[str, Value], name: str, value: Value
    ) -> None:
        definition = self.schema(kind).get(name)
        if definition is None:
            raise KeyError(f"No {kind.value} property named '{name}'")
        if value.type is not definition.type:
            raise ValueError(
                f"Property '{name}' is {definition.type.label}, got {value.type.label}"
            )
        properties[name] = value

    # === Animations ===

    def set_default_animation(self, texture: str, animation: Optional[Animation]) -> None:
        """Set or clear the default animation of a texture.

        Brush overrides are left alone.
        """
        if animation is None:
            self.animations.pop(texture, None)
        else:
            self.animations[texture] = animation

    def animation_for(self, brush: Brush) -> Optional[Animation]:
        """Effective animation of a brush: its override, else the texture default."""
        if brush.texture is None:
            return None
        if brush.texture.animation is not None:
            return brush.texture.animation
        return self.animations.get(brush.texture.texture)

    # === Props ===

    def capture_prop(
        self, brush_ids: Iterable[int], thing_ids: Iterable[int], pivot: Sequence[float]
    ) -> "Prop":
        """Snapshot some entities into a new prop (not added to `props`)."""
        from .props import Prop

        return Prop.capture(
            [self.brushes[i] for i in brush_ids],
            [self.things[i] for i in thing_ids],
            pivot,
        )

    def stamp_prop(
        self, prop: "Prop", target: Sequence[float]
    ) -> Tuple[List[Brush], List[ThingInstance]]:
        """Insert fresh copies of a prop's entities with their pivot at `target`.

        Properties are conformed to this document's schemas.
        """
        brushes, things = prop.stamp(target, self.ids.allocate)
        for brush in brushes:
            brush.properties = reconcile_properties(
                brush.properties, self.brush_schema, self.brush_schema, ResolutionStrategy.ADOPT_APPLICATION
            )
            self.brushes[brush.id] = brush
        for thing in things:
            thing.properties = reconcile_properties(
                thing.properties, self.thing_schema, self.thing_schema, ResolutionStrategy.ADOPT_APPLICATION
            )
            self.things[thing.id] = thing
        logger.debug(f"Stamped prop: {len(brushes)} brushes, {len(things)} things at {tuple(target)}")
        return brushes, things

    # === Info ===

    @property
    def hull(self) -> Optional[Hull]:
        """Hull of every brush and thing position, None for an empty map."""
        points = [v for b in self.brushes.values() for v in b.polygon.vertices]
        points.extend(t.position for t in self.things.values())
        return Hull.from_points(points)
