"""
Data models for things.

A `ThingDefinition` describes a kind of placeable object (one catalog entry).
A `ThingInstance` is one object placed in a document; it references its
definition by ID only, so a catalog reload never invalidates it.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Sequence

from ..geometry import Hull, Vec2, normalize_angle
from ..motion import MotionPath
from ..properties import Value

MAX_THING_ID = 65534
"""Highest valid thing ID (65535 is reserved)."""

I8_MIN, I8_MAX = -128, 127


@dataclass(frozen=True)
class ThingDefinition:
    """A kind of thing.

    Attributes:
        id: Unique ID in [0, 65534]
        name: Display name
        width: Width of the thing's footprint
        height: Height of the thing's footprint
        preview: Name of the texture used to draw it
        source_file: The .ini file it was read from, None when registered natively
    """

    id: int
    name: str
    width: float
    height: float
    preview: str
    source_file: Optional[Path] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.id, bool) or not isinstance(self.id, int):
            raise ValueError(f"Thing ID must be an int, got {self.id!r}")
        if not 0 <= self.id <= MAX_THING_ID:
            raise ValueError(f"Thing ID {self.id} out of range [0, {MAX_THING_ID}]")
        if not self.name:
            raise ValueError(f"Thing {self.id} has no name")
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Thing '{self.name}' must have a positive size, got {self.width}x{self.height}")

    @property
    def is_native(self) -> bool:
        return self.source_file is None


@dataclass
class ThingInstance:
    """A thing placed in a document.

    Attributes:
        id: Document-unique identity
        thing_id: ID of the definition; may be unknown to the current catalog
        position: Center of the thing
        angle: Facing in degrees, normalized to [0, 360)
        draw_height: Draw order among overlapping things, i8 range
        path: Optional movement, relative to `position`
        properties: User property values
    """

    id: int
    thing_id: int
    position: Vec2
    angle: float = 0.0
    draw_height: int = 0
    path: Optional[MotionPath] = None
    properties: Dict[str, Value] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.thing_id, bool) or not isinstance(self.thing_id, int):
            raise ValueError(f"Thing ID must be an int, got {self.thing_id!r}")
        if not 0 <= self.thing_id <= MAX_THING_ID:
            raise ValueError(f"Thing ID {self.thing_id} out of range [0, {MAX_THING_ID}]")
        self.position = Vec2(float(self.position[0]), float(self.position[1]))
        self.set_angle(self.angle)
        self.set_draw_height(self.draw_height)

    @property
    def center(self) -> Vec2:
        return self.position

    def set_angle(self, angle: float) -> None:
        self.angle = normalize_angle(angle)

    def set_draw_height(self, draw_height: int) -> None:
        if not I8_MIN <= draw_height <= I8_MAX:
            raise ValueError(f"draw_height {draw_height} out of range [{I8_MIN}, {I8_MAX}]")
        self.draw_height = draw_height

    def translate(self, delta: Sequence[float]) -> None:
        """Move the thing; its path follows since it is relative."""
        self.position = self.position + Vec2(float(delta[0]), float(delta[1]))

    def hull(self, definition: Optional[ThingDefinition]) -> Hull:
        """Footprint for the given definition, a 64x64 box when it is unknown."""
        width, height = (definition.width, definition.height) if definition else (64.0, 64.0)
        return Hull(
            top=self.position.y + height / 2,
            bottom=self.position.y - height / 2,
            left=self.position.x - width / 2,
            right=self.position.x + width / 2,
        )

    def copy(self, new_id: Optional[int] = None) -> "ThingInstance":
        """Deep copy, optionally under a new identity."""
        return ThingInstance(
            id=self.id if new_id is None else new_id,
            thing_id=self.thing_id,
            position=self.position,
            angle=self.angle,
            draw_height=self.draw_height,
            path=self.path.copy() if self.path else None,
            properties=dict(self.properties),
        )
