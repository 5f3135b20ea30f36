"""
Props: reusable bundles of brushes and things.

A prop owns deep copies of its members and a pivot. Stamping a prop never
hands out its stored entities, only translated copies with new identities.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Sequence, Tuple

from ..geometry import Hull, Vec2
from ..things import ThingInstance
from .models import Brush


@dataclass
class Prop:
    """A pivot-anchored group of entities.

    Attributes:
        brushes: Member brushes (deep copies, original identities)
        things: Member things (deep copies, original identities)
        pivot: Point placed on the stamp target
    """

    brushes: List[Brush] = field(default_factory=list)
    things: List[ThingInstance] = field(default_factory=list)
    pivot: Vec2 = Vec2(0.0, 0.0)

    def __post_init__(self) -> None:
        self.pivot = Vec2(float(self.pivot[0]), float(self.pivot[1]))
        if not self.brushes and not self.things:
            raise ValueError("A prop needs at least one brush or thing")

    @classmethod
    def capture(
        cls,
        brushes: Iterable[Brush],
        things: Iterable[ThingInstance],
        pivot: Sequence[float],
    ) -> "Prop":
        """Deep-copy entities into a new prop."""
        return cls(
            brushes=[b.copy() for b in brushes],
            things=[t.copy() for t in things],
            pivot=Vec2(float(pivot[0]), float(pivot[1])),
        )

    def stamp(
        self, target: Sequence[float], allocate_id: Callable[[], int]
    ) -> Tuple[List[Brush], List[ThingInstance]]:
        """Fresh copies translated by `target - pivot`.

        Args:
            target: Where the pivot lands
            allocate_id: Source of new identities

        Returns:
            (brushes, things), none of them sharing state with the prop

        Raises:
            InvalidGeometry: If a brush cannot be placed at the target; no
                identity is consumed then
        """
        delta = Vec2(float(target[0]), float(target[1])) - self.pivot

        brushes = []
        for brush in self.brushes:
            copy = brush.copy()
            copy.translate(delta)
            brushes.append(copy)

        things = []
        for thing in self.things:
            copy = thing.copy()
            copy.translate(delta)
            things.append(copy)

        for entity in [*brushes, *things]:
            entity.id = allocate_id()
        return brushes, things

    @property
    def hull(self) -> Optional[Hull]:
        points = [v for b in self.brushes for v in b.polygon.vertices]
        points.extend(t.position for t in self.things)
        return Hull.from_points(points)
