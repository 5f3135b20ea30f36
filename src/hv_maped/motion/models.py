"""
Scripted movement of brushes and things.

A `MotionPath` is an ordered list of waypoints whose positions are relative
to the center of the entity that owns the path. Moving the owner moves the
whole path with it; editing the path never touches the owner.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterable, Iterator, List, Sequence

from ..errors import InvalidPath
from ..geometry import Vec2


class LoopMode(IntEnum):
    """What happens once the last waypoint is reached."""

    NONE = 0
    """Stop at the last waypoint."""

    LOOP = 1
    """Travel from the last waypoint back to the first and start over."""

    PING_PONG = 2
    """Walk the waypoints backwards, then forwards again."""


@dataclass(frozen=True)
class Movement:
    """Motion parameters used to travel from a waypoint to the next one.

    Attributes:
        max_speed: Cruise speed, units per second
        min_speed: Speed at the start and end of the segment
        accel_travel_percentage: Share of the segment spent accelerating (0-100)
        decel_travel_percentage: Share of the segment spent decelerating (0-100)
        standby_time: Seconds to wait at the waypoint before leaving
    """

    max_speed: float = 100.0
    min_speed: float = 0.0
    accel_travel_percentage: float = 0.0
    decel_travel_percentage: float = 0.0
    standby_time: float = 0.0

    def __post_init__(self) -> None:
        if self.max_speed <= 0:
            raise InvalidPath(f"max_speed must be positive, got {self.max_speed}")
        if not 0 <= self.min_speed <= self.max_speed:
            raise InvalidPath(
                f"min_speed must be in [0, {self.max_speed}], got {self.min_speed}"
            )
        for name in ("accel_travel_percentage", "decel_travel_percentage"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise InvalidPath(f"{name} must be in [0, 100], got {value}")
        if self.accel_travel_percentage + self.decel_travel_percentage > 100:
            raise InvalidPath("Acceleration and deceleration cover more than the whole segment")
        if self.standby_time < 0:
            raise InvalidPath(f"standby_time cannot be negative, got {self.standby_time}")


@dataclass(frozen=True)
class Waypoint:
    """A path node: a position relative to the owner's center and its movement."""

    position: Vec2
    movement: Movement = field(default_factory=Movement)

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", Vec2(float(self.position[0]), float(self.position[1])))


class MotionPath:
    """Ordered waypoints describing how the owning entity moves.

    Looping is never inferred from the waypoints themselves, it is only
    controlled by `loop_mode`.
    """

    MIN_WAYPOINTS = 2

    def __init__(self, waypoints: Iterable[Waypoint], loop_mode: LoopMode = LoopMode.NONE):
        """Create a path.

        Raises:
            InvalidPath: If there are fewer than 2 waypoints or two
                consecutive waypoints share a position
        """
        self.loop_mode = LoopMode(loop_mode)
        self._waypoints = self._validated(list(waypoints))

    @classmethod
    def from_positions(
        cls,
        positions: Iterable[Sequence[float]],
        movement: Movement = Movement(),
        loop_mode: LoopMode = LoopMode.NONE,
    ) -> "MotionPath":
        return cls([Waypoint(Vec2(p[0], p[1]), movement) for p in positions], loop_mode)

    def _validated(self, candidate: List[Waypoint]) -> tuple[Waypoint, ...]:
        if len(candidate) < self.MIN_WAYPOINTS:
            raise InvalidPath(
                f"A path needs at least {self.MIN_WAYPOINTS} waypoints, got {len(candidate)}"
            )
        for i in range(1, len(candidate)):
            if candidate[i - 1].position.around_equal(candidate[i].position):
                raise InvalidPath(f"Waypoints {i - 1} and {i} share the same position")
        return tuple(candidate)

    def _commit(self, candidate: List[Waypoint]) -> None:
        self._waypoints = self._validated(candidate)

    def _check_index(self, index: int) -> None:
        if not -len(self._waypoints) <= index < len(self._waypoints):
            raise IndexError(f"Waypoint index {index} out of range for {len(self._waypoints)} waypoints")

    # === Info ===

    @property
    def waypoints(self) -> tuple[Waypoint, ...]:
        return self._waypoints

    def __len__(self) -> int:
        return len(self._waypoints)

    def __iter__(self) -> Iterator[Waypoint]:
        return iter(self._waypoints)

    def __getitem__(self, index: int) -> Waypoint:
        return self._waypoints[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MotionPath):
            return NotImplemented
        return self.loop_mode is other.loop_mode and self._waypoints == other._waypoints

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MotionPath({len(self._waypoints)} waypoints, loop_mode={self.loop_mode.name})"

    def copy(self) -> "MotionPath":
        # Waypoints are immutable, sharing them is safe
        path = MotionPath.__new__(MotionPath)
        path.loop_mode = self.loop_mode
        path._waypoints = self._waypoints
        return path

    def world_positions(self, center: Sequence[float]) -> List[Vec2]:
        """Absolute waypoint positions for an owner centered at `center`."""
        origin = Vec2(float(center[0]), float(center[1]))
        return [origin + w.position for w in self._waypoints]

    @property
    def length(self) -> float:
        """Distance travelled over one pass, including the closing leg when looping."""
        positions = [w.position for w in self._waypoints]
        total = sum((b - a).length() for a, b in zip(positions, positions[1:]))
        if self.loop_mode is LoopMode.LOOP:
            total += (positions[0] - positions[-1]).length()
        return total

    # === Mutations ===

    def append(self, waypoint: Waypoint) -> None:
        self._commit(list(self._waypoints) + [waypoint])

    def insert(self, index: int, waypoint: Waypoint) -> None:
        """Insert a waypoint before `index`, like `list.insert`."""
        candidate = list(self._waypoints)
        candidate.insert(index, waypoint)
        self._commit(candidate)

    def remove(self, index: int) -> Waypoint:
        """Remove and return the waypoint at `index`.

        Raises:
            IndexError: If the index is out of range
            InvalidPath: If fewer than 2 waypoints would remain
        """
        self._check_index(index)
        candidate = list(self._waypoints)
        removed = candidate.pop(index)
        self._commit(candidate)
        return removed

    def move_waypoint(self, index: int, position: Sequence[float]) -> None:
        self._check_index(index)
        candidate = list(self._waypoints)
        candidate[index] = Waypoint(Vec2(position[0], position[1]), candidate[index].movement)
        self._commit(candidate)

    def set_movement(self, index: int, movement: Movement) -> None:
        self._check_index(index)
        candidate = list(self._waypoints)
        candidate[index] = Waypoint(candidate[index].position, movement)
        self._commit(candidate)
