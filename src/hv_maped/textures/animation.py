"""
Texture animation descriptors.

An animation is either a timed list of textures (`ListAnimation`) or a grid
of cells cut out of a single atlas texture (`AtlasAnimation`). Both are
immutable values; frame selection is a pure function of the elapsed time.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Iterable, Sequence, Tuple, Union


class AnimationKind(IntEnum):
    """On-disk tag of an animation record."""

    LIST = 1
    ATLAS = 2


@dataclass(frozen=True)
class Frame:
    """One entry of a list animation."""

    texture: str
    duration: float

    def __post_init__(self) -> None:
        if not self.texture:
            raise ValueError("Frame texture name cannot be empty")
        if not self.duration > 0:
            raise ValueError(f"Frame duration must be positive, got {self.duration}")
        object.__setattr__(self, "duration", float(self.duration))


@dataclass(frozen=True)
class ListAnimation:
    """Cycle through textures, each shown for its own duration.

    Example:
        >>> anim = ListAnimation.of([("A", 1.0), ("B", 2.0)])
        >>> anim.texture_at(2.5)
        'B'
    """

    kind: ClassVar[AnimationKind] = AnimationKind.LIST

    frames: Tuple[Frame, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "frames", tuple(self.frames))
        if not self.frames:
            raise ValueError("A list animation needs at least one frame")

    @classmethod
    def of(cls, frames: Iterable[Sequence]) -> "ListAnimation":
        """Build from (texture, duration) pairs."""
        return cls(tuple(Frame(str(texture), duration) for texture, duration in frames))

    @property
    def cycle_duration(self) -> float:
        return sum(f.duration for f in self.frames)

    def frame_at(self, elapsed: float) -> int:
        """Index of the frame whose cumulative interval contains `elapsed`."""
        t = elapsed % self.cycle_duration
        cumulative = 0.0
        for index, frame in enumerate(self.frames):
            cumulative += frame.duration
            if t < cumulative:
                return index
        return len(self.frames) - 1

    def texture_at(self, elapsed: float) -> str:
        return self.frames[self.frame_at(elapsed)].texture


@dataclass(frozen=True)
class AtlasAnimation:
    """Row-major grid of `rows` x `cols` cells.

    Every cell is shown for `frame_time`, unless `frame_times` gives one
    duration per cell.

    Example:
        >>> AtlasAnimation("fire", rows=2, cols=2, frame_time=0.5).frame_at(2.1)
        0
        >>> AtlasAnimation("fire", 1, 2, 0.5, frame_times=(1.0, 0.25)).frame_at(1.1)
        1
    """

    kind: ClassVar[AnimationKind] = AnimationKind.ATLAS

    texture: str
    rows: int
    cols: int
    frame_time: float
    frame_times: Tuple[float, ...] = ()

    def __post_init__(self) -> None:
        if not self.texture:
            raise ValueError("Atlas texture name cannot be empty")
        if self.rows < 1 or self.cols < 1:
            raise ValueError(f"Atlas grid must be at least 1x1, got {self.rows}x{self.cols}")
        if not self.frame_time > 0:
            raise ValueError(f"Atlas frame_time must be positive, got {self.frame_time}")
        object.__setattr__(self, "frame_time", float(self.frame_time))

        frame_times = tuple(float(t) for t in self.frame_times)
        if frame_times:
            if len(frame_times) != self.frame_count:
                raise ValueError(
                    f"Atlas has {self.frame_count} cells but {len(frame_times)} frame times"
                )
            if not all(t > 0 for t in frame_times):
                raise ValueError(f"Atlas frame times must be positive, got {frame_times}")
        object.__setattr__(self, "frame_times", frame_times)

    @property
    def frame_count(self) -> int:
        return self.rows * self.cols

    @property
    def cycle_duration(self) -> float:
        if self.frame_times:
            return sum(self.frame_times)
        return self.frame_count * self.frame_time

    def frame_at(self, elapsed: float) -> int:
        if not self.frame_times:
            return math.floor(elapsed / self.frame_time) % self.frame_count
        t = elapsed % self.cycle_duration
        cumulative = 0.0
        for index, duration in enumerate(self.frame_times):
            cumulative += duration
            if t < cumulative:
                return index
        return self.frame_count - 1

    def cell_size(self, texture_size: Tuple[int, int]) -> Tuple[float, float]:
        width, height = texture_size
        return width / self.cols, height / self.rows

    def cell_rect(self, index: int, texture_size: Tuple[int, int]) -> Tuple[float, float, float, float]:
        """Pixel rectangle (x, y, width, height) of cell `index`, origin top left."""
        if not 0 <= index < self.frame_count:
            raise IndexError(f"Cell {index} out of range for a {self.rows}x{self.cols} atlas")
        cell_w, cell_h = self.cell_size(texture_size)
        row, col = divmod(index, self.cols)
        return col * cell_w, row * cell_h, cell_w, cell_h


Animation = Union[ListAnimation, AtlasAnimation]
"""A texture animation, one of the two variants."""
