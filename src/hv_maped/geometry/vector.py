"""
Basic 2D value types: points/vectors and axis aligned hulls.
"""

import math
from dataclasses import dataclass
from typing import Iterable, NamedTuple, Optional

EPSILON = 1e-6
"""Tolerance used by geometric comparisons."""


class Vec2(NamedTuple):
    """Immutable 2D point or vector."""

    x: float
    y: float

    def __add__(self, other: "Vec2") -> "Vec2":  # type: ignore[override]
        return Vec2(self.x + other[0], self.y + other[1])

    def __sub__(self, other: "Vec2") -> "Vec2":
        return Vec2(self.x - other[0], self.y - other[1])

    def __mul__(self, scalar: float) -> "Vec2":  # type: ignore[override]
        return Vec2(self.x * scalar, self.y * scalar)

    def __neg__(self) -> "Vec2":
        return Vec2(-self.x, -self.y)

    def dot(self, other: "Vec2") -> float:
        return self.x * other[0] + self.y * other[1]

    def cross(self, other: "Vec2") -> float:
        """Z component of the 3D cross product."""
        return self.x * other[1] - self.y * other[0]

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def rotated(self, degrees: float) -> "Vec2":
        """Return this vector rotated counter-clockwise around the origin."""
        if degrees == 0:
            return self
        rad = math.radians(degrees)
        cos, sin = math.cos(rad), math.sin(rad)
        return Vec2(self.x * cos - self.y * sin, self.x * sin + self.y * cos)

    def around_equal(self, other: "Vec2", tolerance: float = EPSILON) -> bool:
        return abs(self.x - other[0]) <= tolerance and abs(self.y - other[1]) <= tolerance


def normalize_angle(degrees: float) -> float:
    """Map an angle in degrees to [0, 360)."""
    angle = float(degrees) % 360.0
    # tiny negative inputs round up to exactly 360.0
    return 0.0 if angle >= 360.0 else angle


def cross(o: Vec2, a: Vec2, b: Vec2) -> float:
    """Signed double area of the triangle o-a-b (positive when counter-clockwise)."""
    return (a.x - o.x) * (b.y - o.y) - (a.y - o.y) * (b.x - o.x)


@dataclass(frozen=True)
class Hull:
    """Axis aligned rectangle enclosing a region of 2D space.

    Attributes:
        top: Y coordinate of the top side
        bottom: Y coordinate of the bottom side
        left: X coordinate of the left side
        right: X coordinate of the right side
    """

    top: float
    bottom: float
    left: float
    right: float

    def __post_init__(self) -> None:
        if self.top < self.bottom or self.right < self.left:
            raise ValueError(
                f"Invalid Hull values: top {self.top} bottom {self.bottom} "
                f"left {self.left} right {self.right}"
            )

    @classmethod
    def from_points(cls, points: Iterable[Vec2]) -> Optional["Hull"]:
        """Return the hull encompassing all points, or None if there are none."""
        pts = list(points)
        if not pts:
            return None
        xs = [p[0] for p in pts]
        ys = [p[1] for p in pts]
        return cls(top=max(ys), bottom=min(ys), left=min(xs), right=max(xs))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.top - self.bottom

    @property
    def center(self) -> Vec2:
        return Vec2(self.left + self.width / 2, self.bottom + self.height / 2)

    def contains_point(self, point: Vec2) -> bool:
        return self.left <= point[0] <= self.right and self.bottom <= point[1] <= self.top

    def translated(self, delta: Vec2) -> "Hull":
        return Hull(
            top=self.top + delta[1],
            bottom=self.bottom + delta[1],
            left=self.left + delta[0],
            right=self.right + delta[0],
        )

    def merged(self, other: "Hull") -> "Hull":
        """Return the smallest hull containing both hulls."""
        return Hull(
            top=max(self.top, other.top),
            bottom=min(self.bottom, other.bottom),
            left=min(self.left, other.left),
            right=max(self.right, other.right),
        )

    def vertices(self) -> list[Vec2]:
        """Corners in counter-clockwise order starting from bottom left."""
        return [
            Vec2(self.left, self.bottom),
            Vec2(self.right, self.bottom),
            Vec2(self.right, self.top),
            Vec2(self.left, self.top),
        ]
