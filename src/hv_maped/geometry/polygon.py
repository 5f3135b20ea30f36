"""
Convex polygon representation used as the shape of every brush.

The vertex set is treated as insertion-order-irrelevant: any accepted input is
normalized to a canonical counter-clockwise sequence starting from the
lowest-leftmost vertex. Collinear boundary points (180° interior angles) are
kept; interior points, duplicates and zero-area shapes are rejected.

Every mutator computes a candidate vertex sequence, validates it and only then
swaps it in, so a rejected edit leaves the polygon exactly as it was.
"""

import logging
from typing import Iterable, Iterator, Sequence

from ..errors import InvalidGeometry
from .vector import EPSILON, Hull, Vec2, cross

logger = logging.getLogger(__name__)

Point = Sequence[float]
"""Anything indexable as (x, y)."""


def _strict_hull(points: list[Vec2]) -> list[Vec2]:
    """Convex hull without collinear points (Andrew's monotone chain).

    Returns the vertices in counter-clockwise order, starting from the
    lowest-leftmost point.
    """
    pts = sorted(set(points))
    if len(pts) < 3:
        return pts

    lower: list[Vec2] = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= EPSILON:
            lower.pop()
        lower.append(p)

    upper: list[Vec2] = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= EPSILON:
            upper.pop()
        upper.append(p)

    return lower[:-1] + upper[:-1]


def _signed_area(vertices: Sequence[Vec2]) -> float:
    area = 0.0
    n = len(vertices)
    for i in range(n):
        area += vertices[i].cross(vertices[(i + 1) % n])
    return area / 2


def _distance_to_line(p: Vec2, a: Vec2, b: Vec2) -> float:
    length = (b - a).length()
    if length <= EPSILON:
        return (p - a).length()
    return abs(cross(a, b, p)) / length


def _on_segment(p: Vec2, a: Vec2, b: Vec2) -> bool:
    """Whether p lies strictly between a and b on the segment a-b."""
    if _distance_to_line(p, a, b) > EPSILON:
        return False
    ab = b - a
    t = (p - a).dot(ab)
    return EPSILON < t < ab.dot(ab) - EPSILON


def _normalize(vertices: Iterable[Point]) -> tuple[Vec2, ...]:
    """Validate a vertex set and return it in canonical order.

    Raises:
        InvalidGeometry: If the set does not describe a simple convex polygon
            with at least 3 vertices
    """
    try:
        points = [Vec2(float(v[0]), float(v[1])) for v in vertices]
    except (TypeError, IndexError, ValueError) as e:
        raise InvalidGeometry(f"Invalid vertex data: {e}")

    if len(points) < 3:
        raise InvalidGeometry(f"A polygon needs at least 3 vertices, got {len(points)}")

    for i, p in enumerate(points):
        for q in points[i + 1:]:
            if p.around_equal(q):
                raise InvalidGeometry(f"Duplicate vertex {tuple(p)}")

    hull = _strict_hull(points)
    if len(hull) < 3 or _signed_area(hull) <= EPSILON:
        raise InvalidGeometry("Vertices are collinear, the polygon has no area")

    hull_set = set(hull)
    extra = [p for p in points if p not in hull_set]
    ordered: list[Vec2] = []
    for i, a in enumerate(hull):
        b = hull[(i + 1) % len(hull)]
        ordered.append(a)
        on_edge = [p for p in extra if _on_segment(p, a, b)]
        on_edge.sort(key=lambda p: (p - a).length())
        ordered.extend(on_edge)

    if len(ordered) != len(points):
        raise InvalidGeometry("Polygon is not convex: some vertices lie inside the hull")

    return tuple(ordered)


def _interiors_overlap(first: "ConvexPolygon", second: "ConvexPolygon") -> bool:
    """Separating axis test on the edge normals of both polygons.

    Touching polygons (shared edge or vertex) do not overlap.
    """
    for polygon in (first, second):
        for a, b in polygon.edges():
            normal = Vec2(-(b.y - a.y), b.x - a.x)
            length = normal.length()
            normal = Vec2(normal.x / length, normal.y / length)
            first_proj = [normal.dot(v) for v in first.vertices]
            second_proj = [normal.dot(v) for v in second.vertices]
            if (
                max(first_proj) <= min(second_proj) + EPSILON
                or max(second_proj) <= min(first_proj) + EPSILON
            ):
                return False
    return True


class ConvexPolygon:
    """A simple convex polygon with at least 3 vertices.

    Example:
        >>> polygon = ConvexPolygon([(0, 0), (4, 0), (4, 4), (0, 4)])
        >>> polygon.move_vertex(2, (5, 5))
        >>> polygon.center
        Vec2(x=2.5, y=2.5)
    """

    def __init__(self, vertices: Iterable[Point]):
        """Create a polygon from a vertex set.

        Raises:
            InvalidGeometry: If the vertices do not form a convex polygon
        """
        self._vertices = _normalize(vertices)

    @classmethod
    def create(cls, vertices: Iterable[Point]) -> "ConvexPolygon":
        """Alias of the constructor, reads better at call sites."""
        return cls(vertices)

    @classmethod
    def rectangle(cls, center: Point, width: float, height: float) -> "ConvexPolygon":
        """Axis aligned rectangle of the given size centered on `center`."""
        cx, cy = float(center[0]), float(center[1])
        hw, hh = width / 2, height / 2
        return cls([(cx - hw, cy - hh), (cx + hw, cy - hh), (cx + hw, cy + hh), (cx - hw, cy + hh)])

    @classmethod
    def _from_normalized(cls, vertices: tuple[Vec2, ...]) -> "ConvexPolygon":
        polygon = cls.__new__(cls)
        polygon._vertices = vertices
        return polygon

    # ------------------------------------------------------------------
    # Info
    # ------------------------------------------------------------------

    @property
    def vertices(self) -> tuple[Vec2, ...]:
        """Vertices in canonical counter-clockwise order."""
        return self._vertices

    def __len__(self) -> int:
        return len(self._vertices)

    def __iter__(self) -> Iterator[Vec2]:
        return iter(self._vertices)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConvexPolygon):
            return NotImplemented
        return self._vertices == other._vertices

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        points = ", ".join(f"({v.x:g}, {v.y:g})" for v in self._vertices)
        return f"ConvexPolygon([{points}])"

    def copy(self) -> "ConvexPolygon":
        return ConvexPolygon._from_normalized(self._vertices)

    def edges(self) -> Iterator[tuple[Vec2, Vec2]]:
        n = len(self._vertices)
        for i in range(n):
            yield self._vertices[i], self._vertices[(i + 1) % n]

    @property
    def area(self) -> float:
        return _signed_area(self._vertices)

    @property
    def hull(self) -> Hull:
        hull = Hull.from_points(self._vertices)
        assert hull is not None
        return hull

    @property
    def center(self) -> Vec2:
        """Center of the bounding hull, the pivot used by textures and paths."""
        return self.hull.center

    def contains_point(self, point: Point) -> bool:
        """Whether the point lies inside or on the boundary."""
        p = Vec2(float(point[0]), float(point[1]))
        return all(cross(a, b, p) >= -EPSILON for a, b in self.edges())

    def _strictly_contains(self, point: Vec2) -> bool:
        return all(_distance_to_line(point, a, b) > EPSILON and cross(a, b, point) > 0 for a, b in self.edges())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def _commit(self, candidate: Iterable[Point], action: str) -> None:
        try:
            normalized = _normalize(candidate)
        except InvalidGeometry as e:
            logger.debug(f"Rejected {action}: {e}")
            raise
        self._vertices = normalized

    def _check_index(self, index: int) -> None:
        if not -len(self._vertices) <= index < len(self._vertices):
            raise IndexError(f"Vertex index {index} out of range for {len(self._vertices)} vertices")

    def add_vertex(self, point: Point) -> None:
        """Add a vertex; the canonical order is re-derived.

        Raises:
            InvalidGeometry: If the new vertex set is not convex
        """
        self._commit(list(self._vertices) + [point], "add_vertex")

    def remove_vertex(self, index: int) -> None:
        """Remove the vertex at `index`.

        Raises:
            IndexError: If the index is out of range
            InvalidGeometry: If fewer than 3 vertices would remain
        """
        self._check_index(index)
        candidate = list(self._vertices)
        del candidate[index]
        self._commit(candidate, "remove_vertex")

    def move_vertex(self, index: int, point: Point) -> None:
        """Move the vertex at `index` to `point`.

        Raises:
            IndexError: If the index is out of range
            InvalidGeometry: If the result is not convex
        """
        self._check_index(index)
        candidate: list[Point] = list(self._vertices)
        candidate[index] = point
        self._commit(candidate, "move_vertex")

    def translate(self, delta: Point) -> None:
        """Move every vertex by `delta`.

        Raises:
            InvalidGeometry: If rounding at the new position collapses the
                polygon; it is left where it was
        """
        d = Vec2(float(delta[0]), float(delta[1]))
        self._commit([v + d for v in self._vertices], "translate")

    def translated(self, delta: Point) -> "ConvexPolygon":
        polygon = self.copy()
        polygon.translate(delta)
        return polygon

    # ------------------------------------------------------------------
    # Split / merge
    # ------------------------------------------------------------------

    def split(self, a: Point, b: Point) -> tuple["ConvexPolygon", "ConvexPolygon"]:
        """Cut the polygon along the line through `a` and `b`.

        Returns:
            (left, right) polygons relative to the direction a -> b

        Raises:
            InvalidGeometry: If the line does not cross the polygon interior.
                The polygon is not modified in any case.
        """
        start = Vec2(float(a[0]), float(a[1]))
        end = Vec2(float(b[0]), float(b[1]))
        if start.around_equal(end):
            raise InvalidGeometry("Split line needs two distinct points")

        length = (end - start).length()

        def side(p: Vec2) -> float:
            return cross(start, end, p) / length

        left: list[Vec2] = []
        right: list[Vec2] = []
        for current, following in self.edges():
            sc, sf = side(current), side(following)
            if sc >= -EPSILON:
                left.append(current)
            if sc <= EPSILON:
                right.append(current)
            if (sc > EPSILON and sf < -EPSILON) or (sc < -EPSILON and sf > EPSILON):
                t = sc / (sc - sf)
                crossing = current + (following - current) * t
                left.append(crossing)
                right.append(crossing)

        try:
            pieces = ConvexPolygon(left), ConvexPolygon(right)
        except InvalidGeometry:
            raise InvalidGeometry("Split line does not cross the polygon")
        return pieces

    def shatter(self, point: Point) -> list["ConvexPolygon"]:
        """Fan the polygon into triangles around an interior point.

        Raises:
            InvalidGeometry: If the point is not strictly inside the polygon
        """
        p = Vec2(float(point[0]), float(point[1]))
        if not self._strictly_contains(p):
            raise InvalidGeometry(f"Shatter point {tuple(p)} is not inside the polygon")
        return [ConvexPolygon([p, a, b]) for a, b in self.edges()]

    def subtract(self, other: "ConvexPolygon") -> list["ConvexPolygon"]:
        """Remove the area covered by `other`.

        The polygon is split along each edge line of `other`; pieces outside
        that edge are kept and the rest is carried on to the next edge. What
        remains at the end lies inside `other` and is dropped.

        Returns:
            Convex pieces covering this polygon minus `other`, empty when
            `other` covers it entirely. The polygon itself is not modified.

        Raises:
            InvalidGeometry: If the interiors do not overlap
        """
        if not _interiors_overlap(self, other):
            raise InvalidGeometry("Subtracted polygon does not overlap this one")

        pieces: list[ConvexPolygon] = []
        remaining = self.copy()
        for a, b in other.edges():
            length = (b - a).length()
            sides = [cross(a, b, v) / length for v in remaining.vertices]
            if min(sides) >= -EPSILON:
                continue
            if max(sides) <= EPSILON:
                pieces.append(remaining)
                return pieces
            inside, outside = remaining.split(a, b)
            pieces.append(outside)
            remaining = inside
        return pieces

    @staticmethod
    def merge(polygons: Sequence["ConvexPolygon"]) -> "ConvexPolygon":
        """Merge polygons whose union is exactly a convex polygon.

        The inputs must not overlap and must fill their common convex hull.

        Raises:
            InvalidGeometry: If fewer than 2 polygons are given, if they
                overlap, or if their union is not convex
        """
        if len(polygons) < 2:
            raise InvalidGeometry("Merging requires at least 2 polygons")

        for i, first in enumerate(polygons):
            for second in polygons[i + 1:]:
                if _interiors_overlap(first, second):
                    raise InvalidGeometry("Cannot merge overlapping polygons")

        points = [v for polygon in polygons for v in polygon.vertices]
        hull = _strict_hull(points)
        total = sum(polygon.area for polygon in polygons)
        hull_area = _signed_area(hull) if len(hull) >= 3 else 0.0
        if abs(hull_area - total) > EPSILON * max(1.0, total):
            raise InvalidGeometry("The union of the polygons is not convex")

        return ConvexPolygon(hull)
