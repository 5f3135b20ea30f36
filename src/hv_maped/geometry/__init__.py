"""
Geometry package.

Value types for 2D points and hulls, and the convex polygon engine used as
the shape of every brush.
"""

from .vector import EPSILON, Hull, Vec2, cross, normalize_angle
from .polygon import ConvexPolygon

__all__ = [
    "EPSILON",
    "Hull",
    "Vec2",
    "cross",
    "normalize_angle",
    "ConvexPolygon",
]
