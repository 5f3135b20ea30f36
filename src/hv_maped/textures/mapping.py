"""
Texture mapping computation.

Pure functions: the mapping of a brush is derived from its current polygon
and texture settings every time it is asked for, so it can never go stale
after a vertex edit.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..geometry import ConvexPolygon, Hull, Vec2
from .animation import Animation, AtlasAnimation
from .models import TextureSettings


@dataclass(frozen=True)
class TextureMapping:
    """Result of mapping a texture onto a brush.

    Attributes:
        sprite: Whether `vertices` is a sprite quad rather than the polygon
        vertices: World positions of the drawn vertices
        uvs: Texture coordinates matching `vertices` one to one
    """

    sprite: bool
    vertices: Tuple[Vec2, ...]
    uvs: Tuple[Vec2, ...]

    @property
    def hull(self) -> Hull:
        hull = Hull.from_points(self.vertices)
        assert hull is not None
        return hull


def draw_size(
    settings: TextureSettings,
    texture_size: Tuple[int, int],
    animation: Optional[Animation] = None,
) -> Tuple[float, float]:
    """Size of the drawn image: one atlas cell for atlas-animated sprites."""
    if settings.sprite and isinstance(animation, AtlasAnimation):
        return animation.cell_size(texture_size)
    return float(texture_size[0]), float(texture_size[1])


def texture_mapping(
    polygon: ConvexPolygon,
    settings: TextureSettings,
    texture_size: Tuple[int, int],
    animation: Optional[Animation] = None,
    elapsed: float = 0.0,
) -> TextureMapping:
    """Map a texture onto a polygon.

    Args:
        polygon: Brush shape
        settings: Brush texture settings
        texture_size: Pixel size of the texture
        animation: Effective animation (override or texture default), if any
        elapsed: Seconds since start, used by scrolling

    Returns:
        Per-vertex UVs in fill mode, the sprite quad in sprite mode

    Raises:
        ValueError: If the texture size is not positive
    """
    width, height = draw_size(settings, texture_size, animation)
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid texture size {texture_size}")

    if settings.sprite:
        return _sprite_mapping(polygon, settings, width, height)

    offset_x = settings.offset_x + settings.scroll_x * elapsed
    offset_y = settings.offset_y + settings.scroll_y * elapsed
    uvs = []
    for vertex in polygon.vertices:
        local = Vec2(vertex.x / settings.scale_x, vertex.y / settings.scale_y).rotated(-settings.angle)
        uvs.append(Vec2((local.x + offset_x) / width, (local.y + offset_y) / height))

    return TextureMapping(sprite=False, vertices=polygon.vertices, uvs=tuple(uvs))


def _sprite_mapping(
    polygon: ConvexPolygon, settings: TextureSettings, width: float, height: float
) -> TextureMapping:
    half_w = width * abs(settings.scale_x) / 2
    half_h = height * abs(settings.scale_y) / 2
    corners = Hull(top=half_h, bottom=-half_h, left=-half_w, right=half_w).vertices()

    origin = polygon.center + Vec2(settings.offset_x, settings.offset_y)
    vertices = tuple(origin + corner.rotated(-settings.angle) for corner in corners)

    # Bottom left, bottom right, top right, top left; flipped by negative scales
    u0, u1 = (1.0, 0.0) if settings.scale_x < 0 else (0.0, 1.0)
    v0, v1 = (0.0, 1.0) if settings.scale_y < 0 else (1.0, 0.0)
    uvs = (Vec2(u0, v0), Vec2(u1, v0), Vec2(u1, v1), Vec2(u0, v1))

    return TextureMapping(sprite=True, vertices=vertices, uvs=uvs)
