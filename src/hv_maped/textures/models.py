"""
Texture settings of a brush.
"""

from dataclasses import dataclass, replace
from typing import Optional

from ..geometry import normalize_angle
from .animation import Animation

I8_MIN, I8_MAX = -128, 127


@dataclass(frozen=True)
class TextureSettings:
    """How a texture is applied to a brush.

    In fill mode the texture tiles the polygon area. In sprite mode a single
    quad is drawn at the brush center plus the offset, independent of the
    polygon shape, and parallax and scroll are always zero.

    Attributes:
        texture: Texture name
        offset_x: Horizontal offset (pixels in fill mode, units in sprite mode)
        offset_y: Vertical offset
        scale_x: Horizontal scale, non-zero
        scale_y: Vertical scale, non-zero
        angle: Rotation in degrees, normalized to [0, 360)
        height: Draw order among overlapping brushes, i8 range
        sprite: Sprite mode instead of fill mode
        parallax_x: Horizontal parallax factor (fill mode only)
        parallax_y: Vertical parallax factor (fill mode only)
        scroll_x: Horizontal scroll speed (fill mode only)
        scroll_y: Vertical scroll speed (fill mode only)
        animation: Per-brush override of the texture's default animation
    """

    texture: str
    offset_x: float = 0.0
    offset_y: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    angle: float = 0.0
    height: int = 0
    sprite: bool = False
    parallax_x: float = 0.0
    parallax_y: float = 0.0
    scroll_x: float = 0.0
    scroll_y: float = 0.0
    animation: Optional[Animation] = None

    def __post_init__(self) -> None:
        if not self.texture:
            raise ValueError("Texture name cannot be empty")
        if self.scale_x == 0 or self.scale_y == 0:
            raise ValueError(f"Texture scale cannot be zero, got ({self.scale_x}, {self.scale_y})")
        if not I8_MIN <= self.height <= I8_MAX:
            raise ValueError(f"Texture height {self.height} out of range [{I8_MIN}, {I8_MAX}]")

        object.__setattr__(self, "angle", normalize_angle(self.angle))
        if self.sprite:
            for name in ("parallax_x", "parallax_y", "scroll_x", "scroll_y"):
                object.__setattr__(self, name, 0.0)

    def with_animation(self, animation: Optional[Animation]) -> "TextureSettings":
        """Copy with the animation override set (or cleared with None)."""
        return replace(self, animation=animation)

    def with_sprite(self, sprite: bool) -> "TextureSettings":
        return replace(self, sprite=sprite)

    def with_texture(self, texture: str) -> "TextureSettings":
        return replace(self, texture=texture)
