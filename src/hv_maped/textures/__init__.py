"""
Textures package.

Animation descriptors, per-brush texture settings, the texture mapping
function and the directory backed texture registry.
"""

from .animation import Animation, AnimationKind, AtlasAnimation, Frame, ListAnimation
from .models import TextureSettings
from .mapping import TextureMapping, draw_size, texture_mapping
from .service import TextureInfo, TextureRegistry

__all__ = [
    "Animation",
    "AnimationKind",
    "AtlasAnimation",
    "Frame",
    "ListAnimation",
    "TextureSettings",
    "TextureMapping",
    "draw_size",
    "texture_mapping",
    "TextureInfo",
    "TextureRegistry",
]
