"""
Motion paths package.
"""

from .models import LoopMode, MotionPath, Movement, Waypoint

__all__ = [
    "LoopMode",
    "MotionPath",
    "Movement",
    "Waypoint",
]
