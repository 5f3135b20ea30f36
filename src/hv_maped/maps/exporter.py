"""
Export of a document's entities for external tooling.

The export is a flat JSON description of every brush and thing, with world
space path positions and resolved animations, written with orjson.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, TYPE_CHECKING

import orjson

from ..motion import MotionPath
from ..properties import PropertyType, Value
from ..geometry import Vec2
from ..textures import Animation, AtlasAnimation, ListAnimation

if TYPE_CHECKING:
    from ..things import ThingsCatalog
    from .models import Document

logger = logging.getLogger(__name__)

EXPORT_FORMAT_VERSION = 1

# JSON numbers cannot safely carry these, they are exported as strings
_WIDE_INTEGERS = (PropertyType.U128, PropertyType.I128)


def _value_to_json(value: Value) -> Dict[str, Any]:
    data = str(value.data) if value.type in _WIDE_INTEGERS else value.data
    return {"type": value.type.label, "value": data}


def _point(p: Vec2) -> List[float]:
    return [p.x, p.y]


def _animation_to_json(animation: Optional[Animation]) -> Optional[Dict[str, Any]]:
    if animation is None:
        return None
    if isinstance(animation, ListAnimation):
        return {
            "kind": "list",
            "frames": [{"texture": f.texture, "duration": f.duration} for f in animation.frames],
        }
    assert isinstance(animation, AtlasAnimation)
    return {
        "kind": "atlas",
        "texture": animation.texture,
        "rows": animation.rows,
        "cols": animation.cols,
        "frame_time": animation.frame_time,
        "frame_times": list(animation.frame_times),
    }


def _path_to_json(path: Optional[MotionPath], center: Vec2) -> Optional[Dict[str, Any]]:
    if path is None:
        return None
    return {
        "loop_mode": path.loop_mode.name.lower(),
        "waypoints": [
            {
                "position": _point(position),
                "max_speed": w.movement.max_speed,
                "min_speed": w.movement.min_speed,
                "accel_travel_percentage": w.movement.accel_travel_percentage,
                "decel_travel_percentage": w.movement.decel_travel_percentage,
                "standby_time": w.movement.standby_time,
            }
            for w, position in zip(path.waypoints, path.world_positions(center))
        ],
    }


def export_entities(
    document: "Document", catalog: Optional["ThingsCatalog"] = None
) -> Dict[str, Any]:
    """Describe every brush and thing of a document as JSON-ready data.

    Args:
        document: Document to export
        catalog: Used to add thing names; unknown IDs export as "unknown"

    Returns:
        Dict with "version", "brushes" and "things" lists, ordered by identity
    """
    brushes = []
    for brush_id in sorted(document.brushes):
        brush = document.brushes[brush_id]
        texture = None
        if brush.texture is not None:
            settings = brush.texture
            texture = {
                "name": settings.texture,
                "offset": [settings.offset_x, settings.offset_y],
                "scale": [settings.scale_x, settings.scale_y],
                "angle": settings.angle,
                "height": settings.height,
                "sprite": settings.sprite,
                "parallax": [settings.parallax_x, settings.parallax_y],
                "scroll": [settings.scroll_x, settings.scroll_y],
                "animation": _animation_to_json(document.animation_for(brush)),
            }
        brushes.append(
            {
                "id": brush.id,
                "vertices": [_point(v) for v in brush.polygon.vertices],
                "collision": brush.collision,
                "texture": texture,
                "path": _path_to_json(brush.path, brush.center),
                "properties": {n: _value_to_json(v) for n, v in brush.properties.items()},
            }
        )

    things = []
    for instance_id in sorted(document.things):
        thing = document.things[instance_id]
        entry: Dict[str, Any] = {
            "id": thing.id,
            "thing_id": thing.thing_id,
            "position": _point(thing.position),
            "angle": thing.angle,
            "draw_height": thing.draw_height,
            "path": _path_to_json(thing.path, thing.position),
            "properties": {n: _value_to_json(v) for n, v in thing.properties.items()},
        }
        if catalog is not None:
            entry["name"] = catalog.name_of(thing.thing_id)
        things.append(entry)

    return {"version": EXPORT_FORMAT_VERSION, "brushes": brushes, "things": things}


def write_export(
    document: "Document", path: Path, catalog: Optional["ThingsCatalog"] = None
) -> Path:
    """Write `export_entities` output to a JSON file.

    Returns:
        The written path
    """
    data = export_entities(document, catalog)
    path = Path(path)
    path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    logger.info(
        f"Exported {len(data['brushes'])} brushes and {len(data['things'])} things to {path}"
    )
    return path
