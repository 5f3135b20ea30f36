"""
Encoders and decoders of the individual records.

Layouts (all little-endian, strings are `u32 length + UTF-8`):

    value       type dependent, see `TYPE_INFO`; 128-bit integers are 16 raw bytes
    properties  u32 count, then (str name, u8 type tag, value) per property
    schema      u32 count, then (str name, u8 type tag, default value) per definition
    animation   u8 kind
                  1 list:  u32 frame count, then (str texture, f64 duration) per frame
                  2 atlas: str texture, u32 rows, u32 cols, f64 frame_time,
                           u32 count (0 for uniform timing), f64 duration per cell
    path        u8 loop mode, u32 count, then per waypoint
                f64 x, y, max_speed, min_speed, accel %, decel %, standby_time
    texture     str name, f64 offset_x, offset_y, scale_x, scale_y, angle,
                i8 height, u8 sprite, [f64 parallax_x, parallax_y, scroll_x,
                scroll_y if not sprite], u8 has_animation, [animation]
    brush       u64 id, u32 vertex count, f64 x, y per vertex, u8 collision,
                u8 has_texture, [texture], u8 has_path, [path], properties
    thing       u64 id, u16 thing id, f64 x, y, f64 angle, i8 draw_height,
                u8 has_path, [path], properties
    prop        f64 pivot x, y, u32 brush count, framed brushes,
                u32 thing count, framed things

Decoders raise `MalformedRecord` for any structural or semantic problem,
including values that fail model validation.
"""

from typing import Dict, Tuple

from ..geometry import ConvexPolygon, Vec2
from ..maps.models import Brush
from ..maps.props import Prop
from ..motion import LoopMode, MotionPath, Movement, Waypoint
from ..properties import TYPE_INFO, PropertyDefinition, PropertySchema, PropertyType, Value
from ..textures import Animation, AnimationKind, AtlasAnimation, Frame, ListAnimation, TextureSettings
from ..things import ThingInstance
from .binary import BinaryReader, BinaryWriter

# =============================================================================
# VALUES AND SCHEMAS
# =============================================================================


def write_value(w: BinaryWriter, value: Value) -> None:
    info = TYPE_INFO[value.type]
    if value.type is PropertyType.STRING:
        w.string(value.data)
    elif info.struct_format is None:
        w.raw(value.data.to_bytes(info.size, "little", signed=info.minimum < 0))  # type: ignore[operator]
    else:
        w.pack(info.struct_format, value.data)


def read_type_tag(r: BinaryReader) -> PropertyType:
    start = r.offset
    tag = r.u8()
    try:
        return PropertyType(tag)
    except ValueError:
        raise r.error(f"unknown property type tag {tag}", start)


def read_value(r: BinaryReader, prop_type: PropertyType) -> Value:
    start = r.offset
    info = TYPE_INFO[prop_type]
    if prop_type is PropertyType.STRING:
        data = r.string()
    elif info.struct_format is None:
        data = int.from_bytes(r.take(info.size), "little", signed=info.minimum < 0)  # type: ignore[operator]
    else:
        data = r.unpack(info.struct_format)
    try:
        return Value(prop_type, data)
    except ValueError as e:
        raise r.error(str(e), start)


def write_properties(w: BinaryWriter, properties: Dict[str, Value]) -> None:
    w.u32(len(properties))
    for name, value in properties.items():
        w.string(name)
        w.u8(int(value.type))
        write_value(w, value)


def read_properties(r: BinaryReader) -> Dict[str, Value]:
    properties: Dict[str, Value] = {}
    for _ in range(r.u32()):
        start = r.offset
        name = r.string()
        if name in properties:
            raise r.error(f"property '{name}' stored twice", start)
        properties[name] = read_value(r, read_type_tag(r))
    return properties


def write_schema(w: BinaryWriter, schema: PropertySchema) -> None:
    w.u32(len(schema))
    for definition in schema:
        w.string(definition.name)
        w.u8(int(definition.type))
        write_value(w, definition.default)


def read_schema(r: BinaryReader) -> PropertySchema:
    schema = PropertySchema()
    for _ in range(r.u32()):
        start = r.offset
        name = r.string()
        prop_type = read_type_tag(r)
        default = read_value(r, prop_type)
        if name in schema:
            raise r.error(f"property '{name}' defined twice", start)
        try:
            schema.add(PropertyDefinition(name, prop_type, default))
        except ValueError as e:
            raise r.error(str(e), start)
    return schema


# =============================================================================
# ANIMATIONS
# =============================================================================


def write_animation(w: BinaryWriter, animation: Animation) -> None:
    w.u8(int(animation.kind))
    if isinstance(animation, ListAnimation):
        w.u32(len(animation.frames))
        for frame in animation.frames:
            w.string(frame.texture)
            w.f64(frame.duration)
    else:
        w.string(animation.texture)
        w.u32(animation.rows)
        w.u32(animation.cols)
        w.f64(animation.frame_time)
        w.u32(len(animation.frame_times))
        for duration in animation.frame_times:
            w.f64(duration)


def read_animation(r: BinaryReader) -> Animation:
    start = r.offset
    kind = r.u8()
    try:
        if kind == AnimationKind.LIST:
            frames = []
            for _ in range(r.u32()):
                texture = r.string()
                frames.append(Frame(texture, r.f64()))
            return ListAnimation(tuple(frames))
        if kind == AnimationKind.ATLAS:
            texture = r.string()
            rows = r.u32()
            cols = r.u32()
            frame_time = r.f64()
            frame_times = tuple(r.f64() for _ in range(r.u32()))
            return AtlasAnimation(texture, rows, cols, frame_time, frame_times)
    except ValueError as e:
        raise r.error(f"invalid animation: {e}", start)
    raise r.error(f"unknown animation kind {kind}", start)


# =============================================================================
# PATHS AND TEXTURES
# =============================================================================


def write_path(w: BinaryWriter, path: MotionPath) -> None:
    w.u8(int(path.loop_mode))
    w.u32(len(path))
    for waypoint in path:
        movement = waypoint.movement
        for number in (
            waypoint.position.x,
            waypoint.position.y,
            movement.max_speed,
            movement.min_speed,
            movement.accel_travel_percentage,
            movement.decel_travel_percentage,
            movement.standby_time,
        ):
            w.f64(number)


def read_path(r: BinaryReader) -> MotionPath:
    start = r.offset
    loop_byte = r.u8()
    waypoints = []
    try:
        loop_mode = LoopMode(loop_byte)
        for _ in range(r.u32()):
            x, y = r.f64(), r.f64()
            movement = Movement(r.f64(), r.f64(), r.f64(), r.f64(), r.f64())
            waypoints.append(Waypoint(Vec2(x, y), movement))
        return MotionPath(waypoints, loop_mode)
    except ValueError as e:
        raise r.error(f"invalid path: {e}", start)


def write_texture(w: BinaryWriter, settings: TextureSettings) -> None:
    w.string(settings.texture)
    for number in (settings.offset_x, settings.offset_y, settings.scale_x, settings.scale_y, settings.angle):
        w.f64(number)
    w.i8(settings.height)
    w.flag(settings.sprite)
    if not settings.sprite:
        for number in (settings.parallax_x, settings.parallax_y, settings.scroll_x, settings.scroll_y):
            w.f64(number)
    w.flag(settings.animation is not None)
    if settings.animation is not None:
        write_animation(w, settings.animation)


def read_texture(r: BinaryReader) -> TextureSettings:
    start = r.offset
    name = r.string()
    offset_x, offset_y, scale_x, scale_y, angle = (r.f64() for _ in range(5))
    height = r.i8()
    sprite = r.flag()
    parallax_x = parallax_y = scroll_x = scroll_y = 0.0
    if not sprite:
        parallax_x, parallax_y, scroll_x, scroll_y = (r.f64() for _ in range(4))
    animation = read_animation(r) if r.flag() else None
    try:
        return TextureSettings(
            texture=name,
            offset_x=offset_x,
            offset_y=offset_y,
            scale_x=scale_x,
            scale_y=scale_y,
            angle=angle,
            height=height,
            sprite=sprite,
            parallax_x=parallax_x,
            parallax_y=parallax_y,
            scroll_x=scroll_x,
            scroll_y=scroll_y,
            animation=animation,
        )
    except ValueError as e:
        raise r.error(f"invalid texture settings: {e}", start)


# =============================================================================
# ENTITIES
# =============================================================================


def write_brush(w: BinaryWriter, brush: Brush) -> None:
    w.u64(brush.id)
    w.u32(len(brush.polygon))
    for vertex in brush.polygon.vertices:
        w.f64(vertex.x)
        w.f64(vertex.y)
    w.flag(brush.collision)
    w.flag(brush.texture is not None)
    if brush.texture is not None:
        write_texture(w, brush.texture)
    w.flag(brush.path is not None)
    if brush.path is not None:
        write_path(w, brush.path)
    write_properties(w, brush.properties)


def read_brush(r: BinaryReader) -> Brush:
    brush_id = r.u64()
    start = r.offset
    vertices = [(r.f64(), r.f64()) for _ in range(r.u32())]
    try:
        polygon = ConvexPolygon(vertices)
    except ValueError as e:
        raise r.error(f"brush {brush_id}: {e}", start)
    collision = r.flag()
    texture = read_texture(r) if r.flag() else None
    path = read_path(r) if r.flag() else None
    properties = read_properties(r)
    return Brush(brush_id, polygon, texture, path, collision, properties)


def write_thing(w: BinaryWriter, thing: ThingInstance) -> None:
    w.u64(thing.id)
    w.u16(thing.thing_id)
    w.f64(thing.position.x)
    w.f64(thing.position.y)
    w.f64(thing.angle)
    w.i8(thing.draw_height)
    w.flag(thing.path is not None)
    if thing.path is not None:
        write_path(w, thing.path)
    write_properties(w, thing.properties)


def read_thing(r: BinaryReader) -> ThingInstance:
    start = r.offset
    instance_id = r.u64()
    thing_id = r.u16()
    position = Vec2(r.f64(), r.f64())
    angle = r.f64()
    draw_height = r.i8()
    path = read_path(r) if r.flag() else None
    properties = read_properties(r)
    try:
        return ThingInstance(instance_id, thing_id, position, angle, draw_height, path, properties)
    except ValueError as e:
        raise r.error(f"thing {instance_id}: {e}", start)


def write_prop(w: BinaryWriter, prop: Prop) -> None:
    w.f64(prop.pivot.x)
    w.f64(prop.pivot.y)
    w.u32(len(prop.brushes))
    for brush in prop.brushes:
        with w.record():
            write_brush(w, brush)
    w.u32(len(prop.things))
    for thing in prop.things:
        with w.record():
            write_thing(w, thing)


def read_prop(r: BinaryReader) -> Prop:
    start = r.offset
    pivot = Vec2(r.f64(), r.f64())
    brushes = [read_brush(r.record()) for _ in range(r.u32())]
    things = [read_thing(r.record()) for _ in range(r.u32())]
    try:
        return Prop(brushes, things, pivot)
    except ValueError as e:
        raise r.error(f"invalid prop: {e}", start)


def write_named_animation(w: BinaryWriter, texture: str, animation: Animation) -> None:
    w.string(texture)
    write_animation(w, animation)


def read_named_animation(r: BinaryReader) -> Tuple[str, Animation]:
    texture = r.string()
    return texture, read_animation(r)
