"""
Data models for typed user properties.

A property value is one `Value(type, data)` pair where `type` is a
`PropertyType` tag. Per-type behaviour (python type, range, binary layout,
text parsing) lives in the single `TYPE_INFO` table below, generated once for
all integer widths.
"""

import struct
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, Iterable, Iterator, Optional

from ..errors import DuplicateProperty


class EntityKind(Enum):
    """Kind of entity a property schema applies to."""

    BRUSH = "brush"
    THING = "thing"


class PropertyType(IntEnum):
    """Type tag of a property value. The integer is the on-disk tag."""

    BOOL = 0
    U8 = 1
    U16 = 2
    U32 = 3
    U64 = 4
    U128 = 5
    I8 = 6
    I16 = 7
    I32 = 8
    I64 = 9
    I128 = 10
    F32 = 11
    F64 = 12
    STRING = 13

    @property
    def label(self) -> str:
        """Lowercase name used in text files ("u8", "f64", "string")."""
        return self.name.lower()

    @classmethod
    def from_label(cls, label: str) -> "PropertyType":
        try:
            return cls[label.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown property type '{label}'")


@dataclass(frozen=True)
class TypeInfo:
    """Dispatch entry for one property type.

    Attributes:
        struct_format: `struct` format for fixed width types, None for
            128-bit integers and strings
        size: Encoded size in bytes, 0 for strings
        minimum: Lowest accepted integer, None for non integers
        maximum: Highest accepted integer, None for non integers
        default: Zero value of the type
        parse: Converts text (from .ini files) to python data
    """

    struct_format: Optional[str]
    size: int
    minimum: Optional[int]
    maximum: Optional[int]
    default: Any
    parse: Callable[[str], Any]

    @property
    def is_integer(self) -> bool:
        return self.minimum is not None


def _parse_bool(text: str) -> bool:
    lowered = text.strip().lower()
    if lowered in ("true", "1", "yes", "on"):
        return True
    if lowered in ("false", "0", "no", "off"):
        return False
    raise ValueError(f"Not a boolean: '{text}'")


def _parse_int(text: str) -> int:
    return int(text.strip(), 0)


def _parse_string(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


_INTEGER_TYPES = {
    PropertyType.U8: (8, False, "<B"),
    PropertyType.U16: (16, False, "<H"),
    PropertyType.U32: (32, False, "<I"),
    PropertyType.U64: (64, False, "<Q"),
    PropertyType.U128: (128, False, None),
    PropertyType.I8: (8, True, "<b"),
    PropertyType.I16: (16, True, "<h"),
    PropertyType.I32: (32, True, "<i"),
    PropertyType.I64: (64, True, "<q"),
    PropertyType.I128: (128, True, None),
}


def _build_type_info() -> Dict[PropertyType, TypeInfo]:
    table = {
        PropertyType.BOOL: TypeInfo("<?", 1, None, None, False, _parse_bool),
        PropertyType.F32: TypeInfo("<f", 4, None, None, 0.0, lambda t: float(t.strip())),
        PropertyType.F64: TypeInfo("<d", 8, None, None, 0.0, lambda t: float(t.strip())),
        PropertyType.STRING: TypeInfo(None, 0, None, None, "", _parse_string),
    }
    for prop_type, (bits, signed, fmt) in _INTEGER_TYPES.items():
        if signed:
            low, high = -(1 << (bits - 1)), (1 << (bits - 1)) - 1
        else:
            low, high = 0, (1 << bits) - 1
        table[prop_type] = TypeInfo(fmt, bits // 8, low, high, 0, _parse_int)
    return table


TYPE_INFO: Dict[PropertyType, TypeInfo] = _build_type_info()
"""Per type dispatch table shared by values, parsing and the binary codec."""


def _to_f32(number: float) -> float:
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except (struct.error, OverflowError):
        raise ValueError(f"Value {number} does not fit in f32")


def _coerce(prop_type: PropertyType, data: Any) -> Any:
    """Validate `data` against `prop_type` and return its canonical form."""
    info = TYPE_INFO[prop_type]

    if prop_type is PropertyType.BOOL:
        if not isinstance(data, bool):
            raise ValueError(f"bool property expects True/False, got {data!r}")
        return data

    if info.is_integer:
        if isinstance(data, bool) or not isinstance(data, int):
            raise ValueError(f"{prop_type.label} property expects an int, got {data!r}")
        if not info.minimum <= data <= info.maximum:  # type: ignore[operator]
            raise ValueError(
                f"{data} out of range for {prop_type.label} "
                f"[{info.minimum}, {info.maximum}]"
            )
        return data

    if prop_type in (PropertyType.F32, PropertyType.F64):
        if isinstance(data, bool) or not isinstance(data, (int, float)):
            raise ValueError(f"{prop_type.label} property expects a number, got {data!r}")
        if prop_type is PropertyType.F32:
            return _to_f32(float(data))
        return float(data)

    if not isinstance(data, str):
        raise ValueError(f"string property expects str, got {data!r}")
    return data


@dataclass(frozen=True)
class Value:
    """A typed property value.

    `data` is validated and normalized on construction: integers are range
    checked for their width, f32 data is rounded to single precision.

    Example:
        >>> Value(PropertyType.U8, 200)
        Value(type=<PropertyType.U8: 1>, data=200)
        >>> Value(PropertyType.U8, 300)
        Traceback (most recent call last):
        ValueError: 300 out of range for u8 [0, 255]
    """

    type: PropertyType
    data: Any

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", PropertyType(self.type))
        object.__setattr__(self, "data", _coerce(self.type, self.data))

    @classmethod
    def default(cls, prop_type: PropertyType) -> "Value":
        return cls(prop_type, TYPE_INFO[prop_type].default)

    @classmethod
    def parse(cls, prop_type: PropertyType, text: str) -> "Value":
        """Build a value from its text form.

        Raises:
            ValueError: If the text is not a valid literal for the type
        """
        return cls(prop_type, TYPE_INFO[prop_type].parse(text))

    def __str__(self) -> str:
        return f"{self.type.label}:{self.data}"


@dataclass(frozen=True)
class PropertyDefinition:
    """A (name, type, default) triple.

    Attributes:
        name: Property name, unique within its schema
        type: Value type tag
        default: Value used to fill entities that lack the property
    """

    name: str
    type: PropertyType
    default: Value

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("Property name cannot be empty")
        if self.name != self.name.strip():
            raise ValueError(f"Property name '{self.name}' has surrounding whitespace")
        object.__setattr__(self, "type", PropertyType(self.type))
        if self.default.type is not self.type:
            raise ValueError(
                f"Default of '{self.name}' is {self.default.type.label}, "
                f"expected {self.type.label}"
            )

    @classmethod
    def of(cls, name: str, prop_type: PropertyType, default: Any = None) -> "PropertyDefinition":
        """Shorthand taking raw default data (None means the type's zero value)."""
        value = Value.default(prop_type) if default is None else Value(prop_type, default)
        return cls(name, prop_type, value)


class PropertySchema:
    """Ordered mapping of property name to definition for one entity kind."""

    def __init__(self, definitions: Iterable[PropertyDefinition] = ()):
        self._definitions: Dict[str, PropertyDefinition] = {}
        for definition in definitions:
            self.add(definition)

    def add(self, definition: PropertyDefinition) -> None:
        """Append a definition.

        Raises:
            DuplicateProperty: If the name is already in the schema
        """
        if definition.name in self._definitions:
            raise DuplicateProperty(definition.name, "schema", "schema")
        self._definitions[definition.name] = definition

    def get(self, name: str) -> Optional[PropertyDefinition]:
        return self._definitions.get(name)

    def names(self) -> list[str]:
        return list(self._definitions)

    def defaults(self) -> Dict[str, Value]:
        """Fresh property mapping holding every default value."""
        return {name: d.default for name, d in self._definitions.items()}

    def signature(self) -> Dict[str, PropertyType]:
        """Name to type mapping, the part compared during reconciliation."""
        return {name: d.type for name, d in self._definitions.items()}

    def matches(self, properties: Dict[str, Value]) -> bool:
        """Whether a property mapping has exactly this schema's names and types."""
        if properties.keys() != self._definitions.keys():
            return False
        return all(properties[n].type is d.type for n, d in self._definitions.items())

    def copy(self) -> "PropertySchema":
        return PropertySchema(self._definitions.values())

    def __contains__(self, name: object) -> bool:
        return name in self._definitions

    def __getitem__(self, name: str) -> PropertyDefinition:
        return self._definitions[name]

    def __iter__(self) -> Iterator[PropertyDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertySchema):
            return NotImplemented
        return list(self._definitions.values()) == list(other._definitions.values())

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        inner = ", ".join(f"{d.name}: {d.type.label}" for d in self)
        return f"PropertySchema({inner})"
