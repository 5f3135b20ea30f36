"""
Low level little-endian binary reader and writer.

Both sides know about length-prefixed records (`[u64 length][payload]`): the
writer back-patches the length once the payload is written, the reader hands
out a bounded sub-reader so a decoder can stop early and the remaining bytes
of the record are skipped.

Read errors are raised as `MalformedRecord` carrying the file kind, the
section being decoded and the absolute byte offset.
"""

import struct
from contextlib import contextmanager
from typing import Iterator

from ..errors import MalformedRecord

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_F64 = struct.Struct("<d")


class BinaryWriter:
    """Accumulates an encoded stream in memory."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def raw(self, data: bytes) -> None:
        self._buffer += data

    def pack(self, fmt: str, value) -> None:
        self._buffer += struct.pack(fmt, value)

    def u8(self, value: int) -> None:
        self._buffer += _U8.pack(value)

    def i8(self, value: int) -> None:
        self._buffer += _I8.pack(value)

    def u16(self, value: int) -> None:
        self._buffer += _U16.pack(value)

    def u32(self, value: int) -> None:
        self._buffer += _U32.pack(value)

    def u64(self, value: int) -> None:
        self._buffer += _U64.pack(value)

    def f64(self, value: float) -> None:
        self._buffer += _F64.pack(value)

    def flag(self, value: bool) -> None:
        self.u8(1 if value else 0)

    def string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        self.u32(len(encoded))
        self._buffer += encoded

    @contextmanager
    def record(self) -> Iterator["BinaryWriter"]:
        """Write a `[u64 length][payload]` record; the payload is written inside the block."""
        start = len(self._buffer)
        self.u64(0)
        yield self
        _U64.pack_into(self._buffer, start, len(self._buffer) - start - _U64.size)

    @contextmanager
    def section(self, tag: int) -> Iterator["BinaryWriter"]:
        """Write a `[u16 tag][u64 length][payload]` extension section."""
        self.u16(tag)
        with self.record():
            yield self


class BinaryReader:
    """Cursor over an encoded stream.

    Attributes:
        file_kind: Kind of file, reported in errors
        section: Name of the section being decoded, reported in errors
    """

    def __init__(self, data: bytes, file_kind: str, section: str = "header", base_offset: int = 0):
        self._data = memoryview(data)
        self._pos = 0
        self._base = base_offset
        self.file_kind = file_kind
        self.section = section

    # === Position ===

    @property
    def offset(self) -> int:
        """Absolute offset of the cursor in the original stream."""
        return self._base + self._pos

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    @property
    def at_end(self) -> bool:
        return self._pos >= len(self._data)

    def error(self, message: str, offset: "int | None" = None) -> MalformedRecord:
        return MalformedRecord(
            self.file_kind, self.section, self.offset if offset is None else offset, message
        )

    @contextmanager
    def in_section(self, name: str) -> Iterator["BinaryReader"]:
        previous = self.section
        self.section = name
        try:
            yield self
        finally:
            self.section = previous

    # === Primitives ===

    def take(self, size: int) -> bytes:
        if size > self.remaining:
            raise self.error(f"truncated, needed {size} bytes but only {self.remaining} left")
        chunk = self._data[self._pos:self._pos + size].tobytes()
        self._pos += size
        return chunk

    def peek(self, size: int) -> bytes:
        """Return up to `size` bytes without moving the cursor."""
        return self._data[self._pos:self._pos + size].tobytes()

    def _unpack(self, packer: struct.Struct):
        return packer.unpack(self.take(packer.size))[0]

    def unpack(self, fmt: str):
        return struct.unpack(fmt, self.take(struct.calcsize(fmt)))[0]

    def u8(self) -> int:
        return self._unpack(_U8)

    def i8(self) -> int:
        return self._unpack(_I8)

    def u16(self) -> int:
        return self._unpack(_U16)

    def u32(self) -> int:
        return self._unpack(_U32)

    def u64(self) -> int:
        return self._unpack(_U64)

    def f64(self) -> float:
        return self._unpack(_F64)

    def flag(self) -> bool:
        start = self.offset
        value = self.u8()
        if value > 1:
            raise self.error(f"invalid boolean byte {value}", start)
        return value == 1

    def string(self) -> str:
        start = self.offset
        size = self.u32()
        try:
            return self.take(size).decode("utf-8")
        except UnicodeDecodeError as e:
            raise self.error(f"invalid UTF-8 string: {e}", start)

    # === Framing ===

    def record(self) -> "BinaryReader":
        """Consume a `[u64 length][payload]` record and return a reader over the payload."""
        size = self.u64()
        start = self.offset
        payload = self.take(size)
        return BinaryReader(payload, self.file_kind, self.section, start)

    def expect_end(self, what: str) -> None:
        if not self.at_end:
            raise self.error(f"{self.remaining} unexpected bytes after {what}")
