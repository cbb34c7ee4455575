"""Binary codec for ``settings.bin``.

Layout (all integers big-endian)::

    marker        len(marker) bytes, empty for Mindustry
    entry count   u32
    record * N    name (u16 length + UTF-8), tag (u8), value
    tail          anything after the last record, kept verbatim

Value layouts per tag:

    BOOL    u8, 0 or 1
    INT     i32
    LONG    i64
    FLOAT   IEEE-754 single
    STRING  u16 length + UTF-8
    BINARY  u32 length + raw bytes

Decoding followed by encoding reproduces the input byte-for-byte.
"""

from __future__ import annotations

import logging
import math
import struct
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Set

from .errors import (
    DuplicateName,
    EncodeError,
    InvalidValue,
    MalformedHeader,
    TruncatedRecord,
    UnknownTypeTag,
)
from .values import (
    MAX_TEXT_BYTES,
    Value,
    ValueType,
    decode_text,
    encode_text,
    matches_type,
)

logger = logging.getLogger(__name__)

DEFAULT_MARKER = b""

_U8 = struct.Struct(">B")
_U16 = struct.Struct(">H")
_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")
_F32 = struct.Struct(">f")


@dataclass(frozen=True)
class Entry:
    """One named, typed record.

    ``offset`` is where the record (its name length) starts in the decoded
    buffer and ``value_offset`` where the payload starts, after any length
    prefix. Both are diagnostics and take no part in comparisons. Entries
    are immutable; the store swaps in a new one when a value changes.
    """

    name: str
    value_type: ValueType
    value: Value
    offset: int = field(default=0, compare=False)
    value_offset: int = field(default=0, compare=False)


@dataclass
class SettingsFile:
    entries: List[Entry]
    tail: bytes = b""
    marker: bytes = DEFAULT_MARKER


class _Reader:
    """Cursor over the input buffer; every read is bounds checked."""

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes):
        self._data = data
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    def take(self, size: int, what: str) -> bytes:
        if self._pos + size > len(self._data):
            raise TruncatedRecord(
                f"{what} needs {size} bytes but only {len(self._data) - self._pos} remain",
                self._pos,
            )
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def unpack(self, st: struct.Struct, what: str):
        return st.unpack(self.take(st.size, what))[0]

    def text(self, what: str) -> str:
        size = self.unpack(_U16, f"{what} length")
        start = self._pos
        raw = self.take(size, what)
        try:
            return decode_text(raw)
        except UnicodeDecodeError as exc:
            raise InvalidValue(f"{what} is not valid UTF-8: {exc.reason}", start) from None

    def rest(self) -> bytes:
        chunk = self._data[self._pos :]
        self._pos = len(self._data)
        return chunk


def _read_bool(reader: _Reader, what: str) -> bool:
    start = reader.position
    byte = reader.unpack(_U8, what)
    if byte not in (0, 1):
        raise InvalidValue(f"{what} has boolean byte 0x{byte:02X}, expected 0 or 1", start)
    return byte == 1


class RawNaN(float):
    """A NaN read from the file, keeping its exact bit pattern.

    Converting a single precision NaN to a Python float and back can change
    its payload, so the original four bytes are written back instead.
    """

    def __new__(cls, raw: bytes) -> "RawNaN":
        self = super().__new__(cls, _F32.unpack(raw)[0])
        self.raw = bytes(raw)
        return self


def _read_f32(reader: _Reader, what: str) -> float:
    chunk = reader.take(_F32.size, what)
    value = _F32.unpack(chunk)[0]
    if math.isnan(value):
        return RawNaN(chunk)
    return value


def _read_binary(reader: _Reader, what: str) -> bytes:
    size = reader.unpack(_U32, f"{what} length")
    return reader.take(size, what)


_READERS: Dict[ValueType, Callable[[_Reader, str], Value]] = {
    ValueType.BOOL: _read_bool,
    ValueType.INT: lambda r, what: r.unpack(_I32, what),
    ValueType.LONG: lambda r, what: r.unpack(_I64, what),
    ValueType.FLOAT: _read_f32,
    ValueType.STRING: lambda r, what: r.text(what),
    ValueType.BINARY: _read_binary,
}

# Size of the length prefix in front of variable width payloads.
_PREFIX_SIZE = {ValueType.STRING: _U16.size, ValueType.BINARY: _U32.size}


def decode(data: bytes, marker: bytes = DEFAULT_MARKER) -> SettingsFile:
    """Parse ``data`` into an ordered :class:`SettingsFile`.

    Raises a :class:`~mindustry_settings.errors.DecodeError` subclass on the
    first structural problem; nothing is returned for a partly valid file.
    """
    data = bytes(data)
    header_size = len(marker) + _U32.size
    if len(data) < header_size:
        raise MalformedHeader(f"file is {len(data)} bytes, header needs {header_size}", 0)
    if data[: len(marker)] != marker:
        raise MalformedHeader(f"header marker {data[:len(marker)]!r} does not match {marker!r}", 0)

    reader = _Reader(data)
    reader.take(len(marker), "header marker")
    count = reader.unpack(_U32, "entry count")
    logger.debug("decoding %d entries from %d bytes", count, len(data))

    entries: List[Entry] = []
    seen: Set[str] = set()
    for index in range(count):
        offset = reader.position
        name = reader.text(f"name of entry #{index}")
        if name in seen:
            raise DuplicateName(name, offset)
        tag_offset = reader.position
        tag = reader.unpack(_U8, f"type tag of {name!r}")
        try:
            value_type = ValueType(tag)
        except ValueError:
            raise UnknownTypeTag(tag, name, tag_offset) from None
        value_offset = reader.position + _PREFIX_SIZE.get(value_type, 0)
        value = _READERS[value_type](reader, f"value of {name!r}")
        seen.add(name)
        entries.append(Entry(name, value_type, value, offset=offset, value_offset=value_offset))

    tail = reader.rest()
    if tail:
        logger.debug("keeping %d trailing bytes after the last entry", len(tail))
    return SettingsFile(entries=entries, tail=tail, marker=bytes(marker))


def _text_bytes(text: str, what: str) -> bytes:
    try:
        raw = encode_text(text)
    except UnicodeEncodeError as exc:
        raise EncodeError(f"{what} cannot be encoded: {exc.reason}") from None
    if len(raw) > MAX_TEXT_BYTES:
        raise EncodeError(f"{what} is {len(raw)} bytes, at most {MAX_TEXT_BYTES} allowed")
    return _U16.pack(len(raw)) + raw


def _pack(st: struct.Struct, value, what: str) -> bytes:
    try:
        return st.pack(value)
    except (struct.error, OverflowError) as exc:
        raise EncodeError(f"{what}: {exc}") from None


def _encode_value(entry: Entry, value_type: ValueType) -> bytes:
    what = f"value of {entry.name!r}"
    if value_type is ValueType.BOOL:
        return _U8.pack(1 if entry.value else 0)
    if value_type is ValueType.INT:
        return _pack(_I32, entry.value, what)
    if value_type is ValueType.LONG:
        return _pack(_I64, entry.value, what)
    if value_type is ValueType.FLOAT:
        if isinstance(entry.value, RawNaN):
            return entry.value.raw
        return _pack(_F32, entry.value, what)
    if value_type is ValueType.STRING:
        return _text_bytes(entry.value, what)
    if value_type is ValueType.BINARY:
        blob = bytes(entry.value)
        return _pack(_U32, len(blob), f"{what} length") + blob
    raise AssertionError(f"unhandled value type {value_type!r}")


def encode(entries: Iterable[Entry], tail: bytes = b"", marker: bytes = DEFAULT_MARKER) -> bytes:
    """Serialize ``entries`` in order, followed by ``tail``.

    The whole buffer is assembled before returning, so an
    :class:`~mindustry_settings.errors.EncodeError` never leaves a partial
    result behind.
    """
    entries = list(entries)
    out = bytearray(marker)
    out += _pack(_U32, len(entries), "entry count")
    seen: Set[str] = set()
    for entry in entries:
        try:
            value_type = ValueType(entry.value_type)
        except ValueError:
            raise EncodeError(f"unknown type tag {entry.value_type!r} for {entry.name!r}") from None
        if entry.name in seen:
            raise EncodeError(f"duplicate entry name {entry.name!r}")
        if not matches_type(value_type, entry.value):
            raise EncodeError(
                f"value {entry.value!r} of {entry.name!r} does not fit type {value_type.label}"
            )
        seen.add(entry.name)
        out += _text_bytes(entry.name, f"name {entry.name!r}")
        out += _U8.pack(value_type)
        out += _encode_value(entry, value_type)
    out += tail
    return bytes(out)
