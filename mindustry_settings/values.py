"""Value types stored in ``settings.bin``.

Every entry carries a one byte tag. The tag fixes both the on-disk layout
(see :mod:`mindustry_settings.codec`) and which text a user may write into
the entry (see :func:`parse_text`).
"""

from __future__ import annotations

import math
import re
import struct
from enum import IntEnum
from typing import Any, Callable, Dict, Union

Value = Union[bool, int, float, str, bytes]

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1

# Length prefixes: u16 for names and strings, u32 for binary blobs.
MAX_TEXT_BYTES = 0xFFFF
MAX_BINARY_BYTES = 0xFFFFFFFF

# Java "modified UTF-8"; see encode_text.
TEXT_ENCODING = "modified-utf-8"
TEXT_ERRORS = "surrogatepass"

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")


class ValueType(IntEnum):
    BOOL = 0
    INT = 1
    LONG = 2
    FLOAT = 3
    STRING = 4
    BINARY = 5

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    ValueType.BOOL: "boolean",
    ValueType.INT: "integer",
    ValueType.LONG: "long",
    ValueType.FLOAT: "float",
    ValueType.STRING: "string",
    ValueType.BINARY: "binary",
}


def to_float32(value: float) -> float:
    """Round ``value`` to single precision; raises OverflowError if it does not fit."""
    return struct.unpack(">f", struct.pack(">f", value))[0]


def encode_text(text: str) -> bytes:
    """Encode ``text`` the way Java's ``DataOutputStream.writeUTF`` does.

    This is UTF-8 applied to UTF-16 code units: NUL becomes ``C0 80`` and a
    supplementary character becomes two 3-byte surrogate sequences. Unpaired
    surrogates in ``text`` raise ``UnicodeEncodeError``.
    """
    utf16 = text.encode("utf-16-be")
    out = bytearray()
    for i in range(0, len(utf16), 2):
        unit = (utf16[i] << 8) | utf16[i + 1]
        if 0 < unit < 0x80:
            out.append(unit)
        elif unit < 0x800:
            out += bytes((0xC0 | unit >> 6, 0x80 | unit & 0x3F))
        else:
            out += bytes((0xE0 | unit >> 12, 0x80 | (unit >> 6) & 0x3F, 0x80 | unit & 0x3F))
    return bytes(out)


def decode_text(raw: bytes) -> str:
    """Inverse of :func:`encode_text`.

    Only accepts what ``writeUTF`` produces (no raw NUL bytes, no 4-byte
    sequences, surrogates in pairs), so re-encoding gives back ``raw``.
    Raises ``UnicodeDecodeError`` otherwise.
    """
    for pos, byte in enumerate(raw):
        if byte == 0 or byte >= 0xF0:
            raise UnicodeDecodeError(TEXT_ENCODING, raw, pos, pos + 1, f"byte 0x{byte:02X} not allowed")
    text = raw.replace(b"\xc0\x80", b"\x00").decode("utf-8", TEXT_ERRORS)
    # Join surrogate pairs into the characters they stand for.
    return text.encode("utf-16-be", TEXT_ERRORS).decode("utf-16-be")


def _parse_bool(raw: str) -> bool:
    if raw == "true":
        return True
    if raw == "false":
        return False
    raise ValueError('expected exactly "true" or "false"')


def _parse_ranged_int(raw: str, lo: int, hi: int) -> int:
    if not _DECIMAL_RE.fullmatch(raw):
        raise ValueError("not a decimal integer")
    value = int(raw, 10)
    if not lo <= value <= hi:
        raise ValueError(f"out of range [{lo}, {hi}]")
    return value


def _parse_int(raw: str) -> int:
    return _parse_ranged_int(raw, INT_MIN, INT_MAX)


def _parse_long(raw: str) -> int:
    return _parse_ranged_int(raw, LONG_MIN, LONG_MAX)


def _parse_float(raw: str) -> float:
    if not _FLOAT_RE.fullmatch(raw):
        raise ValueError("not a decimal or scientific literal")
    value = float(raw)
    try:
        if not math.isfinite(value):
            raise OverflowError
        result = to_float32(value)
    except OverflowError:
        raise ValueError("too large for a single precision float") from None
    if result == 0.0 and value != 0.0:
        raise ValueError("too small for a single precision float")
    return result


def _parse_string(raw: str) -> str:
    try:
        size = len(encode_text(raw))
    except UnicodeEncodeError:
        raise ValueError("contains unpaired surrogates") from None
    if size > MAX_TEXT_BYTES:
        raise ValueError(f"{size} bytes, at most {MAX_TEXT_BYTES} allowed")
    return raw


def _parse_binary(raw: str) -> bytes:
    try:
        value = bytes.fromhex(raw)
    except ValueError:
        raise ValueError("expected hexadecimal bytes, e.g. '0A FF 10'") from None
    if len(value) > MAX_BINARY_BYTES:
        raise ValueError(f"{len(value)} bytes, at most {MAX_BINARY_BYTES} allowed")
    return value


_PARSERS: Dict[ValueType, Callable[[str], Any]] = {
    ValueType.BOOL: _parse_bool,
    ValueType.INT: _parse_int,
    ValueType.LONG: _parse_long,
    ValueType.FLOAT: _parse_float,
    ValueType.STRING: _parse_string,
    ValueType.BINARY: _parse_binary,
}


def parse_text(value_type: ValueType, raw: str) -> Value:
    """Parse user supplied text as ``value_type``.

    Raises ``ValueError`` with a short reason when ``raw`` is not acceptable.
    The result is exactly what the codec will write (floats are already
    rounded to single precision).
    """
    return _PARSERS[value_type](raw)


def matches_type(value_type: ValueType, value: Any) -> bool:
    """Check that ``value`` has the Python shape ``value_type`` requires."""
    if value_type is ValueType.BOOL:
        return isinstance(value, bool)
    if value_type is ValueType.INT:
        return isinstance(value, int) and not isinstance(value, bool) and INT_MIN <= value <= INT_MAX
    if value_type is ValueType.LONG:
        return isinstance(value, int) and not isinstance(value, bool) and LONG_MIN <= value <= LONG_MAX
    if value_type is ValueType.FLOAT:
        return isinstance(value, float)
    if value_type is ValueType.STRING:
        return isinstance(value, str)
    if value_type is ValueType.BINARY:
        return isinstance(value, (bytes, bytearray))
    raise AssertionError(f"unhandled value type {value_type!r}")


def _short_float(value: float) -> str:
    # Shortest decimal that maps back to the same single precision float.
    if not math.isfinite(value):
        return repr(value)
    for digits in range(1, 10):
        text = f"{value:.{digits}g}"
        try:
            if to_float32(float(text)) == value:
                return text
        except OverflowError:
            continue
    return f"{value:.9g}"


def format_value(value_type: ValueType, value: Value) -> str:
    """Render a value the way ``--read`` / ``--show-all`` print it."""
    if value_type is ValueType.BOOL:
        return "true" if value else "false"
    if value_type is ValueType.FLOAT:
        return _short_float(float(value))
    if value_type is ValueType.STRING:
        return f'"{value}"'
    if value_type is ValueType.BINARY:
        return bytes(value).hex(" ").upper()
    return str(value)
