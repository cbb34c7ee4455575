from __future__ import annotations

import math
import struct

import pytest

from mindustry_settings.codec import Entry, decode, encode
from mindustry_settings.errors import (
    DuplicateName,
    EncodeError,
    InvalidValue,
    MalformedHeader,
    TruncatedRecord,
    UnknownTypeTag,
)
from mindustry_settings.values import ValueType


def _name(text: str) -> bytes:
    raw = text.encode("utf-8")
    return struct.pack(">H", len(raw)) + raw


def _file(*records: bytes, tail: bytes = b"") -> bytes:
    return struct.pack(">I", len(records)) + b"".join(records) + tail


def _sample() -> bytes:
    # Built by hand so these tests do not depend on encode().
    return _file(
        _name("fullscreen") + b"\x00" + b"\x01",
        _name("lastBuildVersion") + b"\x01" + struct.pack(">i", -126),
        _name("lastTime") + b"\x02" + struct.pack(">q", 1_700_000_000_000),
        _name("uiscale") + b"\x03" + struct.pack(">f", 1.5),
        _name("name") + b"\x04" + _name("Player ü"),
        _name("blob") + b"\x05" + struct.pack(">I", 3) + b"\xde\xad\x00",
    )


def test_decode_reads_every_type_in_order() -> None:
    parsed = decode(_sample())

    assert [e.name for e in parsed.entries] == [
        "fullscreen",
        "lastBuildVersion",
        "lastTime",
        "uiscale",
        "name",
        "blob",
    ]
    values = {e.name: (e.value_type, e.value) for e in parsed.entries}
    assert values["fullscreen"] == (ValueType.BOOL, True)
    assert values["lastBuildVersion"] == (ValueType.INT, -126)
    assert values["lastTime"] == (ValueType.LONG, 1_700_000_000_000)
    assert values["uiscale"] == (ValueType.FLOAT, 1.5)
    assert values["name"] == (ValueType.STRING, "Player ü")
    assert values["blob"] == (ValueType.BINARY, b"\xde\xad\x00")
    assert parsed.tail == b""


def test_decode_records_offsets() -> None:
    parsed = decode(_sample())
    first, second = parsed.entries[0], parsed.entries[1]

    assert first.offset == 4
    # name length (2) + "fullscreen" (10) + tag (1)
    assert first.value_offset == 4 + 2 + 10 + 1
    assert second.offset == first.value_offset + 1

    name_entry = next(e for e in parsed.entries if e.name == "name")
    # the string payload starts after its own u16 length prefix
    assert name_entry.value_offset == name_entry.offset + 2 + 4 + 1 + 2


def test_roundtrip_is_byte_identical() -> None:
    data = _sample()
    parsed = decode(data)
    assert encode(parsed.entries, parsed.tail) == data


@pytest.mark.parametrize("bits", ["7f800001", "ffbfffff", "7fc00001", "7fc00000"])
def test_nan_payloads_are_written_back_unchanged(bits: str) -> None:
    data = _file(_name("f") + b"\x03" + bytes.fromhex(bits))
    parsed = decode(data)

    assert math.isnan(parsed.entries[0].value)
    assert encode(parsed.entries, parsed.tail) == data


def test_trailing_bytes_are_kept_as_tail() -> None:
    data = _file(_name("a") + b"\x00\x00", tail=b"\x01\x02future")
    parsed = decode(data)

    assert len(parsed.entries) == 1
    assert parsed.tail == b"\x01\x02future"
    assert encode(parsed.entries, parsed.tail) == data


def test_encode_then_decode_gives_back_entries() -> None:
    entries = [
        Entry("musicvol", ValueType.INT, 80),
        Entry("seed", ValueType.LONG, -(2**63)),
        Entry("zoom", ValueType.FLOAT, 0.25),
        Entry("locale", ValueType.STRING, ""),
        Entry("hints", ValueType.BOOL, False),
    ]
    parsed = decode(encode(entries, b"xyz"))

    assert parsed.entries == entries
    assert parsed.tail == b"xyz"


def test_supplementary_characters_survive_java_style_surrogates() -> None:
    # "😀" as Java's writeUTF stores it: two 3-byte surrogate halves.
    raw = b"\xed\xa0\xbd\xed\xb8\x80"
    data = _file(_name("k") + b"\x04" + struct.pack(">H", len(raw)) + raw)

    parsed = decode(data)
    assert parsed.entries[0].value == "😀"
    assert encode(parsed.entries) == data


def test_marker_is_checked_and_written_back() -> None:
    body = _file(_name("a") + b"\x01" + struct.pack(">i", 7))
    data = b"MSET" + body

    parsed = decode(data, marker=b"MSET")
    assert parsed.marker == b"MSET"
    assert encode(parsed.entries, parsed.tail, marker=parsed.marker) == data

    with pytest.raises(MalformedHeader):
        decode(b"XXXX" + body, marker=b"MSET")


@pytest.mark.parametrize("data", [b"", b"\x00", b"\x00\x00\x00"])
def test_short_header_is_malformed(data: bytes) -> None:
    with pytest.raises(MalformedHeader):
        decode(data)


def test_empty_file_with_zero_entries() -> None:
    parsed = decode(b"\x00\x00\x00\x00")
    assert parsed.entries == []
    assert encode(parsed.entries) == b"\x00\x00\x00\x00"


def test_unknown_tag() -> None:
    data = _file(_name("odd") + b"\x09" + b"\x00")
    with pytest.raises(UnknownTypeTag) as info:
        decode(data)
    assert info.value.tag == 9
    assert info.value.name == "odd"
    assert info.value.offset == 4 + 2 + 3


@pytest.mark.parametrize(
    "data",
    [
        # count says 2, only one record
        struct.pack(">I", 2) + _name("a") + b"\x00\x01",
        # name length larger than the rest of the file
        struct.pack(">I", 1) + struct.pack(">H", 50) + b"abc",
        # int value cut short
        _file(_name("a") + b"\x01" + b"\x00\x00"),
        # string length prefix promises more than is there
        _file(_name("a") + b"\x04" + struct.pack(">H", 10) + b"abc"),
        # missing tag byte
        _file(_name("a")),
    ],
)
def test_truncated_records(data: bytes) -> None:
    with pytest.raises(TruncatedRecord):
        decode(data)


def test_duplicate_name() -> None:
    data = _file(_name("a") + b"\x00\x01", _name("a") + b"\x00\x00")
    with pytest.raises(DuplicateName) as info:
        decode(data)
    assert info.value.name == "a"
    assert info.value.offset == 4 + 2 + 1 + 2


def test_boolean_byte_must_be_zero_or_one() -> None:
    with pytest.raises(InvalidValue):
        decode(_file(_name("a") + b"\x00\x02"))


def test_invalid_utf8_name() -> None:
    with pytest.raises(InvalidValue):
        decode(_file(struct.pack(">H", 2) + b"\xff\xfe" + b"\x00\x01"))


def test_encode_rejects_values_that_do_not_fit() -> None:
    with pytest.raises(EncodeError):
        encode([Entry("a", ValueType.INT, 2**31)])
    with pytest.raises(EncodeError):
        encode([Entry("a", ValueType.BOOL, 1)])
    with pytest.raises(EncodeError):
        encode([Entry("a", ValueType.STRING, "x" * 70000)])
    with pytest.raises(EncodeError):
        encode([Entry("a", ValueType.INT, 1), Entry("a", ValueType.INT, 2)])
