"""Exceptions raised by the codec and the settings store."""

from __future__ import annotations

from typing import Optional


class SettingsError(Exception):
    """Base class for every failure surfaced by this package."""


class DecodeError(SettingsError):
    """The buffer is not a valid settings file. The whole load is aborted."""

    def __init__(self, message: str, offset: Optional[int] = None):
        if offset is not None:
            message = f"{message} (at offset 0x{offset:X})"
        super().__init__(message)
        self.offset = offset


class MalformedHeader(DecodeError):
    pass


class UnknownTypeTag(DecodeError):
    def __init__(self, tag: int, name: str, offset: int):
        super().__init__(f"unknown type tag {tag} for entry {name!r}", offset)
        self.tag = tag
        self.name = name


class TruncatedRecord(DecodeError):
    pass


class DuplicateName(DecodeError):
    def __init__(self, name: str, offset: int):
        super().__init__(f"duplicate entry name {name!r}", offset)
        self.name = name


class InvalidValue(DecodeError):
    """A payload has the right size but bytes the tag does not allow."""


class EncodeError(SettingsError):
    """An entry cannot be represented in the on-disk layout."""


class NotFound(SettingsError):
    def __init__(self, name: str):
        super().__init__(f"no setting named {name!r}")
        self.name = name


class TypeMismatch(SettingsError):
    """Raw text could not be parsed as the entry's declared type."""

    def __init__(self, name: str, expected: str, raw: str, reason: str = ""):
        message = f"cannot set {name!r} ({expected}) to {raw!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.name = name
        self.expected = expected
        self.raw = raw
