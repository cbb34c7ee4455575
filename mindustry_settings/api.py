"""Public API surface.

Re-exports the codec, the store and the error types so scripts can import a
single module.
"""

from __future__ import annotations

from . import __version__

from .codec import DEFAULT_MARKER, Entry, SettingsFile, decode, encode
from .errors import (
    DecodeError,
    DuplicateName,
    EncodeError,
    InvalidValue,
    MalformedHeader,
    NotFound,
    SettingsError,
    TruncatedRecord,
    TypeMismatch,
    UnknownTypeTag,
)
from .paths import default_settings_path, mindustry_data_dir
from .settings import SettingsStore
from .values import ValueType, format_value, parse_text

__all__ = [
    "__version__",
    # codec
    "DEFAULT_MARKER",
    "Entry",
    "SettingsFile",
    "decode",
    "encode",
    # values
    "ValueType",
    "parse_text",
    "format_value",
    # store
    "SettingsStore",
    # paths
    "default_settings_path",
    "mindustry_data_dir",
    # errors
    "SettingsError",
    "DecodeError",
    "MalformedHeader",
    "UnknownTypeTag",
    "TruncatedRecord",
    "DuplicateName",
    "InvalidValue",
    "EncodeError",
    "NotFound",
    "TypeMismatch",
]
