"""Editable view over a decoded settings file.

The store keeps the entries in file order, resolves them by name and only
lets a value change to something of the same type. Serialization goes back
through the codec; reading and writing the file is the caller's job.
"""

from .store import SettingsStore

__all__ = ["SettingsStore"]
