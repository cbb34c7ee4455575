from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List

from ..codec import DEFAULT_MARKER, Entry, decode, encode
from ..errors import NotFound, TypeMismatch
from ..values import parse_text

logger = logging.getLogger(__name__)


@dataclass
class SettingsStore:
    """In-memory view of a decoded ``settings.bin``.

    The store only edits existing entries: it never adds, removes or
    reorders them, and the type of an entry is fixed by the file. File I/O
    is left to the caller; :meth:`commit` just hands back the bytes.
    """

    entries: List[Entry] = field(default_factory=list)
    tail: bytes = b""
    marker: bytes = DEFAULT_MARKER
    _index: Dict[str, Entry] = field(init=False, repr=False, compare=False)
    _dirty: bool = field(default=False, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._index = {}
        for entry in self.entries:
            if entry.name in self._index:
                raise ValueError(f"duplicate entry name {entry.name!r}")
            self._index[entry.name] = entry

    @classmethod
    def load(cls, data: bytes, marker: bytes = DEFAULT_MARKER) -> "SettingsStore":
        parsed = decode(data, marker=marker)
        logger.debug("loaded %d settings (%d trailing bytes)", len(parsed.entries), len(parsed.tail))
        return cls(entries=parsed.entries, tail=parsed.tail, marker=parsed.marker)

    @property
    def dirty(self) -> bool:
        """True once any :meth:`set` call has succeeded."""
        return self._dirty

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[Entry]:
        return iter(self.entries)

    def get(self, name: str) -> Entry:
        try:
            return self._index[name]
        except KeyError:
            raise NotFound(name) from None

    def get_all(self) -> List[Entry]:
        return list(self.entries)

    def set(self, name: str, raw_text: str) -> None:
        """Replace the value of ``name`` with ``raw_text`` parsed as its current type.

        Raises ``NotFound`` for an unknown name and ``TypeMismatch`` when the
        text does not parse; in both cases the store is left untouched.
        """
        entry = self.get(name)
        try:
            value = parse_text(entry.value_type, raw_text)
        except ValueError as exc:
            raise TypeMismatch(name, entry.value_type.label, raw_text, str(exc)) from None
        if value != entry.value:
            logger.debug("%s: %r -> %r", name, entry.value, value)
        updated = replace(entry, value=value)
        self.entries[self.entries.index(entry)] = updated
        self._index[name] = updated
        self._dirty = True

    def commit(self, pretend: bool = False) -> bytes:
        """Encode the current entries.

        With ``pretend`` the bytes are meant for display only and must not be
        written back; the encoding itself is identical either way.
        """
        data = encode(self.entries, self.tail, marker=self.marker)
        if pretend:
            logger.debug("pretend commit: %d bytes computed, nothing persisted", len(data))
        return data
