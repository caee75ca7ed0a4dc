"""Instrument id -> descriptive metadata lookup."""

from __future__ import annotations

from ..types import UNKNOWN_MAPPING, InstrumentId, InstrumentMapping


def id_key(conid: InstrumentId) -> str:
    """Table key for an instrument id; 42 and "42" name the same instrument."""
    return str(conid)


class InstrumentDirectory:
    """
    Append/update-only mapping table.

    Later mappings for the same id overwrite earlier ones; nothing is ever removed.
    """

    __slots__ = ('_mappings',)

    def __init__(self) -> None:
        self._mappings: dict[str, InstrumentMapping] = {}

    def upsert(self, conid: InstrumentId, mapping: InstrumentMapping) -> None:
        self._mappings[id_key(conid)] = mapping

    def lookup(self, conid: InstrumentId | None) -> InstrumentMapping:
        """Return the mapping for `conid`, or the "Unknown" placeholder. Never raises."""
        if conid is None:
            return UNKNOWN_MAPPING
        return self._mappings.get(id_key(conid), UNKNOWN_MAPPING)

    def __contains__(self, conid: object) -> bool:
        return conid is not None and str(conid) in self._mappings

    def __len__(self) -> int:
        return len(self._mappings)
