"""Latest option / underlying quotes keyed by instrument id."""

from __future__ import annotations

from ..types import InstrumentId, Quote
from .directory import id_key


class PriceOverlay:
    """
    Last-write-wins quote tables.

    A new quote replaces the prior record for its id in full; there is
    no field-level merge. Grows with the number of distinct ids seen.
    Keys are normalised with id_key(), so 42 and "42" share one entry.
    """

    __slots__ = ('option_quotes', 'underlying_quotes')

    def __init__(self) -> None:
        self.option_quotes: dict[str, Quote] = {}
        self.underlying_quotes: dict[str, Quote] = {}

    def set_option_quote(self, conid: InstrumentId, quote: Quote) -> None:
        self.option_quotes[id_key(conid)] = quote

    def set_underlying_quote(self, conid: InstrumentId, quote: Quote) -> None:
        self.underlying_quotes[id_key(conid)] = quote

    def get_option_quote(self, conid: InstrumentId) -> Quote | None:
        return self.option_quotes.get(id_key(conid))

    def get_underlying_last(self, conid: InstrumentId | None) -> float | None:
        quote = self.underlying_quotes.get(id_key(conid)) if conid is not None else None
        return quote.last if quote else None

    def __len__(self) -> int:
        return len(self.option_quotes) + len(self.underlying_quotes)
