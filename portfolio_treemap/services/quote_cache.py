from __future__ import annotations

from portfolio_treemap.schemas.quote import Quote


class QuoteCache:
    """Latest successful quote per symbol. Entries are replaced, never evicted."""

    def __init__(self) -> None:
        self._rows: dict[str, Quote] = {}
        self.upserts = 0

    def upsert(self, quote: Quote) -> None:
        self._rows[quote.symbol] = quote
        self.upserts += 1

    def get(self, symbol: str) -> Quote | None:
        return self._rows.get(symbol)

    def list_all(self) -> list[Quote]:
        return list(self._rows.values())

    def as_dict(self) -> dict[str, Quote]:
        return dict(self._rows)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._rows

    def __len__(self) -> int:
        return len(self._rows)
