"""Holdings list plus quote cache, and the actions a user takes on them.

Every mutation of the holdings list is written straight back to the page
address; quotes are only ever touched by the fetch orchestrator.
"""
from __future__ import annotations

from typing import Any

from portfolio_treemap.errors import PortfolioValidationError
from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.schemas.portfolio import DisplayRow, RefreshProgress, Summary
from portfolio_treemap.schemas.quote import Quote
from portfolio_treemap.services import portfolio_rules, portfolio_view
from portfolio_treemap.services.fetch_orchestrator import FetchOne, FetchOrchestrator, RefreshResult
from portfolio_treemap.services.quote_cache import QuoteCache
from portfolio_treemap.services.state_persistence import StatePersistence

INVALID_SYMBOL_MESSAGE = "無効な銘柄コードです"
INVALID_QUANTITY_MESSAGE = "1以上の整数を入力してください"


class PortfolioStore:
    def __init__(
        self,
        *,
        persistence: StatePersistence,
        fetch_one: FetchOne,
        quote_cache: QuoteCache | None = None,
        max_concurrency: int = 5,
    ) -> None:
        self.persistence = persistence
        self.fetch_one = fetch_one
        self.quote_cache = quote_cache if quote_cache is not None else QuoteCache()
        self.orchestrator = FetchOrchestrator(
            quote_cache=self.quote_cache,
            max_concurrency=max_concurrency,
        )
        self.holdings: list[Holding] = []

    def _persist(self) -> None:
        self.persistence.write(self.holdings)

    def _index_of(self, symbol: str) -> int | None:
        for i, item in enumerate(self.holdings):
            if item.symbol == symbol:
                return i
        return None

    async def initialize(self) -> bool:
        saved = self.persistence.read()
        if not saved:
            return False
        self.holdings = list(saved)
        await self.refresh()
        return True

    async def load(self) -> bool:
        """Fresh page load: drop the in-memory list and re-read the address."""
        self.holdings = []
        return await self.initialize()

    async def refresh(self) -> RefreshResult:
        symbols = [item.symbol for item in self.holdings]
        return await self.orchestrator.refresh(symbols, self.fetch_one)

    async def add_item(self, symbol: str, quantity: Any) -> Holding:
        symbol = (symbol or "").strip().upper()
        errors: dict[str, str] = {}
        if not portfolio_rules.is_valid_symbol(symbol):
            errors["symbol"] = INVALID_SYMBOL_MESSAGE
        if not portfolio_rules.is_valid_quantity(quantity):
            errors["quantity"] = INVALID_QUANTITY_MESSAGE
        if errors:
            raise PortfolioValidationError(errors)

        index = self._index_of(symbol)
        if index is None:
            holding = Holding(symbol=symbol, quantity=quantity)
            self.holdings.append(holding)
            await self.orchestrator.refresh([symbol], self.fetch_one)
        else:
            holding = self.holdings[index]

        self._persist()
        return holding

    def _require_index(self, index: int) -> None:
        if index < 0 or index >= len(self.holdings):
            raise IndexError(f"holding index out of range: {index}")

    def remove_item(self, index: int) -> Holding:
        self._require_index(index)
        removed = self.holdings.pop(index)
        self._persist()
        return removed

    def update_quantity(self, index: int, quantity: Any) -> Holding:
        self._require_index(index)
        holding = self.holdings[index]
        if not portfolio_rules.is_valid_quantity(quantity):
            quantity = portfolio_rules.normalize_quantity(quantity)
        holding.quantity = quantity
        self._persist()
        return holding

    async def import_csv(self, csv_text: str) -> RefreshResult:
        self.holdings = portfolio_rules.parse_portfolio_csv(csv_text)
        self._persist()
        return await self.refresh()

    def export_csv(self) -> str:
        return portfolio_rules.to_portfolio_csv(self.holdings)

    def share_url(self, origin: str = "") -> str:
        return self.persistence.location.href(origin)

    def quotes(self) -> dict[str, Quote]:
        return self.quote_cache.as_dict()

    def summary(self) -> Summary:
        return portfolio_view.calculate_summary(self.holdings, self.quotes())

    def display_data(self) -> list[DisplayRow]:
        return portfolio_view.build_display_data(self.holdings, self.quotes())

    def valuation(self, symbol: str) -> float | None:
        index = self._index_of(symbol)
        if index is None:
            return None
        return portfolio_view.get_valuation(self.holdings[index], self.quotes())

    def progress(self) -> RefreshProgress:
        return RefreshProgress(**self.orchestrator.progress())
