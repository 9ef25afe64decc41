"""Capped-concurrency quote refresh.

Workers are coroutines on one event loop. Claiming the next symbol, writing the
cache and bumping the counter all happen between awaits, so the shared cursor
needs no lock. A second ``refresh`` started before the first settles is not
guarded against; both would write into the same cache.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Sequence

from portfolio_treemap.schemas.quote import FetchFailure, Quote, is_failure
from portfolio_treemap.services.quote_cache import QuoteCache

FetchOne = Callable[[str], Awaitable[Quote | FetchFailure]]


@dataclass
class RefreshResult:
    updated: dict[str, Quote] = field(default_factory=dict)
    failures: list[FetchFailure] = field(default_factory=list)
    completed_count: int = 0


class FetchOrchestrator:
    def __init__(self, *, quote_cache: QuoteCache, max_concurrency: int = 5) -> None:
        self.quote_cache = quote_cache
        self.max_concurrency = max_concurrency
        self.busy = False
        self.completed_count = 0
        self.total = 0

        self.refreshes = 0
        self.fetch_successes = 0
        self.fetch_failures = 0
        self.last_worker_count = 0

    async def _settle(self, fetch_one: FetchOne, symbol: str) -> Quote | FetchFailure:
        try:
            return await fetch_one(symbol)
        except Exception as exc:
            return FetchFailure(symbol=symbol, error=str(exc) or type(exc).__name__)

    async def _process(self, symbol: str, fetch_one: FetchOne, result: RefreshResult) -> None:
        outcome = await self._settle(fetch_one, symbol)
        if is_failure(outcome):
            error = getattr(outcome, "error", None) or "missing price"
            result.failures.append(FetchFailure(symbol=symbol, error=error))
            self.fetch_failures += 1
            print(f"[FETCH][symbol_failed] symbol={symbol} error={error}", flush=True)
        else:
            self.quote_cache.upsert(outcome)
            result.updated[symbol] = outcome
            self.fetch_successes += 1

        self.completed_count += 1
        result.completed_count += 1

    async def refresh(
        self,
        symbols: Sequence[str],
        fetch_one: FetchOne,
        max_concurrency: int | None = None,
    ) -> RefreshResult:
        symbols = list(symbols)
        result = RefreshResult()
        if not symbols:
            return result

        limit = self.max_concurrency if max_concurrency is None else max_concurrency
        worker_count = min(max(limit, 1), len(symbols))
        next_index = 0

        async def worker() -> None:
            nonlocal next_index
            while next_index < len(symbols):
                symbol = symbols[next_index]
                next_index += 1
                await self._process(symbol, fetch_one, result)

        self.busy = True
        self.completed_count = 0
        self.total = len(symbols)
        self.refreshes += 1
        self.last_worker_count = worker_count
        print(
            f"[FETCH][refresh_start] symbols={len(symbols)} workers={worker_count}",
            flush=True,
        )
        try:
            await asyncio.gather(*(worker() for _ in range(worker_count)))
        finally:
            self.busy = False

        print(
            "[FETCH][refresh_done] "
            f"completed={result.completed_count} updated={len(result.updated)} "
            f"failed={len(result.failures)}",
            flush=True,
        )
        return result

    def progress(self) -> dict[str, int | bool]:
        return {
            "busy": self.busy,
            "completed_count": self.completed_count,
            "total": self.total,
        }

    def metrics(self) -> dict[str, int | bool]:
        return {
            "refreshes": self.refreshes,
            "fetch_successes": self.fetch_successes,
            "fetch_failures": self.fetch_failures,
            "last_worker_count": self.last_worker_count,
            "cached_symbols": len(self.quote_cache),
            "busy": self.busy,
        }
