from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from html.parser import HTMLParser
from typing import Any, Optional

import requests

from portfolio_treemap.errors import QuoteFetchError
from portfolio_treemap.schemas.quote import FetchFailure, Quote

_VOID_TAGS = {
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "source", "track", "wbr",
}

# field -> (class required on an enclosing element, class of the element itself)
_PRICE_BOARD_SELECTORS = {
    "name": (None, "PriceBoard__name__166W"),
    "price": ("PriceBoard__price__1V0k", "StyledNumber__value__3rXW"),
    "change_percent": ("PriceChangeLabel__secondary__3BXI", "StyledNumber__value__3rXW"),
}


class _PriceBoardParser(HTMLParser):
    """Collects the text of the first element matching each selector."""

    def __init__(self, selectors: dict[str, tuple[str | None, str]]) -> None:
        super().__init__(convert_charrefs=True)
        self.selectors = selectors
        self.found: dict[str, str] = {}
        self._stack: list[tuple[str, set[str]]] = []
        self._capturing: dict[str, int] = {}
        self._buffers: dict[str, list[str]] = {}

    def _matches(self, ancestor: str | None, own: str, classes: set[str]) -> bool:
        if own not in classes:
            return False
        if ancestor is None:
            return True
        return any(ancestor in open_classes for _, open_classes in self._stack)

    def handle_starttag(self, tag: str, attrs: list[tuple[str, Optional[str]]]) -> None:
        classes = set((dict(attrs).get("class") or "").split())
        for field_name, (ancestor, own) in self.selectors.items():
            if field_name in self.found or field_name in self._capturing:
                continue
            if self._matches(ancestor, own, classes):
                self._capturing[field_name] = len(self._stack)
                self._buffers[field_name] = []
        if tag not in _VOID_TAGS:
            self._stack.append((tag, classes))

    def handle_endtag(self, tag: str) -> None:
        if not any(open_tag == tag for open_tag, _ in self._stack):
            return
        while self._stack:
            open_tag, _ = self._stack.pop()
            self._close_captures(len(self._stack))
            if open_tag == tag:
                break

    def _close_captures(self, depth: int) -> None:
        for field_name, start_depth in list(self._capturing.items()):
            if start_depth >= depth:
                self.found[field_name] = "".join(self._buffers.pop(field_name)).strip()
                del self._capturing[field_name]

    def handle_data(self, data: str) -> None:
        for field_name in self._capturing:
            self._buffers[field_name].append(data)


def _to_float(value: Any, default: float | None) -> float | None:
    try:
        if value is None or value == "":
            return default
        return float(str(value).replace(",", ""))
    except (TypeError, ValueError):
        return default


def parse_yahoo_html(html: str, symbol: str, *, now: datetime | None = None) -> Quote:
    parser = _PriceBoardParser(_PRICE_BOARD_SELECTORS)
    parser.feed(html)
    parser.close()
    found = parser.found

    stamp = now or datetime.now(timezone.utc)
    return Quote(
        symbol=symbol,
        name=found.get("name") or symbol,
        price=_to_float(found.get("price"), None),
        change_percent=_to_float(found.get("change_percent"), 0.0) or 0.0,
        updated_at=stamp.isoformat().replace("+00:00", "Z"),
    )


class YahooQuoteClient:
    """Yahoo! Finance Japan quote page, fetched through a JSON relay."""

    def __init__(
        self,
        *,
        proxy_url: str,
        page_url: str = "https://finance.yahoo.co.jp/quote/{symbol}",
        timeout: float = 10.0,
        session: Optional[Any] = None,
    ) -> None:
        self.proxy_url = proxy_url
        self.page_url = page_url
        self.timeout = timeout
        self.session = session or requests

    def _fetch_page(self, symbol: str) -> str:
        response = self.session.get(
            self.proxy_url,
            params={"u": self.page_url.format(symbol=symbol)},
            timeout=self.timeout,
        )
        response.raise_for_status()
        payload = response.json()
        content = payload.get("content") if isinstance(payload, dict) else None
        if not content:
            raise QuoteFetchError(symbol, "No content found in response")
        return str(content)

    def get_quote(self, symbol: str) -> Quote | FetchFailure:
        try:
            return parse_yahoo_html(self._fetch_page(symbol), symbol)
        except Exception as exc:
            print(f"[QUOTE][fetch_error] symbol={symbol} error={exc}", flush=True)
            return FetchFailure(symbol=symbol, error=str(exc) or type(exc).__name__)

    async def fetch_quote(self, symbol: str) -> Quote | FetchFailure:
        return await asyncio.to_thread(self.get_quote, symbol)
