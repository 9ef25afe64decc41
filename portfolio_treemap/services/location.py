from __future__ import annotations

from typing import Protocol
from urllib.parse import parse_qs, urlsplit


class Location(Protocol):
    """The page address: the only place holdings are persisted."""

    @property
    def pathname(self) -> str:
        """Current path, e.g. ``/portfolio-treemap/<token>``."""

    def query_param(self, name: str) -> str | None:
        """First value of a query parameter, already form-decoded."""

    def replace_state(self, path: str) -> None:
        """Swap the current address in place (no reload, no new history entry)."""

    def navigate(self, path: str, query: str = "") -> None:
        """Arrive at a new address, as a fresh page load does."""

    def href(self, origin: str = "") -> str:
        """Full shareable address."""


class InMemoryLocation:
    """Process-wide address used by the service and by tests."""

    def __init__(self, path: str = "/", query: str = "") -> None:
        self._pathname = path or "/"
        self._query = query
        self.history_length = 1
        self.replace_count = 0

    @classmethod
    def from_url(cls, url: str) -> "InMemoryLocation":
        parts = urlsplit(url)
        return cls(parts.path or "/", parts.query)

    @property
    def pathname(self) -> str:
        return self._pathname

    @property
    def search(self) -> str:
        return f"?{self._query}" if self._query else ""

    def query_param(self, name: str) -> str | None:
        # parse_qs turns '+' into ' ', same as URLSearchParams in a browser
        values = parse_qs(self._query, keep_blank_values=True).get(name)
        if not values:
            return None
        return values[0]

    def navigate(self, path: str, query: str = "") -> None:
        """Simulate arriving at a new address (a fresh page load)."""
        self._pathname = path or "/"
        self._query = query
        self.history_length += 1

    def replace_state(self, path: str) -> None:
        parts = urlsplit(path)
        self._pathname = parts.path or "/"
        self._query = parts.query
        self.replace_count += 1

    def href(self, origin: str = "") -> str:
        return f"{origin.rstrip('/')}{self._pathname}{self.search}"
