from __future__ import annotations


class PortfolioValidationError(ValueError):
    """Rejected user input; ``errors`` maps a field name to its message."""

    def __init__(self, errors: dict[str, str]) -> None:
        super().__init__("; ".join(f"{field}={message}" for field, message in errors.items()))
        self.errors = dict(errors)


class QuoteFetchError(RuntimeError):
    def __init__(self, symbol: str, reason: str) -> None:
        super().__init__(reason)
        self.symbol = symbol
        self.reason = reason
