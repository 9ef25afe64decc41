from __future__ import annotations

from pydantic import BaseModel


class Quote(BaseModel):
    symbol: str
    name: str
    price: float | None = None
    change_percent: float = 0.0
    updated_at: str


class FetchFailure(BaseModel):
    symbol: str
    error: str


def is_failure(result: Quote | FetchFailure) -> bool:
    """A fetch result counts as failed when it carries ``error`` or lacks ``price``."""
    if getattr(result, "error", None):
        return True
    return getattr(result, "price", None) is None
