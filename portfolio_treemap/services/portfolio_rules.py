from __future__ import annotations

import math
import re
from typing import Any, Sequence

from portfolio_treemap.schemas.holding import Holding

# Tokyo/Fukuoka/Nagoya/Sapporo codes like 7203.T, or a US ticker like AAPL
SYMBOL_REGEX = re.compile(r"^([0-9]{4,5}\.[TFNS]|[A-Z]{1,5})$")


def is_valid_symbol(symbol: str) -> bool:
    return bool(SYMBOL_REGEX.match(symbol or ""))


def is_valid_quantity(quantity: Any) -> bool:
    if isinstance(quantity, bool):
        return False
    if isinstance(quantity, int):
        return quantity >= 1
    return False


def normalize_quantity(quantity: Any) -> int:
    try:
        value = float(quantity) if quantity else 1.0
    except (TypeError, ValueError):
        return 1
    if math.isnan(value) or math.isinf(value):
        return 1
    return max(1, math.floor(value))


def parse_portfolio_csv(csv_text: str) -> list[Holding]:
    items: list[Holding] = []
    seen: set[str] = set()

    for line in csv_text.split("\n"):
        parts = [part.strip() for part in line.split(",")]
        if len(parts) < 2:
            continue

        symbol = parts[0].upper()
        try:
            quantity = float(parts[1])
        except ValueError:
            continue
        if not symbol or math.isnan(quantity) or symbol in seen:
            continue

        seen.add(symbol)
        items.append(Holding(symbol=symbol, quantity=normalize_quantity(quantity)))

    return items


def to_portfolio_csv(portfolio: Sequence[Holding]) -> str:
    return "\n".join(f"{item.symbol},{item.quantity}" for item in portfolio)
