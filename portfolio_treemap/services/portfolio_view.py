"""Derived numbers for the treemap: totals, tiles and formatting."""
from __future__ import annotations

import math
from typing import Mapping, Sequence

from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.schemas.portfolio import DisplayRow, Summary
from portfolio_treemap.schemas.quote import Quote


def calculate_summary(portfolio: Sequence[Holding], quotes: Mapping[str, Quote]) -> Summary:
    total_valuation = 0.0
    total_yesterday_valuation = 0.0

    for item in portfolio:
        data = quotes.get(item.symbol)
        if not data or not data.price:
            continue

        total_valuation += data.price * item.quantity
        # previous close implied by today's change
        yesterday_price = data.price / (1 + (data.change_percent or 0) / 100)
        total_yesterday_valuation += yesterday_price * item.quantity

    total_change_amount = total_valuation - total_yesterday_valuation
    total_change_percent = (
        (total_change_amount / total_yesterday_valuation) * 100
        if total_yesterday_valuation != 0
        else 0.0
    )
    return Summary(
        total_valuation=total_valuation,
        total_change_amount=total_change_amount,
        total_change_percent=total_change_percent,
    )


def build_display_data(portfolio: Sequence[Holding], quotes: Mapping[str, Quote]) -> list[DisplayRow]:
    rows: list[DisplayRow] = []
    for item in portfolio:
        data = quotes.get(item.symbol)
        if not data or not data.price:
            continue
        valuation = data.price * item.quantity
        rows.append(
            DisplayRow(
                symbol=item.symbol,
                name=data.name,
                valuation=valuation,
                change=data.change_percent,
                valuation_text=format_number(valuation),
                change_class=price_change_class(data.change_percent),
            )
        )
    return rows


def get_valuation(item: Holding, quotes: Mapping[str, Quote]) -> float | None:
    data = quotes.get(item.symbol)
    if not data or not data.price:
        return None
    return data.price * item.quantity


def format_number(num: float) -> str:
    # halves round up, -2.5 -> -2
    return f"{math.floor(num + 0.5):,}"


def price_change_class(change: float | None) -> str:
    if change is None:
        return ""
    if change > 0:
        return "text-up"
    if change < 0:
        return "text-down"
    return ""
