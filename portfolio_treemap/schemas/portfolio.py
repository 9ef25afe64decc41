from pydantic import BaseModel

from portfolio_treemap.schemas.holding import Holding
from portfolio_treemap.schemas.quote import Quote


class Summary(BaseModel):
    total_valuation: float
    total_change_amount: float
    total_change_percent: float


class DisplayRow(BaseModel):
    symbol: str
    name: str
    valuation: float
    change: float
    valuation_text: str
    change_class: str


class RefreshProgress(BaseModel):
    busy: bool
    completed_count: int
    total: int


class PortfolioView(BaseModel):
    holdings: list[Holding]
    quotes: dict[str, Quote]
    summary: Summary
    display_data: list[DisplayRow]
    progress: RefreshProgress
    location: str
