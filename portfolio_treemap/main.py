from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from portfolio_treemap.api.routes import open_page, router
from portfolio_treemap.config.settings import Settings, get_settings
from portfolio_treemap.integrations.yahoo_quote import YahooQuoteClient
from portfolio_treemap.services.fetch_orchestrator import FetchOne
from portfolio_treemap.services.location import InMemoryLocation, Location
from portfolio_treemap.services.portfolio_store import PortfolioStore
from portfolio_treemap.services.state_persistence import StatePersistence


def build_portfolio_store(
    settings: Settings,
    location: Location,
    fetch_one: FetchOne,
) -> PortfolioStore:
    persistence = StatePersistence(
        location,
        base_path=settings.TREEMAP_BASE_PATH,
        query_param=settings.TREEMAP_STATE_PARAM,
    )
    return PortfolioStore(
        persistence=persistence,
        fetch_one=fetch_one,
        max_concurrency=settings.TREEMAP_MAX_CONCURRENT_REQUESTS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    store: PortfolioStore = app.state.portfolio_store
    print(f"[APP][startup] location={store.share_url()}", flush=True)
    await store.initialize()

    try:
        yield
    finally:
        print(f"[APP][shutdown] holdings={len(store.holdings)}", flush=True)


_settings = get_settings()

app = FastAPI(title="Portfolio Treemap", version="0.1.0", lifespan=lifespan)
app.include_router(router, prefix="/v1")
app.add_api_route(f"{_settings.TREEMAP_BASE_PATH}{{token:path}}", open_page, methods=["GET"])

app.state.get_settings = get_settings
app.state.location = InMemoryLocation(_settings.TREEMAP_BASE_PATH)
app.state.quote_client = YahooQuoteClient(
    proxy_url=_settings.TREEMAP_QUOTE_PROXY_URL,
    page_url=_settings.TREEMAP_QUOTE_PAGE_URL,
    timeout=_settings.TREEMAP_QUOTE_TIMEOUT_SEC,
)
app.state.portfolio_store = build_portfolio_store(
    _settings,
    app.state.location,
    app.state.quote_client.fetch_quote,
)
