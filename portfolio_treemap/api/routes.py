from fastapi import APIRouter, HTTPException, Request

from portfolio_treemap.errors import PortfolioValidationError
from portfolio_treemap.schemas.holding import CsvImport, Holding, NewHolding, QuantityUpdate
from portfolio_treemap.schemas.portfolio import PortfolioView
from portfolio_treemap.services import state_codec
from portfolio_treemap.services.fetch_orchestrator import RefreshResult
from portfolio_treemap.services.portfolio_store import PortfolioStore

router = APIRouter()


def _store(request: Request) -> PortfolioStore:
    return request.app.state.portfolio_store


def _portfolio_view(store: PortfolioStore) -> dict:
    return PortfolioView(
        holdings=store.holdings,
        quotes=store.quotes(),
        summary=store.summary(),
        display_data=store.display_data(),
        progress=store.progress(),
        location=store.share_url(),
    ).model_dump()


def _refresh_payload(store: PortfolioStore, result: RefreshResult) -> dict:
    return {
        'completed_count': result.completed_count,
        'updated': sorted(result.updated),
        'failures': [failure.model_dump() for failure in result.failures],
        'busy': store.progress().busy,
    }


async def open_page(token: str, request: Request):
    """Landing on ``<base>/<token>`` or ``<base>?p=<token>``: restore holdings from the address."""
    store = _store(request)
    store.persistence.location.navigate(request.url.path, request.url.query)
    restored = await store.load()
    print(
        f"[APP][open_page] restored={int(restored)} holdings={len(store.holdings)} "
        f"location={store.share_url()}",
        flush=True,
    )
    return _portfolio_view(store)


@router.get('/portfolio')
def get_portfolio(request: Request):
    return _portfolio_view(_store(request))


@router.post('/portfolio/items')
async def add_item(req: NewHolding, request: Request):
    store = _store(request)
    try:
        await store.add_item(req.symbol, req.quantity)
    except PortfolioValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.errors) from exc
    return _portfolio_view(store)


@router.patch('/portfolio/items/{index}')
def update_item(index: int, req: QuantityUpdate, request: Request):
    store = _store(request)
    try:
        store.update_quantity(index, req.quantity)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail='holding not found') from exc
    return _portfolio_view(store)


@router.delete('/portfolio/items/{index}')
def remove_item(index: int, request: Request):
    store = _store(request)
    try:
        store.remove_item(index)
    except IndexError as exc:
        raise HTTPException(status_code=404, detail='holding not found') from exc
    return _portfolio_view(store)


@router.post('/portfolio/import')
async def import_csv(req: CsvImport, request: Request):
    store = _store(request)
    result = await store.import_csv(req.csv)
    view = _portfolio_view(store)
    view['refresh'] = _refresh_payload(store, result)
    return view


@router.get('/portfolio/export')
def export_csv(request: Request):
    return {'csv': _store(request).export_csv()}


@router.post('/portfolio/refresh')
async def refresh_portfolio(request: Request):
    store = _store(request)
    result = await store.refresh()
    return _refresh_payload(store, result)


@router.get('/portfolio/progress')
def refresh_progress(request: Request):
    return _store(request).progress().model_dump()


@router.get('/portfolio/share')
def share_url(request: Request):
    origin = request.app.state.get_settings().TREEMAP_PUBLIC_ORIGIN
    return {'url': _store(request).share_url(origin)}


@router.get('/state/decode')
def decode_state(token: str = ''):
    holdings = state_codec.decode(token)
    if holdings is None:
        return {'holdings': None}
    return {'holdings': [item.model_dump() for item in holdings]}


@router.post('/state/encode')
def encode_state(holdings: list[Holding]):
    return {'token': state_codec.encode(holdings)}


@router.get('/metrics/quote')
def quote_metrics(request: Request):
    store = _store(request)
    metrics = store.orchestrator.metrics()
    metrics['cache_upserts'] = store.quote_cache.upserts
    metrics['holdings'] = len(store.holdings)
    return metrics
