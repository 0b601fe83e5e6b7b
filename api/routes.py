"""
API routes for the quote journal.
Route functions are plain ``def`` so FastAPI runs them in its thread pool;
the store's lock serializes them.
"""

from fastapi import APIRouter, Depends, Request, Response

from database.models import Quote
from database.operations import QuoteStore
from exporter import quote_card_png
from utils import QuoteValidator, NotFoundError, PersistenceError, ErrorCodes, api_metrics, metrics_snapshot
from .models import (
    QuoteResponse, QuoteCreateRequest, QuoteUpdateRequest, QuoteListResponse,
    RandomQuoteResponse, DeleteResponse, StatsResponse, ErrorResponse
)

router = APIRouter()

NOT_FOUND = {404: {"model": ErrorResponse}}


def get_store(request: Request) -> QuoteStore:
    """依赖注入：获取应用持有的语录存储"""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise PersistenceError("Quote store is not available", ErrorCodes.DB_CONNECTION_FAILED)
    return store


def _require_quote(store: QuoteStore, quote_id: int) -> Quote:
    quote = store.get_quote(quote_id)
    if quote is None:
        raise NotFoundError(f"Quote {quote_id} does not exist", ErrorCodes.QUOTE_NOT_FOUND, {"id": quote_id})
    return quote


@router.get("/quotes", response_model=QuoteListResponse, tags=["Quotes"])
def list_quotes(store: QuoteStore = Depends(get_store)):
    """全部语录，最新的在前"""
    quotes = store.get_all_quotes()
    return QuoteListResponse(quotes=[QuoteResponse.from_quote(q) for q in quotes], total=len(quotes))


@router.post("/quotes", response_model=QuoteResponse, status_code=201, tags=["Quotes"])
def create_quote(request: QuoteCreateRequest, store: QuoteStore = Depends(get_store)):
    """新增语录"""
    text, author = QuoteValidator.validate_quote_input(request.text, request.author)
    quote_id = store.insert_quote(text, author)
    api_metrics.increment("quotes_created")
    return QuoteResponse.from_quote(_require_quote(store, quote_id))


@router.get("/quotes/random", response_model=RandomQuoteResponse, tags=["Quotes"])
def get_random_quote(store: QuoteStore = Depends(get_store)):
    """今日语录"""
    quote = store.get_random_quote()
    return RandomQuoteResponse(quote=QuoteResponse.from_quote(quote) if quote else None)


@router.get("/quotes/{quote_id}", response_model=QuoteResponse, responses=NOT_FOUND, tags=["Quotes"])
def get_quote(quote_id: int, store: QuoteStore = Depends(get_store)):
    return QuoteResponse.from_quote(_require_quote(store, quote_id))


@router.put("/quotes/{quote_id}", response_model=QuoteResponse, responses=NOT_FOUND, tags=["Quotes"])
def update_quote(quote_id: int, request: QuoteUpdateRequest, store: QuoteStore = Depends(get_store)):
    """编辑语录正文和作者"""
    text, author = QuoteValidator.validate_quote_input(request.text, request.author)
    # created_at 由存储层保留，这里的值不会被写入
    updated = store.update_quote(Quote(id=quote_id, text=text, author=author, created_at=0.0))
    api_metrics.increment("quotes_updated")
    return QuoteResponse.from_quote(updated)


@router.delete("/quotes/{quote_id}", response_model=DeleteResponse, tags=["Quotes"])
def delete_quote(quote_id: int, store: QuoteStore = Depends(get_store)):
    """删除语录；不存在的 id 同样返回成功"""
    store.delete_quote(quote_id)
    api_metrics.increment("quotes_deleted")
    return DeleteResponse(deleted=True, id=quote_id)


@router.get("/quotes/{quote_id}/image", responses={**NOT_FOUND, 200: {"content": {"image/png": {}}}},
            response_class=Response, tags=["Export"])
def get_quote_image(quote_id: int, store: QuoteStore = Depends(get_store)):
    """导出语录卡片图片 (PNG)"""
    png = quote_card_png(_require_quote(store, quote_id))
    return Response(
        content=png,
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="quote_{quote_id}.png"'}
    )


@router.get("/stats", response_model=StatsResponse, tags=["System"])
def get_stats(store: QuoteStore = Depends(get_store)):
    return StatsResponse(
        total_quotes=store.count_quotes(),
        db_path=store.db_path,
        metrics=metrics_snapshot()
    )
