"""Quote endpoints with Redis caching"""
import logging
from typing import Annotated
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import get_db
from app.schemas.quote import QuoteRequest, QuoteResponse, CertifiedQuotesRequest, CertifiedQuotesResponse
from app.services.quoting import current_month, estimate_for_rate_card, certified_quotes
from app.core.redis import get_redis
from app.utils.quote_cache import get_cached_quote, set_cached_quote
from app.core.metrics import cache_hits, cache_misses

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/quotes", tags=["quotes"])


def _cache_params(req: QuoteRequest) -> dict:
    # resolve the default month into the key
    params = req.model_dump(mode="json")
    params["month"] = req.month or current_month()
    return params


@router.post("/estimate", response_model=QuoteResponse)
async def estimate_quote(req: QuoteRequest, db: AsyncSession = Depends(get_db)):

    params = _cache_params(req)
    caching = get_redis() is not None

    if caching:
        try:
            cached = await get_cached_quote(req.seller_org_id, params)
            if cached:
                cache_hits.labels(cache="quote").inc()
                return QuoteResponse.model_validate(cached)
            cache_misses.labels(cache="quote").inc()
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")

    result = await estimate_for_rate_card(db, req)

    if caching:
        try:
            await set_cached_quote(req.seller_org_id, params, result.model_dump_json())
        except Exception as e:
            logger.warning(f"Cache write failed: {e}")

    return result


@router.get("/certified", response_model=CertifiedQuotesResponse)
async def list_certified_quotes(
    req: Annotated[CertifiedQuotesRequest, Query()],
    db: AsyncSession = Depends(get_db),
):
    quotes = await certified_quotes(db, req)
    return CertifiedQuotesResponse(quotes=quotes)
