import hashlib
import json
import logging
from typing import Optional
from app.core.redis import get_redis
from app.core.config import settings

logger = logging.getLogger(__name__)


def _version_key(seller_org_id: int) -> str:
    return f"quote-version:{seller_org_id}"


async def _seller_version(redis, seller_org_id: int) -> int:
    v = await redis.get(_version_key(seller_org_id))
    return int(v) if v else 0


def _cache_key(seller_org_id: int, version: int, params: dict) -> str:
    digest = hashlib.sha256(json.dumps(params, sort_keys=True).encode()).hexdigest()
    return f"quote:{seller_org_id}:{version}:{digest}"


async def get_cached_quote(seller_org_id: int, params: dict) -> Optional[dict]:
    redis = get_redis()
    if redis is None:
        return None
    version = await _seller_version(redis, seller_org_id)
    v = await redis.get(_cache_key(seller_org_id, version, params))
    return json.loads(v) if v else None


async def set_cached_quote(seller_org_id: int, params: dict, value: str) -> None:
    redis = get_redis()
    if redis is None:
        return
    version = await _seller_version(redis, seller_org_id)
    await redis.set(_cache_key(seller_org_id, version, params), value, ex=settings.PRICE_CACHE_TTL)


async def invalidate_seller_quotes(seller_org_id: int) -> None:
    """Bump the seller's cache version; entries priced from older rate cards stop matching."""
    redis = get_redis()
    if redis is None:
        return
    try:
        await redis.incr(_version_key(seller_org_id))
    except Exception as e:
        logger.warning(f"Quote cache invalidation failed for org {seller_org_id}: {e}")
