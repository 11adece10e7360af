import json
from typing import Optional
from app.core.redis import get_redis
from app.core.config import settings


def _idemp_key(key: str, user_id: int) -> str:
    # scoped per user
    return f"idemp:{user_id}:{key}"


async def get_idempotent(key: Optional[str], user_id: int) -> Optional[dict]:
    if not key:
        return None
    redis = get_redis()
    if redis is None:
        return None
    v = await redis.get(_idemp_key(key, user_id))
    return json.loads(v) if v else None


async def set_idempotent(key: str, user_id: int, value: dict) -> None:
    redis = get_redis()
    if redis is None:
        return
    await redis.set(_idemp_key(key, user_id), json.dumps(value, default=str), ex=settings.IDEMPOTENCY_TTL)
