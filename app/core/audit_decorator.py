import logging
from functools import wraps
from typing import Callable
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.enums import AuditAction
from app.core.audit_log import log_audit

logger = logging.getLogger(__name__)

PAYLOAD_KWARGS = ["payload", "data", "body"]


def audit_log(action: AuditAction) -> Callable:
    """Audit a route after it succeeds, using its `db`, `current_user` and payload kwargs."""

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            result = await func(*args, **kwargs)

            db: AsyncSession = kwargs.get("db")
            current_user = kwargs.get("current_user")

            if not db or not current_user:
                return result

            payload = None
            for key in PAYLOAD_KWARGS:
                if key in kwargs:
                    payload = kwargs[key]
                    break
            if payload is None:
                payload = {k: v for k, v in kwargs.items() if k.endswith("_id")}

            await log_audit(db, int(current_user.id), action, payload)
            return result

        return wrapper
    return decorator
