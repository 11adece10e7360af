"""Audit trail helpers for state-changing operations"""
import logging
from typing import Any, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.models.audit import Audit
from app.core.enums import AuditAction
from app.core.metrics import audit_logs_created
from app.utils.hashing import payload_hash

logger = logging.getLogger(__name__)


async def log_audit(
    db: AsyncSession,
    user_id: int,
    action: AuditAction,
    payload: Optional[Any] = None,
) -> None:
    """Commit a hashed payload for `action`.

    Call after the audited change is committed. Failures are logged and never
    break the request that triggered them.
    """
    try:
        audit_record = Audit(
            user_id=int(user_id),
            action=str(action),
            payload_hash=payload_hash(payload or {}),
        )
        db.add(audit_record)
        await db.commit()
        audit_logs_created.labels(action=str(action)).inc()

    except Exception as e:
        await db.rollback()
        logger.error(f"Audit logging failed for action {action}: {e}", exc_info=True)
