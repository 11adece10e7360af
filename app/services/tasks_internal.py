import logging
from datetime import date
from typing import List, Optional
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from app.core.config import settings
from app.services.marketplace import expire_stale_jobs

logger = logging.getLogger(__name__)

engine_worker = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
AsyncSessionWorker = sessionmaker(engine_worker, class_=AsyncSession, expire_on_commit=False)


async def expire_stale_jobs_async(today: Optional[date] = None, session_factory=AsyncSessionWorker) -> List[int]:
    """Background sweep moving OPEN jobs past their window to EXPIRED."""
    async with session_factory() as db:
        expired = await expire_stale_jobs(db, today)
    logger.info(f"Expiry sweep finished: {len(expired)} jobs expired")
    return expired
