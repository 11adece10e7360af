"""Quote lookups against stored rate cards."""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.core.config import settings
from app.core.enums import OrgStatus, OrgType, ServiceType
from app.core.metrics import quotes_calculated
from app.models.job import Job
from app.models.organization import Organization
from app.models.rate_card import RateCard
from app.schemas.quote import (
    CertifiedQuotesRequest,
    OperatorQuote,
    QuoteBreakdown,
    QuoteJob,
    QuoteRequest,
    QuoteResponse,
    RateCardTerms,
)
from app.services.geo import distance_or_default
from app.services.pricing import PricingError, calculate_quote

logger = logging.getLogger(__name__)


def current_month() -> int:
    return datetime.now(timezone.utc).month


async def get_active_rate_card(
    db: AsyncSession, seller_org_id: int, service_type: ServiceType
) -> Optional[RateCard]:
    res = await db.execute(
        select(RateCard).where(
            RateCard.seller_org_id == seller_org_id,
            RateCard.service_type == service_type,
            RateCard.is_active.is_(True),
        )
    )
    return res.scalars().first()


def price_rate_card(rate_card: RateCard, job: QuoteJob) -> QuoteBreakdown:
    terms = RateCardTerms.model_validate(rate_card)
    return calculate_quote(terms, job)


def build_pricing_snapshot(rate_card: RateCard, job: QuoteJob, breakdown: QuoteBreakdown) -> dict:
    return {
        "rate_card_id": rate_card.id,
        "seller_org_id": rate_card.seller_org_id,
        "service_type": str(rate_card.service_type),
        "job": job.model_dump(mode="json"),
        "terms": RateCardTerms.model_validate(rate_card).model_dump(mode="json"),
        "breakdown": breakdown.model_dump(mode="json"),
    }


async def estimate_for_rate_card(db: AsyncSession, req: QuoteRequest) -> QuoteResponse:
    rate_card = await get_active_rate_card(db, req.seller_org_id, req.service_type)
    if rate_card is None:
        raise HTTPException(
            status_code=404,
            detail=f"No rate card found for seller_org_id={req.seller_org_id}, service_type={req.service_type}",
        )

    job = QuoteJob(
        area_ha=req.area_ha,
        distance_km=req.distance_km,
        month=req.month or current_month(),
        terrain_conditions=req.terrain_conditions,
        has_obstacles=req.has_obstacles,
        risk_key=req.risk_key,
    )
    try:
        breakdown = price_rate_card(rate_card, job)
    except PricingError as e:
        raise HTTPException(status_code=422, detail=str(e))

    quotes_calculated.labels(source="estimate").inc()
    return QuoteResponse(
        currency=settings.DEFAULT_CURRENCY,
        total_cents=breakdown.total_cents,
        rate_card_id=rate_card.id,
        breakdown=breakdown,
        pricing_snapshot=build_pricing_snapshot(rate_card, job, breakdown),
    )


async def certified_quotes(db: AsyncSession, req: CertifiedQuotesRequest) -> List[OperatorQuote]:
    """Rank every eligible operator for a job, cheapest first, one quote each."""
    res = await db.execute(
        select(RateCard, Organization)
        .join(Organization, RateCard.seller_org_id == Organization.id)
        .where(
            RateCard.service_type == req.service_type,
            RateCard.is_active.is_(True),
            Organization.status == OrgStatus.ACTIVE,
            or_(Organization.is_certified.is_(True), Organization.org_type == OrgType.SERVICE_PROVIDER),
        )
    )
    month = req.month or current_month()

    cheapest = {}
    for rate_card, org in res.all():
        distance_km = distance_or_default(
            org.base_location_lat,
            org.base_location_lng,
            req.location_lat,
            req.location_lng,
            settings.DEFAULT_DISTANCE_KM,
        )
        job = QuoteJob(
            area_ha=req.area_ha,
            distance_km=distance_km,
            month=month,
            terrain_conditions=req.terrain_conditions,
            has_obstacles=req.has_obstacles,
        )
        try:
            breakdown = price_rate_card(rate_card, job)
        except PricingError as e:
            logger.warning(f"Skipping quote for org {org.id} ({org.legal_name}): {e}")
            continue

        quotes_calculated.labels(source="certified").inc()
        quote = OperatorQuote(
            org_id=org.id,
            org_name=org.legal_name,
            logo_url=org.logo_url,
            rate_card_id=rate_card.id,
            total_cents=breakdown.total_cents,
            distance_km=round(distance_km, 1),
        )
        existing = cheapest.get(org.id)
        if existing is None or quote.total_cents < existing.total_cents:
            cheapest[org.id] = quote

    return sorted(cheapest.values(), key=lambda q: q.total_cents)


async def price_job_for_operator(
    db: AsyncSession, job: Job, operator_org: Organization
) -> Tuple[int, dict]:
    """Price a posted job with the operator's own rate card, for offers submitted without a price."""
    rate_card = await get_active_rate_card(db, operator_org.id, job.service_type)
    if rate_card is None:
        raise HTTPException(
            status_code=400,
            detail=f"No active {job.service_type} rate card; provide total_cents explicitly",
        )

    quote_job = QuoteJob(
        area_ha=job.area_ha,
        distance_km=distance_or_default(
            operator_org.base_location_lat,
            operator_org.base_location_lng,
            job.location_lat,
            job.location_lng,
            settings.DEFAULT_DISTANCE_KM,
        ),
        month=job.target_date_start.month if job.target_date_start else current_month(),
        terrain_conditions=job.terrain_conditions,
        has_obstacles=job.has_obstacles,
    )
    try:
        breakdown = price_rate_card(rate_card, quote_job)
    except PricingError as e:
        raise HTTPException(status_code=422, detail=str(e))

    quotes_calculated.labels(source="offer").inc()
    return breakdown.total_cents, build_pricing_snapshot(rate_card, quote_job, breakdown)
