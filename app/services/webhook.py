import httpx
import asyncio
import logging
from app.core.config import settings
from app.core.metrics import webhook_deliveries

logger = logging.getLogger(__name__)


def _describe(payload: dict) -> str:
    subject = next((f"{k} {v}" for k, v in payload.items() if k.endswith("_id")), "")
    return f"{payload.get('event', 'event')} {subject}".strip()


async def send_webhook(payload: dict, retries: int | None = None) -> bool:
    """POST an event to WEBHOOK_URL, retrying with exponential backoff."""
    if not settings.WEBHOOK_URL:
        logger.debug(f"WEBHOOK_URL not set; skipping {_describe(payload)}")
        webhook_deliveries.labels(status="skipped").inc()
        return False

    if retries is None:
        retries = settings.WEBHOOK_RETRIES

    backoff = 1.0
    label = _describe(payload)

    for attempt in range(1, retries + 1):
        try:
            async with httpx.AsyncClient(timeout=settings.WEBHOOK_TIMEOUT) as client:
                response = await client.post(settings.WEBHOOK_URL, json=payload)

                if 200 <= response.status_code < 300:
                    logger.info(f"Webhook delivery succeeded for {label}")
                    webhook_deliveries.labels(status="delivered").inc()
                    return True
                else:
                    logger.warning(
                        f"Webhook delivery failed (attempt {attempt}/{retries}): "
                        f"Status {response.status_code} for {label}"
                    )
        except httpx.TimeoutException:
            logger.warning(f"Webhook timeout (attempt {attempt}/{retries}) for {label}")
        except httpx.HTTPError as e:
            logger.warning(f"Webhook delivery error (attempt {attempt}/{retries}): {e} for {label}")

        if attempt < retries:
            await asyncio.sleep(backoff)
            backoff *= 2.0

    logger.error(f"Webhook delivery failed after {retries} attempts for {label}")
    webhook_deliveries.labels(status="failed").inc()
    return False
