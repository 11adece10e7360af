from celery import Celery
from app.core.config import settings

celery_app = Celery(
    "worker",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_BACKEND,
)
celery_app.conf.task_routes = {"app.services.tasks.expire_stale_jobs": {"queue": "maintenance"}}
celery_app.conf.beat_schedule = {
    "expire-stale-jobs": {
        "task": "app.services.tasks.expire_stale_jobs",
        "schedule": float(settings.JOB_EXPIRY_INTERVAL),
    },
}


@celery_app.task(bind=True, max_retries=3)
def expire_stale_jobs(self):
    import asyncio
    from app.services.tasks_internal import expire_stale_jobs_async

    try:
        return asyncio.run(expire_stale_jobs_async())
    except Exception as e:
        retry_kwargs = {"countdown": 2 ** self.request.retries}
        raise self.retry(exc=e, **retry_kwargs)
