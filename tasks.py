"""
Celery app for scheduled work.

Beat schedule:
  send-daily-summary - daily 01:00 (SUMMARY_TIMEZONE) - mails yesterday's summary

Run with:
  celery -A tasks worker --beat
"""
import logging
from typing import Optional

from celery import Celery
from celery.schedules import crontab

from mailer import send_summary_for_date, yesterday
from settings import load_settings
from store import create_stores

logger = logging.getLogger(__name__)

settings = load_settings()

celery_app = Celery(
    "shift_reports",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone=settings.summary_timezone,
    enable_utc=True,
    result_expires=3600,
    beat_schedule={
        "send-daily-summary": {
            "task": "tasks.send_daily_summary",
            "schedule": crontab(hour=1, minute=0),
            "options": {"expires": 3600},
        },
    },
)


@celery_app.task(name="tasks.send_daily_summary")
def send_daily_summary(target_date: Optional[str] = None) -> dict:
    target_date = target_date or yesterday(settings.summary_timezone)
    report_store, _ = create_stores(settings)
    try:
        result = send_summary_for_date(report_store, target_date, settings)
    except Exception:
        logger.exception("Failed to send summary for %s", target_date)
        raise
    logger.info("Daily summary for %s: %s", target_date, result.model_dump())
    return result.model_dump()
