import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler

from . import config
from .functions import send_enquiry_reminders

logger = logging.getLogger(__name__)


def run_enquiry_reminders():
    try:
        result = send_enquiry_reminders()
        logger.info("Enquiry reminder run: %s", result)
    except Exception:
        logger.exception("Enquiry reminder run failed")


def build_scheduler(interval_minutes: Optional[int] = None) -> Optional[BackgroundScheduler]:
    """Background scheduler with the reminder job, or None when disabled (interval <= 0)."""
    minutes = config.ENQUIRY_REMINDER_INTERVAL_MINUTES if interval_minutes is None else interval_minutes
    if minutes <= 0:
        return None
    scheduler = BackgroundScheduler()
    scheduler.add_job(run_enquiry_reminders, "interval", minutes=minutes, id="enquiry_reminders",
                      max_instances=1, coalesce=True)
    return scheduler
