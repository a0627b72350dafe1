# core/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from core.config import settings
from core.logging_config import logger
from services.outbox import outbox

_scheduler = None


def run_outbox_retry():
    """Re-deliver anything the post-response background task could not send."""
    try:
        outbox.flush()
    except Exception:
        logger.exception("[SCHEDULER] Outbox retry failed")


def start_scheduler():
    """
    Initialize the APScheduler background process.
    Retries the notification outbox every OUTBOX_RETRY_SECONDS.
    """
    global _scheduler
    if _scheduler is not None:
        return _scheduler

    scheduler = BackgroundScheduler(timezone="UTC")

    scheduler.add_job(
        run_outbox_retry,
        trigger=IntervalTrigger(seconds=settings.OUTBOX_RETRY_SECONDS),
        id="outbox_retry_job",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )

    scheduler.start()
    _scheduler = scheduler
    logger.info(f"⏰ Scheduler started. Outbox retry every {settings.OUTBOX_RETRY_SECONDS}s.")
    return scheduler


def shutdown_scheduler():
    global _scheduler
    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        _scheduler = None
