# shopsync/scheduler.py
from apscheduler.schedulers.background import BackgroundScheduler
from .errors import SyncAlreadyRunning, SyncError
from .utils import logger


def scheduled_sync(orchestrator):
    try:
        orchestrator.run_sync()
    except SyncAlreadyRunning as e:
        logger.info("Scheduled sync skipped: %s", e)
    except SyncError as e:
        # already logged by the orchestrator; the next interval retries the whole run
        logger.error("Scheduled sync failed: %s", e)


def create_scheduler(orchestrator, interval_minutes: int) -> BackgroundScheduler:
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        scheduled_sync, "interval", minutes=interval_minutes, args=[orchestrator],
        id="catalog-sync", max_instances=1, coalesce=True,
    )
    return scheduler
