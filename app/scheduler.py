"""Background scheduler — periodic integration sync for every client.

APScheduler AsyncIOScheduler running inside the app's event loop.
  - integration_sync: every SYNC_INTERVAL_MINUTES, syncs each client with at
    least one enabled integration, one client at a time
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

log = logging.getLogger(__name__)

scheduler = AsyncIOScheduler(timezone="UTC")


def configure_scheduler() -> None:
    """Register jobs according to settings. Safe to call more than once."""
    from . import config

    settings = config.settings
    if not settings.scheduler_enabled:
        log.info("Scheduler disabled (SCHEDULER_ENABLED=false)")
        return

    scheduler.add_job(
        _job_integration_sync,
        IntervalTrigger(minutes=settings.sync_interval_minutes),
        id="integration_sync",
        name="Sync all client integrations",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    log.info(f"Scheduler configured — integration sync every {settings.sync_interval_minutes} min")


async def _job_integration_sync() -> None:
    from . import database
    from .services.sync_service import sync_all_clients

    db = database.SessionLocal()
    try:
        results = await sync_all_clients(db)
        failed = [r.client_id for r in results if not r.success]
        if failed:
            log.warning(f"Scheduled sync: {len(failed)} client(s) had provider errors: {failed}")
    except Exception as e:
        log.error(f"Scheduled sync error: {e}")
        db.rollback()
    finally:
        db.close()
