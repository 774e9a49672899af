"""Guardian - Scheduler Jobs.

APScheduler interval job that runs the post-execution monitoring check
against the sheet-backed proposal store, pulling after-metrics from Meta.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from guardian.config import AnalysisConfig, Settings, get_settings
from guardian.models.proposal_models import MetricsSnapshot, Proposal
from guardian.connectors.meta.client import MetaClient
from guardian.connectors.meta.transformer import normalize_daily_records
from guardian.connectors.sheets.client import SheetsProxyClient
from guardian.connectors.sheets.store import SheetsProposalStore
from guardian.monitoring.job import MetricsFetcher, run_monitoring_check, snapshot_from_days
from guardian.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def make_meta_fetcher(
    client: MetaClient,
    config: AnalysisConfig | None = None,
    clock: Callable[[], datetime] = _utcnow,
) -> MetricsFetcher:
    """After-metrics = yesterday, the latest completed day.

    A single day keeps spend and purchases on the same per-day scale as the
    pre-execution snapshot at every checkpoint.
    """
    config = config or AnalysisConfig()

    async def fetch(proposal: Proposal) -> Optional[MetricsSnapshot]:
        yesterday = (clock() - timedelta(days=1)).date().isoformat()
        rows = await client.fetch_daily_insights(
            proposal.campaign_id, yesterday, yesterday
        )
        days = normalize_daily_records(rows, config)
        return snapshot_from_days(days)

    return fetch


async def monitoring_job(settings: Settings | None = None):
    """Run one monitoring pass."""
    settings = settings or get_settings()
    logger.info("Scheduled monitoring check starting...")
    meta = MetaClient(settings)
    sheets = SheetsProxyClient(settings)
    try:
        result = await run_monitoring_check(
            SheetsProposalStore(sheets),
            make_meta_fetcher(meta, settings.analysis),
            _utcnow(),
            settings.analysis,
        )
        logger.info(
            f"Scheduled monitoring complete. "
            f"{result.observations_created} observations, {result.closed} closed"
        )
    except Exception as e:
        logger.error(f"Scheduled monitoring failed: {e}")
    finally:
        await meta.close()
        await sheets.close()


def start_scheduler(settings: Settings | None = None):
    """Configure and start the scheduler."""
    settings = settings or get_settings()
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        monitoring_job,
        "interval",
        minutes=settings.monitoring_interval_minutes,
        kwargs={"settings": settings},
        id="proposal_monitoring",
        replace_existing=True,
        misfire_grace_time=600,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Monitoring every {settings.monitoring_interval_minutes} min"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
