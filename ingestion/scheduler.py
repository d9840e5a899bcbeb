import logging
from typing import Callable, Optional
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from core.config import settings
from ingestion.job import ETLJob

logger = logging.getLogger(__name__)

JobFactory = Callable[[], ETLJob]


class ETLScheduler:
    """Runs the full ETL at fixed hours of the day (06/12/18/22 JST by default)"""

    def __init__(
        self,
        job_factory: JobFactory,
        hours: str = settings.ETL_SCHEDULE_HOURS,
        timezone: str = settings.ETL_SCHEDULE_TIMEZONE,
        scheduler: Optional[AsyncIOScheduler] = None
    ):
        self.job_factory = job_factory
        self.hours = hours
        self.timezone = timezone
        self.scheduler = scheduler or AsyncIOScheduler(timezone=timezone)

    def build_trigger(self) -> CronTrigger:
        return CronTrigger(hour=self.hours, minute=0, timezone=self.timezone)

    async def run_etl_job(self):
        """Job to run ETL pipeline"""
        logger.info("Scheduler: Starting ETL job")
        try:
            outcome = await self.job_factory().run(trigger="scheduler")
        except Exception as e:
            logger.error(f"Scheduler: ETL job failed - {e}")
            return None

        if outcome.success:
            logger.info(f"Scheduler: ETL job {outcome.run_id} completed")
        else:
            logger.error(f"Scheduler: ETL job {outcome.run_id} failed - {outcome.error}")
        return outcome

    def start(self):
        """Start the scheduler"""
        self.scheduler.add_job(
            self.run_etl_job,
            trigger=self.build_trigger(),
            id="etl_job",
            replace_existing=True,
            max_instances=1,
            coalesce=True
        )
        self.scheduler.start()
        logger.info(f"ETL Scheduler started (hours={self.hours}, timezone={self.timezone})")

    def stop(self):
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("ETL Scheduler stopped")
