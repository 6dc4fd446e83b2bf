# worktrack/services/scheduler.py
"""
Scheduler service that retries e-mail deliveries a failed batch left queued
"""

from datetime import datetime, timedelta
from typing import Any, Dict
from sqlalchemy.orm import Session
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
import logging

from worktrack.config.settings import Settings
from worktrack.database import SessionLocal
from worktrack.models import EmailDelivery, WorkLog

logger = logging.getLogger(__name__)


def send_stale_deliveries(db: Session, older_than: timedelta) -> Dict[str, int]:
    """
    Send every delivery still queued after `older_than`, one work log at a time.

    Deliveries of logs that are never mailed (work without a comment) stay
    queued as a record of the notified recipients and are skipped.
    """
    cutoff = datetime.utcnow() - older_than
    work_log_ids = [
        row.work_log_id for row in db.query(EmailDelivery.work_log_id).join(
            WorkLog, WorkLog.id == EmailDelivery.work_log_id
        ).filter(
            EmailDelivery.status == EmailDelivery.QUEUED,
            EmailDelivery.created_at <= cutoff,
            WorkLog.sends_mail
        ).distinct().all()
    ]

    processed = 0
    failed = 0
    for work_log_id in work_log_ids:
        work_log = db.get(WorkLog, work_log_id)
        if work_log is None:
            continue
        try:
            work_log.send_notifications(db)
            processed += 1
        except Exception as e:
            db.rollback()
            failed += 1
            logger.error(f"Failed to send queued notifications for work log {work_log_id}: {e}")

    logger.info(f"Queued deliveries processed: work_logs={processed}, failed={failed}")
    return {"processed": processed, "failed": failed}


class DeliveryScheduler:
    """Scheduler for the queued notification sweep"""

    def __init__(self):
        self.scheduler = AsyncIOScheduler()
        self.is_running = False

    def start(self):
        """Start the scheduler"""
        if not self.is_running:
            self.scheduler.add_job(
                self.sweep_queued_deliveries,
                trigger=IntervalTrigger(minutes=Settings.SCHEDULER['sweep_interval_minutes']),
                id='sweep_queued_deliveries',
                name='Send Stale Queued Deliveries',
                replace_existing=True
            )
            self.scheduler.start()
            self.is_running = True
            logger.info("Delivery scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Delivery scheduler stopped")

    async def sweep_queued_deliveries(self) -> Dict[str, int]:
        logger.info("Checking for stale queued deliveries...")
        db = SessionLocal()
        try:
            return send_stale_deliveries(
                db, timedelta(minutes=Settings.SCHEDULER['stale_after_minutes'])
            )
        finally:
            db.close()

    def get_scheduler_status(self) -> Dict[str, Any]:
        jobs = []
        if self.is_running:
            for job in self.scheduler.get_jobs():
                jobs.append({
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                })
        return {"status": "running" if self.is_running else "stopped", "jobs": jobs}


delivery_scheduler = DeliveryScheduler()
