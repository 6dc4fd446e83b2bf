# worktrack/services/dispatch.py
"""
Runs work log notification mail either inline or in a background thread
"""

import threading
import logging
from typing import List, Optional

from worktrack.config.settings import Settings

logger = logging.getLogger(__name__)


def send_notifications(work_log, db, update_type: str = "comment", files: Optional[List] = None):
    """Send queued deliveries now, or from a daemon thread in production"""
    if Settings.is_production():
        return send_notifications_async(work_log.id, update_type, files)
    work_log.send_notifications(db, update_type, files)
    return None


def send_notifications_async(work_log_id: int, update_type: str = "comment", files: Optional[List] = None):
    """Helper function to send notifications from a separate thread with its own session"""

    def run_notification():
        # Import here to avoid circular imports
        from worktrack.database import SessionLocal
        from worktrack.models.work_log import WorkLog

        db = SessionLocal()
        try:
            work_log = db.get(WorkLog, work_log_id)
            if work_log is None:
                logger.warning(f"Work log {work_log_id} vanished before its notifications were sent")
                return
            work_log.send_notifications(db, update_type, files)
        except Exception:
            db.rollback()
            # undelivered rows stay queued for the delivery sweeper
            logger.exception(f"Error sending notifications for work log {work_log_id}")
        finally:
            db.close()

    # Run in a separate thread to avoid blocking the main request
    thread = threading.Thread(target=run_notification, daemon=True)
    thread.start()
    return thread
