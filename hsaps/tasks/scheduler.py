"""
Scheduled maintenance jobs for HSAPS.

Uses APScheduler BackgroundScheduler. Only one worker starts the scheduler
(file-lock guard) so jobs never run twice.
"""

import os
import atexit
import fcntl
from apscheduler.schedulers.background import BackgroundScheduler
from core.utils.logging_config import get_logger

logger = get_logger('hsaps.tasks.scheduler')

scheduler = BackgroundScheduler(daemon=True)
_lock_file = None


def cleanup_old_notifications():
    """Delete in-app notifications older than 30 days."""
    try:
        from core.notifications.repositories import NotificationRepository
        count = NotificationRepository().delete_old(days=30)
        if count > 0:
            logger.info(f"Cleanup: deleted {count} old notifications (>30 days)")
    except Exception as e:
        logger.error(f"Notification cleanup task failed: {e}")


def refresh_zalo_token():
    """Refresh the Zalo OA access token before its 25h lifetime runs out."""
    try:
        from core.settings.services import MessagingService
        result = MessagingService().refresh_zalo_token()
        if result.success:
            logger.info("Zalo access token refreshed")
        else:
            logger.warning(f"Zalo token refresh skipped: {result.error}")
    except Exception as e:
        logger.error(f"Zalo token refresh task failed: {e}")


def retry_submission_side_effects():
    """Re-run failed submission side effects still below the attempt cap."""
    try:
        from submissions.services import SideEffectRunner
        retried = SideEffectRunner().retry_failed()
        if retried:
            logger.info(f"Side-effect retry: {retried} effects retried")
    except Exception as e:
        logger.error(f"Side-effect retry task failed: {e}")


def _acquire_scheduler_lock():
    """Try to acquire an exclusive file lock. Returns True if this process won."""
    global _lock_file
    try:
        lock_path = os.path.join(os.path.dirname(__file__), '..', '.scheduler.lock')
        _lock_file = open(lock_path, 'w')
        fcntl.flock(_lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        _lock_file.write(str(os.getpid()))
        _lock_file.flush()
        return True
    except (IOError, OSError):
        if _lock_file:
            _lock_file.close()
            _lock_file = None
        return False


def start_scheduler():
    """Start the background scheduler with all maintenance jobs.

    Other workers skip silently when the lock is held.
    """
    if scheduler.running:
        return

    if not _acquire_scheduler_lock():
        logger.debug(f"Scheduler lock held by another worker, skipping (pid={os.getpid()})")
        return

    scheduler.add_job(
        cleanup_old_notifications,
        'cron',
        hour=1,
        minute=0,
        id='cleanup_old_notifications',
        replace_existing=True,
        misfire_grace_time=300,
        coalesce=True,
    )

    scheduler.add_job(
        refresh_zalo_token,
        'interval',
        hours=23,
        id='refresh_zalo_token',
        replace_existing=True,
        misfire_grace_time=300,
        coalesce=True,
    )

    scheduler.add_job(
        retry_submission_side_effects,
        'interval',
        minutes=10,
        id='retry_submission_side_effects',
        replace_existing=True,
        misfire_grace_time=300,
        coalesce=True,
    )

    scheduler.start()
    atexit.register(lambda: scheduler.shutdown(wait=False))
    logger.info(f"Background scheduler started (pid={os.getpid()})")


def stop_scheduler():
    """Stop the background scheduler."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Background scheduler stopped")
