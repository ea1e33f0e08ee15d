# storefront/tasks/expire.py
from storefront.celery_worker import celery_app
from storefront.data.database import SessionLocal
from storefront.repos.session_repo import SessionRepo
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


@celery_app.task(name="storefront.tasks.expire.purge_expired_sessions_task")
def purge_expired_sessions_task():
    logger.info("Purge expired sessions task started")

    db = SessionLocal()
    try:
        removed = SessionRepo(db).purge_expired()
        logger.info(f"Removed {removed} expired sessions")
        return removed
    finally:
        db.close()
