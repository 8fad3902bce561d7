import logging

from celery import shared_task
from sqlalchemy.exc import SQLAlchemyError

from canteen import db
from canteen.services import housekeeping

# Set up logging
logger = logging.getLogger(__name__)


@shared_task(bind=True, name="canteen.tasks.purge_expired_tokens", max_retries=3)
def purge_expired_tokens(self):
    """Drop blocklisted token ids whose tokens have expired."""
    try:
        return housekeeping.purge_expired_tokens()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error in purge_expired_tokens: {str(e)}")
        raise self.retry(exc=e, countdown=300)  # Retry after 5 minutes


@shared_task(bind=True, name="canteen.tasks.clear_expired_otps", max_retries=3)
def clear_expired_otps(self):
    """Null out one-time codes that are past their expiry."""
    try:
        return housekeeping.clear_expired_otps()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error in clear_expired_otps: {str(e)}")
        raise self.retry(exc=e, countdown=300)
