import logging

from canteen import db
from canteen.models import TokenBlocklist, User, utcnow

logger = logging.getLogger(__name__)


def purge_expired_tokens(now=None):
    """Drop blocklist rows for tokens that have expired anyway."""
    now = now or utcnow()
    removed = TokenBlocklist.query.filter(TokenBlocklist.expires_at < now).delete(
        synchronize_session=False)
    db.session.commit()
    logger.info(f"Purged {removed} expired blocklist entries")
    return removed


def clear_expired_otps(now=None):
    """Null out one-time codes past their expiry."""
    now = now or utcnow()
    users = User.query.filter(
        User.otp_code.isnot(None),
        User.otp_expires_at < now,
    ).all()
    for user in users:
        user.otp_code = None
        user.otp_expires_at = None
    db.session.commit()
    logger.info(f"Cleared {len(users)} expired one-time codes")
    return len(users)
