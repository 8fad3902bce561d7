from datetime import datetime, timezone

from canteen import db
from canteen.models import TokenBlocklist


def logout_logic(jti, expires_at):
    """Add token to the blocklist with its expiration time."""
    if TokenBlocklist.query.filter_by(jti=jti).first() is None:
        expiry = datetime.fromtimestamp(expires_at, tz=timezone.utc).replace(tzinfo=None)
        db.session.add(TokenBlocklist(jti=jti, expires_at=expiry))
        db.session.commit()
    return {"message": "Logged out successfully"}


def is_token_revoked(jwt_payload):
    """Check if the token is in the blocklist."""
    jti = jwt_payload["jti"]
    token = TokenBlocklist.query.filter_by(jti=jti).first()
    return token is not None  # True if the token is revoked
