import logging
import secrets
import string

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from canteen import db
from canteen.errors import Conflict, NotFound

logger = logging.getLogger(__name__)


def generate_numeric_code(length):
    """Random numeric code of the given length (leading zeros allowed)."""
    return ''.join(secrets.choice(string.digits) for _ in range(length))


def get_or_404(Model, id, entity):
    """Fetch an item by ID or raise NotFound."""
    item = db.session.get(Model, id)
    if not item:
        raise NotFound(f"{entity.capitalize()} not found.")
    return item


def commit_or_conflict(entity):
    """Commit the session, turning unique-constraint violations into Conflict."""
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        error_message = str(e.orig)
        logger.warning(f"Integrity error while saving {entity}: {error_message}")

        if "email" in error_message:
            raise Conflict(f"A {entity} with this email already exists.")
        elif "phone" in error_message:
            raise Conflict(f"A {entity} with this phone number already exists.")
        raise
    except SQLAlchemyError:
        db.session.rollback()
        raise


def update_logic(item, data):
    """Copy the given fields onto the model instance."""
    for key, value in data.items():
        if hasattr(item, key):
            setattr(item, key, value)
    return item
