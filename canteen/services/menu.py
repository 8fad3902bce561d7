import logging

from canteen import db
from canteen.errors import ValidationError
from canteen.models import MENU_CATEGORIES, MenuItem
from canteen.services.helper import get_or_404, update_logic

logger = logging.getLogger(__name__)


def list_available(category=None):
    """Available items in catalog insertion order, optionally one category."""
    query = MenuItem.query.filter_by(is_available=True)
    if category is not None:
        if category not in MENU_CATEGORIES:
            raise ValidationError(
                f"Invalid category. Options: {list(MENU_CATEGORIES)}")
        query = query.filter_by(category=category)
    return [item.to_dict() for item in query.order_by(MenuItem.id).all()]


def list_all():
    return [item.to_dict() for item in MenuItem.query.order_by(MenuItem.id).all()]


def get_item(item_id):
    return get_or_404(MenuItem, item_id, "menu item").to_dict()


def create_item(data):
    item = MenuItem(**data)
    db.session.add(item)
    db.session.commit()
    logger.info(f"Menu item {item.id} '{item.name}' created")
    return item.to_dict()


def update_item(item_id, data):
    item = get_or_404(MenuItem, item_id, "menu item")
    update_logic(item, data)
    db.session.commit()
    logger.info(f"Menu item {item.id} updated: {sorted(data)}")
    return item.to_dict()


def delete_item(item_id):
    """Hard delete; order lines keep their own snapshot of the item."""
    item = get_or_404(MenuItem, item_id, "menu item")
    db.session.delete(item)
    db.session.commit()
    logger.info(f"Menu item {item_id} deleted")
    return {"message": "Menu item deleted successfully"}


def toggle_availability(item_id):
    item = get_or_404(MenuItem, item_id, "menu item")
    item.is_available = not item.is_available
    db.session.commit()
    return item.to_dict()
