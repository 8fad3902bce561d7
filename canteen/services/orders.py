"""Order pricing, persistence and status lifecycle.

Every order has an owning user. Signed-in callers own their orders; guest
checkouts are attached to the account holding the customer's phone
number, which is created (without a password) on first use. Looking up
guest orders by phone is then a plain owner lookup.

A guest checkout carries no proof of owning the phone, so it may only
attach to passwordless non-admin accounts. Phones of password or admin
accounts must sign in to order.
"""

import logging

from canteen import db
from canteen.errors import Conflict, Forbidden, InvalidState, NotFound, Unauthenticated, ValidationError
from canteen.models import MenuItem, Order, OrderLine, ORDER_STATUSES, PAYMENT_STATUSES, User
from canteen.services.helper import get_or_404

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("delivered", "cancelled")


def _price_lines(items):
    """Snapshot every requested line at the live catalog price.

    Nothing is written here; a missing item aborts the whole order.
    """
    if not items:
        raise ValidationError("An order needs at least one item.")

    lines = []
    total = 0.0
    for entry in items:
        menu_item_id = entry.get("menu_item_id")
        quantity = entry.get("quantity")
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError("Quantity must be at least 1.", menuItemId=menu_item_id)

        menu_item = db.session.get(MenuItem, menu_item_id) if menu_item_id is not None else None
        if not menu_item:
            raise NotFound(f"Menu item {menu_item_id} not found", menuItemId=menu_item_id)
        if not menu_item.is_available:
            raise InvalidState(f"Menu item '{menu_item.name}' is currently unavailable",
                               menuItemId=menu_item_id)

        lines.append(OrderLine(
            menu_item_id=menu_item.id,
            name=menu_item.name,
            price=menu_item.price,
            quantity=quantity,
        ))
        total += menu_item.price * quantity

    return lines, round(total, 2)


def _resolve_owner(principal, customer_details):
    """Return the owning user and the customer details to store on the order."""
    details = customer_details or {}

    if principal is not None:
        owner = db.session.get(User, principal.id)
        if not owner:
            raise Unauthenticated("Not authenticated")
        return owner, {
            "name": details.get("name") or owner.name,
            "phone": details.get("phone") or owner.phone,
            "email": details.get("email") or owner.email,
        }

    if not details.get("name") or not details.get("phone"):
        raise ValidationError("Customer name and phone are required for guest orders.")

    owner = User.query.filter_by(phone=details["phone"]).first()
    if owner and (owner.has_password or owner.role == "admin"):
        raise Conflict("This phone number belongs to a registered account. Please sign in to order.")
    if not owner:
        logger.info(f"Creating guest account for phone {details['phone']}")
        owner = User(
            phone=details["phone"],
            name=details["name"],
            role="user",
            profile_completed=False,
        )
        db.session.add(owner)
    return owner, {
        "name": details["name"],
        "phone": details["phone"],
        "email": details.get("email"),
    }


def _resolve_location(owner, delivery_location):
    if delivery_location:
        return delivery_location["block"], delivery_location["class_number"]
    if owner.profile_completed and owner.block and owner.class_number:
        return owner.block, owner.class_number
    raise ValidationError("Delivery location (block and class number) is required.")


def place_order(items, delivery_location=None, customer_details=None, principal=None):
    lines, total_amount = _price_lines(items)
    owner, customer = _resolve_owner(principal, customer_details)
    block, class_number = _resolve_location(owner, delivery_location)

    order = Order(
        user=owner,
        customer_name=customer["name"],
        customer_phone=customer["phone"],
        customer_email=customer["email"],
        delivery_block=block,
        delivery_class_number=class_number,
        total_amount=total_amount,
        status="pending",
        payment_status="pending",
        lines=lines,
    )
    db.session.add(order)
    db.session.commit()

    logger.info(f"Order #{order.id} placed by user {owner.id}: {len(lines)} lines, total {total_amount}")
    return order.to_dict()


def _newest_first(query):
    return query.order_by(Order.created_at.desc(), Order.id.desc())


def list_mine(owner_id):
    return [o.to_dict() for o in _newest_first(Order.query.filter_by(user_id=owner_id)).all()]


def list_by_phone(phone):
    query = Order.query.join(User, Order.user_id == User.id).filter(User.phone == phone)
    return [o.to_dict() for o in _newest_first(query).all()]


def list_all(status=None):
    query = Order.query
    if status is not None:
        if status not in ORDER_STATUSES:
            raise ValidationError(f"Invalid status. Options: {list(ORDER_STATUSES)}")
        query = query.filter_by(status=status)
    return [o.to_dict() for o in _newest_first(query).all()]


def _check_access(order, principal):
    if order.user_id != principal.id and not principal.is_admin:
        raise Forbidden("Not authorized")


def get_order(order_id, principal):
    order = get_or_404(Order, order_id, "order")
    _check_access(order, principal)
    return order.to_dict()


def set_status(order_id, new_status):
    """Admin status overwrite.

    Intermediate states may be set in any order. Delivered and cancelled
    orders are frozen, only a pending order can be cancelled, and nothing
    goes back to pending.
    """
    if new_status not in ORDER_STATUSES:
        raise ValidationError(f"Invalid status. Options: {list(ORDER_STATUSES)}")

    order = get_or_404(Order, order_id, "order")
    if order.status in TERMINAL_STATUSES:
        raise InvalidState(f"Order is already {order.status} and can no longer change.",
                           status=order.status)
    if new_status == "cancelled" and order.status != "pending":
        raise InvalidState("Only pending orders can be cancelled.", status=order.status)
    if new_status == "pending" and order.status != "pending":
        raise InvalidState("An order cannot return to pending.", status=order.status)

    previous = order.status
    order.status = new_status
    db.session.commit()
    logger.info(f"Order #{order.id} status {previous} -> {new_status}")
    return order.to_dict()


def cancel(order_id, principal):
    order = get_or_404(Order, order_id, "order")
    _check_access(order, principal)
    if order.status != "pending":
        raise InvalidState("Order cannot be cancelled", status=order.status)

    order.status = "cancelled"
    db.session.commit()
    logger.info(f"Order #{order.id} cancelled by user {principal.id}")
    return order.to_dict()


def set_payment_status(order_id, payment_status):
    if payment_status not in PAYMENT_STATUSES:
        raise ValidationError(f"Invalid payment status. Options: {list(PAYMENT_STATUSES)}")

    order = get_or_404(Order, order_id, "order")
    if order.status == "cancelled":
        raise InvalidState("Cannot change payment of a cancelled order.", status=order.status)
    order.payment_status = payment_status
    db.session.commit()
    return order.to_dict()
