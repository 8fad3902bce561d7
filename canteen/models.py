from canteen import db
from datetime import datetime, timezone


USER_ROLES = ("student", "admin", "user")
MENU_CATEGORIES = ("breakfast", "lunch", "dinner", "snacks", "beverages")
ORDER_STATUSES = ("pending", "confirmed", "preparing",
                  "ready", "delivered", "cancelled")
PAYMENT_STATUSES = ("pending", "completed")


def utcnow():
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class User(db.Model):
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    phone = db.Column(db.String(20), nullable=False, unique=True, index=True)
    email = db.Column(db.String(120), nullable=True, unique=True)
    name = db.Column(db.String(100), nullable=False)
    # Absent for OTP-only and guest accounts
    password = db.Column(db.String(200), nullable=True)
    role = db.Column(db.String(20), nullable=False,
                     default='student')  # 'student', 'admin' or 'user'

    # Delivery address
    block = db.Column(db.String(50), nullable=True)
    class_number = db.Column(db.String(50), nullable=True)
    profile_completed = db.Column(db.Boolean, nullable=False, default=False)

    otp_code = db.Column(db.String(10), nullable=True)
    otp_expires_at = db.Column(db.DateTime, nullable=True)
    is_phone_verified = db.Column(db.Boolean, nullable=False, default=False)

    is_email_verified = db.Column(db.Boolean, nullable=False, default=False)
    email_verification_code = db.Column(db.String(10), nullable=True)
    verification_code_sent_at = db.Column(db.DateTime, nullable=True)

    login_attempts = db.Column(db.Integer, nullable=False, default=0)
    lock_until = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    orders = db.relationship("Order", back_populates="user", lazy="dynamic")

    @property
    def has_password(self):
        return bool(self.password)

    def is_locked(self, now=None):
        return self.lock_until is not None and self.lock_until > (now or utcnow())

    def to_dict(self):
        return {
            "_id": self.id,
            "phone": self.phone,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "block": self.block,
            "classNumber": self.class_number,
            "profileCompleted": self.profile_completed,
            "isPhoneVerified": self.is_phone_verified,
            "isEmailVerified": self.is_email_verified,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<User {self.id} {self.phone} ({self.role})>"


class MenuItem(db.Model):
    __tablename__ = 'menu_item'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.Float, nullable=False)
    category = db.Column(
        db.Enum(*MENU_CATEGORIES, name='menu_category_enum'),
        nullable=False, index=True)
    image = db.Column(db.String(255), nullable=False)
    is_available = db.Column(db.Boolean, nullable=False, default=True)
    preparation_time = db.Column(db.Integer, nullable=False)  # minutes

    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "_id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "image": self.image,
            "isAvailable": self.is_available,
            "preparationTime": self.preparation_time,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'),
                        nullable=False, index=True)

    customer_name = db.Column(db.String(100), nullable=False)
    customer_phone = db.Column(db.String(20), nullable=False)
    customer_email = db.Column(db.String(120), nullable=True)

    delivery_block = db.Column(db.String(50), nullable=False)
    delivery_class_number = db.Column(db.String(50), nullable=False)

    total_amount = db.Column(db.Float, nullable=False)
    status = db.Column(
        db.Enum(*ORDER_STATUSES, name='order_status_enum'),
        nullable=False, default='pending', index=True)
    payment_status = db.Column(
        db.Enum(*PAYMENT_STATUSES, name='payment_status_enum'),
        nullable=False, default='pending')

    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="orders")
    lines = db.relationship(
        "OrderLine",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderLine.id",
    )

    def to_dict(self):
        return {
            "_id": self.id,
            "user": {
                "_id": self.user.id,
                "name": self.user.name,
                "email": self.user.email,
            } if self.user else None,
            "customerDetails": {
                "name": self.customer_name,
                "phone": self.customer_phone,
                "email": self.customer_email,
            },
            "items": [line.to_dict() for line in self.lines],
            "totalAmount": self.total_amount,
            "status": self.status,
            "deliveryLocation": {
                "block": self.delivery_block,
                "classNumber": self.delivery_class_number,
            },
            "paymentStatus": self.payment_status,
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<Order #{self.id} - {self.customer_name} - {self.status}>"


class OrderLine(db.Model):
    """Price and name snapshot of one ordered menu item."""
    __tablename__ = 'order_line'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id'), nullable=False)
    # Plain column: deleting the menu item must leave the snapshot intact
    menu_item_id = db.Column(db.Integer, nullable=False)
    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Float, nullable=False)
    quantity = db.Column(db.Integer, nullable=False)

    order = db.relationship("Order", back_populates="lines")

    @property
    def line_total(self):
        return self.price * self.quantity

    def to_dict(self):
        return {
            "menuItemId": self.menu_item_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
        }


class TokenBlocklist(db.Model):
    __tablename__ = "token_blocklist"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(36), nullable=False, unique=True)
    created_at = db.Column(
        db.DateTime, default=utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)
