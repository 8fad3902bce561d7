from marshmallow import (
    Schema,
    fields,
    validate,
    validates,
    ValidationError,
    validates_schema,
    EXCLUDE
)

from canteen.models import MENU_CATEGORIES, ORDER_STATUSES, PAYMENT_STATUSES


PHONE_REGEX = r"^\+?[0-9]{10,15}$"


def phone_field(**kwargs):
    return fields.Str(
        validate=validate.Regexp(
            PHONE_REGEX,
            error="Invalid phone number. Use 10 to 15 digits, optionally prefixed with '+'."
        ),
        **kwargs
    )


class SendOtpSchema(Schema):
    phone = phone_field(required=True)
    name = fields.Str(required=False, validate=validate.Length(min=1, max=100))


class VerifyOtpSchema(Schema):
    phone = phone_field(required=True)
    otp = fields.Str(
        required=True,
        validate=validate.Regexp(r"^[0-9]{4,8}$", error="OTP must be numeric.")
    )


class RegisterSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    phone = phone_field(required=True)
    email = fields.Email(required=False, allow_none=True, validate=validate.Length(max=120))
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=6, error="Password must be at least 6 characters")
    )

    @validates("name")
    def validate_name(self, value, **kwargs):
        if value.strip() == "":
            raise ValidationError("Name cannot be empty or only spaces.")


class LoginSchema(Schema):
    phone = phone_field(required=True)
    password = fields.Str(required=True, load_only=True)


class ProfileUpdateSchema(Schema):
    # Presence is checked by the service so the message stays the same
    # for missing and blank values.
    block = fields.Str(required=False, allow_none=True, validate=validate.Length(max=50))
    class_number = fields.Str(
        required=False, allow_none=True, data_key="classNumber",
        validate=validate.Length(max=50)
    )


class ChangePasswordSchema(Schema):
    current_password = fields.Str(required=True, load_only=True, data_key="currentPassword")
    new_password = fields.Str(
        required=True,
        load_only=True,
        data_key="newPassword",
        validate=validate.Length(min=6, error="Password must be at least 6 characters")
    )
    confirm_new_password = fields.Str(required=True, load_only=True, data_key="confirmNewPassword")

    @validates_schema
    def validate_password_match(self, data, **kwargs):
        """Ensure new password and confirm new password match."""
        if data.get("new_password") != data.get("confirm_new_password"):
            raise ValidationError({"confirmNewPassword": "Passwords do not match."})


class EmailVerificationRequestSchema(Schema):
    email = fields.Email(required=True, validate=validate.Length(max=120))


class EmailVerificationSchema(Schema):
    code = fields.Str(required=True, validate=validate.Length(min=1, max=10))


class MenuItemSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    id = fields.Int(dump_only=True, data_key="_id")
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    description = fields.Str(required=True, validate=validate.Length(min=1))
    price = fields.Float(
        required=True,
        validate=validate.Range(min=0, min_inclusive=False, error="Price must be positive.")
    )
    category = fields.Str(
        required=True,
        validate=validate.OneOf(MENU_CATEGORIES),
        metadata={"description": "One of " + ", ".join(MENU_CATEGORIES)}
    )
    image = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    is_available = fields.Bool(load_default=True, data_key="isAvailable")
    preparation_time = fields.Int(
        required=True,
        data_key="preparationTime",
        validate=validate.Range(min=0, error="Preparation time cannot be negative.")
    )


class MenuQuerySchema(Schema):
    category = fields.Str(required=False, validate=validate.OneOf(MENU_CATEGORIES))


class OrderItemSchema(Schema):
    class Meta:
        # Clients send the whole cart entry (name, price, image...);
        # only the id and quantity are trusted.
        unknown = EXCLUDE

    menu_item_id = fields.Int(required=True, strict=True, data_key="menuItemId")
    quantity = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, error="Quantity must be at least 1.")
    )


class DeliveryLocationSchema(Schema):
    block = fields.Str(required=True, validate=validate.Length(min=1, max=50))
    class_number = fields.Str(
        required=True, data_key="classNumber", validate=validate.Length(min=1, max=50)
    )


class CustomerDetailsSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100))
    phone = phone_field(required=True)
    email = fields.Email(required=False, allow_none=True)


class OrderCreateSchema(Schema):
    class Meta:
        # A client-computed totalAmount is ignored, never trusted
        unknown = EXCLUDE

    items = fields.List(
        fields.Nested(OrderItemSchema),
        required=True,
        validate=validate.Length(min=1, error="An order needs at least one item.")
    )
    delivery_location = fields.Nested(
        DeliveryLocationSchema, required=False, data_key="deliveryLocation"
    )
    customer_details = fields.Nested(
        CustomerDetailsSchema, required=False, data_key="customerDetails"
    )


class OrderStatusSchema(Schema):
    status = fields.Str(required=True, validate=validate.OneOf(ORDER_STATUSES))


class PaymentStatusSchema(Schema):
    payment_status = fields.Str(
        required=True, data_key="paymentStatus", validate=validate.OneOf(PAYMENT_STATUSES)
    )


class OrderQuerySchema(Schema):
    status = fields.Str(required=False, validate=validate.OneOf(ORDER_STATUSES))
