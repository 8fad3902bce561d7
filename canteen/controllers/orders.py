from flask.views import MethodView
from flask_smorest import Blueprint

from canteen.schemas import (
    OrderCreateSchema, OrderStatusSchema,
    PaymentStatusSchema, OrderQuerySchema
)
from canteen.services import orders as order_service
from canteen.services.principal import admin_required, principal_required


blp = Blueprint("Orders", __name__, description="Order placement and tracking")


@blp.route("/api/orders")
class OrderList(MethodView):
    @principal_required(optional=True)
    @blp.arguments(OrderCreateSchema)
    def post(self, data, principal):
        """Place an order; prices come from the live menu."""
        order = order_service.place_order(
            items=data["items"],
            delivery_location=data.get("delivery_location"),
            customer_details=data.get("customer_details"),
            principal=principal,
        )
        return order, 201


@blp.route("/api/orders/my-orders")
class MyOrders(MethodView):
    @principal_required()
    def get(self, principal):
        return order_service.list_mine(principal.id), 200


@blp.route("/api/orders/guest/<string:phone>")
class GuestOrders(MethodView):
    def get(self, phone):
        """Orders placed under a phone number."""
        return order_service.list_by_phone(phone), 200


@blp.route("/api/orders/all")
class AllOrders(MethodView):
    @admin_required()
    @blp.arguments(OrderQuerySchema, location="query")
    def get(self, args, principal):
        return order_service.list_all(args.get("status")), 200


@blp.route("/api/orders/<int:order_id>")
class OrderDetail(MethodView):
    @principal_required()
    def get(self, order_id, principal):
        return order_service.get_order(order_id, principal), 200


@blp.route("/api/orders/<int:order_id>/status")
class OrderStatus(MethodView):
    @admin_required()
    @blp.arguments(OrderStatusSchema)
    def put(self, data, order_id, principal):
        """Set the order status (admin)."""
        return order_service.set_status(order_id, data["status"]), 200


@blp.route("/api/orders/<int:order_id>/cancel")
class CancelOrder(MethodView):
    @principal_required()
    def put(self, order_id, principal):
        """Cancel a pending order (owner or admin)."""
        return order_service.cancel(order_id, principal), 200


@blp.route("/api/orders/<int:order_id>/payment")
class OrderPayment(MethodView):
    @admin_required()
    @blp.arguments(PaymentStatusSchema)
    def put(self, data, order_id, principal):
        return order_service.set_payment_status(order_id, data["payment_status"]), 200
