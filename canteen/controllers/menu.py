from flask.views import MethodView
from flask_smorest import Blueprint

from canteen.schemas import MenuItemSchema, MenuQuerySchema
from canteen.services import menu as menu_service
from canteen.services.principal import admin_required


blp = Blueprint("Menu", __name__, description="Canteen menu operations")


@blp.route("/api/menu")
class MenuList(MethodView):
    @blp.arguments(MenuQuerySchema, location="query")
    def get(self, args):
        """List available menu items, optionally for one category."""
        return menu_service.list_available(args.get("category")), 200

    @admin_required()
    @blp.arguments(MenuItemSchema)
    def post(self, data, principal):
        """Add a menu item."""
        return menu_service.create_item(data), 201


@blp.route("/api/menu/category/<string:category>")
class MenuByCategory(MethodView):
    def get(self, category):
        return menu_service.list_available(category), 200


@blp.route("/api/menu/all")
class MenuCatalog(MethodView):
    @admin_required()
    def get(self, principal):
        """List every menu item, including unavailable ones."""
        return menu_service.list_all(), 200


@blp.route("/api/menu/<int:item_id>")
class MenuItemResource(MethodView):
    def get(self, item_id):
        return menu_service.get_item(item_id), 200

    @admin_required()
    @blp.arguments(MenuItemSchema(partial=True))
    def put(self, data, item_id, principal):
        """Update a menu item (partial update)."""
        return menu_service.update_item(item_id, data), 200

    @admin_required()
    def delete(self, item_id, principal):
        """Delete a menu item; placed orders keep their snapshot."""
        return menu_service.delete_item(item_id), 200


@blp.route("/api/menu/<int:item_id>/toggle-availability")
class ToggleAvailability(MethodView):
    @admin_required()
    def put(self, item_id, principal):
        return menu_service.toggle_availability(item_id), 200
