import pytest

from canteen import db
from canteen.models import Order, OrderLine, User


@pytest.fixture
def dosa(make_menu_item):
    return make_menu_item("Masala Dosa", 50, "breakfast")


@pytest.fixture
def tea(make_menu_item):
    return make_menu_item("Masala Tea", 15, "beverages")


def _guest_order(client, items, phone="9666666666", name="Guest"):
    return client.post("/api/orders", json={
        "items": items,
        "customerDetails": {"name": name, "phone": phone},
        "deliveryLocation": {"block": "C", "classNumber": "3"},
    })


def test_order_total_comes_from_menu_prices(client, dosa, tea, student_headers):
    response = client.post("/api/orders", headers=student_headers, json={
        "items": [
            {"menuItemId": dosa, "quantity": 2, "price": 1},
            {"menuItemId": tea, "quantity": 2, "name": "Cheap tea"},
        ],
        "totalAmount": 5,
    })

    assert response.status_code == 201
    order = response.json
    assert order["totalAmount"] == 130
    assert order["status"] == "pending"
    assert order["paymentStatus"] == "pending"
    assert [(line["name"], line["price"], line["quantity"]) for line in order["items"]] == [
        ("Masala Dosa", 50, 2),
        ("Masala Tea", 15, 2),
    ]


def test_signed_in_order_uses_profile_address(client, dosa, student_headers):
    response = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]})

    assert response.status_code == 201
    assert response.json["deliveryLocation"] == {"block": "B", "classNumber": "12"}
    assert response.json["customerDetails"]["name"] == "Ravi"
    assert response.json["user"]["name"] == "Ravi"


def test_order_without_address_is_rejected(client, dosa, make_user, auth_header):
    headers = auth_header(make_user(phone="9777777777"))

    response = client.post("/api/orders", headers=headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]})

    assert response.status_code == 400


def test_missing_menu_item_persists_nothing(app, client, dosa, student_headers):
    response = client.post("/api/orders", headers=student_headers, json={
        "items": [{"menuItemId": dosa, "quantity": 1}, {"menuItemId": 999, "quantity": 1}],
    })

    assert response.status_code == 404
    assert response.json["message"] == "Menu item 999 not found"
    with app.app_context():
        assert Order.query.count() == 0
        assert OrderLine.query.count() == 0


def test_unavailable_item_cannot_be_ordered(client, make_menu_item, student_headers):
    samosa = make_menu_item("Samosa", 20, "snacks", is_available=False)

    response = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": samosa, "quantity": 1}]})

    assert response.status_code == 400


@pytest.mark.parametrize("items", [
    [],
    [{"menuItemId": 1, "quantity": 0}],
    [{"menuItemId": 1, "quantity": "2"}],
    [{"quantity": 1}],
])
def test_invalid_items_are_rejected(app, client, dosa, student_headers, items):
    response = client.post("/api/orders", headers=student_headers, json={"items": items})

    assert response.status_code == 400
    with app.app_context():
        assert Order.query.count() == 0


def test_guest_order_and_phone_lookup(app, client, dosa, tea):
    response = _guest_order(client, [{"menuItemId": dosa, "quantity": 1}])
    assert response.status_code == 201
    first_id = response.json["_id"]

    response = _guest_order(client, [{"menuItemId": tea, "quantity": 3}])
    second_id = response.json["_id"]

    response = client.get("/api/orders/guest/9666666666")
    assert response.status_code == 200
    assert [order["_id"] for order in response.json] == [second_id, first_id]

    assert client.get("/api/orders/guest/9000000009").json == []

    with app.app_context():
        guest = User.query.filter_by(phone="9666666666").one()
        assert guest.role == "user"
        assert guest.password is None


def test_guest_order_requires_customer_details(client, dosa):
    response = client.post("/api/orders", json={
        "items": [{"menuItemId": dosa, "quantity": 1}],
        "deliveryLocation": {"block": "C", "classNumber": "3"},
    })

    assert response.status_code == 400


def test_guest_orders_join_existing_account(client, dosa, student, student_headers):
    _guest_order(client, [{"menuItemId": dosa, "quantity": 1}], phone="9111111111", name="Ravi")

    response = client.get("/api/orders/my-orders", headers=student_headers)

    assert response.status_code == 200
    assert len(response.json) == 1


def test_guest_checkout_cannot_use_registered_phone(app, client, dosa, admin, make_user):
    make_user(phone="9444444444", password="secret123")

    for phone in ("9222222222", "9444444444"):
        response = _guest_order(client, [{"menuItemId": dosa, "quantity": 1}], phone=phone)
        assert response.status_code == 409

    with app.app_context():
        assert Order.query.count() == 0


def test_my_orders_newest_first(client, dosa, tea, student_headers, make_user, auth_header):
    other_headers = auth_header(make_user(phone="9777777777", block="D", class_number="1"))
    client.post("/api/orders", headers=other_headers,
                json={"items": [{"menuItemId": dosa, "quantity": 1}]})

    ids = []
    for item in (dosa, tea):
        response = client.post("/api/orders", headers=student_headers,
                               json={"items": [{"menuItemId": item, "quantity": 1}]})
        ids.append(response.json["_id"])

    response = client.get("/api/orders/my-orders", headers=student_headers)

    assert [order["_id"] for order in response.json] == list(reversed(ids))


def test_order_detail_access(client, dosa, student_headers, admin_headers, make_user, auth_header):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    stranger = auth_header(make_user(phone="9777777777"))

    assert client.get(f"/api/orders/{order_id}", headers=student_headers).status_code == 200
    assert client.get(f"/api/orders/{order_id}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/orders/{order_id}", headers=stranger).status_code == 403
    assert client.get("/api/orders/999", headers=admin_headers).status_code == 404


def test_admin_lists_all_orders(client, dosa, student_headers, admin_headers):
    first = client.post("/api/orders", headers=student_headers,
                        json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    second = _guest_order(client, [{"menuItemId": dosa, "quantity": 1}]).json["_id"]
    client.put(f"/api/orders/{first}/status", json={"status": "confirmed"}, headers=admin_headers)

    response = client.get("/api/orders/all", headers=admin_headers)
    assert response.status_code == 200
    assert [order["_id"] for order in response.json] == [second, first]

    response = client.get("/api/orders/all?status=confirmed", headers=admin_headers)
    assert [order["_id"] for order in response.json] == [first]

    assert client.get("/api/orders/all", headers=student_headers).status_code == 403


def test_owner_cancels_pending_order(client, dosa, student_headers, make_user, auth_header):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    stranger = auth_header(make_user(phone="9777777777"))

    response = client.put(f"/api/orders/{order_id}/cancel", headers=stranger)
    assert response.status_code == 403
    assert response.json["message"] == "Not authorized"

    response = client.put(f"/api/orders/{order_id}/cancel", headers=student_headers)
    assert response.status_code == 200
    assert response.json["status"] == "cancelled"

    response = client.put(f"/api/orders/{order_id}/cancel", headers=student_headers)
    assert response.status_code == 400
    assert response.json["message"] == "Order cannot be cancelled"


def test_confirmed_order_cannot_be_cancelled_by_owner(client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    client.put(f"/api/orders/{order_id}/status", json={"status": "confirmed"}, headers=admin_headers)

    response = client.put(f"/api/orders/{order_id}/cancel", headers=student_headers)

    assert response.status_code == 400
    assert client.get(f"/api/orders/{order_id}",
                      headers=student_headers).json["status"] == "confirmed"


def test_admin_status_transitions(client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    url = f"/api/orders/{order_id}/status"

    assert client.put(url, json={"status": "confirmed"}, headers=student_headers).status_code == 403

    # Intermediate states may be skipped
    response = client.put(url, json={"status": "ready"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json["status"] == "ready"

    assert client.put(url, json={"status": "pending"}, headers=admin_headers).status_code == 400
    assert client.put(url, json={"status": "cancelled"}, headers=admin_headers).status_code == 400
    assert client.put(url, json={"status": "shipped"}, headers=admin_headers).status_code == 400

    response = client.put(url, json={"status": "delivered"}, headers=admin_headers)
    assert response.status_code == 200

    response = client.put(url, json={"status": "preparing"}, headers=admin_headers)
    assert response.status_code == 400

    response = client.put(f"/api/orders/{order_id}/cancel", headers=admin_headers)
    assert response.status_code == 400
    assert client.get(f"/api/orders/{order_id}",
                      headers=student_headers).json["status"] == "delivered"


def test_admin_cancels_pending_order(client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]

    response = client.put(f"/api/orders/{order_id}/status", json={"status": "cancelled"},
                          headers=admin_headers)

    assert response.status_code == 200
    assert response.json["status"] == "cancelled"


def test_payment_status(client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]
    url = f"/api/orders/{order_id}/payment"

    assert client.put(url, json={"paymentStatus": "completed"},
                      headers=student_headers).status_code == 403
    assert client.put(url, json={"paymentStatus": "refunded"},
                      headers=admin_headers).status_code == 400

    response = client.put(url, json={"paymentStatus": "completed"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json["paymentStatus"] == "completed"


def test_deleting_menu_item_keeps_order_snapshot(app, client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 2}]}).json["_id"]

    assert client.delete(f"/api/menu/{dosa}", headers=admin_headers).status_code == 200

    response = client.get(f"/api/orders/{order_id}", headers=student_headers)
    assert response.status_code == 200
    assert response.json["items"] == [
        {"menuItemId": dosa, "name": "Masala Dosa", "price": 50, "quantity": 2}
    ]
    assert response.json["totalAmount"] == 100


def test_price_change_does_not_touch_placed_orders(client, dosa, student_headers, admin_headers):
    order_id = client.post("/api/orders", headers=student_headers,
                           json={"items": [{"menuItemId": dosa, "quantity": 1}]}).json["_id"]

    client.put(f"/api/menu/{dosa}", json={"price": 70}, headers=admin_headers)

    response = client.get(f"/api/orders/{order_id}", headers=student_headers)
    assert response.json["totalAmount"] == 50
    with client.application.app_context():
        assert db.session.get(Order, order_id).lines[0].price == 50
