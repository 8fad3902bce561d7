from canteen.middleware.utils import sanitize_data, sanitize_headers


def test_home(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Canteen" in response.json["message"]


def test_request_id_and_timing_headers(client):
    response = client.get("/api/menu", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"
    assert response.headers["X-Processing-Time"].endswith("s")


def test_error_body_shape(client):
    response = client.get("/api/menu/999")

    assert response.status_code == 404
    body = response.json
    assert body["success"] is False
    assert body["error"]["type"] == "Not Found"
    assert body["error"]["status_code"] == 404
    assert body["error"]["path"] == "/api/menu/999"
    assert body["error"]["method"] == "GET"


def test_unknown_route_is_json(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json["success"] is False


def test_unexpected_error_includes_traceback_in_debug(app, client, monkeypatch):
    from canteen.services import menu

    def explode(category=None):
        raise RuntimeError("kaboom")

    monkeypatch.setattr(menu, "list_available", explode)

    response = client.get("/api/menu")

    assert response.status_code == 500
    assert response.json["error"]["type"] == "Internal Server Error"
    assert "kaboom" in response.json["error"]["traceback"]


def test_sanitize_data_redacts_secrets():
    data = {
        "phone": "9000000000",
        "password": "secret",
        "otp": "123456",
        "items": [{"menuItemId": 1, "refreshToken": "abc"}],
    }

    clean = sanitize_data(data)

    assert clean["phone"] == "9000000000"
    assert clean["password"] == "***REDACTED***"
    assert clean["otp"] == "***REDACTED***"
    assert clean["items"] == [{"menuItemId": 1, "refreshToken": "***REDACTED***"}]


def test_sanitize_headers():
    headers = sanitize_headers({"Authorization": "Bearer abc", "Accept": "application/json"})

    assert headers == {"Authorization": "***REDACTED***", "Accept": "application/json"}


def test_error_log_carries_request_summary(client, caplog):
    client.get("/api/menu/999", headers={"X-Request-ID": "req-404"})

    records = [r for r in caplog.records if getattr(r, "event", None) == "request_error"]
    assert records
    assert records[0].request_data["path"] == "/api/menu/999"
    assert records[0].request_data["method"] == "GET"
    assert records[0].request_data["request_id"] == "req-404"
