import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from cart_tracker.api.dependencies import SESSION_COOKIE, get_service
from cart_tracker.data.database import get_db
from cart_tracker.main import app
from cart_tracker.repos.cart_line_repo import CartLineRepo


@pytest.fixture
def client(db, service):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_cart_add_records_line_for_header_session(client):
    resp = client.post(
        "/events/cart-add",
        json={"product_id": 42, "quantity": 2, "cart_total": "20.00"},
        headers={"X-Session-Id": "s1", "User-Agent": "pytest-agent", "X-Forwarded-For": "8.8.8.8"},
    )

    assert resp.status_code == 202
    assert resp.json() == {"status": "recorded", "session_id": "s1"}

    export = client.get("/stats/export").text.splitlines()
    assert len(export) == 2
    row = export[1].split(",")
    assert row[1] == "s1"
    assert row[5] == "Keyboard"
    assert "pytest-agent" in export[1]
    assert "8.8.8.8" in export[1]


def test_cart_add_without_session_sets_cookie(client):
    resp = client.post("/events/cart-add", json={"product_id": 42, "quantity": 1})

    assert resp.status_code == 202
    assert resp.cookies.get(SESSION_COOKIE) == resp.json()["session_id"]


def test_cart_add_rejects_zero_quantity(client):
    resp = client.post("/events/cart-add", json={"product_id": 42, "quantity": 0})
    assert resp.status_code == 422


def test_order_completed_converts_matching_lines(client, orders):
    headers = {"X-Session-Id": "s1"}
    client.post("/events/cart-add", json={"product_id": 42, "quantity": 1}, headers=headers)
    orders.add(77, product_ids=[42])

    resp = client.post("/events/order-completed", json={"order_id": 77}, headers=headers)

    assert resp.status_code == 202
    assert resp.json() == {"status": "reconciled", "order_id": 77, "converted": 1}
    stats = client.get("/stats", params={"period": 7}).json()
    assert stats["summary"]["converted_carts"] == 1


def test_order_with_non_converting_status_is_ignored(client, orders):
    client.post("/events/cart-add", json={"product_id": 42, "quantity": 1}, headers={"X-Session-Id": "s1"})
    orders.add(78, product_ids=[42])

    resp = client.post("/events/order-completed", json={"order_id": 78, "status": "cancelled"})

    assert resp.json()["status"] == "ignored"
    assert client.get("/stats").json()["summary"]["pending_carts"] == 1


def test_stats_period_validation(client):
    assert client.get("/stats", params={"period": 0}).status_code == 422


def test_stats_default_period(client):
    body = client.get("/stats").json()
    assert body["period_days"] == 30
    assert body["summary"]["total_carts"] == 0


def test_export_is_csv_attachment(client):
    resp = client.get("/stats/export")

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert 'filename="abandoned-carts-' in resp.headers["content-disposition"]
    assert resp.text.splitlines()[0].startswith("ID,Session ID,User ID,User Email")


def test_keyless_order_without_session_touches_nothing(client, orders, engine):
    client.post("/events/cart-add", json={"product_id": 42, "quantity": 1}, headers={"X-Session-Id": "s1"})
    client.cookies.clear()
    orders.add(7007)

    statements = []

    def _capture(conn, cursor, statement, *args):
        statements.append(statement)

    event.listen(engine, "before_cursor_execute", _capture)
    try:
        resp = client.post("/events/order-completed", json={"order_id": 7007})
    finally:
        event.remove(engine, "before_cursor_execute", _capture)

    assert resp.status_code == 202
    assert resp.json()["converted"] == 0
    assert "set-cookie" not in resp.headers
    assert not [s for s in statements if s.lstrip().upper().startswith("UPDATE")]
    assert client.get("/stats").json()["summary"]["pending_carts"] == 1


def test_order_uses_session_cookie_when_present(client, orders):
    client.post("/events/cart-add", json={"product_id": 42, "quantity": 1}, headers={"X-Session-Id": "s1"})
    orders.add(7008)

    client.cookies.set(SESSION_COOKIE, "s1")

    resp = client.post("/events/order-completed", json={"order_id": 7008})

    assert resp.json()["converted"] == 1


def test_overlong_session_header_is_rejected(client):
    resp = client.post(
        "/events/cart-add",
        json={"product_id": 42, "quantity": 1},
        headers={"X-Session-Id": "x" * 300},
    )

    assert resp.status_code == 422
    assert client.get("/stats").json()["summary"]["total_carts"] == 0


def test_overlong_session_on_order_is_rejected(client, orders):
    orders.add(7009, product_ids=[42])

    resp = client.post("/events/order-completed", json={"order_id": 7009}, headers={"X-Session-Id": "x" * 300})

    assert resp.status_code == 422


def _storage_down(*args, **kwargs):
    raise OperationalError("SELECT 1", {}, Exception("connection refused"))


def test_cart_add_storage_failure_is_503(client, service, monkeypatch):
    monkeypatch.setattr(service.repo, "commit", _storage_down)

    resp = client.post("/events/cart-add", json={"product_id": 42, "quantity": 1}, headers={"X-Session-Id": "s1"})

    assert resp.status_code == 503
    monkeypatch.undo()
    assert client.get("/stats").json()["summary"]["total_carts"] == 0


def test_order_storage_failure_is_503(client, service, orders, monkeypatch):
    orders.add(7010, product_ids=[42])
    monkeypatch.setattr(service.repo, "mark_converted", _storage_down)

    resp = client.post("/events/order-completed", json={"order_id": 7010})

    assert resp.status_code == 503


def test_stats_storage_failure_is_503(client, service, monkeypatch):
    monkeypatch.setattr(service.repo, "status_counts", _storage_down)

    assert client.get("/stats").status_code == 503


def test_export_storage_failure_is_503(client, monkeypatch):
    monkeypatch.setattr(CartLineRepo, "list_all", _storage_down)

    assert client.get("/stats/export").status_code == 503
