"""Checkout HTTP endpoints."""
import json

from fastapi.testclient import TestClient

ITEMS = [
    {"cart_item_id": 11, "product_id": 1, "quantity": 2, "selected_size": "M", "unit_price": 45000},
    {"cart_item_id": 12, "product_id": 2, "quantity": 1, "unit_price": 30000},
]
CASH20 = {
    "voucher_id": 9,
    "voucher_code": "CASH20",
    "voucher_type": "cash",
    "voucher_value": 20000,
    "voucher_end_date": "2099-01-01",
}


def _put_items(client: TestClient):
    r = client.put("/checkout/items", json=ITEMS)
    assert r.status_code == 200
    assert r.json() == {"saved": True}


def test_items_round_trip_and_summary(client: TestClient):
    _put_items(client)
    assert [i["cart_item_id"] for i in client.get("/checkout/items").json()] == [11, 12]
    j = client.get("/checkout/summary").json()
    assert j["subtotal"] == 120000
    assert j["discount"] == 0
    assert j["applied_voucher"] is None
    assert j["total"] == 140000


def test_apply_voucher_flow(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json={"vouchers": [CASH20]})
    backend_stub.add("POST", "/user/vouchers/apply", json={"message": "ok"})
    _put_items(client)

    r = client.post("/checkout/voucher", json={"code": "cash20"})
    assert r.status_code == 200
    assert r.json() == {"is_applicable": True, "discount_amount": 20000, "reason_code": None}

    applied = client.get("/checkout/voucher").json()
    assert applied["code"] == "CASH20"

    j = client.get("/checkout/summary").json()
    assert j["discount"] == 20000
    assert j["voucher_label"] == "Giảm 20.000đ"
    assert j["total"] == 120000 - 20000 + 20000


def test_inapplicable_voucher_is_a_normal_answer(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json=[{**CASH20, "min_order_value": 500000}])
    _put_items(client)
    r = client.post("/checkout/voucher", json={"code": "CASH20"})
    assert r.status_code == 200
    assert r.json()["reason_code"] == "minimumOrderValue"
    assert client.get("/checkout/voucher").json() is None


def test_unknown_voucher_404(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json=[])
    _put_items(client)
    r = client.post("/checkout/voucher", json={"code": "NOPE"})
    assert r.status_code == 404
    assert r.json()["voucher_code"] == "NOPE"


def test_empty_code_rejected(client: TestClient):
    _put_items(client)
    r = client.post("/checkout/voucher", json={"code": "  "})
    assert r.status_code == 422


def test_voucher_options(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json={"data": [CASH20]})
    _put_items(client)
    r = client.get("/checkout/vouchers", params={"limit": 5})
    assert r.status_code == 200
    [option] = r.json()
    assert option["label"] == "Giảm 20.000đ"
    assert option["evaluation"]["is_applicable"] is True
    assert backend_stub.requests[0].url.params["limit"] == "5"


def test_gift_products(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher/gift-products", json=[{"product_id": 3, "product_name": "Cheese tart"}])
    r = client.get("/checkout/vouchers/GIFT/gift-products")
    assert r.status_code == 200
    assert r.json()[0]["product_name"] == "Cheese tart"


def test_remove_voucher(client: TestClient, backend_stub):
    backend_stub.add("POST", "/user/vouchers/remove")
    r = client.delete("/checkout/voucher")
    assert r.status_code == 200
    assert r.json() == {"removed": True}


def test_place_order(client: TestClient, backend_stub):
    backend_stub.add("POST", "/order/place", json={"order_id": 77, "status": "pending"})
    _put_items(client)
    r = client.post("/checkout/orders", json={"user_address_id": 5, "payment_method_id": "cod"})
    assert r.status_code == 200
    assert r.json()["order_id"] == 77
    sent = json.loads(backend_stub.calls("POST", "/order/place")[0].content)
    assert sent == {"user_address_id": 5, "payment_method_id": "cod", "selected_item_ids": "11,12"}
    assert client.get("/checkout/items").json() == []


def test_place_order_rejected_voucher_409(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json=[CASH20])
    backend_stub.add("POST", "/user/vouchers/apply", json={})
    backend_stub.add("POST", "/order/place", status=422, json={"message": "Voucher is no longer valid"})
    _put_items(client)
    client.post("/checkout/voucher", json={"code": "CASH20"})

    r = client.post("/checkout/orders", json={"user_address_id": 5, "payment_method_id": "cod"})
    assert r.status_code == 409
    j = r.json()
    assert j["voucher_code"] == "CASH20"
    assert j["voucher_cleared"] is True
    assert client.get("/checkout/voucher").json() is None
    # items stay so the user can retry with another voucher
    assert len(client.get("/checkout/items").json()) == 2


def test_place_order_without_items_400(client: TestClient, backend_stub):
    r = client.post("/checkout/orders", json={"user_address_id": 5, "payment_method_id": "cod"})
    assert r.status_code == 400
    assert backend_stub.requests == []


def test_backend_failure_maps_to_502(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", status=500, json={"message": "Server Error"})
    _put_items(client)
    r = client.get("/checkout/vouchers")
    assert r.status_code == 502
    assert r.json()["backend_status"] == 500


def test_voucher_options_skip_unknown_types(client: TestClient, backend_stub):
    freeship = {**CASH20, "voucher_id": 10, "voucher_code": "FREESHIP", "voucher_type": "freeship"}
    backend_stub.add("GET", "/voucher", json=[CASH20, freeship])
    _put_items(client)
    r = client.get("/checkout/vouchers")
    assert r.status_code == 200
    assert [o["voucher"]["code"] for o in r.json()] == ["CASH20"]


def test_remove_voucher_refused_by_backend(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher", json=[CASH20])
    backend_stub.add("POST", "/user/vouchers/apply", json={})
    backend_stub.add("POST", "/user/vouchers/remove", status=422, json={"message": "No voucher applied"})
    _put_items(client)
    client.post("/checkout/voucher", json={"code": "CASH20"})

    r = client.delete("/checkout/voucher")
    assert r.status_code == 200
    assert r.json() == {"removed": True}
    assert client.get("/checkout/voucher").json() is None


def test_check_voucher_on_server(client: TestClient, backend_stub):
    backend_stub.add("GET", "/voucher/is-applicable", json={"is_applicable": False, "message": "Not for these items"})
    _put_items(client)
    r = client.get("/checkout/vouchers/CASH20/check")
    assert r.status_code == 200
    assert r.json()["is_applicable"] is False
    params = backend_stub.calls("GET", "/voucher/is-applicable")[0].url.params
    assert params["voucher_code"] == "CASH20"
    assert params["selected_item_ids"] == "11,12"


def test_check_voucher_needs_items(client: TestClient, backend_stub):
    r = client.get("/checkout/vouchers/CASH20/check")
    assert r.status_code == 400
    assert backend_stub.requests == []
