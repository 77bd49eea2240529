from unittest.mock import MagicMock

import httpx
import pytest

from reshoe.payments import razorpay_client

from tests.conftest import RAZORPAY_TEST_SECRET


def _response(status_code, payload):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = payload
    resp.text = str(payload)
    return resp


@pytest.fixture()
def gateway(monkeypatch):
    """Razorpay simulé: POST /orders crée order_<n> (notes conservées), GET /orders/{id} le relit,
    GET /payments/{id} renvoie un paiement capturé."""
    orders = {}

    def fake_post(url, json=None, auth=None, timeout=None):
        order_id = f"order_{len(orders) + 1}"
        orders[order_id] = {"id": order_id, "amount": json["amount"], "currency": json["currency"], "notes": json["notes"]}
        return _response(200, orders[order_id])

    def fake_get(url, auth=None, timeout=None):
        resource, object_id = url.split("/")[-2:]
        if resource == "orders":
            if object_id not in orders:
                return _response(400, {"error": "BAD_REQUEST_ERROR"})
            return _response(200, orders[object_id])
        return _response(200, {"id": object_id, "amount": 7499, "currency": "INR", "status": "captured"})

    monkeypatch.setattr(httpx, "post", fake_post)
    monkeypatch.setattr(httpx, "get", fake_get)
    return orders


def _proof(order_id, payment_id):
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": razorpay_client.compute_signature(order_id, payment_id, RAZORPAY_TEST_SECRET),
    }


def _pay(client, listing, payment_id):
    """Checkout complet côté client: ordre Razorpay pour l'annonce puis preuve signée."""
    r = client.post("/api/v1/payments/razorpay/order", json={"listing_id": listing["id"]})
    assert r.status_code == 200, r.text
    return _proof(r.json()["order_id"], payment_id)


def test_full_purchase_flow(client, login, users, make_listing, shipping_address, gateway):
    listing = make_listing(price=7499)

    login(users["buyer"])
    r = client.post("/api/v1/cart", json={"listing_id": listing["id"]})
    assert r.status_code == 201
    assert r.json()["total"] == 7499

    r = client.post("/api/v1/payments/razorpay/order", json={"listing_id": listing["id"]})
    assert r.status_code == 200
    handle = r.json()
    assert handle["amount"] == 7499
    assert handle["key_id"] == "rzp_test_key"

    proof = _proof(handle["order_id"], "pay_001")
    r = client.post("/api/v1/payments/razorpay/verify", json=proof)
    assert r.status_code == 200
    assert r.json()["verified"] is True

    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"],
        "shipping_address": shipping_address,
        "payment": proof,
    })
    assert r.status_code == 201, r.text
    order = r.json()["item"]
    assert order["amount"] == 7499
    assert order["transaction"]["commission"] == 750
    assert order["transaction"]["seller_earnings"] == 6749
    assert order["listing"]["status"] == "sold"

    # L'annonce vendue n'est plus comptée dans le panier
    assert client.get("/api/v1/cart").json()["total"] == 0

    r = client.get("/api/v1/orders")
    assert r.json()["total"] == 1
    assert r.json()["items"][0]["seller"]["name"] == "Sam Seller"

    login(users["seller"])
    r = client.get("/api/v1/transactions")
    assert r.status_code == 200
    assert r.json()["totals"] == {"amount": 7499, "commission": 750, "seller_earnings": 6749}

    r = client.put(f"/api/v1/orders/{order['id']}", json={"status": "shipped"})
    assert r.status_code == 200
    assert r.json()["anomaly"] is False

    login(users["admin"])
    board = client.get("/admin/api/analytics").json()
    assert board["revenue"]["total_commission"] == 750
    assert client.get("/health/settlement").status_code == 200


def test_forged_signature_is_rejected(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing()
    login(users["buyer"])
    proof = _pay(client, listing, "pay_001")
    proof["razorpay_signature"] = "0" * 64

    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": proof,
    })
    assert r.status_code == 400
    assert fake_db.rows("orders") == []
    assert fake_db.rows("listings")[0]["status"] == "approved"


def test_payment_proof_cannot_be_reused(client, login, users, make_listing, shipping_address, gateway, fake_db):
    first = make_listing()
    second = make_listing()
    login(users["buyer"])
    proof = _pay(client, first, "pay_001")

    r = client.post("/api/v1/orders", json={"listing_id": first["id"], "shipping_address": shipping_address, "payment": proof})
    assert r.status_code == 201
    r = client.post("/api/v1/orders", json={"listing_id": second["id"], "shipping_address": shipping_address, "payment": proof})
    assert r.status_code == 400
    assert len(fake_db.rows("orders")) == 1
    assert fake_db.rows("listings")[1]["status"] == "approved"


def test_cheap_listing_payment_cannot_buy_expensive_listing(
    client, login, users, make_listing, shipping_address, gateway, fake_db
):
    cheap = make_listing(price=100)
    expensive = make_listing(price=99999)
    login(users["buyer"])
    proof = _pay(client, cheap, "pay_001")

    r = client.post("/api/v1/orders", json={
        "listing_id": expensive["id"], "shipping_address": shipping_address, "payment": proof,
    })
    assert r.status_code == 400
    assert fake_db.rows("orders") == []
    assert fake_db.rows("payment_claims") == []
    assert [l["status"] for l in fake_db.rows("listings")] == ["approved", "approved"]


def test_payment_for_another_buyer_is_rejected(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing()
    login(users["buyer"])
    proof = _pay(client, listing, "pay_001")

    login(users["other_buyer"])
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": proof,
    })
    assert r.status_code == 400
    assert fake_db.rows("orders") == []


def test_unknown_gateway_order_is_not_settled(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing()
    login(users["buyer"])
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": _proof("order_404", "pay_001"),
    })
    assert r.status_code == 502
    assert fake_db.rows("orders") == []
    assert fake_db.rows("listings")[0]["status"] == "approved"


def test_price_change_after_checkout_is_conflict(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing(price=5000)
    login(users["buyer"])
    proof = _pay(client, listing, "pay_001")
    fake_db.tables["listings"][0]["price"] = 9000

    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": proof,
    })
    assert r.status_code == 409
    assert fake_db.rows("orders") == []
    assert fake_db.rows("listings")[0]["status"] == "approved"


def test_second_buyer_gets_conflict(client, login, users, make_listing, shipping_address, gateway):
    listing = make_listing()

    login(users["buyer"])
    first_proof = _pay(client, listing, "pay_001")
    login(users["other_buyer"])
    second_proof = _pay(client, listing, "pay_002")

    login(users["buyer"])
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": first_proof,
    })
    assert r.status_code == 201

    login(users["other_buyer"])
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": second_proof,
    })
    assert r.status_code == 409


def test_checkout_validation_errors(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing()
    login(users["buyer"])
    proof = _pay(client, listing, "pay_001")

    bad_address = dict(shipping_address, phone="123")
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": bad_address, "payment": proof,
    })
    assert r.status_code == 400
    assert "phone" in r.json()["detail"]

    # Preuve Razorpay incomplète: rejet du schéma
    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": {"razorpay_order_id": "order_1"},
    })
    assert r.status_code == 422

    # Le vendeur ne peut pas obtenir d'ordre pour sa propre annonce
    login(users["seller"])
    r = client.post("/api/v1/payments/razorpay/order", json={"listing_id": listing["id"]})
    assert r.status_code == 403
    assert fake_db.rows("orders") == []


def test_partial_settlement_returns_generic_500(client, login, users, make_listing, shipping_address, gateway, fake_db):
    listing = make_listing()
    fake_db.fail_on("transactions", "insert")
    login(users["buyer"])

    r = client.post("/api/v1/orders", json={
        "listing_id": listing["id"], "shipping_address": shipping_address, "payment": _pay(client, listing, "pay_001"),
    })
    assert r.status_code == 500
    assert r.json() == {"detail": "Erreur interne, veuillez réessayer plus tard"}

    login(users["admin"])
    r = client.get("/health/settlement")
    assert r.status_code == 503
    assert len(r.json()["orders_without_transaction"]) == 1


def test_unauthenticated_checkout_is_401(client, make_listing):
    r = client.post("/api/v1/payments/razorpay/order", json={"listing_id": make_listing()["id"]})
    assert r.status_code == 401
