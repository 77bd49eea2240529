import os

# Avant l'import de l'app: pas de Redis ni d'accès Supabase au démarrage
os.environ["DISABLE_FASTAPI_LIMITER_INIT_FOR_TESTS"] = "1"
os.environ["SEED_SETTINGS_ON_STARTUP"] = "0"

import pytest
from typing import Callable, Dict, Generator
from fastapi.testclient import TestClient

from reshoe.app import app as fastapi_app
from reshoe.utils.security import AuthUser, Role, get_current_user
from tests.fakes import FakeSupabase

SELLER_ID = "11111111-1111-4111-8111-111111111111"
BUYER_ID = "22222222-2222-4222-8222-222222222222"
OTHER_BUYER_ID = "33333333-3333-4333-8333-333333333333"
ADMIN_ID = "44444444-4444-4444-8444-444444444444"
OTHER_SELLER_ID = "55555555-5555-4555-8555-555555555555"

RAZORPAY_TEST_SECRET = "rzp_test_secret"

# Marquage automatique selon le dossier
def pytest_collection_modifyitems(config, items):
    for item in items:
        nodeid = item.nodeid.replace("\\", "/")
        if "tests/unit/" in nodeid:
            item.add_marker(pytest.mark.unit)
        elif "tests/integration/" in nodeid:
            item.add_marker(pytest.mark.integration)

@pytest.fixture(scope="session")
def app():
    return fastapi_app

@pytest.fixture()
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as c:
        yield c

@pytest.fixture()
def users() -> Dict[str, AuthUser]:
    return {
        "seller": AuthUser(id=SELLER_ID, role=Role.SELLER, email="seller@example.com", name="Sam Seller"),
        "other_seller": AuthUser(id=OTHER_SELLER_ID, role=Role.SELLER, email="seller2@example.com", name="Sid"),
        "buyer": AuthUser(id=BUYER_ID, role=Role.CUSTOMER, email="buyer@example.com", name="Bea Buyer"),
        "other_buyer": AuthUser(id=OTHER_BUYER_ID, role=Role.CUSTOMER, email="buyer2@example.com", name="Bob"),
        "admin": AuthUser(id=ADMIN_ID, role=Role.ADMIN, email="admin@example.com", name="Ada Admin"),
    }

# Base en mémoire à la place de Supabase pour tous les tests
@pytest.fixture(autouse=True)
def fake_db(monkeypatch, users) -> FakeSupabase:
    db = FakeSupabase()
    for u in users.values():
        db.seed("users", {"id": u.id, "email": u.email, "name": u.name, "role": u.role.value})
    monkeypatch.setattr("reshoe.infra.supabase_client.get_service_supabase", lambda: db)
    monkeypatch.setattr("reshoe.infra.supabase_client.get_supabase", lambda: db)
    return db

@pytest.fixture(autouse=True)
def _razorpay_keys(monkeypatch):
    monkeypatch.setattr("reshoe.payments.razorpay_client.RAZORPAY_KEY_ID", "rzp_test_key")
    monkeypatch.setattr("reshoe.payments.razorpay_client.RAZORPAY_KEY_SECRET", RAZORPAY_TEST_SECRET)
    monkeypatch.setattr("reshoe.payments.service.RAZORPAY_KEY_ID", "rzp_test_key")

# Simuler un utilisateur authentifié: login(user) remplace la résolution du jeton Bearer
@pytest.fixture()
def login(app) -> Generator[Callable[[AuthUser], None], None, None]:
    def _login(user: AuthUser) -> None:
        app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield _login
    finally:
        app.dependency_overrides.pop(get_current_user, None)

@pytest.fixture()
def make_listing(fake_db) -> Callable[..., dict]:
    def _make(seller_id: str = SELLER_ID, status: str = "approved", price: int = 7499, **fields) -> dict:
        row = {
            "seller_id": seller_id,
            "title": "Air Max 90",
            "brand": "Nike",
            "size": 9.0,
            "condition": "like-new",
            "category": "men",
            "price": price,
            "description": "Portées deux fois, comme neuves.",
            "images": ["https://cdn.example.com/a.jpg"],
            "status": status,
        }
        row.update(fields)
        return fake_db.seed("listings", row)
    return _make

@pytest.fixture()
def shipping_address() -> Dict[str, str]:
    return {
        "name": "Bea Buyer",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "postal_code": "560001",
        "country": "India",
        "phone": "(987) 654-3210",
    }
