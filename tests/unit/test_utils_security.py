import types

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from reshoe.auth import service as auth_service
from reshoe.utils.security import (
    AuthUser,
    Role,
    get_current_user,
    require_admin,
    require_roles,
    require_seller,
)


def _make_app():
    app = FastAPI()

    @app.get("/me")
    def me(user: AuthUser = Depends(get_current_user)):
        return {"id": user.id, "role": user.role.value}

    @app.get("/admin-only")
    def admin_only(user: AuthUser = Depends(require_admin)):
        return {"ok": True}

    @app.get("/seller-only")
    def seller_only(user: AuthUser = Depends(require_seller)):
        return {"ok": True}

    @app.get("/staff")
    def staff(user: AuthUser = Depends(require_roles(Role.SELLER, Role.ADMIN))):
        return {"ok": True}

    return app


@pytest.mark.parametrize("metadata,expected", [
    ({"role": "admin"}, Role.ADMIN),
    ({"role": " Seller "}, Role.SELLER),
    ({"role": "customer"}, Role.CUSTOMER),
    ({"role": "superuser"}, Role.CUSTOMER),
    ({}, Role.CUSTOMER),
    (None, Role.CUSTOMER),
])
def test_determine_role_is_closed(metadata, expected):
    assert auth_service.determine_role(metadata) is expected


def test_get_user_from_token_normalizes(monkeypatch):
    monkeypatch.setattr(
        auth_service,
        "_repo_get_user_from_token",
        lambda token: {"id": "u1", "email": "a@b.c", "user_metadata": {"full_name": "Ana", "role": "seller"}},
    )
    user = auth_service.get_user_from_token("tok")
    assert user == AuthUser(id="u1", role=Role.SELLER, email="a@b.c", name="Ana")


def test_get_user_from_token_reads_supabase_auth(fake_db):
    fake_db.auth = types.SimpleNamespace(
        get_user=lambda token: types.SimpleNamespace(
            user=types.SimpleNamespace(id="u2", email="x@y.z", user_metadata={"name": "Xavier", "role": "admin"})
        )
    )
    user = auth_service.get_user_from_token("tok")
    assert user.id == "u2"
    assert user.is_admin
    assert user.name == "Xavier"


def test_missing_bearer_is_401():
    client = TestClient(_make_app())
    assert client.get("/me").status_code == 401
    assert client.get("/me", headers={"Authorization": "Basic abc"}).status_code == 401
    assert client.get("/admin-only").status_code == 401


def test_invalid_token_is_401(monkeypatch):
    def boom(token):
        raise RuntimeError("invalid JWT")

    monkeypatch.setattr(auth_service, "get_user_from_token", boom)
    client = TestClient(_make_app())
    r = client.get("/me", headers={"Authorization": "Bearer bad"})
    assert r.status_code == 401


def test_role_guards(monkeypatch):
    client = TestClient(_make_app())
    tokens = {
        "t-customer": AuthUser(id="c", role=Role.CUSTOMER),
        "t-seller": AuthUser(id="s", role=Role.SELLER),
        "t-admin": AuthUser(id="a", role=Role.ADMIN),
    }
    monkeypatch.setattr(auth_service, "get_user_from_token", lambda token: tokens[token])

    def status(path, token):
        return client.get(path, headers={"Authorization": f"Bearer {token}"}).status_code

    assert status("/me", "t-customer") == 200
    assert status("/admin-only", "t-customer") == 403
    assert status("/admin-only", "t-seller") == 403
    assert status("/admin-only", "t-admin") == 200
    assert status("/seller-only", "t-admin") == 403
    assert status("/seller-only", "t-seller") == 200
    assert status("/staff", "t-customer") == 403
    assert status("/staff", "t-seller") == 200
    assert status("/staff", "t-admin") == 200
