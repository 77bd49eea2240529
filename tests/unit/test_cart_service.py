import threading

import pytest

from reshoe.cart import repository as cart_repository
from reshoe.cart import service as cart_service
from reshoe.errors import (
    ConflictError,
    DuplicateCartItemError,
    ForbiddenError,
    ListingUnavailableError,
    NotFoundError,
)


def test_get_cart_creates_single_cart_on_first_access(users, fake_db):
    first = cart_service.get_cart(users["buyer"])
    second = cart_service.get_cart(users["buyer"])
    assert first["items"] == [] and second["items"] == []
    assert first["total"] == 0
    assert len(fake_db.rows("carts")) == 1


def test_add_to_cart_keeps_insertion_order(users, make_listing):
    a = make_listing(price=1000)
    b = make_listing(price=2500)
    cart_service.add_to_cart(users["buyer"], b["id"])
    cart = cart_service.add_to_cart(users["buyer"], a["id"])
    assert [e["listing_id"] for e in cart["items"]] == [b["id"], a["id"]]
    assert all(e["added_at"] for e in cart["items"])
    assert cart["total"] == 3500


def test_add_rejections_are_distinct(users, make_listing):
    pending = make_listing(status="pending-approval")
    own = make_listing(seller_id=users["buyer"].id)
    ok = make_listing()
    cart_service.add_to_cart(users["buyer"], ok["id"])

    with pytest.raises(ListingUnavailableError) as not_approved:
        cart_service.add_to_cart(users["buyer"], pending["id"])
    with pytest.raises(ForbiddenError):
        cart_service.add_to_cart(users["buyer"], own["id"])
    with pytest.raises(DuplicateCartItemError) as duplicate:
        cart_service.add_to_cart(users["buyer"], ok["id"])
    with pytest.raises(NotFoundError):
        cart_service.add_to_cart(users["buyer"], "99999999-9999-4999-8999-999999999999")

    # Deux conflits, mais deux classes différentes
    assert isinstance(not_approved.value, ConflictError)
    assert isinstance(duplicate.value, ConflictError)
    assert type(not_approved.value) is not type(duplicate.value)


def test_sold_listing_cannot_be_added(users, make_listing):
    sold = make_listing(status="sold")
    with pytest.raises(ListingUnavailableError):
        cart_service.add_to_cart(users["buyer"], sold["id"])


def test_remove_is_idempotent(users, make_listing, fake_db):
    a = make_listing()
    b = make_listing()
    cart_service.add_to_cart(users["buyer"], a["id"])
    cart_service.add_to_cart(users["buyer"], b["id"])

    once = cart_service.remove_from_cart(users["buyer"], a["id"])
    twice = cart_service.remove_from_cart(users["buyer"], a["id"])
    assert [e["listing_id"] for e in once["items"]] == [b["id"]]
    assert [e["listing_id"] for e in twice["items"]] == [b["id"]]
    assert [i["listing_id"] for i in fake_db.rows("carts")[0]["items"]] == [b["id"]]


def test_remove_on_empty_cart_creates_it_without_error(users, fake_db):
    cart = cart_service.remove_from_cart(users["buyer"], "99999999-9999-4999-8999-999999999999")
    assert cart["items"] == []
    assert len(fake_db.rows("carts")) == 1


def test_deleted_listing_filtered_at_read_time_only(users, make_listing, fake_db):
    a = make_listing()
    b = make_listing()
    cart_service.add_to_cart(users["buyer"], a["id"])
    cart_service.add_to_cart(users["buyer"], b["id"])
    fake_db.tables["listings"] = [r for r in fake_db.tables["listings"] if r["id"] != a["id"]]

    cart = cart_service.get_cart(users["buyer"])
    assert [e["listing_id"] for e in cart["items"]] == [b["id"]]
    # Le panier stocké n'est pas nettoyé
    assert len(fake_db.rows("carts")[0]["items"]) == 2


def test_concurrent_adds_keep_both_items(users, make_listing, fake_db, monkeypatch):
    a = make_listing()
    b = make_listing()
    cart_service.get_cart(users["buyer"])
    barrier = threading.Barrier(2, timeout=5)
    real_ensure = cart_repository.ensure_cart
    first_read = set()

    # Les deux requêtes lisent le panier vide avant que l'une d'elles n'écrive
    def synchronized_ensure(user_id):
        cart = real_ensure(user_id)
        me = threading.get_ident()
        if me not in first_read:
            first_read.add(me)
            barrier.wait()
        return cart

    monkeypatch.setattr(cart_repository, "ensure_cart", synchronized_ensure)
    errors = []

    def add(listing_id):
        try:
            cart_service.add_to_cart(users["buyer"], listing_id)
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=add, args=(l["id"],)) for l in (a, b)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert errors == []
    stored = fake_db.rows("carts")[0]
    assert {i["listing_id"] for i in stored["items"]} == {a["id"], b["id"]}
    assert stored["version"] == 2


def test_add_gives_up_when_cart_keeps_changing(users, make_listing, fake_db, monkeypatch):
    listing = make_listing()
    monkeypatch.setattr(cart_repository, "save_items", lambda user_id, items, expected_version: None)
    with pytest.raises(ConflictError):
        cart_service.add_to_cart(users["buyer"], listing["id"])
    assert fake_db.rows("carts")[0]["items"] == []
