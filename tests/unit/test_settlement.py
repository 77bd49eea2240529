import threading

import pytest

from reshoe.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    PartialSettlementError,
    ValidationError,
)
from reshoe.health.service import find_settlement_gaps
from reshoe.listings import service as listings_service
from reshoe.listings.models import ListingReview, ListingUpdate
from reshoe.orders.settlement import SettlementStage, settle_purchase
from reshoe.platform_settings import service as settings_service
from reshoe.platform_settings.models import PlatformSettingsUpdate

from tests.conftest import BUYER_ID, OTHER_BUYER_ID, SELLER_ID


WRITES = {"insert", "update", "upsert", "delete"}


def _writes(fake_db, table):
    return [c for c in fake_db.calls if c[0] == table and c[1] in WRITES]


def test_happy_path_splits_7499(make_listing, shipping_address, fake_db):
    listing = make_listing(price=7499)
    result = settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)

    assert result["amount"] == 7499
    assert result["status"] == "pending"
    assert result["payment_id"] == "pay_1"
    assert result["transaction"]["commission"] == 750
    assert result["transaction"]["seller_earnings"] == 6749
    assert result["transaction"]["commission_rate"] == 10.0
    assert result["transaction"]["payout_status"] == "pending"
    assert result["buyer"]["id"] == BUYER_ID
    assert result["seller"]["name"] == "Sam Seller"
    assert result["listing"]["status"] == "sold"
    # Téléphone normalisé en 10 chiffres
    assert result["shipping_address"]["phone"] == "9876543210"

    assert fake_db.rows("listings")[0]["status"] == "sold"
    assert len(fake_db.rows("orders")) == 1
    assert len(fake_db.rows("transactions")) == 1
    assert find_settlement_gaps()["ok"] is True


def test_settings_created_lazily_with_default_rate(make_listing, shipping_address, fake_db):
    assert fake_db.rows("settings") == []
    settle_purchase(BUYER_ID, make_listing()["id"], "pay_1", shipping_address)
    settings = fake_db.rows("settings")
    assert len(settings) == 1
    assert settings[0]["commission_rate"] == 10


def test_rate_is_frozen_at_settlement(users, make_listing, shipping_address, fake_db):
    first = settle_purchase(BUYER_ID, make_listing(price=1000)["id"], "pay_1", shipping_address)
    settings_service.update_settings(users["admin"], PlatformSettingsUpdate(commission_rate=15))
    second = settle_purchase(BUYER_ID, make_listing(price=1000)["id"], "pay_2", shipping_address)

    assert first["transaction"]["commission"] == 100
    assert second["transaction"]["commission"] == 150
    stored = {t["order_id"]: t for t in fake_db.rows("transactions")}
    assert stored[first["id"]]["commission_rate"] == 10.0
    assert stored[first["id"]]["commission"] == 100


def test_self_purchase_is_forbidden_without_writes(make_listing, shipping_address, fake_db):
    listing = make_listing()
    with pytest.raises(ForbiddenError):
        settle_purchase(SELLER_ID, listing["id"], "pay_1", shipping_address)
    assert fake_db.rows("listings")[0]["status"] == "approved"
    assert _writes(fake_db, "orders") == []


@pytest.mark.parametrize("status", ["pending-approval", "rejected", "sold"])
def test_listing_not_approved_is_conflict(status, make_listing, shipping_address, fake_db):
    listing = make_listing(status=status)
    with pytest.raises(ConflictError):
        settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)
    assert fake_db.rows("orders") == []


def test_missing_listing_is_not_found(shipping_address):
    with pytest.raises(NotFoundError):
        settle_purchase(BUYER_ID, "99999999-9999-4999-8999-999999999999", "pay_1", shipping_address)


@pytest.mark.parametrize("field,value", [
    ("phone", "12345"),
    ("city", ""),
    ("postal_code", "   "),
])
def test_invalid_address_rejected_before_any_write(field, value, make_listing, shipping_address, fake_db):
    listing = make_listing()
    shipping_address[field] = value
    with pytest.raises(ValidationError) as exc:
        settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)
    assert field in exc.value.detail
    assert fake_db.rows("listings")[0]["status"] == "approved"
    assert _writes(fake_db, "listings") == []


def test_missing_address_is_validation_error(make_listing):
    with pytest.raises(ValidationError):
        settle_purchase(BUYER_ID, make_listing()["id"], "pay_1", None)


def test_concurrent_settlements_sell_once(make_listing, shipping_address, fake_db, monkeypatch):
    listing = make_listing()
    barrier = threading.Barrier(2, timeout=5)
    real_snapshot = settings_service.commission_rate_snapshot

    # Les deux acheteurs ont lu l'annonce 'approved' avant que l'un d'eux ne réserve
    def synchronized_snapshot():
        rate = real_snapshot()
        barrier.wait()
        return rate

    monkeypatch.setattr(settings_service, "commission_rate_snapshot", synchronized_snapshot)

    outcomes = {}

    def attempt(buyer_id, payment_id):
        try:
            outcomes[buyer_id] = settle_purchase(buyer_id, listing["id"], payment_id, dict(shipping_address))
        except Exception as exc:
            outcomes[buyer_id] = exc

    threads = [
        threading.Thread(target=attempt, args=(BUYER_ID, "pay_a")),
        threading.Thread(target=attempt, args=(OTHER_BUYER_ID, "pay_b")),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    successes = [o for o in outcomes.values() if isinstance(o, dict)]
    failures = [o for o in outcomes.values() if isinstance(o, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], ConflictError)
    assert len(fake_db.rows("orders")) == 1
    assert len(fake_db.rows("transactions")) == 1
    # La réclamation du perdant est libérée: seule celle du gagnant subsiste
    assert [c["payment_id"] for c in fake_db.rows("payment_claims")] == [successes[0]["payment_id"]]
    assert find_settlement_gaps()["ok"] is True


def test_concurrent_reuse_of_one_payment_sells_one_listing(make_listing, shipping_address, fake_db, monkeypatch):
    first = make_listing()
    second = make_listing()
    barrier = threading.Barrier(2, timeout=5)
    real_snapshot = settings_service.commission_rate_snapshot

    def synchronized_snapshot():
        rate = real_snapshot()
        barrier.wait()
        return rate

    monkeypatch.setattr(settings_service, "commission_rate_snapshot", synchronized_snapshot)
    outcomes = {}

    def attempt(listing_id):
        try:
            outcomes[listing_id] = settle_purchase(BUYER_ID, listing_id, "pay_shared", dict(shipping_address))
        except Exception as exc:
            outcomes[listing_id] = exc

    threads = [threading.Thread(target=attempt, args=(l["id"],)) for l in (first, second)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    failures = [o for o in outcomes.values() if isinstance(o, Exception)]
    assert len(failures) == 1
    assert type(failures[0]) is ConflictError
    statuses = sorted(l["status"] for l in fake_db.rows("listings"))
    assert statuses == ["approved", "sold"]
    assert len(fake_db.rows("orders")) == 1
    assert find_settlement_gaps()["ok"] is True


def test_reused_payment_is_conflict_without_listing_write(make_listing, shipping_address, fake_db):
    settle_purchase(BUYER_ID, make_listing()["id"], "pay_1", shipping_address)
    other = make_listing()
    fake_db.calls.clear()

    with pytest.raises(ConflictError):
        settle_purchase(OTHER_BUYER_ID, other["id"], "pay_1", shipping_address)
    assert _writes(fake_db, "listings") == []
    assert fake_db.rows("listings")[1]["status"] == "approved"


def test_paid_amount_must_match_listing_price(make_listing, shipping_address, fake_db):
    listing = make_listing(price=99999)
    with pytest.raises(ConflictError):
        settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address, paid_amount=100)
    assert fake_db.rows("listings")[0]["status"] == "approved"
    assert fake_db.rows("payment_claims") == []

    result = settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address, paid_amount=99999)
    assert result["amount"] == 99999


def test_ledger_failure_reports_order_recorded(make_listing, shipping_address, fake_db):
    listing = make_listing()
    fake_db.fail_on("transactions", "insert")

    with pytest.raises(PartialSettlementError) as exc:
        settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)

    err = exc.value
    assert err.stage == SettlementStage.ORDER_RECORDED.value
    assert err.order_id == fake_db.rows("orders")[0]["id"]
    assert err.reconciliation_info()["payment_id"] == "pay_1"

    gaps = find_settlement_gaps()
    assert gaps["ok"] is False
    assert [g["order_id"] for g in gaps["orders_without_transaction"]] == [err.order_id]
    assert gaps["sold_without_order"] == []


def test_order_failure_reports_listing_reserved(make_listing, shipping_address, fake_db):
    listing = make_listing()
    fake_db.fail_on("orders", "insert")

    with pytest.raises(PartialSettlementError) as exc:
        settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)

    assert exc.value.stage == SettlementStage.LISTING_RESERVED.value
    assert exc.value.order_id is None
    assert fake_db.rows("listings")[0]["status"] == "sold"

    gaps = find_settlement_gaps()
    assert [g["listing_id"] for g in gaps["sold_without_order"]] == [listing["id"]]


def test_sold_listing_is_frozen_for_moderation_and_edits(users, make_listing, shipping_address):
    listing = make_listing()
    settle_purchase(BUYER_ID, listing["id"], "pay_1", shipping_address)

    with pytest.raises(ConflictError):
        listings_service.review_listing(
            users["admin"], listing["id"], ListingReview(action="reject", rejection_reason="fraude")
        )
    with pytest.raises(ConflictError):
        listings_service.edit_listing(users["seller"], listing["id"], ListingUpdate(price=1))
    with pytest.raises(ConflictError):
        settle_purchase(BUYER_ID, listing["id"], "pay_2", shipping_address)
