"""
Tests for ReconciliationService (stale PENDING sweep).
"""

from datetime import datetime, timedelta, timezone

import pytest

from sammilan.exceptions import GatewayError
from sammilan.fsm.states import DonationStatus
from sammilan.services.donation_store import DonationStore
from sammilan.services.reconciliation_service import ReconcileOutcome, ReconciliationService

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)
STALE = NOW - timedelta(minutes=30)
FRESH = NOW - timedelta(minutes=5)


def _service(db, gateway, batch_size=50):
    return ReconciliationService(db, gateway=gateway, stale_minutes=15, batch_size=batch_size)


@pytest.mark.asyncio
async def test_captured_payment_resolves_to_success(db, make_donation, fake_gateway):
    await make_donation("order_abc", created_at=STALE)
    fake_gateway.payments["order_abc"] = [
        {"id": "pay_failed", "status": "failed"},
        {"id": "pay_ok", "status": "captured", "method": "card"},
    ]
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.checked == 1
    assert report.results[0].outcome is ReconcileOutcome.SUCCEEDED
    stored = await DonationStore(db).get_by_order_id("order_abc")
    assert stored.status == DonationStatus.SUCCESS.value
    assert stored.payment_id == "pay_ok"
    assert stored.payment_method == "card"


@pytest.mark.asyncio
async def test_failed_payment_resolves_to_failed(db, make_donation, fake_gateway):
    await make_donation("order_abc", created_at=STALE)
    fake_gateway.payments["order_abc"] = [{"id": "pay_failed", "status": "failed"}]
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.results[0].outcome is ReconcileOutcome.FAILED
    stored = await DonationStore(db).get_by_order_id("order_abc")
    assert stored.status == DonationStatus.FAILED.value
    assert stored.payment_id == "pay_failed"


@pytest.mark.asyncio
async def test_no_payments_stays_pending_across_sweeps(db, make_donation, fake_gateway):
    await make_donation("order_abc", created_at=STALE)
    service = _service(db, fake_gateway)
    
    for _ in range(3):
        report = await service.sweep(now=NOW)
        assert report.checked == 1
        assert report.results[0].outcome is ReconcileOutcome.UNCHANGED
    
    stored = await DonationStore(db).get_by_order_id("order_abc")
    assert stored.status == DonationStatus.PENDING.value
    assert fake_gateway.lookups == ["order_abc"] * 3


@pytest.mark.asyncio
async def test_fresh_and_final_donations_not_examined(db, make_donation, fake_gateway):
    await make_donation("order_fresh", created_at=FRESH)
    await make_donation("order_done", status=DonationStatus.SUCCESS, payment_id="pay_1", created_at=STALE)
    await make_donation("order_failed", status=DonationStatus.FAILED, payment_id="pay_2", created_at=STALE)
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.checked == 0
    assert fake_gateway.lookups == []


@pytest.mark.asyncio
async def test_batch_size_bounds_each_sweep(db, make_donation, fake_gateway):
    for i in range(5):
        await make_donation(f"order_{i}", created_at=STALE - timedelta(minutes=i))
    
    report = await _service(db, fake_gateway, batch_size=2).sweep(now=NOW)
    
    assert report.checked == 2
    # Oldest first
    assert fake_gateway.lookups == ["order_4", "order_3"]


@pytest.mark.asyncio
async def test_gateway_error_does_not_abort_batch(db, make_donation, fake_gateway):
    await make_donation("order_broken", created_at=STALE - timedelta(minutes=1))
    await make_donation("order_ok", created_at=STALE)
    fake_gateway.lookup_errors["order_broken"] = GatewayError("timed out")
    fake_gateway.payments["order_ok"] = [{"id": "pay_ok", "status": "captured"}]
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.checked == 2
    outcomes = {r.order_id: r.outcome for r in report.results}
    assert outcomes == {
        "order_broken": ReconcileOutcome.ERROR,
        "order_ok": ReconcileOutcome.SUCCEEDED,
    }
    assert report.counts == {"error": 1, "succeeded": 1}
    store = DonationStore(db)
    assert (await store.get_by_order_id("order_broken")).status == DonationStatus.PENDING.value
    assert (await store.get_by_order_id("order_ok")).status == DonationStatus.SUCCESS.value


@pytest.mark.asyncio
async def test_payment_already_attached_elsewhere_is_superseded(db, make_donation, fake_gateway):
    """The captured payment id is already held by another donation."""
    await make_donation("order_other", status=DonationStatus.SUCCESS, payment_id="pay_ok", created_at=STALE)
    await make_donation("order_abc", created_at=STALE)
    fake_gateway.payments["order_abc"] = [{"id": "pay_ok", "status": "captured"}]
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.results[0].outcome is ReconcileOutcome.SUPERSEDED
    stored = await DonationStore(db).get_by_order_id("order_abc")
    assert stored.status == DonationStatus.PENDING.value


@pytest.mark.asyncio
async def test_sweep_report_dict(db, make_donation, fake_gateway):
    await make_donation("order_abc", created_at=STALE)
    
    report = await _service(db, fake_gateway).sweep(now=NOW)
    
    assert report.to_dict() == {"success": True, "checked": 1}
