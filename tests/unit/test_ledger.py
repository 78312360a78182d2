"""Unit tests for pledge and plan running totals"""

from datetime import date
from decimal import Decimal
from donor_ledger.domain.ledger import apply_to_plan, apply_to_pledge, convert_to_usd, next_due_date


def test_convert_to_usd():
    assert convert_to_usd(Decimal("1000.00"), Decimal("0.2745")) == Decimal("274.50")
    assert convert_to_usd(Decimal("10.00"), None) is None


def test_apply_to_pledge_updates_balances():
    totals = apply_to_pledge(
        original_amount=Decimal("5000.00"),
        original_amount_usd=Decimal("1350.00"),
        total_paid=Decimal("1000.00"),
        total_paid_usd=Decimal("270.00"),
        amount=Decimal("500.00"),
        amount_usd=Decimal("135.00"),
    )

    assert totals.total_paid == Decimal("1500.00")
    assert totals.total_paid_usd == Decimal("405.00")
    assert totals.balance == Decimal("3500.00")
    assert totals.balance_usd == Decimal("945.00")


def test_apply_to_pledge_without_usd_original():
    totals = apply_to_pledge(
        original_amount=Decimal("100"),
        original_amount_usd=None,
        total_paid=Decimal("0"),
        total_paid_usd=Decimal("0"),
        amount=Decimal("40"),
        amount_usd=None,
    )

    assert totals.balance == Decimal("60.00")
    assert totals.balance_usd is None
    assert totals.total_paid_usd == Decimal("0.00")


def test_next_due_date_fixed_plan():
    assert next_due_date(date(2026, 1, 31), "monthly", 3, 1) == date(2026, 2, 28)
    assert next_due_date(date(2026, 1, 31), "monthly", 3, 3) is None


def test_next_due_date_custom_plan_uses_stored_dates():
    scheduled = [date(2026, 9, 1), date(2026, 7, 1), date(2026, 8, 1)]

    assert next_due_date(date(2026, 7, 1), "custom", 3, 1, scheduled) == date(2026, 8, 1)
    assert next_due_date(date(2026, 7, 1), "custom", 3, 3, scheduled) is None


def test_apply_to_plan_completes_when_paid_off():
    progress = apply_to_plan(
        total_planned_amount=Decimal("300.00"),
        installments_paid=2,
        total_paid=Decimal("200.00"),
        total_paid_usd=Decimal("200.00"),
        plan_status="active",
        amount=Decimal("100.00"),
        amount_usd=Decimal("100.00"),
        next_payment_date=None,
    )

    assert progress.installments_paid == 3
    assert progress.remaining_amount == Decimal("0.00")
    assert progress.plan_status == "completed"


def test_apply_to_plan_keeps_non_active_status():
    progress = apply_to_plan(
        total_planned_amount=Decimal("100.00"),
        installments_paid=0,
        total_paid=Decimal("0"),
        total_paid_usd=None,
        plan_status="paused",
        amount=Decimal("100.00"),
        amount_usd=Decimal("100.00"),
        next_payment_date=None,
    )

    assert progress.plan_status == "paused"
    assert progress.total_paid_usd == Decimal("100.00")
