"""Unit tests for installment plan building"""

import pytest
from datetime import date
from decimal import Decimal
from donor_ledger.domain.installments import build_plan, project_fixed_schedule
from donor_ledger.domain.models import CustomInstallment, PlanRequest
from donor_ledger.utils.date_utils import add_months, advance


def test_project_fixed_schedule_monthly_clamps_month_end():
    """Test monthly dates from the 31st land on the last day of shorter months"""
    installments = project_fixed_schedule(date(2026, 1, 31), "monthly", 3, Decimal("100"), "USD")

    assert [inst.due_date for inst in installments] == [
        date(2026, 1, 31),
        date(2026, 2, 28),
        date(2026, 3, 31),
    ]
    assert all(inst.amount == Decimal("100.00") for inst in installments)
    assert all(inst.currency == "USD" for inst in installments)


@pytest.mark.parametrize(
    "frequency, expected",
    [
        ("weekly", date(2026, 1, 15)),
        ("monthly", date(2026, 3, 1)),
        ("quarterly", date(2026, 7, 1)),
        ("biannual", date(2027, 1, 1)),
        ("annual", date(2028, 1, 1)),
        ("one_time", date(2026, 1, 1)),
    ],
)
def test_advance_two_periods(frequency, expected):
    assert advance(date(2026, 1, 1), frequency, 2) == expected


def test_add_months_leap_year():
    assert add_months(date(2028, 1, 31), 1) == date(2028, 2, 29)
    assert add_months(date(2026, 11, 30), 3) == date(2027, 2, 28)


def test_project_fixed_schedule_zero_installments():
    assert project_fixed_schedule(date(2026, 1, 1), "monthly", 0, Decimal("100"), "USD") == []


def test_build_custom_plan_counts_supplied_installments():
    """Test custom plans ignore the caller's count and average the total"""
    request = PlanRequest(
        pledge_id=3,
        frequency="custom",
        distribution_type="custom",
        total_planned_amount=Decimal("100.00"),
        currency="ILS",
        start_date=date(2026, 6, 1),
        number_of_installments=99,
        custom_installments=[
            CustomInstallment(date=date(2026, 8, 1), amount=Decimal("40.00"), notes="last"),
            CustomInstallment(date=date(2026, 6, 1), amount=Decimal("30.00")),
            CustomInstallment(date=date(2026, 7, 1), amount=Decimal("30.00")),
        ],
    )

    draft = build_plan(request, exchange_rate=Decimal("0.2700"))

    assert draft.number_of_installments == 3
    assert draft.installment_amount == Decimal("33.33")
    assert draft.exchange_rate == Decimal("0.2700")
    assert [inst.due_date for inst in draft.installments] == [
        date(2026, 6, 1), date(2026, 7, 1), date(2026, 8, 1),
    ]
    assert draft.installments[-1].notes == "last"
    assert all(inst.currency == "ILS" for inst in draft.installments)


def test_build_fixed_plan_keeps_caller_values():
    request = PlanRequest(
        pledge_id=3,
        frequency="monthly",
        distribution_type="fixed",
        total_planned_amount=Decimal("12000"),
        currency="USD",
        start_date=date(2026, 6, 1),
        installment_amount=Decimal("1000"),
        number_of_installments=12,
    )

    draft = build_plan(request, exchange_rate=None)

    assert draft.number_of_installments == 12
    assert draft.installment_amount == Decimal("1000.00")
    assert draft.installments == []
    assert draft.remaining_amount == Decimal("12000.00")
    assert draft.next_payment_date == date(2026, 6, 1)


def test_build_plan_keeps_explicit_next_payment_date():
    request = PlanRequest(
        pledge_id=3,
        frequency="monthly",
        distribution_type="fixed",
        total_planned_amount=Decimal("300"),
        currency="USD",
        start_date=date(2026, 6, 1),
        installment_amount=Decimal("100"),
        number_of_installments=3,
        next_payment_date=date(2026, 6, 15),
    )

    assert build_plan(request, exchange_rate=None).next_payment_date == date(2026, 6, 15)
