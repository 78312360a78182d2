"""Unit tests for bonus calculation"""

import pytest
from datetime import date
from decimal import Decimal
from donor_ledger.domain.bonus import calculate_bonus, evaluate_bonus
from donor_ledger.domain.models import BonusRule, PaymentContext


@pytest.mark.parametrize(
    "amount, percentage, expected",
    [
        ("1000.00", "5", "50.00"),
        ("33.33", "1.5", "0.50"),  # 0.49995 rounds half-up
        ("0.10", "5", "0.01"),  # 0.005 rounds half-up
        ("0.09", "5", "0.00"),  # 0.0045 rounds down
        ("1234.56", "2.25", "27.78"),
    ],
)
def test_calculate_bonus_rounds_half_up(amount, percentage, expected):
    result = calculate_bonus(Decimal(amount), Decimal(percentage))
    assert result == Decimal(expected)
    assert str(result) == expected


def test_calculate_bonus_zero_or_missing_percentage():
    """Test a missing percentage gives 0.00, never None"""
    assert calculate_bonus(Decimal("1000.00"), None) == Decimal("0.00")
    assert calculate_bonus(Decimal("1000.00"), Decimal("0")) == Decimal("0.00")
    assert str(calculate_bonus(None, Decimal("5"))) == "0.00"


def test_evaluate_bonus_tuition_example():
    """Test 1000.00 USD tuition payment with a 5% tuition rule pays 50.00"""
    rule = BonusRule(
        id=4,
        solicitor_id=1,
        rule_name="Tuition 5%",
        bonus_percentage=Decimal("5"),
        payment_type="tuition",
        effective_from=date(2026, 1, 1),
        priority=10,
    )
    payment = PaymentContext(
        solicitor_id=1,
        amount_usd=Decimal("1000.00"),
        payment_date=date(2026, 3, 1),
        is_donation=False,
    )

    outcome = evaluate_bonus([rule], payment)

    assert str(outcome.bonus_amount) == "50.00"
    assert outcome.bonus_percentage == Decimal("5.00")
    assert outcome.rule_id == 4
    assert outcome.has_bonus


def test_evaluate_bonus_without_match():
    payment = PaymentContext(
        solicitor_id=1,
        amount_usd=Decimal("1000.00"),
        payment_date=date(2026, 3, 1),
        is_donation=True,
    )

    outcome = evaluate_bonus([], payment)

    assert outcome.bonus_amount == Decimal("0.00")
    assert outcome.bonus_percentage == Decimal("0.00")
    assert outcome.rule_id is None
    assert not outcome.has_bonus
