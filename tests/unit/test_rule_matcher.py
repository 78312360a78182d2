"""Unit tests for bonus rule matching"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from donor_ledger.domain.models import BonusRule, PaymentContext
from donor_ledger.domain.rule_matcher import (
    CoversPaymentType,
    EffectiveOn,
    RulePredicate,
    WithinAmountBounds,
    applicable_rules,
    is_donation_category,
    match_rule,
)

PAYMENT_DATE = date(2026, 6, 15)


def make_rule(rule_id: int, **overrides) -> BonusRule:
    fields = {
        "id": rule_id,
        "solicitor_id": 7,
        "rule_name": f"rule-{rule_id}",
        "bonus_percentage": Decimal("5"),
        "payment_type": "both",
        "effective_from": date(2026, 1, 1),
    }
    fields.update(overrides)
    return BonusRule(**fields)


def make_payment(amount: str = "1000.00", is_donation: bool = False, **overrides) -> PaymentContext:
    fields = {
        "solicitor_id": 7,
        "amount_usd": Decimal(amount),
        "payment_date": PAYMENT_DATE,
        "is_donation": is_donation,
    }
    fields.update(overrides)
    return PaymentContext(**fields)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("Donation", True),
        ("General DONATIONS", True),
        ("Tuition", False),
        ("", False),
        (None, False),
    ],
)
def test_is_donation_category(name, expected):
    assert is_donation_category(name) is expected


def test_highest_priority_wins():
    """Test a strictly higher priority is chosen whatever the input order"""
    low = make_rule(1, priority=1)
    high = make_rule(2, priority=10, bonus_percentage=Decimal("7"))

    assert match_rule([low, high], make_payment()).id == 2
    assert match_rule([high, low], make_payment()).id == 2


def test_higher_priority_beats_newer_rule():
    old_high = make_rule(1, priority=5)
    new_low = make_rule(9, priority=4)

    assert match_rule([new_low, old_high], make_payment()).id == 1


def test_equal_priority_prefers_newest_rule():
    """Test tie on priority is broken by highest rule id"""
    rules = [make_rule(3, priority=2), make_rule(11, priority=2), make_rule(5, priority=2)]

    assert match_rule(rules, make_payment()).id == 11
    assert [r.id for r in applicable_rules(rules, make_payment())] == [11, 5, 3]


def test_no_match_returns_none():
    assert match_rule([], make_payment()) is None
    assert match_rule([make_rule(1, is_active=False)], make_payment()) is None


def test_other_solicitor_rules_ignored():
    assert match_rule([make_rule(1, solicitor_id=8)], make_payment()) is None


def test_effective_window_inclusive():
    predicate = EffectiveOn()
    payment = make_payment()

    assert predicate(make_rule(1, effective_from=PAYMENT_DATE), payment)
    assert predicate(make_rule(1, effective_to=PAYMENT_DATE), payment)
    assert not predicate(make_rule(1, effective_from=PAYMENT_DATE + timedelta(days=1)), payment)
    assert not predicate(make_rule(1, effective_to=PAYMENT_DATE - timedelta(days=1)), payment)
    assert predicate(make_rule(1, effective_to=None), payment)


@pytest.mark.parametrize(
    "payment_type, is_donation, expected",
    [
        ("both", True, True),
        ("both", False, True),
        ("donation", True, True),
        ("donation", False, False),
        ("tuition", False, True),
        ("tuition", True, False),
    ],
)
def test_payment_type_scope(payment_type, is_donation, expected):
    rule = make_rule(1, payment_type=payment_type)
    assert CoversPaymentType()(rule, make_payment(is_donation=is_donation)) is expected


def test_amount_bounds_inclusive():
    predicate = WithinAmountBounds()
    payment = make_payment("500.00")

    assert predicate(make_rule(1, min_amount=Decimal("500.00")), payment)
    assert predicate(make_rule(1, max_amount=Decimal("500.00")), payment)
    assert not predicate(make_rule(1, min_amount=Decimal("500.01")), payment)
    assert not predicate(make_rule(1, max_amount=Decimal("499.99")), payment)
    assert predicate(make_rule(1, min_amount=None, max_amount=None), payment)


def test_filtered_rule_never_outranks_applicable_one():
    """Test a high-priority rule that does not apply loses to a low-priority one that does"""
    out_of_range = make_rule(1, priority=100, min_amount=Decimal("5000"))
    applies = make_rule(2, priority=1)

    assert match_rule([out_of_range, applies], make_payment("1000.00")).id == 2


def test_rule_predicate_is_abstract():
    with pytest.raises(TypeError):
        RulePredicate()

    class Incomplete(RulePredicate):
        pass

    with pytest.raises(TypeError):
        Incomplete()
