"""Solicitor bonus calculation"""

from decimal import Decimal
from typing import Iterable, Optional

from donor_ledger.domain.models import BonusOutcome, BonusRule, PaymentContext
from donor_ledger.domain.money import ZERO, to_decimal, to_money
from donor_ledger.domain.rule_matcher import match_rule


def calculate_bonus(amount_usd: Optional[Decimal], percentage: Optional[Decimal]) -> Decimal:
    """
    Bonus amount for a payment.

    round_half_up(amount_usd * percentage / 100, 2). A missing amount or a
    missing/zero percentage yields Decimal("0.00"), never None.

    Example:
        1000.00 USD at 5% -> 50.00
        33.33 USD at 1.5% -> 0.50 (0.49995 rounds up)
    """
    if amount_usd is None or not percentage:
        return ZERO
    return to_money(to_decimal(amount_usd) * to_decimal(percentage) / Decimal(100))


def evaluate_bonus(rules: Iterable[BonusRule], payment: PaymentContext) -> BonusOutcome:
    """Main entry point: match the best rule and compute the bonus it pays"""
    rule = match_rule(rules, payment)
    if rule is None:
        return BonusOutcome(bonus_percentage=ZERO, bonus_amount=ZERO, rule=None)

    return BonusOutcome(
        bonus_percentage=to_money(rule.bonus_percentage),
        bonus_amount=calculate_bonus(payment.amount_usd, rule.bonus_percentage),
        rule=rule,
    )
