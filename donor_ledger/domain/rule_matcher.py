"""Bonus rule matching - filter candidate rules and pick the one that applies"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from donor_ledger.domain.models import BonusRule, PaymentContext


def is_donation_category(category_name: Optional[str]) -> bool:
    """A pledge counts as a donation when its category name contains "donation"."""
    return bool(category_name) and "donation" in category_name.lower()


class RulePredicate(ABC):
    """A single condition a rule must satisfy for a payment"""

    @abstractmethod
    def __call__(self, rule: BonusRule, payment: PaymentContext) -> bool:
        ...


@dataclass(frozen=True)
class SameSolicitor(RulePredicate):
    def __call__(self, rule, payment):
        return rule.solicitor_id == payment.solicitor_id


@dataclass(frozen=True)
class IsActive(RulePredicate):
    def __call__(self, rule, payment):
        return rule.is_active


@dataclass(frozen=True)
class EffectiveOn(RulePredicate):
    """effective_from <= payment date <= effective_to (open-ended when unset)"""

    def __call__(self, rule, payment):
        if rule.effective_from > payment.payment_date:
            return False
        return rule.effective_to is None or rule.effective_to >= payment.payment_date


@dataclass(frozen=True)
class CoversPaymentType(RulePredicate):
    def __call__(self, rule, payment):
        if rule.payment_type == "both":
            return True
        if rule.payment_type == "donation":
            return payment.is_donation
        if rule.payment_type == "tuition":
            return not payment.is_donation
        return False


@dataclass(frozen=True)
class WithinAmountBounds(RulePredicate):
    def __call__(self, rule, payment):
        if rule.min_amount is not None and rule.min_amount > payment.amount_usd:
            return False
        if rule.max_amount is not None and rule.max_amount < payment.amount_usd:
            return False
        return True


@dataclass(frozen=True)
class AllOf(RulePredicate):
    """Logical AND over a fixed tuple of predicates"""

    predicates: Tuple[RulePredicate, ...]

    def __call__(self, rule, payment):
        return all(predicate(rule, payment) for predicate in self.predicates)


APPLICABLE_RULE = AllOf(
    (
        SameSolicitor(),
        IsActive(),
        EffectiveOn(),
        CoversPaymentType(),
        WithinAmountBounds(),
    )
)


def rank_key(rule: BonusRule) -> Tuple[int, int]:
    """
    Sort key for applicable rules, best first when sorted descending.

    Highest priority wins. On equal priority the rule with the highest id
    (the most recently created one) wins.
    """
    return (rule.priority, rule.id)


def applicable_rules(
    rules: Iterable[BonusRule],
    payment: PaymentContext,
    predicate: RulePredicate = APPLICABLE_RULE,
) -> List[BonusRule]:
    """Return every rule that applies to the payment, best match first"""
    matching = [rule for rule in rules if predicate(rule, payment)]
    return sorted(matching, key=rank_key, reverse=True)


def match_rule(rules: Iterable[BonusRule], payment: PaymentContext) -> Optional[BonusRule]:
    """Pick the single best rule for a payment, or None when nothing applies"""
    ranked = applicable_rules(rules, payment)
    return ranked[0] if ranked else None
