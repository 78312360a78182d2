"""Solicitor bonus state of payments: assignment, recalculation and payout"""

from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.orm import Session

from donor_ledger.domain.bonus import evaluate_bonus
from donor_ledger.domain.exceptions import (
    ConflictError,
    NotFoundError,
    SolicitorNotAssignedError,
    ValidationError,
)
from donor_ledger.domain.models import BonusOutcome, PaymentContext
from donor_ledger.domain.money import to_decimal
from donor_ledger.domain.rule_matcher import is_donation_category
from donor_ledger.infrastructure.database.models import BonusCalculation, Payment
from donor_ledger.infrastructure.database.repositories import (
    BonusCalculationRepository,
    BonusRuleRepository,
    PaymentRepository,
    PledgeRepository,
    SolicitorRepository,
)
from donor_ledger.infrastructure.observability.metrics import record_bonus


@dataclass
class BonusResult:
    payment: Payment
    outcome: BonusOutcome
    calculation: Optional[BonusCalculation]


class BonusLedgerWriter:
    """
    Keeps a payment's bonus fields and its bonus_calculation row in step.

    The calculation row is the record of truth; the payment's
    bonus_percentage / bonus_amount / bonus_rule_id are a projection of the
    same outcome and are only ever written by _apply, together with the row.

    Every mutation locks the payment row, bumps payment.version and flushes
    within the caller's transaction. The caller commits or rolls back, so the
    delete of the old row, the insert of the new one and the projection
    either all land or none do.
    """

    def __init__(self, db: Session):
        self.db = db
        self.payments = PaymentRepository(db)
        self.calculations = BonusCalculationRepository(db)
        self.rules = BonusRuleRepository(db)
        self.pledges = PledgeRepository(db)
        self.solicitors = SolicitorRepository(db)

    def assign(self, payment_id: int, solicitor_id: Optional[int]) -> BonusResult:
        """Credit a payment to a solicitor and compute the bonus it earns"""
        if not solicitor_id:
            raise ValidationError.single("solicitor_id", "Solicitor ID is required")

        payment = self._load_payment(payment_id)
        if self.solicitors.get_solicitor(solicitor_id) is None:
            raise NotFoundError("Solicitor", solicitor_id)

        outcome = self._evaluate(payment, solicitor_id)
        calculation = self._apply(
            payment,
            solicitor_id,
            outcome,
            note=f"Auto-calculated on assignment using rule: {outcome.rule.rule_name}" if outcome.rule else None,
        )
        record_bonus("assign", outcome.rule is not None, outcome.bonus_amount)
        return BonusResult(payment=payment, outcome=outcome, calculation=calculation)

    def recalculate(self, payment_id: int) -> BonusResult:
        """Re-evaluate rules for the payment's current solicitor and data"""
        payment = self._load_payment(payment_id, missing=SolicitorNotAssignedError(payment_id))
        if payment.solicitor_id is None:
            raise SolicitorNotAssignedError(payment_id)

        outcome = self._evaluate(payment, payment.solicitor_id)
        calculation = self._apply(
            payment,
            payment.solicitor_id,
            outcome,
            note=f"Recalculated using rule: {outcome.rule.rule_name}" if outcome.rule else None,
        )
        record_bonus("recalculate", outcome.rule is not None, outcome.bonus_amount)
        return BonusResult(payment=payment, outcome=outcome, calculation=calculation)

    def unassign(self, payment_id: int) -> Payment:
        """Remove the solicitor and clear all bonus fields together"""
        payment = self._load_payment(payment_id)
        self._discard_calculation(payment)

        payment.solicitor_id = None
        payment.bonus_percentage = None
        payment.bonus_amount = None
        payment.bonus_rule_id = None
        payment.version += 1
        self.db.flush()
        return payment

    def mark_paid(self, calculation_id: int) -> BonusCalculation:
        calculations = self.calculations.mark_paid([calculation_id])
        if not calculations:
            raise NotFoundError("BonusCalculation", calculation_id)
        return calculations[0]

    def bulk_mark_paid(self, calculation_ids: List[int]) -> List[BonusCalculation]:
        """Mark several calculations paid; unknown ids are skipped"""
        if not calculation_ids:
            raise ValidationError.single("calculation_ids", "Calculation IDs array is required")
        return self.calculations.mark_paid(calculation_ids)

    def _load_payment(self, payment_id: int, missing: Optional[Exception] = None) -> Payment:
        payment = self.payments.get_payment(payment_id, for_update=True)
        if payment is None:
            raise missing or NotFoundError("Payment", payment_id)
        return payment

    def _evaluate(self, payment: Payment, solicitor_id: int) -> BonusOutcome:
        context = PaymentContext(
            solicitor_id=solicitor_id,
            amount_usd=to_decimal(payment.amount_usd),
            payment_date=payment.payment_date,
            is_donation=is_donation_category(self.pledges.get_category_name(payment.pledge_id)),
        )
        return evaluate_bonus(self.rules.candidate_rules(solicitor_id), context)

    def _discard_calculation(self, payment: Payment) -> None:
        """Delete the payment's calculation row; a paid one is never removed"""
        existing = self.calculations.get_for_payment(payment.id)
        if existing is None:
            return
        if existing.is_paid:
            raise ConflictError(f"Bonus for payment {payment.id} has already been paid and cannot be changed")
        self.calculations.delete_calculation(existing)

    def _apply(
        self,
        payment: Payment,
        solicitor_id: int,
        outcome: BonusOutcome,
        note: Optional[str],
    ) -> Optional[BonusCalculation]:
        """Replace the calculation row and project the outcome onto the payment"""
        self._discard_calculation(payment)

        calculation = None
        if outcome.has_bonus:
            calculation = self.calculations.create_calculation(
                payment_id=payment.id,
                solicitor_id=solicitor_id,
                bonus_rule_id=outcome.rule_id,
                payment_amount=to_decimal(payment.amount_usd),
                bonus_percentage=outcome.bonus_percentage,
                bonus_amount=outcome.bonus_amount,
                is_paid=False,
                notes=note,
            )

        payment.solicitor_id = solicitor_id
        payment.bonus_percentage = outcome.bonus_percentage
        payment.bonus_amount = outcome.bonus_amount
        payment.bonus_rule_id = outcome.rule_id
        payment.version += 1
        self.db.flush()
        return calculation
