"""Recording and deleting payments while keeping pledge and plan totals consistent"""

from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from donor_ledger.domain.exceptions import ConflictError, NotFoundError, ValidationError
from donor_ledger.domain.ledger import apply_to_plan, apply_to_pledge, convert_to_usd, next_due_date
from donor_ledger.domain.money import to_money
from donor_ledger.infrastructure.database.models import Payment, PaymentPlan, Pledge
from donor_ledger.infrastructure.database.repositories import (
    BonusCalculationRepository,
    PaymentRepository,
    PlanRepository,
    PledgeRepository,
)


class PaymentLedgerService:
    """Flushes within the caller's transaction; the endpoint commits"""

    def __init__(self, db: Session):
        self.db = db
        self.payments = PaymentRepository(db)
        self.pledges = PledgeRepository(db)
        self.plans = PlanRepository(db)
        self.calculations = BonusCalculationRepository(db)

    def record_payment(
        self,
        pledge_id: int,
        amount: Decimal,
        currency: str,
        payment_date: date,
        payment_status: str = "completed",
        payment_plan_id: Optional[int] = None,
        exchange_rate: Optional[Decimal] = None,
        notes: Optional[str] = None,
    ) -> Payment:
        """
        Insert a payment and, when completed, advance the pledge and plan totals.

        The USD amount uses the supplied rate, else the pledge's rate (1 for
        USD pledges).
        """
        pledge = self.pledges.get_pledge(pledge_id)
        if pledge is None:
            raise NotFoundError("Pledge", pledge_id)

        plan = None
        if payment_plan_id is not None:
            plan = self.plans.get_plan_by_id(payment_plan_id)
            if plan is None:
                raise NotFoundError("PaymentPlan", payment_plan_id)
            if plan.pledge_id != pledge.id:
                raise ValidationError.single(
                    "payment_plan_id",
                    f"Payment plan {payment_plan_id} does not belong to pledge {pledge_id}",
                )

        rate = exchange_rate
        if rate is None:
            rate = Decimal("1") if pledge.currency == "USD" else pledge.exchange_rate

        amount = to_money(amount)
        amount_usd = convert_to_usd(amount, rate)

        payment = self.payments.create_payment(
            pledge_id=pledge.id,
            payment_plan_id=plan.id if plan else None,
            amount=amount,
            currency=currency,
            amount_usd=amount_usd,
            exchange_rate=rate,
            payment_date=payment_date,
            payment_status=payment_status,
            notes=notes,
        )

        if payment_status == "completed":
            self._apply_to_pledge(pledge, amount, amount_usd)
            if plan is not None:
                self._apply_to_plan(plan, amount, amount_usd)

        self.db.flush()
        return payment

    def delete_payment(self, payment_id: int) -> None:
        """
        Delete a payment that never moved money.

        Raises:
            NotFoundError: unknown payment
            ConflictError: payment is completed or its bonus was already paid
        """
        payment = self.payments.get_payment(payment_id, for_update=True)
        if payment is None:
            raise NotFoundError("Payment", payment_id)

        if payment.payment_status == "completed":
            raise ConflictError(f"Payment {payment_id} is completed and cannot be deleted")

        calculation = self.calculations.get_for_payment(payment_id)
        if calculation is not None and calculation.is_paid:
            raise ConflictError(f"Payment {payment_id} has a paid bonus and cannot be deleted")

        self.payments.delete_payment(payment)

    def _apply_to_pledge(self, pledge: Pledge, amount: Decimal, amount_usd: Optional[Decimal]) -> None:
        totals = apply_to_pledge(
            original_amount=pledge.original_amount,
            original_amount_usd=pledge.original_amount_usd,
            total_paid=pledge.total_paid,
            total_paid_usd=pledge.total_paid_usd,
            amount=amount,
            amount_usd=amount_usd,
        )
        pledge.total_paid = totals.total_paid
        pledge.total_paid_usd = totals.total_paid_usd
        pledge.balance = totals.balance
        pledge.balance_usd = totals.balance_usd

    def _apply_to_plan(self, plan: PaymentPlan, amount: Decimal, amount_usd: Optional[Decimal]) -> None:
        scheduled = [row.installment_date for row in plan.installments]
        progress = apply_to_plan(
            total_planned_amount=plan.total_planned_amount,
            installments_paid=plan.installments_paid,
            total_paid=plan.total_paid,
            total_paid_usd=plan.total_paid_usd,
            plan_status=plan.plan_status,
            amount=amount,
            amount_usd=amount_usd,
            next_payment_date=next_due_date(
                start_date=plan.start_date,
                frequency=plan.frequency,
                number_of_installments=plan.number_of_installments,
                installments_paid=plan.installments_paid + 1,
                scheduled_dates=scheduled,
            ),
        )
        plan.installments_paid = progress.installments_paid
        plan.total_paid = progress.total_paid
        plan.total_paid_usd = progress.total_paid_usd
        plan.remaining_amount = progress.remaining_amount
        plan.plan_status = progress.plan_status
        plan.next_payment_date = progress.next_payment_date
