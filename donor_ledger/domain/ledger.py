"""Running totals of pledges and payment plans"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import List, Optional

from donor_ledger.domain.money import ZERO, to_decimal, to_money
from donor_ledger.utils.date_utils import advance


@dataclass(frozen=True)
class PledgeTotals:
    total_paid: Decimal
    total_paid_usd: Decimal
    balance: Decimal
    balance_usd: Optional[Decimal]


@dataclass(frozen=True)
class PlanProgress:
    installments_paid: int
    total_paid: Decimal
    total_paid_usd: Decimal
    remaining_amount: Decimal
    plan_status: str
    next_payment_date: Optional[date]


def convert_to_usd(amount: Decimal, exchange_rate: Optional[Decimal]) -> Optional[Decimal]:
    """USD value of an amount at a captured rate (USD per unit), None when no rate is known"""
    if exchange_rate is None:
        return None
    return to_money(to_decimal(amount) * to_decimal(exchange_rate))


def apply_to_pledge(
    original_amount: Decimal,
    original_amount_usd: Optional[Decimal],
    total_paid: Decimal,
    total_paid_usd: Decimal,
    amount: Decimal,
    amount_usd: Optional[Decimal],
) -> PledgeTotals:
    """Pledge totals after a completed payment; balance = original - paid in both currencies"""
    new_paid = to_money(to_decimal(total_paid) + to_decimal(amount))
    new_paid_usd = to_money(to_decimal(total_paid_usd) + to_decimal(amount_usd))
    balance_usd = None
    if original_amount_usd is not None:
        balance_usd = to_money(to_decimal(original_amount_usd) - new_paid_usd)

    return PledgeTotals(
        total_paid=new_paid,
        total_paid_usd=new_paid_usd,
        balance=to_money(to_decimal(original_amount) - new_paid),
        balance_usd=balance_usd,
    )


def next_due_date(
    start_date: date,
    frequency: str,
    number_of_installments: int,
    installments_paid: int,
    scheduled_dates: List[date] | None = None,
) -> Optional[date]:
    """
    Due date of the first unpaid installment, None once all are paid.

    Custom plans pass their stored installment dates; fixed plans derive the
    date from start_date and frequency.
    """
    if scheduled_dates:
        ordered = sorted(scheduled_dates)
        return ordered[installments_paid] if installments_paid < len(ordered) else None
    if installments_paid >= number_of_installments:
        return None
    return advance(start_date, frequency, installments_paid)


def apply_to_plan(
    total_planned_amount: Decimal,
    installments_paid: int,
    total_paid: Decimal,
    total_paid_usd: Optional[Decimal],
    plan_status: str,
    amount: Decimal,
    amount_usd: Optional[Decimal],
    next_payment_date: Optional[date],
) -> PlanProgress:
    """Plan progress after one completed installment payment"""
    new_paid = to_money(to_decimal(total_paid) + to_decimal(amount))
    remaining = to_money(to_decimal(total_planned_amount) - new_paid)

    status = plan_status
    if remaining <= ZERO and plan_status == "active":
        status = "completed"

    return PlanProgress(
        installments_paid=installments_paid + 1,
        total_paid=new_paid,
        total_paid_usd=to_money(to_decimal(total_paid_usd) + to_decimal(amount_usd)),
        remaining_amount=remaining,
        plan_status=status,
        next_payment_date=next_payment_date,
    )
