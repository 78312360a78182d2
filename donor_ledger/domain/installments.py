"""Installment plan building for pledge repayment"""

from decimal import Decimal
from typing import List, Optional

from donor_ledger.domain.models import Installment, PlanDraft, PlanRequest
from donor_ledger.domain.money import to_money
from donor_ledger.utils.date_utils import advance


def project_fixed_schedule(
    start_date,
    frequency: str,
    number_of_installments: int,
    installment_amount: Decimal,
    currency: str,
) -> List[Installment]:
    """
    Dated schedule of a fixed plan.

    Fixed plans store no installment rows; the schedule is derived from the
    start date and frequency whenever it is needed.

    Example:
        2026-01-31, monthly, 3 x 100.00 ->
        [2026-01-31, 2026-02-28, 2026-03-31] each 100.00
    """
    if number_of_installments <= 0:
        return []

    return [
        Installment(
            due_date=advance(start_date, frequency, i),
            amount=to_money(installment_amount),
            currency=currency,
        )
        for i in range(number_of_installments)
    ]


def build_plan(request: PlanRequest, exchange_rate: Optional[Decimal]) -> PlanDraft:
    """
    Derive the stored fields of a validated plan request.

    - custom: number_of_installments is the length of the supplied list
      (any caller value is ignored) and installment_amount is the average,
      kept for reference only. One Installment per supplied entry.
    - fixed: the caller's installment_amount and number_of_installments.
    - remaining_amount starts at total_planned_amount.
    - next_payment_date defaults to start_date.
    - exchange_rate is the pledge's rate at creation time, frozen on the plan.
    """
    total = to_money(request.total_planned_amount)

    if request.distribution_type == "custom":
        count = len(request.custom_installments)
        installment_amount = to_money(total / count)
        installments = [
            Installment(
                due_date=inst.date,
                amount=to_money(inst.amount),
                currency=request.currency,
                notes=inst.notes,
            )
            for inst in sorted(request.custom_installments, key=lambda i: i.date)
        ]
    else:
        count = request.number_of_installments
        installment_amount = to_money(request.installment_amount)
        installments = []

    return PlanDraft(
        pledge_id=request.pledge_id,
        plan_name=request.plan_name,
        frequency=request.frequency,
        distribution_type=request.distribution_type,
        total_planned_amount=total,
        currency=request.currency,
        installment_amount=installment_amount,
        number_of_installments=count,
        exchange_rate=exchange_rate,
        start_date=request.start_date,
        end_date=request.end_date,
        next_payment_date=request.next_payment_date or request.start_date,
        remaining_amount=total,
        notes=request.notes,
        installments=installments,
    )
