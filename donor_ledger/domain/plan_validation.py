"""Arithmetic and temporal checks for payment plan requests"""

from datetime import date
from typing import Dict, List

from donor_ledger.domain.exceptions import ValidationError
from donor_ledger.domain.models import PlanRequest
from donor_ledger.domain.money import amounts_match, is_whole_cents, to_money


def _fixed_errors(request: PlanRequest) -> List[Dict[str, str]]:
    errors = []
    if request.installment_amount is None:
        errors.append({
            "field": "installment_amount",
            "message": "Installment amount is required for 'fixed' distribution type.",
        })
    if request.number_of_installments is None:
        errors.append({
            "field": "number_of_installments",
            "message": "Number of installments is required for 'fixed' distribution type.",
        })
    if errors:
        return errors

    planned = request.installment_amount * request.number_of_installments
    if not amounts_match(planned, request.total_planned_amount):
        errors.append({
            "field": "total_planned_amount",
            "message": (
                f"Installment amount x number of installments ({to_money(planned)}) "
                f"must equal the total planned amount ({to_money(request.total_planned_amount)})."
            ),
        })
    return errors


def _custom_errors(request: PlanRequest, today: date) -> List[Dict[str, str]]:
    installments = request.custom_installments
    if not installments:
        return [{
            "field": "custom_installments",
            "message": "Custom installments must be provided for 'custom' distribution type.",
        }]

    errors = []
    dates = [inst.date for inst in installments]
    if len(set(dates)) != len(dates):
        errors.append({
            "field": "custom_installments",
            "message": "Installment dates must be unique.",
        })

    past = sorted(d for d in dates if d < today)
    if past:
        errors.append({
            "field": "custom_installments",
            "message": f"Installment dates cannot be in the past: {', '.join(d.isoformat() for d in past)}.",
        })

    total = sum((inst.amount for inst in installments), start=to_money(0))
    if not amounts_match(total, request.total_planned_amount):
        errors.append({
            "field": "total_planned_amount",
            "message": (
                f"Sum of custom installments ({to_money(total)}) must equal "
                f"the total planned amount ({to_money(request.total_planned_amount)})."
            ),
        })
    return errors


def _precision_errors(request: PlanRequest) -> List[Dict[str, str]]:
    errors = []
    if not is_whole_cents(request.total_planned_amount):
        errors.append({
            "field": "total_planned_amount",
            "message": "Total planned amount must have at most 2 decimal places.",
        })
    if request.installment_amount is not None and not is_whole_cents(request.installment_amount):
        errors.append({
            "field": "installment_amount",
            "message": "Installment amount must have at most 2 decimal places.",
        })
    if any(not is_whole_cents(inst.amount) for inst in request.custom_installments):
        errors.append({
            "field": "custom_installments",
            "message": "Installment amounts must have at most 2 decimal places.",
        })
    return errors


def validate_plan_request(request: PlanRequest, today: date | None = None) -> None:
    """
    Check a plan request before anything is written.

    all:    every amount is in whole cents, so the stored values are exactly
            the ones checked below
    fixed:  installment_amount and number_of_installments present, and their
            product equals total_planned_amount within 0.01
    custom: non-empty list, unique dates, no date before today, amounts sum
            to total_planned_amount within 0.01

    Raises:
        ValidationError: carrying every failing field, not just the first
    """
    today = today or date.today()

    precision = _precision_errors(request)
    if precision:
        raise ValidationError(precision)

    if request.distribution_type == "fixed":
        errors = _fixed_errors(request)
    elif request.distribution_type == "custom":
        errors = _custom_errors(request, today)
    else:
        errors = [{
            "field": "distribution_type",
            "message": f"Unknown distribution type '{request.distribution_type}'.",
        }]

    if errors:
        raise ValidationError(errors)
