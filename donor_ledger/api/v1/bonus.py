"""Solicitor assignment and bonus calculation endpoints"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError

from donor_ledger.api.dependencies import get_bonus_writer, get_request_id
from donor_ledger.api.v1.schemas import (
    AssignRequest,
    AssignResponse,
    BonusCalculationResponse,
    BonusCalculationSchema,
    BulkMarkPaidRequest,
    BulkMarkPaidResponse,
    PaymentResponse,
    PaymentSchema,
    RecalculateRequest,
    RecalculateResponse,
)
from donor_ledger.domain.exceptions import ConflictError, NotFoundError, ValidationError
from donor_ledger.infrastructure.observability.logging import log_bonus_outcome
from donor_ledger.services.bonus_ledger import BonusLedgerWriter

router = APIRouter()


def _validation_detail(e: ValidationError) -> dict:
    return {"error": "Validation failed", "details": e.errors}


@router.post("/payments/{payment_id}/assign", response_model=AssignResponse)
def assign_solicitor(
    payment_id: int,
    request_body: AssignRequest,
    request: Request,
    writer: BonusLedgerWriter = Depends(get_bonus_writer),
):
    """
    Assign a payment to a solicitor and calculate the bonus.

    Flow:
    1. Lock the payment and load its USD amount, date and pledge category
    2. Pick the best active rule of the solicitor for that payment
    3. Replace the bonus calculation and update the payment in one transaction
    """
    request_id = get_request_id(request)
    db = writer.db

    try:
        result = writer.assign(payment_id, request_body.solicitor_id)
        db.commit()

    except ValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=_validation_detail(e))

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        db.rollback()
        logging.warning(f"Assignment conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except IntegrityError as e:
        db.rollback()
        logging.warning(f"Concurrent bonus update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Payment was modified concurrently, retry")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error assigning payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    log_bonus_outcome(
        request_id, "assign", payment_id, request_body.solicitor_id,
        result.outcome.rule_id, result.outcome.bonus_amount,
    )
    return AssignResponse(
        payment=PaymentSchema.model_validate(result.payment),
        bonus_calculated=result.outcome.has_bonus,
    )


@router.post("/payments/{payment_id}/unassign", response_model=PaymentResponse)
def unassign_solicitor(
    payment_id: int,
    request: Request,
    writer: BonusLedgerWriter = Depends(get_bonus_writer),
):
    """Remove the solicitor and clear the unpaid bonus of a payment"""
    request_id = get_request_id(request)
    db = writer.db

    try:
        payment = writer.unassign(payment_id)
        db.commit()

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error unassigning payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return PaymentResponse(payment=PaymentSchema.model_validate(payment))


@router.post("/bonus-calculations/recalculate", response_model=RecalculateResponse)
def recalculate_bonus(
    request_body: RecalculateRequest,
    request: Request,
    writer: BonusLedgerWriter = Depends(get_bonus_writer),
):
    """
    Re-run rule matching for an already assigned payment.

    Picks up rule edits made after assignment. The old calculation row is
    deleted and a new one inserted (when the bonus is above zero) in the
    same transaction as the payment update.
    """
    request_id = get_request_id(request)
    db = writer.db

    if not request_body.payment_id:
        raise HTTPException(status_code=400, detail="Payment ID is required")

    try:
        result = writer.recalculate(request_body.payment_id)
        db.commit()

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        db.rollback()
        logging.warning(f"Recalculation conflict: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except IntegrityError as e:
        db.rollback()
        logging.warning(f"Concurrent bonus update: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Payment was modified concurrently, retry")

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error recalculating bonus: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    log_bonus_outcome(
        request_id, "recalculate", request_body.payment_id, result.payment.solicitor_id,
        result.outcome.rule_id, result.outcome.bonus_amount,
    )
    calculation = result.calculation
    return RecalculateResponse(
        bonus_calculation=BonusCalculationSchema.model_validate(calculation) if calculation else None,
        recalculated=True,
        bonus_amount=result.outcome.bonus_amount,
    )


@router.post("/bonus-calculations/{calculation_id}/mark-paid", response_model=BonusCalculationResponse)
def mark_bonus_paid(
    calculation_id: int,
    request: Request,
    writer: BonusLedgerWriter = Depends(get_bonus_writer),
):
    """Mark a bonus as paid out; from then on it cannot be recalculated or removed"""
    request_id = get_request_id(request)
    db = writer.db

    try:
        calculation = writer.mark_paid(calculation_id)
        db.commit()

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error marking bonus as paid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return BonusCalculationResponse(bonus_calculation=BonusCalculationSchema.model_validate(calculation))


@router.post("/bonus-calculations/bulk-mark-paid", response_model=BulkMarkPaidResponse)
def bulk_mark_bonuses_paid(
    request_body: BulkMarkPaidRequest,
    request: Request,
    writer: BonusLedgerWriter = Depends(get_bonus_writer),
):
    request_id = get_request_id(request)
    db = writer.db

    try:
        calculations = writer.bulk_mark_paid(request_body.calculation_ids)
        db.commit()

    except ValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=_validation_detail(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error bulk marking bonuses as paid: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return BulkMarkPaidResponse(
        bonus_calculations=[BonusCalculationSchema.model_validate(c) for c in calculations],
        count=len(calculations),
    )
