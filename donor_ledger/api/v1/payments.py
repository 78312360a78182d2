"""POST/DELETE /v1/payments - Payments against pledges"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response

from donor_ledger.api.dependencies import get_payment_ledger, get_request_id
from donor_ledger.api.v1.schemas import PaymentCreate, PaymentResponse, PaymentSchema
from donor_ledger.domain.exceptions import ConflictError, NotFoundError, ValidationError
from donor_ledger.services.payment_ledger import PaymentLedgerService

router = APIRouter()


@router.post("/payments", response_model=PaymentResponse, status_code=201)
def create_payment(
    request_body: PaymentCreate,
    request: Request,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
):
    """Record a payment; completed payments advance pledge and plan totals in the same transaction"""
    request_id = get_request_id(request)
    db = ledger.db

    try:
        payment = ledger.record_payment(**request_body.model_dump())
        db.commit()

    except ValidationError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": e.errors})

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error creating payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return PaymentResponse(payment=PaymentSchema.model_validate(payment))


@router.delete("/payments/{payment_id}", status_code=204)
def delete_payment(
    payment_id: int,
    request: Request,
    ledger: PaymentLedgerService = Depends(get_payment_ledger),
):
    """
    Delete a payment.

    Completed payments and payments whose bonus was already paid out are
    never deleted (409).
    """
    request_id = get_request_id(request)
    db = ledger.db

    try:
        ledger.delete_payment(payment_id)
        db.commit()

    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))

    except ConflictError as e:
        db.rollback()
        logging.warning(f"Payment deletion blocked: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=str(e))

    except Exception as e:
        db.rollback()
        logging.error(f"Unexpected error deleting payment: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    return Response(status_code=204)
