"""POST/GET /v1/payment-plans - Pledge installment plans"""

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from donor_ledger.api.dependencies import get_plan_service, get_request_id
from donor_ledger.api.v1.schemas import (
    InstallmentSchema,
    PaymentPlanCreate,
    PaymentPlanDetailResponse,
    PaymentPlanResponse,
    PaymentPlanSchema,
)
from donor_ledger.domain.exceptions import IntegrityFailure, NotFoundError, ValidationError
from donor_ledger.domain.installments import project_fixed_schedule
from donor_ledger.infrastructure.database.repositories import PlanRepository
from donor_ledger.infrastructure.database.session import get_db
from donor_ledger.infrastructure.observability.logging import log_plan_created
from donor_ledger.services.plan_creation import PlanCreationService

router = APIRouter()


@router.post("/payment-plans", response_model=PaymentPlanResponse, status_code=201)
def create_payment_plan(
    request_body: PaymentPlanCreate,
    request: Request,
    service: PlanCreationService = Depends(get_plan_service),
):
    """
    Create a payment plan for a pledge.

    Flow:
    1. Validate amounts and dates (no writes on failure)
    2. Check the pledge and freeze its exchange rate onto the plan
    3. Insert the plan, then its custom installment rows
    4. Undo the plan insert if the installment insert fails
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        plan = service.create_plan(request_body.to_domain())

    except ValidationError as e:
        logging.warning(f"Plan validation failed: {e}", extra={"request_id": request_id, "details": e.errors})
        raise HTTPException(status_code=400, detail={"error": "Validation failed", "details": e.errors})

    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    except IntegrityFailure as e:
        logging.critical(
            f"Payment plan rollback failed: {e}",
            extra={"request_id": request_id, "error_code": e.code, "entity_id": e.entity_id},
        )
        raise HTTPException(
            status_code=500,
            detail={
                "error": "Payment plan creation failed and could not be rolled back",
                "code": e.code,
                "payment_plan_id": e.entity_id,
            },
        )

    except IntegrityError as e:
        logging.warning(f"Plan storage conflict: {e.orig}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail="Duplicate data entry (unique constraint violation)")

    except Exception as e:
        logging.error(f"Unexpected error creating payment plan: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    duration_ms = (time.time() - start_time) * 1000
    log_plan_created(
        request_id, plan.id, plan.pledge_id, plan.distribution_type, plan.number_of_installments, duration_ms,
    )
    return PaymentPlanResponse(payment_plan=PaymentPlanSchema.model_validate(plan))


@router.get("/payment-plans/{plan_id}", response_model=PaymentPlanDetailResponse)
def get_payment_plan(plan_id: int, db: Session = Depends(get_db)):
    """
    Retrieve a payment plan with its installment schedule.

    Returns:
        Stored installment rows for custom plans, the projected schedule
        (start date + frequency) for fixed plans
    """
    plan = PlanRepository(db).get_plan_by_id(plan_id)

    if not plan:
        raise HTTPException(status_code=404, detail="Plan not found")

    if plan.distribution_type == "custom":
        installments = [
            InstallmentSchema(
                due_date=row.installment_date,
                amount=row.installment_amount,
                currency=row.currency,
                notes=row.notes,
            )
            for row in plan.installments
        ]
    else:
        installments = [
            InstallmentSchema(due_date=inst.due_date, amount=inst.amount, currency=inst.currency, projected=True)
            for inst in project_fixed_schedule(
                plan.start_date,
                plan.frequency,
                plan.number_of_installments,
                plan.installment_amount,
                plan.currency,
            )
        ]

    return PaymentPlanDetailResponse(
        payment_plan=PaymentPlanSchema.model_validate(plan),
        installments=installments,
    )
