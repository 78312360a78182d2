"""Payment plan creation: validate, build, then persist plan and installments"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from donor_ledger.config import settings
from donor_ledger.domain.exceptions import NotFoundError, ValidationError
from donor_ledger.domain.installments import build_plan
from donor_ledger.domain.models import PlanDraft, PlanRequest
from donor_ledger.domain.plan_validation import validate_plan_request
from donor_ledger.infrastructure.database.models import PaymentPlan
from donor_ledger.infrastructure.database.repositories import PledgeRepository, PlanRepository
from donor_ledger.infrastructure.observability.metrics import plan_created_counter, plan_validation_failure_counter
from donor_ledger.services.compensation import CompensatingTransactionCoordinator


class PlanCreationService:
    """
    Creates a payment plan and its installment rows.

    Flow:
    1. Validate the request (nothing is written when this fails)
    2. Load the pledge and freeze its exchange rate onto the plan
    3. Build the final plan fields and custom installment rows
    4. Persist plan, then installments

    Step 4 runs in one of two modes:
    - atomic (default): plan and installments share one transaction
    - compensating: the plan insert is committed on its own and deleted
      again if the installment insert fails. A failed delete surfaces as
      IntegrityFailure.

    Unlike the bonus services this one owns commit/rollback, because the
    compensating mode needs two separate commits.
    """

    def __init__(self, db: Session, atomic: Optional[bool] = None, today: Optional[date] = None):
        self.db = db
        self.atomic = settings.atomic_plan_writes if atomic is None else atomic
        self.today = today
        self.pledges = PledgeRepository(db)
        self.plans = PlanRepository(db)

    def create_plan(self, request: PlanRequest) -> PaymentPlan:
        try:
            validate_plan_request(request, today=self.today)
        except ValidationError:
            plan_validation_failure_counter.inc()
            raise

        pledge = self.pledges.get_pledge(request.pledge_id)
        if pledge is None:
            raise NotFoundError("Pledge", request.pledge_id)

        draft = build_plan(request, exchange_rate=pledge.exchange_rate)

        if self.atomic:
            plan = self._write_atomic(draft)
        else:
            plan = self._write_compensated(draft)

        plan_created_counter.labels(distribution_type=draft.distribution_type).inc()
        return plan

    def _write_atomic(self, draft: PlanDraft) -> PaymentPlan:
        try:
            plan = self.plans.create_plan(draft)
            if draft.installments:
                self.plans.add_installments(plan.id, draft.installments)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return plan

    def _write_compensated(self, draft: PlanDraft) -> PaymentPlan:
        coordinator = CompensatingTransactionCoordinator()

        try:
            plan = self.plans.create_plan(draft)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        plan_id = plan.id
        coordinator.register("PaymentPlan", plan_id, lambda: self._delete_plan(plan_id))

        try:
            if draft.installments:
                self.plans.add_installments(plan_id, draft.installments)
                self.db.commit()
        except Exception:
            self.db.rollback()
            coordinator.compensate()
            raise

        coordinator.clear()
        return plan

    def _delete_plan(self, plan_id: int) -> None:
        try:
            self.plans.delete_plan(plan_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
