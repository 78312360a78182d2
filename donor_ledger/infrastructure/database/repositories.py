"""Data access layer for pledges, payments, bonus rules and payment plans"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from donor_ledger.domain.models import BonusRule, Installment, PlanDraft
from donor_ledger.infrastructure.database.models import (
    BonusCalculation,
    BonusRuleRecord,
    Category,
    InstallmentSchedule,
    Payment,
    PaymentPlan,
    Pledge,
    Solicitor,
)


class PledgeRepository:
    """Read access to pledges and their categories"""

    def __init__(self, db: Session):
        self.db = db

    def get_pledge(self, pledge_id: int) -> Optional[Pledge]:
        return self.db.get(Pledge, pledge_id)

    def get_category_name(self, pledge_id: int) -> Optional[str]:
        """Category name of a pledge, None when uncategorised"""
        return self.db.execute(
            select(Category.name)
            .join(Pledge, Pledge.category_id == Category.id)
            .where(Pledge.id == pledge_id)
        ).scalar_one_or_none()


class SolicitorRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_solicitor(self, solicitor_id: int) -> Optional[Solicitor]:
        return self.db.get(Solicitor, solicitor_id)


class BonusRuleRepository:
    """Repository for solicitor bonus rules"""

    def __init__(self, db: Session):
        self.db = db

    def create_rule(self, **fields) -> BonusRuleRecord:
        record = BonusRuleRecord(**fields)
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record

    def get_rule(self, rule_id: int) -> Optional[BonusRuleRecord]:
        return self.db.get(BonusRuleRecord, rule_id)

    def update_rule(self, record: BonusRuleRecord, **fields) -> BonusRuleRecord:
        for name, value in fields.items():
            setattr(record, name, value)
        self.db.flush()
        return record

    def delete_rule(self, record: BonusRuleRecord) -> None:
        """
        Delete a rule, detaching payments and calculations that cite it.

        Stored bonus amounts are left alone; they only change on recalculation.
        """
        self.db.execute(
            update(Payment).where(Payment.bonus_rule_id == record.id).values(bonus_rule_id=None)
        )
        self.db.execute(
            update(BonusCalculation)
            .where(BonusCalculation.bonus_rule_id == record.id)
            .values(bonus_rule_id=None)
        )
        self.db.delete(record)
        self.db.flush()

    def list_rules(self, solicitor_id: Optional[int] = None, limit: int = 200) -> List[BonusRuleRecord]:
        """Rules in evaluation order: priority first, newest first on ties"""
        query = select(BonusRuleRecord)
        if solicitor_id is not None:
            query = query.where(BonusRuleRecord.solicitor_id == solicitor_id)
        query = query.order_by(BonusRuleRecord.priority.desc(), BonusRuleRecord.id.desc()).limit(limit)
        return list(self.db.execute(query).scalars())

    def candidate_rules(self, solicitor_id: int) -> List[BonusRule]:
        """Every active rule of a solicitor, as domain objects for matching"""
        records = self.db.execute(
            select(BonusRuleRecord).where(
                BonusRuleRecord.solicitor_id == solicitor_id,
                BonusRuleRecord.is_active.is_(True),
            )
        ).scalars()
        return [to_domain_rule(record) for record in records]


def to_domain_rule(record: BonusRuleRecord) -> BonusRule:
    return BonusRule(
        id=record.id,
        solicitor_id=record.solicitor_id,
        rule_name=record.rule_name,
        bonus_percentage=record.bonus_percentage,
        payment_type=record.payment_type,
        effective_from=record.effective_from,
        effective_to=record.effective_to,
        min_amount=record.min_amount,
        max_amount=record.max_amount,
        is_active=record.is_active,
        priority=record.priority,
    )


class PaymentRepository:
    """Repository for payments"""

    def __init__(self, db: Session):
        self.db = db

    def get_payment(self, payment_id: int, for_update: bool = False) -> Optional[Payment]:
        """
        Fetch a payment.

        With for_update the row stays locked until the transaction ends, so
        concurrent bonus mutations of the same payment run one after another.
        """
        query = select(Payment).where(Payment.id == payment_id)
        if for_update:
            query = query.with_for_update()
        return self.db.execute(query).scalar_one_or_none()

    def create_payment(self, **fields) -> Payment:
        payment = Payment(**fields)
        self.db.add(payment)
        self.db.flush()
        return payment

    def delete_payment(self, payment: Payment) -> None:
        self.db.delete(payment)
        self.db.flush()


class BonusCalculationRepository:
    """Repository for per-payment bonus calculations"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_payment(self, payment_id: int) -> Optional[BonusCalculation]:
        return self.db.execute(
            select(BonusCalculation).where(BonusCalculation.payment_id == payment_id)
        ).scalar_one_or_none()

    def create_calculation(self, **fields) -> BonusCalculation:
        calculation = BonusCalculation(**fields)
        self.db.add(calculation)
        self.db.flush()
        return calculation

    def delete_calculation(self, calculation: BonusCalculation) -> None:
        # Flushed right away: a replacement row for the same payment_id
        # would otherwise be inserted before this delete runs
        self.db.delete(calculation)
        self.db.flush()

    def mark_paid(self, calculation_ids: Iterable[int]) -> List[BonusCalculation]:
        ids = list(calculation_ids)
        calculations = list(
            self.db.execute(
                select(BonusCalculation).where(BonusCalculation.id.in_(ids)).order_by(BonusCalculation.id)
            ).scalars()
        )
        paid_at = datetime.now(timezone.utc)
        for calculation in calculations:
            if not calculation.is_paid:
                calculation.is_paid = True
                calculation.paid_at = paid_at
        self.db.flush()
        return calculations


class PlanRepository:
    """Repository for payment plans"""

    def __init__(self, db: Session):
        self.db = db

    def create_plan(self, draft: PlanDraft) -> PaymentPlan:
        """Insert the plan row only; installments are written separately"""
        db_plan = PaymentPlan(
            pledge_id=draft.pledge_id,
            plan_name=draft.plan_name,
            frequency=draft.frequency,
            distribution_type=draft.distribution_type,
            total_planned_amount=draft.total_planned_amount,
            currency=draft.currency,
            installment_amount=draft.installment_amount,
            number_of_installments=draft.number_of_installments,
            exchange_rate=draft.exchange_rate,
            start_date=draft.start_date,
            end_date=draft.end_date,
            next_payment_date=draft.next_payment_date,
            installments_paid=0,
            total_paid=0,
            total_paid_usd=0,
            remaining_amount=draft.remaining_amount,
            plan_status="active",
            notes=draft.notes,
        )
        self.db.add(db_plan)
        self.db.flush()
        return db_plan

    def add_installments(self, plan_id: int, installments: List[Installment]) -> List[InstallmentSchedule]:
        rows = [
            InstallmentSchedule(
                payment_plan_id=plan_id,
                installment_date=inst.due_date,
                installment_amount=inst.amount,
                currency=inst.currency,
                notes=inst.notes,
            )
            for inst in installments
        ]
        self.db.add_all(rows)
        self.db.flush()
        return rows

    def get_plan_by_id(self, plan_id: int) -> Optional[PaymentPlan]:
        return self.db.get(PaymentPlan, plan_id)

    def get_plans_for_pledge(self, pledge_id: int) -> List[PaymentPlan]:
        return list(
            self.db.execute(
                select(PaymentPlan).where(PaymentPlan.pledge_id == pledge_id).order_by(PaymentPlan.id)
            ).scalars()
        )

    def delete_plan(self, plan_id: int) -> bool:
        """Delete a plan and its installments; False when it was already gone"""
        plan = self.db.get(PaymentPlan, plan_id)
        if plan is None:
            return False
        self.db.delete(plan)
        self.db.flush()
        return True
