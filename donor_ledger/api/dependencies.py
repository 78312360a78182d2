"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from donor_ledger.infrastructure.database.session import get_db
from donor_ledger.services.bonus_ledger import BonusLedgerWriter
from donor_ledger.services.payment_ledger import PaymentLedgerService
from donor_ledger.services.plan_creation import PlanCreationService


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_bonus_writer(db: Session = Depends(get_db)) -> BonusLedgerWriter:
    return BonusLedgerWriter(db)


def get_plan_service(db: Session = Depends(get_db)) -> PlanCreationService:
    """Plan creation in the write mode configured by ATOMIC_PLAN_WRITES"""
    return PlanCreationService(db)


def get_payment_ledger(db: Session = Depends(get_db)) -> PaymentLedgerService:
    return PaymentLedgerService(db)
