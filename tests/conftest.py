"""Pytest fixtures for testing"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Generator
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from donor_ledger.api.main import create_app
from donor_ledger.infrastructure.database.models import (
    Base,
    BonusRuleRecord,
    Category,
    Payment,
    Pledge,
    Solicitor,
)
from donor_ledger.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def make_pledge(db: Session) -> Callable[..., Pledge]:
    """Pledge factory; category_name=None leaves the pledge uncategorised"""
    categories = {}

    def factory(
        category_name: str | None = "Tuition",
        original_amount: str = "12000.00",
        currency: str = "USD",
        exchange_rate: str | None = "1.0000",
    ) -> Pledge:
        category_id = None
        if category_name is not None:
            if category_name not in categories:
                category = Category(name=category_name)
                db.add(category)
                db.flush()
                categories[category_name] = category.id
            category_id = categories[category_name]

        amount = Decimal(original_amount)
        rate = Decimal(exchange_rate) if exchange_rate is not None else None
        pledge = Pledge(
            contact_id=1,
            category_id=category_id,
            pledge_date=date.today() - timedelta(days=30),
            original_amount=amount,
            currency=currency,
            total_paid=Decimal("0"),
            balance=amount,
            original_amount_usd=(amount * rate).quantize(Decimal("0.01")) if rate is not None else None,
            total_paid_usd=Decimal("0"),
            balance_usd=(amount * rate).quantize(Decimal("0.01")) if rate is not None else None,
            exchange_rate=rate,
        )
        db.add(pledge)
        db.commit()
        return pledge

    return factory


@pytest.fixture
def make_solicitor(db: Session) -> Callable[..., Solicitor]:
    counter = {"next": 100}

    def factory() -> Solicitor:
        counter["next"] += 1
        solicitor = Solicitor(contact_id=counter["next"], solicitor_code=f"SOL-{counter['next']}")
        db.add(solicitor)
        db.commit()
        return solicitor

    return factory


@pytest.fixture
def make_rule(db: Session) -> Callable[..., BonusRuleRecord]:
    def factory(solicitor_id: int, **overrides) -> BonusRuleRecord:
        fields = {
            "rule_name": "Standard",
            "bonus_percentage": Decimal("5.00"),
            "payment_type": "both",
            "effective_from": date.today() - timedelta(days=365),
            "priority": 1,
        }
        fields.update(overrides)
        rule = BonusRuleRecord(solicitor_id=solicitor_id, **fields)
        db.add(rule)
        db.commit()
        return rule

    return factory


@pytest.fixture
def make_payment(db: Session) -> Callable[..., Payment]:
    def factory(pledge: Pledge, amount: str = "1000.00", **overrides) -> Payment:
        fields = {
            "pledge_id": pledge.id,
            "amount": Decimal(amount),
            "currency": "USD",
            "amount_usd": Decimal(amount),
            "payment_date": date.today() - timedelta(days=1),
            "payment_status": "completed",
        }
        fields.update(overrides)
        payment = Payment(**fields)
        db.add(payment)
        db.commit()
        return payment

    return factory
