"""Integration tests for recording and deleting payments"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from donor_ledger.infrastructure.database.models import Payment, Pledge
from donor_ledger.infrastructure.database.repositories import PlanRepository

pytestmark = pytest.mark.integration


def create_fixed_plan(client: TestClient, pledge_id: int, start: date, total: str = "300.00", count: int = 3) -> int:
    response = client.post(
        "/v1/payment-plans",
        json={
            "pledge_id": pledge_id,
            "frequency": "monthly",
            "distribution_type": "fixed",
            "total_planned_amount": total,
            "currency": "USD",
            "start_date": start.isoformat(),
            "installment_amount": str(Decimal(total) / count),
            "number_of_installments": count,
        },
    )
    assert response.status_code == 201
    return response.json()["payment_plan"]["id"]


def test_record_payment_updates_pledge(client: TestClient, db: Session, make_pledge):
    pledge = make_pledge(original_amount="1000.00")

    response = client.post(
        "/v1/payments",
        json={
            "pledge_id": pledge.id,
            "amount": "250.00",
            "currency": "USD",
            "payment_date": date.today().isoformat(),
        },
    )

    assert response.status_code == 201
    payment = response.json()["payment"]
    assert payment["amount_usd"] == "250.00"
    assert payment["payment_status"] == "completed"
    assert payment["solicitor_id"] is None

    db.expire_all()
    stored = db.get(Pledge, pledge.id)
    assert stored.total_paid == Decimal("250.00")
    assert stored.balance == Decimal("750.00")
    assert stored.balance_usd == Decimal("750.00")


def test_record_payment_converts_with_pledge_rate(client: TestClient, make_pledge):
    pledge = make_pledge(currency="ILS", exchange_rate="0.2700", original_amount="1000.00")

    response = client.post(
        "/v1/payments",
        json={
            "pledge_id": pledge.id,
            "amount": "100.00",
            "currency": "ILS",
            "payment_date": date.today().isoformat(),
        },
    )

    assert response.status_code == 201
    assert response.json()["payment"]["amount_usd"] == "27.00"
    assert response.json()["payment"]["exchange_rate"] == "0.2700"


def test_pending_payment_leaves_totals_untouched(client: TestClient, db: Session, make_pledge):
    pledge = make_pledge(original_amount="1000.00")

    response = client.post(
        "/v1/payments",
        json={
            "pledge_id": pledge.id,
            "amount": "250.00",
            "currency": "USD",
            "payment_date": date.today().isoformat(),
            "payment_status": "pending",
        },
    )

    assert response.status_code == 201
    db.expire_all()
    assert db.get(Pledge, pledge.id).total_paid == Decimal("0.00")


def test_plan_payments_advance_and_complete_plan(client: TestClient, db: Session, make_pledge):
    pledge = make_pledge(original_amount="300.00")
    start = date(2030, 1, 31)
    plan_id = create_fixed_plan(client, pledge.id, start)

    for i in range(3):
        response = client.post(
            "/v1/payments",
            json={
                "pledge_id": pledge.id,
                "payment_plan_id": plan_id,
                "amount": "100.00",
                "currency": "USD",
                "payment_date": date.today().isoformat(),
            },
        )
        assert response.status_code == 201
        if i == 0:
            db.expire_all()
            plan = PlanRepository(db).get_plan_by_id(plan_id)
            assert plan.installments_paid == 1
            assert plan.remaining_amount == Decimal("200.00")
            assert plan.next_payment_date == date(2030, 2, 28)

    db.expire_all()
    plan = PlanRepository(db).get_plan_by_id(plan_id)
    assert plan.installments_paid == 3
    assert plan.remaining_amount == Decimal("0.00")
    assert plan.plan_status == "completed"
    assert plan.next_payment_date is None


def test_payment_plan_must_belong_to_pledge(client: TestClient, make_pledge):
    pledge = make_pledge()
    other = make_pledge()
    plan_id = create_fixed_plan(client, other.id, date.today())

    response = client.post(
        "/v1/payments",
        json={
            "pledge_id": pledge.id,
            "payment_plan_id": plan_id,
            "amount": "100.00",
            "currency": "USD",
            "payment_date": date.today().isoformat(),
        },
    )

    assert response.status_code == 400
    assert response.json()["detail"]["details"][0]["field"] == "payment_plan_id"


def test_record_payment_unknown_pledge(client: TestClient):
    response = client.post(
        "/v1/payments",
        json={"pledge_id": 999, "amount": "1.00", "currency": "USD", "payment_date": date.today().isoformat()},
    )
    assert response.status_code == 404


def test_delete_pending_payment(client: TestClient, db: Session, make_pledge, make_payment):
    payment = make_payment(make_pledge(), payment_status="pending")

    response = client.delete(f"/v1/payments/{payment.id}")

    assert response.status_code == 204
    db.expire_all()
    assert db.get(Payment, payment.id) is None


def test_delete_completed_payment_blocked(client: TestClient, make_pledge, make_payment):
    payment = make_payment(make_pledge())

    response = client.delete(f"/v1/payments/{payment.id}")

    assert response.status_code == 409


def test_delete_payment_with_paid_bonus_blocked(
    client: TestClient, db: Session, make_pledge, make_solicitor, make_rule, make_payment,
):
    solicitor = make_solicitor()
    make_rule(solicitor.id)
    payment = make_payment(make_pledge(), payment_status="processing", payment_date=date.today() - timedelta(days=2))
    client.post(f"/v1/payments/{payment.id}/assign", json={"solicitor_id": solicitor.id})
    db.expire_all()
    calculation_id = db.get(Payment, payment.id).bonus_calculation.id
    client.post(f"/v1/bonus-calculations/{calculation_id}/mark-paid")

    response = client.delete(f"/v1/payments/{payment.id}")

    assert response.status_code == 409
    assert "paid bonus" in response.json()["detail"]


def test_delete_unknown_payment(client: TestClient):
    response = client.delete("/v1/payments/999")
    assert response.status_code == 404
