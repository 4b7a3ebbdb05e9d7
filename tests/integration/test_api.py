"""Integration tests for API endpoints"""

import pytest
from datetime import timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from chainflow_credit.services.facility import CreditFacility


@pytest.fixture
def acme_payload() -> dict:
    return {
        "company_name": "Acme Ltda",
        "tax_id": "12.345.678/0001-90",
        "monthly_revenue": "100000",
        "requested_amount": "8000",
        "term_days": 30,
        "purpose": "stock",
    }


def submit(client: TestClient, payload: dict) -> dict:
    response = client.post("/v1/applications", json=payload)
    assert response.status_code == 201
    return response.json()


async def disburse(client: TestClient, facility: CreditFacility, clock, payload: dict) -> dict:
    application = submit(client, payload)
    response = client.post(
        f"/v1/applications/{application['id']}/supplier-payments",
        json={"supplier_id": "supplier-001", "amount": application["approved_amount"]},
    )
    assert response.status_code == 201
    clock.advance(seconds=5)
    await facility.scheduler.run_due()
    return application


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient, acme_payload: dict):
    """Test Prometheus metrics endpoint"""
    submit(client, acme_payload)

    response = client.get("/metrics")
    assert response.status_code == 200
    assert "chainflow_decision_total" in response.text
    assert "chainflow_pool_available_capacity" in response.text


def test_request_id_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"

    generated = client.get("/health")
    assert generated.headers["X-Request-ID"]


def test_submit_application_approved(client: TestClient, acme_payload: dict):
    """Test POST /v1/applications with approval"""
    data = submit(client, acme_payload)

    assert data["status"] == "approved"
    assert data["business_score"] == 10.0
    assert data["interest_rate"] == 2.65
    assert data["risk_tier"] == "Low"
    assert Decimal(data["approved_amount"]) == Decimal("8000")
    assert data["due_at"] is not None


def test_submit_application_rejected_by_eligibility(client: TestClient, acme_payload: dict):
    data = submit(client, {**acme_payload, "monthly_revenue": "4000", "requested_amount": "2000"})

    assert data["status"] == "rejected"
    assert data["business_score"] == 0.0
    assert data["approved_amount"] is None


def test_submit_application_invalid_term(client: TestClient, acme_payload: dict):
    response = client.post("/v1/applications", json={**acme_payload, "term_days": 45})

    assert response.status_code == 422
    assert response.json()["code"] == "validation_error"


def test_submit_application_exceeding_pool(client: TestClient, acme_payload: dict):
    response = client.post(
        "/v1/applications",
        json={**acme_payload, "monthly_revenue": "2000000", "requested_amount": "200000", "term_days": 90},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "insufficient_capacity"


def test_get_and_list_applications(client: TestClient, acme_payload: dict):
    created = submit(client, acme_payload)
    submit(client, {**acme_payload, "company_name": "Beta Comercio", "monthly_revenue": "4000"})

    response = client.get(f"/v1/applications/{created['id']}")
    assert response.status_code == 200
    assert response.json()["id"] == created["id"]

    approved = client.get("/v1/applications", params={"status": "approved"}).json()
    assert [a["id"] for a in approved] == [created["id"]]

    by_name = client.get("/v1/applications", params={"company_name": "beta"}).json()
    assert [a["company_name"] for a in by_name] == ["Beta Comercio"]


def test_get_application_not_found(client: TestClient):
    response = client.get("/v1/applications/app_missing")

    assert response.status_code == 404
    assert response.json()["code"] == "not_found"


async def test_supplier_payment_flow(client: TestClient, facility: CreditFacility, clock, acme_payload: dict):
    application = await disburse(client, facility, clock, acme_payload)

    payments = client.get("/v1/payments", params={"application_id": application["id"]}).json()
    assert len(payments) == 1
    assert payments[0]["status"] == "paid"

    assert client.get(f"/v1/applications/{application['id']}").json()["status"] == "active"


def test_supplier_payment_before_approval_rejected(client: TestClient, acme_payload: dict):
    rejected = submit(client, {**acme_payload, "monthly_revenue": "4000"})

    response = client.post(
        f"/v1/applications/{rejected['id']}/supplier-payments",
        json={"supplier_id": "supplier-001", "amount": "100"},
    )

    assert response.status_code == 409
    assert response.json()["code"] == "invalid_state"


async def test_buyer_charge_and_payment(client: TestClient, facility: CreditFacility, clock, acme_payload: dict):
    application = await disburse(client, facility, clock, acme_payload)

    response = client.post(f"/v1/applications/{application['id']}/charges")
    assert response.status_code == 201
    charge = response.json()
    assert Decimal(charge["amount"]) == Decimal("8017.42")

    mismatch = client.post(f"/v1/charges/{charge['id']}/payments", json={"paid_amount": "8000"})
    assert mismatch.status_code == 422
    assert mismatch.json()["code"] == "amount_mismatch"

    paid = client.post(f"/v1/charges/{charge['id']}/payments", json={"paid_amount": "8017.42"})
    assert paid.status_code == 200
    assert paid.json()["status"] == "paid"

    assert client.get(f"/v1/applications/{application['id']}").json()["status"] == "completed"


async def test_settlement_webhook(client: TestClient, facility: CreditFacility, clock, acme_payload: dict):
    application = await disburse(client, facility, clock, acme_payload)
    charge = client.post(f"/v1/applications/{application['id']}/charges").json()

    response = client.post(
        "/v1/settlements/webhook",
        json={"settlement_code": charge["settlement_code"], "paid_amount": charge["amount"]},
    )

    assert response.status_code == 200
    assert response.json()["matched"] == "buyer_charge"

    unknown = client.post("/v1/settlements/webhook", json={"settlement_code": "PIX0", "paid_amount": "1"})
    assert unknown.status_code == 404


async def test_cancel_and_resend_charge(client: TestClient, facility: CreditFacility, clock, acme_payload: dict):
    application = await disburse(client, facility, clock, acme_payload)
    charge = client.post(f"/v1/applications/{application['id']}/charges").json()

    resent = client.post(f"/v1/charges/{charge['id']}/resend").json()
    assert resent["settlement_code"] != charge["settlement_code"]
    assert resent["reminders_sent"] == 1

    cancelled = client.post(f"/v1/charges/{charge['id']}/cancel").json()
    assert cancelled["status"] == "cancelled"

    again = client.post(f"/v1/charges/{charge['id']}/cancel")
    assert again.status_code == 409

    listed = client.get("/v1/charges", params={"status": "cancelled"}).json()
    assert [c["id"] for c in listed] == [charge["id"]]


async def test_overdue_charge_defaults_application(
    client: TestClient, facility: CreditFacility, clock, acme_payload: dict
):
    application = await disburse(client, facility, clock, acme_payload)
    client.post(f"/v1/applications/{application['id']}/charges")

    clock.advance(days=32)
    await facility.scheduler.run_due()

    assert client.get(f"/v1/applications/{application['id']}").json()["status"] == "defaulted"
    overdue = client.get("/v1/charges", params={"status": "overdue"}).json()
    assert len(overdue) == 1
    assert overdue[0]["reminders_sent"] == 3

    stats = client.get("/v1/metrics/payments").json()
    assert stats["overdue_payments"] == 1


def test_pools_and_investments(client: TestClient):
    pools = client.get("/v1/pools").json()
    assert [p["id"] for p in pools] == ["pool-30d", "pool-60d", "pool-90d"]
    assert Decimal(pools[0]["available_capacity"]) == Decimal("150000")

    response = client.post("/v1/pools/pool-30d/investments", json={"investor_id": "investor-a", "amount": "1000"})
    assert response.status_code == 201
    position = response.json()
    assert Decimal(position["expected_return"]) == Decimal("1007.56")

    assert Decimal(client.get("/v1/pools/pool-30d").json()["total_supplied"]) == Decimal("251000")

    below_minimum = client.post("/v1/pools/pool-30d/investments", json={"investor_id": "investor-a", "amount": "10"})
    assert below_minimum.status_code == 422

    over_capacity = client.post(
        "/v1/pools/pool-30d/investments", json={"investor_id": "investor-a", "amount": "200000"}
    )
    assert over_capacity.status_code == 409

    positions = client.get("/v1/positions", params={"investor_id": "investor-a"}).json()
    assert [p["id"] for p in positions] == [position["id"]]

    withdrawn = client.post(f"/v1/positions/{position['id']}/withdraw")
    assert withdrawn.status_code == 200
    assert withdrawn.json()["withdrawn"] is True


def test_unknown_pool(client: TestClient):
    response = client.get("/v1/pools/pool-45d")
    assert response.status_code == 404


def test_system_metrics(client: TestClient, acme_payload: dict):
    submit(client, acme_payload)

    metrics = client.get("/v1/metrics/system").json()

    assert Decimal(metrics["total_loaned"]) == Decimal("8000")
    assert metrics["active_loans"] == 0
    assert metrics["average_apy"] == 9.47
    assert Decimal(metrics["total_value_locked"]) == Decimal("1150000")


def test_due_date_follows_term(client: TestClient, facility: CreditFacility, acme_payload: dict):
    application = submit(client, {**acme_payload, "term_days": 60})
    stored = facility.lifecycle.get(application["id"])

    assert stored.due_at - stored.approved_at == timedelta(days=60)
