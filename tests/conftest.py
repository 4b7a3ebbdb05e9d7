"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from decimal import Decimal
from fastapi.testclient import TestClient
from chainflow_credit.api.main import create_app
from chainflow_credit.config import Settings
from chainflow_credit.domain.models import CreditRequest
from chainflow_credit.services.facility import CreditFacility, build_facility


class FakeClock:
    """Manually advanced time source"""

    def __init__(self, start: datetime = datetime(2025, 3, 3, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def test_settings() -> Settings:
    """Fresh in-memory database, no analysis delay, no webhook"""
    return Settings(
        database_url="sqlite+pysqlite:///:memory:",
        seed_default_pools=True,
        notification_webhook_url=None,
        scoring_delay_seconds=0,
        supplier_settlement_delay_seconds=5,
        issue_charge_on_approval=False,
    )


@pytest.fixture
def facility(test_settings: Settings, clock: FakeClock) -> CreditFacility:
    return build_facility(test_settings, clock=clock)


@pytest.fixture
def client(facility: CreditFacility) -> TestClient:
    """Create FastAPI test client bound to the test facility"""
    return TestClient(create_app(facility))


@pytest.fixture
def acme_request() -> CreditRequest:
    """Strong 30-day request: scores 10.0, approved in full"""
    return CreditRequest(
        company_name="Acme Ltda",
        tax_id="12.345.678/0001-90",
        monthly_revenue=Decimal("100000"),
        requested_amount=Decimal("8000"),
        term_days=30,
        purpose="stock",
    )
