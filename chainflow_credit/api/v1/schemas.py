"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from chainflow_credit.domain.models import CreditRequest


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CreditApplicationRequest(BaseModel):
    """Request body for POST /v1/applications"""

    company_name: str = Field(..., description="Legal name of the borrowing company")
    tax_id: str = Field(..., description="CNPJ, formatted or bare digits")
    monthly_revenue: Decimal = Field(..., description="Average monthly revenue")
    requested_amount: Decimal = Field(..., description="Credit amount requested")
    term_days: int = Field(..., description="Credit term: 30, 60 or 90 days")
    purpose: str = Field(..., description="What the credit finances")
    description: str = ""

    def to_domain(self) -> CreditRequest:
        return CreditRequest(
            company_name=self.company_name,
            tax_id=self.tax_id,
            monthly_revenue=self.monthly_revenue,
            requested_amount=self.requested_amount,
            term_days=self.term_days,
            purpose=self.purpose,
            description=self.description,
        )


class CreditApplicationResponse(ORMModel):
    """Credit application with its scoring outcome"""

    id: str
    company_name: str
    tax_id: str
    monthly_revenue: Decimal
    requested_amount: Decimal
    term_days: int
    purpose: str
    status: str
    business_score: Optional[float] = None
    interest_rate: Optional[float] = None
    risk_tier: Optional[str] = None
    approved_amount: Optional[Decimal] = None
    disbursed_amount: Optional[Decimal] = None
    created_at: datetime
    approved_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    closed_at: Optional[datetime] = None


class SupplierPaymentRequest(BaseModel):
    """Request body for POST /v1/applications/{id}/supplier-payments"""

    supplier_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class PaymentOrderResponse(ORMModel):
    id: str
    application_id: str
    supplier_id: str
    amount: Decimal
    settlement_code: str
    status: str
    created_at: datetime
    paid_at: Optional[datetime] = None


class PixChargeResponse(ORMModel):
    id: str
    application_id: str
    buyer_tax_id: str
    amount: Decimal
    due_at: datetime
    settlement_code: str
    status: str
    reminders_sent: int
    created_at: datetime
    paid_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None


class BuyerPaymentRequest(BaseModel):
    """Request body for POST /v1/charges/{id}/payments"""

    paid_amount: Decimal


class SettlementWebhookRequest(BaseModel):
    """Payment-network confirmation for a settlement code"""

    settlement_code: str = Field(..., min_length=1)
    paid_amount: Decimal


class SettlementWebhookResponse(BaseModel):
    settlement_code: str
    matched: str


class CreditPoolResponse(ORMModel):
    id: str
    name: str
    term_days: int
    apy: float
    total_supplied: Decimal
    available_capacity: Decimal
    reserved_capacity: Decimal
    committed_capacity: Decimal
    max_capacity: Decimal
    min_investment: Decimal
    utilization: float
    risk_tier: str
    active_loans: int
    default_rate: float
    business_score: float


class InvestmentRequest(BaseModel):
    """Request body for POST /v1/pools/{id}/investments"""

    investor_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0)


class InvestorPositionResponse(ORMModel):
    id: str
    investor_id: str
    pool_id: str
    amount: Decimal
    expected_return: Decimal
    invested_at: datetime
    matures_at: datetime
    withdrawn: bool
    withdrawn_at: Optional[datetime] = None


class SystemMetricsResponse(ORMModel):
    total_loaned: Decimal
    total_repaid: Decimal
    active_loans: int
    default_rate: float
    average_apy: float
    investor_count: int
    total_value_locked: Decimal


class PaymentStatsResponse(ORMModel):
    supplier_payments: int
    buyer_charges: int
    pending_payments: int
    overdue_payments: int
    total_volume: Decimal
    average_settlement_hours: float


class ErrorResponse(BaseModel):
    detail: str
    code: str

