"""Domain models - pure Python dataclasses and enums representing business entities"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

CREDIT_TERMS = (30, 60, 90)


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    ACTIVE = "active"
    COMPLETED = "completed"
    DEFAULTED = "defaulted"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class ChargeStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class RiskTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass
class CreditRequest:
    """Trade-credit request as submitted by the borrower"""

    company_name: str
    tax_id: str
    monthly_revenue: Decimal
    requested_amount: Decimal
    term_days: int
    purpose: str
    description: str = ""


@dataclass
class CreditAnalysis:
    """Output of credit scoring"""

    approved: bool
    eligible: bool
    business_score: float
    interest_rate: float
    risk_tier: RiskTier
    max_approved_amount: Decimal


@dataclass
class Reminder:
    """A reminder firing for a buyer charge"""

    fire_at: datetime
    label: str


@dataclass
class SystemMetrics:
    total_loaned: Decimal
    total_repaid: Decimal
    active_loans: int
    default_rate: float
    average_apy: float
    investor_count: int
    total_value_locked: Decimal


@dataclass
class PaymentStats:
    supplier_payments: int
    buyer_charges: int
    pending_payments: int
    overdue_payments: int
    total_volume: Decimal
    average_settlement_hours: float
