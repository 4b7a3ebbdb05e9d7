"""SQLAlchemy ORM models for pools, applications and both payment legs"""

from decimal import Decimal

from sqlalchemy import Column, String, BigInteger, Boolean, Float, DateTime, Integer, ForeignKey, Text, JSON
from sqlalchemy.orm import declarative_base, relationship

from chainflow_credit.utils.money import from_cents

Base = declarative_base()


class CreditPool(Base):
    """Pooled investor capital for one credit term"""

    __tablename__ = "credit_pool"

    id = Column(String(32), primary_key=True)
    name = Column(Text, nullable=False)
    term_days = Column(Integer, nullable=False, unique=True)
    apy = Column(Float, nullable=False)
    total_supplied_cents = Column(BigInteger, nullable=False, default=0)
    available_cents = Column(BigInteger, nullable=False, default=0)
    reserved_cents = Column(BigInteger, nullable=False, default=0)
    committed_cents = Column(BigInteger, nullable=False, default=0)
    max_capacity_cents = Column(BigInteger, nullable=False)
    min_investment_cents = Column(BigInteger, nullable=False)
    risk_tier = Column(Text, nullable=False)
    active_loans = Column(Integer, nullable=False, default=0)
    default_rate = Column(Float, nullable=False, default=0.0)
    business_score = Column(Float, nullable=False, default=0.0)

    positions = relationship("InvestorPosition", back_populates="pool")

    @property
    def total_supplied(self) -> Decimal:
        return from_cents(self.total_supplied_cents)

    @property
    def available_capacity(self) -> Decimal:
        return from_cents(self.available_cents)

    @property
    def reserved_capacity(self) -> Decimal:
        return from_cents(self.reserved_cents)

    @property
    def committed_capacity(self) -> Decimal:
        return from_cents(self.committed_cents)

    @property
    def max_capacity(self) -> Decimal:
        return from_cents(self.max_capacity_cents)

    @property
    def min_investment(self) -> Decimal:
        return from_cents(self.min_investment_cents)

    @property
    def utilization(self) -> float:
        """Share of supplied capital that is reserved or lent out, in percent"""
        if not self.total_supplied_cents:
            return 0.0
        encumbered = self.reserved_cents + self.committed_cents
        return round(encumbered * 100 / self.total_supplied_cents, 2)


class CreditApplication(Base):
    """Trade-credit application and its lifecycle status"""

    __tablename__ = "credit_application"

    id = Column(String(48), primary_key=True)
    company_name = Column(Text, nullable=False)
    tax_id = Column(Text, nullable=False, index=True)
    monthly_revenue_cents = Column(BigInteger, nullable=False)
    requested_cents = Column(BigInteger, nullable=False)
    term_days = Column(Integer, nullable=False)
    purpose = Column(Text, nullable=False, default="")
    description = Column(Text, nullable=False, default="")
    status = Column(String(16), nullable=False, index=True)
    business_score = Column(Float, nullable=True)
    interest_rate = Column(Float, nullable=True)
    risk_tier = Column(Text, nullable=True)
    approved_cents = Column(BigInteger, nullable=True)
    reserved_cents = Column(BigInteger, nullable=False, default=0)
    disbursed_cents = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, nullable=False)
    approved_at = Column(DateTime, nullable=True)
    due_at = Column(DateTime, nullable=True)
    closed_at = Column(DateTime, nullable=True)

    payment_orders = relationship("PaymentOrder", back_populates="application")
    charges = relationship("PixCharge", back_populates="application")

    @property
    def monthly_revenue(self) -> Decimal:
        return from_cents(self.monthly_revenue_cents)

    @property
    def requested_amount(self) -> Decimal:
        return from_cents(self.requested_cents)

    @property
    def approved_amount(self) -> Decimal | None:
        return from_cents(self.approved_cents) if self.approved_cents is not None else None

    @property
    def reserved_amount(self) -> Decimal:
        return from_cents(self.reserved_cents or 0)

    @property
    def disbursed_amount(self) -> Decimal | None:
        return from_cents(self.disbursed_cents) if self.disbursed_cents is not None else None


class PaymentOrder(Base):
    """Supplier payout funded from the credit pool"""

    __tablename__ = "payment_order"

    id = Column(String(48), primary_key=True)
    application_id = Column(String(48), ForeignKey("credit_application.id"), nullable=False, index=True)
    supplier_id = Column(Text, nullable=False)
    amount_cents = Column(BigInteger, nullable=False)
    settlement_code = Column(Text, nullable=False, unique=True)
    status = Column(String(16), nullable=False)
    created_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)

    application = relationship("CreditApplication", back_populates="payment_orders")

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)


class PixCharge(Base):
    """Buyer collection charge due at the end of the credit term"""

    __tablename__ = "pix_charge"

    id = Column(String(48), primary_key=True)
    application_id = Column(String(48), ForeignKey("credit_application.id"), nullable=False, index=True)
    buyer_tax_id = Column(Text, nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    due_at = Column(DateTime, nullable=False)
    settlement_code = Column(Text, nullable=False, unique=True)
    status = Column(String(16), nullable=False, index=True)
    reminders_sent = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False)
    paid_at = Column(DateTime, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)

    application = relationship("CreditApplication", back_populates="charges")

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)


class InvestorPosition(Base):
    """Investor stake in a credit pool"""

    __tablename__ = "investor_position"

    id = Column(String(48), primary_key=True)
    investor_id = Column(Text, nullable=False, index=True)
    pool_id = Column(String(32), ForeignKey("credit_pool.id"), nullable=False, index=True)
    amount_cents = Column(BigInteger, nullable=False)
    expected_return_cents = Column(BigInteger, nullable=False)
    invested_at = Column(DateTime, nullable=False)
    matures_at = Column(DateTime, nullable=False)
    withdrawn = Column(Boolean, nullable=False, default=False)
    withdrawn_at = Column(DateTime, nullable=True)

    pool = relationship("CreditPool", back_populates="positions")

    @property
    def amount(self) -> Decimal:
        return from_cents(self.amount_cents)

    @property
    def expected_return(self) -> Decimal:
        return from_cents(self.expected_return_cents)


class OutboundNotification(Base):
    """Buyer notification (reminder or overdue notice) with delivery tracking"""

    __tablename__ = "outbound_notification"

    id = Column(String(48), primary_key=True)
    event_type = Column(Text, nullable=False)
    charge_id = Column(String(48), ForeignKey("pix_charge.id"), nullable=True, index=True)
    payload = Column(JSON, nullable=False)
    target_url = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="recorded")
    attempts = Column(Integer, nullable=False, default=0)
    last_attempt_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False)
