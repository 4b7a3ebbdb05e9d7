"""Data access layer for credit entities"""

from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from chainflow_credit.domain.models import ApplicationStatus, ChargeStatus, PaymentStatus
from chainflow_credit.infrastructure.database.models import (
    CreditApplication,
    CreditPool,
    InvestorPosition,
    OutboundNotification,
    PaymentOrder,
    PixCharge,
)


class PoolRepository:
    """Repository for credit pools (reads only; capacity changes go through the ledger)"""

    def __init__(self, db: Session):
        self.db = db

    def get(self, pool_id: str, refresh: bool = False) -> Optional[CreditPool]:
        return self.db.get(CreditPool, pool_id, populate_existing=refresh)

    def get_by_term(self, term_days: int) -> Optional[CreditPool]:
        return self.db.query(CreditPool).filter(CreditPool.term_days == term_days).first()

    def list(self) -> List[CreditPool]:
        return self.db.query(CreditPool).order_by(CreditPool.term_days).all()

    def add(self, pool: CreditPool) -> CreditPool:
        self.db.add(pool)
        self.db.flush()
        return pool

    def count(self) -> int:
        return self.db.query(func.count(CreditPool.id)).scalar()


class ApplicationRepository:
    """Repository for credit applications"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, application: CreditApplication) -> CreditApplication:
        """Persist application (flush to surface constraint errors early)"""
        self.db.add(application)
        self.db.flush()
        return application

    def get(self, application_id: str) -> Optional[CreditApplication]:
        return self.db.get(CreditApplication, application_id)

    def list(
        self,
        status: ApplicationStatus | None = None,
        company_name: str | None = None,
    ) -> List[CreditApplication]:
        """Applications newest first, optionally filtered by status and company name substring"""
        query = self.db.query(CreditApplication)
        if status is not None:
            query = query.filter(CreditApplication.status == ApplicationStatus(status).value)
        if company_name:
            query = query.filter(func.lower(CreditApplication.company_name).contains(company_name.lower()))
        return query.order_by(CreditApplication.created_at.desc()).all()


class PaymentOrderRepository:
    """Repository for supplier payment orders"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, order: PaymentOrder) -> PaymentOrder:
        self.db.add(order)
        self.db.flush()
        return order

    def get(self, order_id: str) -> Optional[PaymentOrder]:
        return self.db.get(PaymentOrder, order_id)

    def get_by_settlement_code(self, code: str) -> Optional[PaymentOrder]:
        return self.db.query(PaymentOrder).filter(PaymentOrder.settlement_code == code).first()

    def get_pending_for_application(self, application_id: str) -> Optional[PaymentOrder]:
        return (
            self.db.query(PaymentOrder)
            .filter(
                PaymentOrder.application_id == application_id,
                PaymentOrder.status == PaymentStatus.PENDING.value,
            )
            .first()
        )

    def list(self, application_id: str | None = None, status: PaymentStatus | None = None) -> List[PaymentOrder]:
        query = self.db.query(PaymentOrder)
        if application_id:
            query = query.filter(PaymentOrder.application_id == application_id)
        if status is not None:
            query = query.filter(PaymentOrder.status == PaymentStatus(status).value)
        return query.order_by(PaymentOrder.created_at.desc()).all()


class ChargeRepository:
    """Repository for buyer PIX charges"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, charge: PixCharge) -> PixCharge:
        self.db.add(charge)
        self.db.flush()
        return charge

    def get(self, charge_id: str) -> Optional[PixCharge]:
        return self.db.get(PixCharge, charge_id)

    def get_by_settlement_code(self, code: str) -> Optional[PixCharge]:
        return self.db.query(PixCharge).filter(PixCharge.settlement_code == code).first()

    def get_open_for_application(self, application_id: str) -> Optional[PixCharge]:
        """Pending or paid charge; cancelled and overdue charges do not block a new one"""
        return (
            self.db.query(PixCharge)
            .filter(
                PixCharge.application_id == application_id,
                PixCharge.status.in_([ChargeStatus.PENDING.value, ChargeStatus.PAID.value]),
            )
            .first()
        )

    def list(
        self,
        status: ChargeStatus | None = None,
        buyer_tax_id: str | None = None,
        application_id: str | None = None,
    ) -> List[PixCharge]:
        query = self.db.query(PixCharge)
        if status is not None:
            query = query.filter(PixCharge.status == ChargeStatus(status).value)
        if buyer_tax_id:
            query = query.filter(PixCharge.buyer_tax_id == buyer_tax_id)
        if application_id:
            query = query.filter(PixCharge.application_id == application_id)
        return query.order_by(PixCharge.created_at.desc()).all()


class PositionRepository:
    """Repository for investor positions"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, position: InvestorPosition) -> InvestorPosition:
        self.db.add(position)
        self.db.flush()
        return position

    def get(self, position_id: str) -> Optional[InvestorPosition]:
        return self.db.get(InvestorPosition, position_id)

    def get_active_for_pool(self, pool_id: str) -> List[InvestorPosition]:
        """Non-withdrawn positions in a pool, oldest first"""
        return (
            self.db.query(InvestorPosition)
            .filter(InvestorPosition.pool_id == pool_id, InvestorPosition.withdrawn.is_(False))
            .order_by(InvestorPosition.invested_at, InvestorPosition.id)
            .all()
        )

    def list(self, investor_id: str | None = None) -> List[InvestorPosition]:
        query = self.db.query(InvestorPosition)
        if investor_id:
            query = query.filter(InvestorPosition.investor_id == investor_id)
        return query.order_by(InvestorPosition.invested_at.desc()).all()


class NotificationRepository:
    """Repository for outbound buyer notifications"""

    def __init__(self, db: Session):
        self.db = db

    def add(self, notification: OutboundNotification) -> OutboundNotification:
        self.db.add(notification)
        self.db.flush()
        return notification

    def get(self, notification_id: str) -> Optional[OutboundNotification]:
        return self.db.get(OutboundNotification, notification_id)

    def list_for_charge(self, charge_id: str) -> List[OutboundNotification]:
        return (
            self.db.query(OutboundNotification)
            .filter(OutboundNotification.charge_id == charge_id)
            .order_by(OutboundNotification.created_at)
            .all()
        )
