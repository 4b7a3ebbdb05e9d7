"""Read-only queries for dashboards: pools, applications, positions, payments and metrics"""

from typing import List

from chainflow_credit.domain.exceptions import NotFoundError
from chainflow_credit.domain.models import (
    ApplicationStatus,
    ChargeStatus,
    PaymentStats,
    PaymentStatus,
    SystemMetrics,
)
from chainflow_credit.infrastructure.database.models import (
    CreditApplication,
    CreditPool,
    InvestorPosition,
    PaymentOrder,
    PixCharge,
)
from chainflow_credit.infrastructure.database.repositories import (
    ApplicationRepository,
    ChargeRepository,
    PaymentOrderRepository,
    PoolRepository,
    PositionRepository,
)
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import hours_between
from chainflow_credit.utils.money import from_cents


class QueryService:

    def __init__(self, store: Store):
        self.store = store

    def list_pools(self) -> List[CreditPool]:
        with self.store.transaction() as db:
            return PoolRepository(db).list()

    def get_pool(self, pool_id: str) -> CreditPool:
        with self.store.transaction() as db:
            pool = PoolRepository(db).get(pool_id)
        if pool is None:
            raise NotFoundError("Credit pool", pool_id)
        return pool

    def list_applications(
        self,
        status: ApplicationStatus | None = None,
        company_name: str | None = None,
    ) -> List[CreditApplication]:
        with self.store.transaction() as db:
            return ApplicationRepository(db).list(status=status, company_name=company_name)

    def list_positions(self, investor_id: str | None = None) -> List[InvestorPosition]:
        with self.store.transaction() as db:
            return PositionRepository(db).list(investor_id=investor_id)

    def list_payment_orders(
        self,
        application_id: str | None = None,
        status: PaymentStatus | None = None,
    ) -> List[PaymentOrder]:
        with self.store.transaction() as db:
            return PaymentOrderRepository(db).list(application_id=application_id, status=status)

    def list_charges(
        self,
        status: ChargeStatus | None = None,
        buyer_tax_id: str | None = None,
        application_id: str | None = None,
    ) -> List[PixCharge]:
        with self.store.transaction() as db:
            return ChargeRepository(db).list(status=status, buyer_tax_id=buyer_tax_id, application_id=application_id)

    def system_metrics(self) -> SystemMetrics:
        """
        Portfolio-level metrics.

        - total_loaned: approved amounts of every non-rejected application
        - total_repaid: approved amounts of completed applications
        - default_rate: defaulted / non-rejected applications, in percent
        - total_value_locked: capital supplied across all pools
        """
        with self.store.transaction() as db:
            applications = ApplicationRepository(db).list()
            pools = PoolRepository(db).list()
            positions = PositionRepository(db).list()

        granted = [a for a in applications if a.status != ApplicationStatus.REJECTED.value]
        completed = [a for a in granted if a.status == ApplicationStatus.COMPLETED.value]
        defaulted = [a for a in granted if a.status == ApplicationStatus.DEFAULTED.value]
        active = [a for a in granted if a.status == ApplicationStatus.ACTIVE.value]

        return SystemMetrics(
            total_loaned=from_cents(sum(a.approved_cents or 0 for a in granted)),
            total_repaid=from_cents(sum(a.approved_cents or 0 for a in completed)),
            active_loans=len(active),
            default_rate=round(len(defaulted) * 100 / len(granted), 2) if granted else 0.0,
            average_apy=round(sum(p.apy for p in pools) / len(pools), 2) if pools else 0.0,
            investor_count=len({p.investor_id for p in positions}),
            total_value_locked=from_cents(sum(p.total_supplied_cents for p in pools)),
        )

    def payment_stats(self) -> PaymentStats:
        """Counts and volume across supplier payouts and buyer charges"""
        with self.store.transaction() as db:
            orders = PaymentOrderRepository(db).list()
            charges = ChargeRepository(db).list()

        pending = sum(1 for o in orders if o.status == PaymentStatus.PENDING.value)
        pending += sum(1 for c in charges if c.status == ChargeStatus.PENDING.value)

        paid_orders = [o for o in orders if o.status == PaymentStatus.PAID.value and o.paid_at is not None]
        average_hours = (
            sum(hours_between(o.created_at, o.paid_at) for o in paid_orders) / len(paid_orders)
            if paid_orders
            else 0.0
        )

        volume_cents = sum(o.amount_cents for o in orders) + sum(c.amount_cents for c in charges)

        return PaymentStats(
            supplier_payments=len(orders),
            buyer_charges=len(charges),
            pending_payments=pending,
            overdue_payments=sum(1 for c in charges if c.status == ChargeStatus.OVERDUE.value),
            total_volume=from_cents(volume_cents),
            average_settlement_hours=round(average_hours, 1),
        )
