"""Payment Orchestrator - supplier payouts and buyer PIX charges"""

import logging
from datetime import timedelta
from decimal import Decimal
from functools import partial

from chainflow_credit.config import Settings
from chainflow_credit.domain.exceptions import (
    AmountMismatchError,
    CapacityError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from chainflow_credit.domain.interest import charge_amount
from chainflow_credit.domain.models import ApplicationStatus, ChargeStatus, PaymentStatus
from chainflow_credit.domain.settlement import generate_settlement_code, new_id
from chainflow_credit.infrastructure.database.models import PaymentOrder, PixCharge
from chainflow_credit.infrastructure.database.repositories import ChargeRepository, PaymentOrderRepository
from chainflow_credit.infrastructure.observability.logging import log_payment_event
from chainflow_credit.infrastructure.observability.metrics import buyer_charge_counter, supplier_payment_counter
from chainflow_credit.services.distribution import ReturnDistributor
from chainflow_credit.services.ledger import PoolLedger
from chainflow_credit.services.lifecycle import ApplicationLifecycle
from chainflow_credit.services.reminders import ChargeMonitor
from chainflow_credit.services.scheduler import TaskScheduler
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import Clock
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)

SETTLE_SUPPLIER_PAYMENT = "settle_supplier_payment"


class PaymentOrchestrator:
    """Pays suppliers out of pooled liquidity and collects from buyers on the due date"""

    def __init__(
        self,
        store: Store,
        ledger: PoolLedger,
        lifecycle: ApplicationLifecycle,
        distributor: ReturnDistributor,
        monitor: ChargeMonitor,
        scheduler: TaskScheduler,
        clock: Clock,
        config: Settings,
    ):
        self.store = store
        self.ledger = ledger
        self.lifecycle = lifecycle
        self.distributor = distributor
        self.monitor = monitor
        self.scheduler = scheduler
        self.clock = clock
        self.config = config

    # -- Supplier leg -------------------------------------------------------

    def initiate_supplier_payment(self, application_id: str, supplier_id: str, amount: Decimal) -> PaymentOrder:
        """
        Create a pending payout to the supplier and schedule its settlement.

        Pool capacity is re-validated here against the payout amount,
        independently of the reservation made at approval.

        Raises:
            ValidationError: bad supplier/amount, or amount above the approved amount
            NotFoundError: unknown application
            InvalidStateError: application not approved, or a payout is already pending
            CapacityError: pool's available capacity is below the payout amount
        """
        if not supplier_id or not supplier_id.strip():
            raise ValidationError("Supplier id is required")
        if amount <= 0:
            raise ValidationError(f"Payout amount must be positive, got {amount}")

        with self.store.transaction() as db:
            application = self.lifecycle.get(application_id, db)
            if application.status != ApplicationStatus.APPROVED.value:
                raise InvalidStateError(f"Application {application_id} is {application.status}, not approved")
            if to_cents(amount) > application.approved_cents:
                raise ValidationError(
                    f"Payout {amount} exceeds approved amount {application.approved_amount}"
                )

            order_repo = PaymentOrderRepository(db)
            if order_repo.get_pending_for_application(application_id) is not None:
                raise InvalidStateError(f"Supplier payment already in progress for {application_id}")

            pool = self.ledger.for_term(db, application.term_days)
            if to_cents(amount) > pool.available_cents:
                raise CapacityError(f"Insufficient liquidity in {pool.id} for payout of {amount}")

            now = self.clock()
            order = order_repo.add(
                PaymentOrder(
                    id=new_id("pay"),
                    application_id=application_id,
                    supplier_id=supplier_id.strip(),
                    amount_cents=to_cents(amount),
                    settlement_code=generate_settlement_code(amount, supplier_id, now),
                    status=PaymentStatus.PENDING.value,
                    created_at=now,
                )
            )

        self.scheduler.schedule(
            now + timedelta(seconds=self.config.supplier_settlement_delay_seconds),
            order.id,
            SETTLE_SUPPLIER_PAYMENT,
            partial(self.settle_supplier_payment, order.id),
        )
        supplier_payment_counter.labels(status=PaymentStatus.PENDING.value).inc()
        log_payment_event("supplier_payment_created", order.id, application_id, order.amount, supplier_id=order.supplier_id)
        return order

    def settle_supplier_payment(self, order_id: str) -> PaymentOrder:
        """
        Confirm a supplier payout: order paid, application active, reservation committed.

        No-op for orders that are no longer pending. When the ledger cannot
        commit the reservation the order fails and the application stays approved.
        """
        with self.store.transaction() as db:
            order = PaymentOrderRepository(db).get(order_id)
            if order is None:
                raise NotFoundError("Payment order", order_id)
            if order.status != PaymentStatus.PENDING.value:
                return order

            application = self.lifecycle.get(order.application_id, db)
            pool = self.ledger.for_term(db, application.term_days)

            settleable = (
                application.status == ApplicationStatus.APPROVED.value
                and application.reserved_cents >= order.amount_cents
            )
            if not settleable or not self.ledger.commit(db, pool.id, order.amount):
                order.status = PaymentStatus.FAILED.value
                logger.error(
                    "Supplier payment failed to settle",
                    extra={"order_id": order.id, "application_id": application.id, "status": application.status},
                )
            else:
                unused = application.reserved_cents - order.amount_cents
                if unused > 0:
                    self.ledger.cancel_reservation(db, pool.id, application.reserved_amount - order.amount)
                application.reserved_cents = 0
                application.disbursed_cents = order.amount_cents
                order.status = PaymentStatus.PAID.value
                order.paid_at = self.clock()
                self.lifecycle.mark_active(application.id, db)

        supplier_payment_counter.labels(status=order.status).inc()
        log_payment_event("supplier_payment_settled", order.id, order.application_id, order.amount, status=order.status)
        return order

    # -- Buyer leg ----------------------------------------------------------

    def issue_buyer_charge(self, application_id: str) -> PixCharge:
        """
        Bill the buyer for principal plus term-prorated interest, due on the application's due date.

        Raises:
            NotFoundError: unknown application
            InvalidStateError: application never approved, already closed, or already billed
        """
        with self.store.transaction() as db:
            application = self.lifecycle.get(application_id, db)
            if application.approved_cents is None or application.interest_rate is None or application.due_at is None:
                raise InvalidStateError(f"Application {application_id} was not approved")
            if application.status not in (ApplicationStatus.APPROVED.value, ApplicationStatus.ACTIVE.value):
                raise InvalidStateError(f"Application {application_id} is {application.status}")

            charge_repo = ChargeRepository(db)
            if charge_repo.get_open_for_application(application_id) is not None:
                raise InvalidStateError(f"Application {application_id} already has an open charge")

            amount = charge_amount(application.approved_amount, application.interest_rate, application.term_days)
            now = self.clock()
            charge = charge_repo.add(
                PixCharge(
                    id=new_id("chg"),
                    application_id=application_id,
                    buyer_tax_id=application.tax_id,
                    amount_cents=to_cents(amount),
                    due_at=application.due_at,
                    settlement_code=generate_settlement_code(amount, application.tax_id, now),
                    status=ChargeStatus.PENDING.value,
                    reminders_sent=0,
                    created_at=now,
                )
            )

        self.monitor.watch(charge)
        buyer_charge_counter.labels(status=ChargeStatus.PENDING.value).inc()
        log_payment_event("buyer_charge_issued", charge.id, application_id, charge.amount, due_at=charge.due_at.isoformat())
        return charge

    def confirm_buyer_payment(self, charge_id: str, paid_amount: Decimal) -> PixCharge:
        """
        Settle a buyer charge in full.

        On success: charge paid, application completed, interest distributed to
        the pool's investors, disbursed principal released back to the pool.

        Raises:
            NotFoundError: unknown charge
            InvalidStateError: charge not pending, loan not yet disbursed, or the
                pool cannot release the principal (nothing is committed)
            AmountMismatchError: paid amount differs from the charge by more than the tolerance
        """
        with self.store.transaction() as db:
            charge = ChargeRepository(db).get(charge_id)
            if charge is None:
                raise NotFoundError("PIX charge", charge_id)
            if charge.status != ChargeStatus.PENDING.value:
                raise InvalidStateError(f"Charge {charge_id} is {charge.status}")
            if abs(Decimal(str(paid_amount)) - charge.amount) > self.config.payment_tolerance:
                raise AmountMismatchError(charge.amount, paid_amount)

            application = self.lifecycle.get(charge.application_id, db)
            if application.status != ApplicationStatus.ACTIVE.value:
                raise InvalidStateError(
                    f"Application {application.id} is {application.status}; supplier payout not settled"
                )

            charge.status = ChargeStatus.PAID.value
            charge.paid_at = self.clock()
            self.lifecycle.mark_completed(application.id, db)

            pool = self.ledger.for_term(db, application.term_days)
            self.distributor.distribute(db, application, pool)
            if not self.ledger.release(db, pool.id, application.disbursed_amount):
                logger.error(
                    "Ledger rejected release of repaid principal",
                    extra={"application_id": application.id, "pool_id": pool.id},
                )
                raise InvalidStateError(
                    f"Pool {pool.id} cannot release {application.disbursed_amount} for {application.id}"
                )

        self.monitor.unwatch(charge_id)
        buyer_charge_counter.labels(status=ChargeStatus.PAID.value).inc()
        log_payment_event("buyer_payment_confirmed", charge.id, charge.application_id, charge.amount)
        return charge

    def cancel_buyer_charge(self, charge_id: str) -> PixCharge:
        """Cancel a pending charge; its reminders and overdue check become no-ops"""
        with self.store.transaction() as db:
            charge = ChargeRepository(db).get(charge_id)
            if charge is None:
                raise NotFoundError("PIX charge", charge_id)
            if charge.status != ChargeStatus.PENDING.value:
                raise InvalidStateError(f"Charge {charge_id} is {charge.status}")
            charge.status = ChargeStatus.CANCELLED.value
            charge.cancelled_at = self.clock()

        self.monitor.unwatch(charge_id)
        buyer_charge_counter.labels(status=ChargeStatus.CANCELLED.value).inc()
        log_payment_event("buyer_charge_cancelled", charge.id, charge.application_id, charge.amount)
        return charge

    async def resend_buyer_charge(self, charge_id: str) -> PixCharge:
        """
        Issue a fresh settlement code for a pending charge and notify the buyer again.

        Webhook delivery of the reminder runs in the background.
        """
        with self.store.transaction() as db:
            charge = ChargeRepository(db).get(charge_id)
            if charge is None:
                raise NotFoundError("PIX charge", charge_id)
            if charge.status != ChargeStatus.PENDING.value:
                raise InvalidStateError(f"Charge {charge_id} is {charge.status}")
            charge.settlement_code = generate_settlement_code(charge.amount, charge.buyer_tax_id, self.clock())

        await self.monitor.send_reminder(charge_id, "resend")
        with self.store.transaction() as db:
            return ChargeRepository(db).get(charge_id)

    # -- Settlement webhook -------------------------------------------------

    def process_settlement(self, settlement_code: str, paid_amount: Decimal) -> str:
        """
        Route a payment-network confirmation to the matching payout or charge.

        Returns:
            "supplier_payment" or "buyer_charge"
        """
        with self.store.transaction() as db:
            order = PaymentOrderRepository(db).get_by_settlement_code(settlement_code)
            charge = None if order else ChargeRepository(db).get_by_settlement_code(settlement_code)

        if order is not None:
            self.scheduler.cancel_entity(order.id)
            self.settle_supplier_payment(order.id)
            return "supplier_payment"
        if charge is not None:
            self.confirm_buyer_payment(charge.id, paid_amount)
            return "buyer_charge"
        raise NotFoundError("Settlement code", settlement_code)
