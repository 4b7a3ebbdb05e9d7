"""Reminder/Overdue Scheduler - watches pending buyer charges until they resolve"""

import logging
from functools import partial
from typing import List

from chainflow_credit.domain.exceptions import InvalidStateError
from chainflow_credit.domain.models import ApplicationStatus, ChargeStatus
from chainflow_credit.domain.reminders import overdue_at, reminder_schedule
from chainflow_credit.infrastructure.database.models import PixCharge
from chainflow_credit.infrastructure.database.repositories import ChargeRepository
from chainflow_credit.infrastructure.observability.metrics import (
    buyer_charge_counter,
    default_counter,
    reminder_counter,
)
from chainflow_credit.services.ledger import PoolLedger
from chainflow_credit.services.lifecycle import ApplicationLifecycle
from chainflow_credit.services.notifications import NotificationService
from chainflow_credit.services.scheduler import ScheduledTask, TaskScheduler
from chainflow_credit.services.store import Store

logger = logging.getLogger(__name__)

PAYMENT_REMINDER = "payment_reminder"
PAYMENT_OVERDUE = "payment_overdue"


class ChargeMonitor:
    """
    Fires reminders at due-3d, due-1d and due, and escalates to overdue at due+1d.

    Every firing re-checks that the charge is still pending; a charge that was
    paid or cancelled in the meantime turns the firing into a no-op.
    """

    def __init__(
        self,
        store: Store,
        scheduler: TaskScheduler,
        lifecycle: ApplicationLifecycle,
        ledger: PoolLedger,
        notifications: NotificationService,
    ):
        self.store = store
        self.scheduler = scheduler
        self.lifecycle = lifecycle
        self.ledger = ledger
        self.notifications = notifications

    def watch(self, charge: PixCharge) -> List[ScheduledTask]:
        tasks = [
            self.scheduler.schedule(
                reminder.fire_at,
                charge.id,
                f"reminder:{reminder.label}",
                partial(self.send_reminder, charge.id, reminder.label),
            )
            for reminder in reminder_schedule(charge.due_at, charge.created_at)
        ]
        tasks.append(
            self.scheduler.schedule(
                overdue_at(charge.due_at),
                charge.id,
                "mark_overdue",
                partial(self.mark_overdue, charge.id),
            )
        )
        return tasks

    def unwatch(self, charge_id: str) -> int:
        return self.scheduler.cancel_entity(charge_id)

    async def send_reminder(self, charge_id: str, timeframe: str) -> bool:
        """Returns False when the charge is gone or no longer pending"""
        with self.store.transaction() as db:
            charge = ChargeRepository(db).get(charge_id)
            if charge is None or charge.status != ChargeStatus.PENDING.value:
                return False

            charge.reminders_sent += 1
            notification = self.notifications.record(
                db,
                PAYMENT_REMINDER,
                charge.id,
                {
                    "timeframe": timeframe,
                    "application_id": charge.application_id,
                    "buyer_tax_id": charge.buyer_tax_id,
                    "amount": str(charge.amount),
                    "due_at": charge.due_at.isoformat(),
                    "settlement_code": charge.settlement_code,
                    "reminders_sent": charge.reminders_sent,
                },
            )

        reminder_counter.labels(timeframe=timeframe).inc()
        self.notifications.dispatch(notification)
        return True

    async def mark_overdue(self, charge_id: str) -> bool:
        """
        Escalate an unpaid charge and default its loan.

        Returns False when the charge is gone or no longer pending.

        Raises:
            InvalidStateError: pool cannot absorb the write-off; the charge stays pending
        """
        with self.store.transaction() as db:
            charge = ChargeRepository(db).get(charge_id)
            if charge is None or charge.status != ChargeStatus.PENDING.value:
                return False

            charge.status = ChargeStatus.OVERDUE.value
            application = self.lifecycle.get(charge.application_id, db)

            defaulted = application.status == ApplicationStatus.ACTIVE.value
            if defaulted:
                self.lifecycle.mark_defaulted(application.id, db)
                pool = self.ledger.for_term(db, application.term_days)
                if not self.ledger.write_off(db, pool.id, application.disbursed_amount):
                    logger.error(
                        "Write-off rejected by ledger",
                        extra={"application_id": application.id, "pool_id": pool.id},
                    )
                    raise InvalidStateError(
                        f"Pool {pool.id} cannot write off {application.disbursed_amount} for {application.id}"
                    )
            else:
                logger.warning(
                    "Overdue charge on a loan that is not active, application left unchanged",
                    extra={"charge_id": charge.id, "application_id": application.id, "status": application.status},
                )

            notification = self.notifications.record(
                db,
                PAYMENT_OVERDUE,
                charge.id,
                {
                    "application_id": charge.application_id,
                    "buyer_tax_id": charge.buyer_tax_id,
                    "amount": str(charge.amount),
                    "due_at": charge.due_at.isoformat(),
                    "application_defaulted": defaulted,
                },
            )

        buyer_charge_counter.labels(status=ChargeStatus.OVERDUE.value).inc()
        if defaulted:
            default_counter.inc()
        self.notifications.dispatch(notification)
        return True
