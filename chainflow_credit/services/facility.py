"""Composition root wiring the credit components around one store and scheduler"""

import logging

from sqlalchemy.orm import sessionmaker

from chainflow_credit.config import Settings
from chainflow_credit.domain.exceptions import DomainException
from chainflow_credit.domain.models import ApplicationStatus, CreditRequest
from chainflow_credit.infrastructure.clients.notifications import NotificationClient
from chainflow_credit.infrastructure.database.models import CreditApplication
from chainflow_credit.infrastructure.database.seed import seed_default_pools
from chainflow_credit.infrastructure.database.session import create_db_engine, create_session_factory
from chainflow_credit.services.distribution import ReturnDistributor
from chainflow_credit.services.investments import InvestmentService
from chainflow_credit.services.ledger import PoolLedger
from chainflow_credit.services.lifecycle import ApplicationLifecycle
from chainflow_credit.services.notifications import NotificationService
from chainflow_credit.services.payments import PaymentOrchestrator
from chainflow_credit.services.queries import QueryService
from chainflow_credit.services.reminders import ChargeMonitor
from chainflow_credit.services.scheduler import TaskScheduler
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import Clock, utcnow

logger = logging.getLogger(__name__)


class CreditFacility:
    """Every credit component sharing one unit-of-work store, clock and task scheduler"""

    def __init__(self, store: Store, scheduler: TaskScheduler, clock: Clock, config: Settings):
        self.store = store
        self.scheduler = scheduler
        self.clock = clock
        self.config = config

        client = None
        if config.notification_webhook_url:
            client = NotificationClient(config.notification_webhook_url, config)

        self.ledger = PoolLedger()
        self.lifecycle = ApplicationLifecycle(store, self.ledger, clock, config)
        self.distributor = ReturnDistributor()
        self.notifications = NotificationService(store, clock, client)
        self.monitor = ChargeMonitor(store, scheduler, self.lifecycle, self.ledger, self.notifications)
        self.payments = PaymentOrchestrator(
            store,
            self.ledger,
            self.lifecycle,
            self.distributor,
            self.monitor,
            scheduler,
            clock,
            config,
        )
        self.investments = InvestmentService(store, self.ledger, clock)
        self.queries = QueryService(store)

    async def submit(self, request: CreditRequest) -> CreditApplication:
        """
        Submit an application; bills the buyer immediately when configured to.

        The recorded decision stands even if the buyer charge cannot be issued;
        that failure is logged and the charge can be issued later.
        """
        application = await self.lifecycle.submit(request)
        if self.config.issue_charge_on_approval and application.status == ApplicationStatus.APPROVED.value:
            try:
                self.payments.issue_buyer_charge(application.id)
            except DomainException as e:
                logger.error(
                    f"Buyer charge not issued on approval: {e.message}",
                    extra={"application_id": application.id, "error_code": e.code},
                )
        return application

    def start(self) -> None:
        self.scheduler.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.notifications.drain()


def build_facility(
    config: Settings,
    clock: Clock | None = None,
    session_factory: sessionmaker | None = None,
) -> CreditFacility:
    """
    Wire a facility from settings.

    Creates the schema and, when enabled, seeds the default pools into an empty
    database. A caller-supplied session factory skips engine creation.
    """
    clock = clock or utcnow
    if session_factory is None:
        session_factory = create_session_factory(create_db_engine(config.database_url))

    store = Store(session_factory)
    if config.seed_default_pools:
        with store.transaction() as db:
            seed_default_pools(db)

    scheduler = TaskScheduler(clock, config.scheduler_poll_interval_seconds)
    logger.info("Credit facility ready", extra={"database_url": config.database_url.split("@")[-1]})
    return CreditFacility(store, scheduler, clock, config)
