"""Credit Application Lifecycle - submission, scoring and status transitions"""

import asyncio
import logging
import time

from sqlalchemy.orm import Session

from chainflow_credit.config import Settings
from chainflow_credit.domain.exceptions import CapacityError, NotFoundError
from chainflow_credit.domain.interest import due_date
from chainflow_credit.domain.lifecycle import check_transition, is_terminal
from chainflow_credit.domain.models import ApplicationStatus, CreditAnalysis, CreditRequest
from chainflow_credit.domain.scoring import score_credit_request, validate_credit_request
from chainflow_credit.domain.settlement import new_id
from chainflow_credit.infrastructure.database.models import CreditApplication
from chainflow_credit.infrastructure.database.repositories import ApplicationRepository
from chainflow_credit.infrastructure.observability.logging import log_decision
from chainflow_credit.infrastructure.observability.metrics import record_decision
from chainflow_credit.services.ledger import PoolLedger
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import Clock
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)


class ApplicationLifecycle:
    """Owns the application state machine; scores once at submission, never re-scores"""

    def __init__(self, store: Store, ledger: PoolLedger, clock: Clock, config: Settings):
        self.store = store
        self.ledger = ledger
        self.clock = clock
        self.config = config

    async def analyze(self, request: CreditRequest) -> CreditAnalysis:
        """Score a request after the simulated analysis delay (cancellable)"""
        if self.config.scoring_delay_seconds > 0:
            await asyncio.sleep(self.config.scoring_delay_seconds)
        return score_credit_request(request)

    async def submit(self, request: CreditRequest) -> CreditApplication:
        """
        Score a trade-credit request and record the application.

        Flow:
        1. Reject malformed input (ValidationError, no side effects)
        2. Score after the simulated delay
        3. In one unit of work: create the application, and on approval reserve
           the approved amount in the term pool, provided the pool can cover
           the requested amount
        4. Record metrics and decision log

        Raises:
            ValidationError: malformed request
            CapacityError: pool cannot cover the request; nothing is persisted
        """
        start_time = time.time()
        validate_credit_request(request)
        analysis = await self.analyze(request)

        with self.store.transaction() as db:
            pool = self.ledger.for_term(db, request.term_days)
            now = self.clock()

            application = CreditApplication(
                id=new_id("app"),
                company_name=request.company_name.strip(),
                tax_id=request.tax_id.strip(),
                monthly_revenue_cents=to_cents(request.monthly_revenue),
                requested_cents=to_cents(request.requested_amount),
                term_days=request.term_days,
                purpose=request.purpose,
                description=request.description,
                status=ApplicationStatus.PENDING.value,
                business_score=analysis.business_score,
                interest_rate=analysis.interest_rate,
                risk_tier=analysis.risk_tier.value,
                reserved_cents=0,
                created_at=now,
            )

            if analysis.approved:
                approved_amount = analysis.max_approved_amount
                if not self.ledger.reserve(db, pool.id, approved_amount, required=request.requested_amount):
                    raise CapacityError(
                        f"Pool {pool.id} cannot cover {request.requested_amount} "
                        f"(available {pool.available_capacity})"
                    )
                self._apply(application, ApplicationStatus.APPROVED)
                application.approved_cents = to_cents(approved_amount)
                application.reserved_cents = to_cents(approved_amount)
                application.approved_at = now
                application.due_at = due_date(now, request.term_days)
            else:
                self._apply(application, ApplicationStatus.REJECTED)

            ApplicationRepository(db).add(application)

        duration_ms = (time.time() - start_time) * 1000
        record_decision(analysis.approved, analysis.eligible, application.approved_amount)
        log_decision(
            application.id,
            application.tax_id,
            analysis.approved,
            analysis.business_score,
            application.approved_amount,
            duration_ms,
        )
        return application

    def get(self, application_id: str, db: Session | None = None) -> CreditApplication:
        with self.store.session(db) as session:
            application = ApplicationRepository(session).get(application_id)
            if application is None:
                raise NotFoundError("Credit application", application_id)
            return application

    def mark_active(self, application_id: str, db: Session | None = None) -> CreditApplication:
        """approved -> active, on supplier payment confirmation"""
        return self._transition(application_id, ApplicationStatus.ACTIVE, db)

    def mark_completed(self, application_id: str, db: Session | None = None) -> CreditApplication:
        """active -> completed, on buyer payment"""
        return self._transition(application_id, ApplicationStatus.COMPLETED, db)

    def mark_defaulted(self, application_id: str, db: Session | None = None) -> CreditApplication:
        """active -> defaulted, on overdue escalation"""
        return self._transition(application_id, ApplicationStatus.DEFAULTED, db)

    def _transition(self, application_id: str, target: ApplicationStatus, db: Session | None) -> CreditApplication:
        with self.store.session(db) as session:
            application = self.get(application_id, session)
            if self._apply(application, target):
                session.flush()
                logger.info(
                    "Application status changed",
                    extra={"application_id": application_id, "status": target.value},
                )
            return application

    def _apply(self, application: CreditApplication, target: ApplicationStatus) -> bool:
        """Set status when the transition is due; False when already in target"""
        if not check_transition(application.status, target):
            return False
        application.status = target.value
        if is_terminal(target):
            application.closed_at = self.clock()
        return True
