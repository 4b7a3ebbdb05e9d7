"""Investor deposits into credit pools and position withdrawals"""

import logging
from datetime import timedelta
from decimal import Decimal

from chainflow_credit.domain.exceptions import InvalidStateError, NotFoundError, ValidationError
from chainflow_credit.domain.interest import expected_investor_return
from chainflow_credit.domain.settlement import new_id
from chainflow_credit.infrastructure.database.models import InvestorPosition
from chainflow_credit.infrastructure.database.repositories import PositionRepository
from chainflow_credit.services.ledger import PoolLedger
from chainflow_credit.services.store import Store
from chainflow_credit.utils.date_utils import Clock
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)


class InvestmentService:

    def __init__(self, store: Store, ledger: PoolLedger, clock: Clock):
        self.store = store
        self.ledger = ledger
        self.clock = clock

    def invest(self, investor_id: str, pool_id: str, amount: Decimal) -> InvestorPosition:
        """
        Open a position in a pool; the pool's supplied and available capacity grow together.

        Raises:
            ValidationError: blank investor or amount below the pool minimum
            CapacityError: pool would exceed its maximum capacity
            NotFoundError: unknown pool
        """
        if not investor_id or not investor_id.strip():
            raise ValidationError("Investor id is required")

        with self.store.transaction() as db:
            pool = self.ledger.invest(db, pool_id, amount)
            now = self.clock()
            position = PositionRepository(db).add(
                InvestorPosition(
                    id=new_id("pos"),
                    investor_id=investor_id.strip(),
                    pool_id=pool.id,
                    amount_cents=to_cents(amount),
                    expected_return_cents=to_cents(expected_investor_return(amount, pool.apy, pool.term_days)),
                    invested_at=now,
                    matures_at=now + timedelta(days=pool.term_days),
                    withdrawn=False,
                )
            )

        logger.info(
            "Investment opened",
            extra={"position_id": position.id, "investor_id": position.investor_id, "pool_id": pool_id, "amount": str(amount)},
        )
        return position

    def withdraw_position(self, position_id: str) -> InvestorPosition:
        """
        Withdraw a position's principal; the position is kept and flagged as withdrawn.

        Raises:
            NotFoundError: unknown position
            InvalidStateError: position already withdrawn
            CapacityError: pool's uncommitted capacity cannot cover the principal
        """
        with self.store.transaction() as db:
            position = PositionRepository(db).get(position_id)
            if position is None:
                raise NotFoundError("Investor position", position_id)
            if position.withdrawn:
                raise InvalidStateError(f"Position {position_id} already withdrawn")

            self.ledger.withdraw(db, position.pool_id, position.amount)
            position.withdrawn = True
            position.withdrawn_at = self.clock()

        logger.info(
            "Position withdrawn",
            extra={"position_id": position.id, "investor_id": position.investor_id, "pool_id": position.pool_id},
        )
        return position
