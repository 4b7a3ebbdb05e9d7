"""Investor Return Distributor - proportional interest allocation on repayment"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from chainflow_credit.domain.interest import allocate_interest, term_interest
from chainflow_credit.infrastructure.database.models import CreditApplication, CreditPool
from chainflow_credit.infrastructure.database.repositories import PositionRepository
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)


class ReturnDistributor:

    def distribute(self, db: Session, application: CreditApplication, pool: CreditPool) -> Decimal:
        """
        Add a completed loan's interest to the live positions of its pool.

        Each non-withdrawn position receives interest * amount / total_invested.
        A pool with no invested capital is left untouched.

        Returns:
            Total interest allocated (0 when nothing was distributed)
        """
        positions = PositionRepository(db).get_active_for_pool(pool.id)
        total_interest = term_interest(application.approved_amount, application.interest_rate, application.term_days)
        shares = allocate_interest([p.amount for p in positions], total_interest)

        if not shares:
            logger.info(
                "No invested capital, interest not distributed",
                extra={"application_id": application.id, "pool_id": pool.id},
            )
            return Decimal("0")

        for position, share in zip(positions, shares):
            position.expected_return_cents += to_cents(share)

        db.flush()
        logger.info(
            "Interest distributed",
            extra={
                "application_id": application.id,
                "pool_id": pool.id,
                "positions": len(positions),
                "total_interest": str(total_interest),
            },
        )
        return total_interest
