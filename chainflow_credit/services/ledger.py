"""Pool Ledger - single source of truth for credit pool capacity.

Every mutation is one conditional UPDATE on the pool row. A row count of 0
means the guard (enough available, reserved or committed capacity) failed and
nothing changed.

Invariant: available + reserved + committed == total_supplied <= max_capacity

Transaction ownership: the caller opens the unit of work and passes its session.
"""

import logging
from decimal import Decimal

from sqlalchemy import update
from sqlalchemy.orm import Session

from chainflow_credit.domain.exceptions import CapacityError, NotFoundError, ValidationError
from chainflow_credit.infrastructure.database.models import CreditPool
from chainflow_credit.infrastructure.database.repositories import PoolRepository
from chainflow_credit.infrastructure.observability.metrics import record_pool_capacity
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)


def verify_pool_invariants(pool: CreditPool) -> None:
    """Raises AssertionError if the capacity accounting is broken"""
    available = pool.available_cents
    reserved = pool.reserved_cents
    committed = pool.committed_cents
    total = pool.total_supplied_cents

    assert min(available, reserved, committed) >= 0, (
        f"Negative capacity in {pool.id}: available={available}, reserved={reserved}, committed={committed}"
    )
    assert available + reserved + committed == total, (
        f"Capacity mismatch in {pool.id}: {available} + {reserved} + {committed} != {total}"
    )
    assert total <= pool.max_capacity_cents, (
        f"Pool {pool.id} over capacity: total={total} > max={pool.max_capacity_cents}"
    )


class PoolLedger:
    """Atomic capacity operations on credit pools"""

    def get(self, db: Session, pool_id: str) -> CreditPool:
        pool = PoolRepository(db).get(pool_id)
        if pool is None:
            raise NotFoundError("Credit pool", pool_id)
        return pool

    def for_term(self, db: Session, term_days: int) -> CreditPool:
        pool = PoolRepository(db).get_by_term(term_days)
        if pool is None:
            raise NotFoundError("Credit pool for term", f"{term_days}d")
        return pool

    def reserve(self, db: Session, pool_id: str, amount: Decimal, required: Decimal | None = None) -> bool:
        """
        Earmark capacity for an approved application.

        `required` is the capacity that must be available for the reservation
        to go through; it defaults to the reserved amount itself.
        """
        cents = self._positive_cents(amount)
        required_cents = max(cents, to_cents(required)) if required is not None else cents
        return self._apply(
            db,
            pool_id,
            "reserve",
            guard=[CreditPool.available_cents >= required_cents],
            values={
                "available_cents": CreditPool.available_cents - cents,
                "reserved_cents": CreditPool.reserved_cents + cents,
            },
        )

    def cancel_reservation(self, db: Session, pool_id: str, amount: Decimal) -> bool:
        cents = self._positive_cents(amount)
        return self._apply(
            db,
            pool_id,
            "cancel_reservation",
            guard=[CreditPool.reserved_cents >= cents],
            values={
                "available_cents": CreditPool.available_cents + cents,
                "reserved_cents": CreditPool.reserved_cents - cents,
            },
        )

    def commit(self, db: Session, pool_id: str, amount: Decimal) -> bool:
        """Convert a reservation into a committed (paid-out) loan"""
        cents = self._positive_cents(amount)
        return self._apply(
            db,
            pool_id,
            "commit",
            guard=[CreditPool.reserved_cents >= cents],
            values={
                "reserved_cents": CreditPool.reserved_cents - cents,
                "committed_cents": CreditPool.committed_cents + cents,
                "active_loans": CreditPool.active_loans + 1,
            },
        )

    def release(self, db: Session, pool_id: str, amount: Decimal) -> bool:
        """Return a repaid loan's principal to available capacity"""
        cents = self._positive_cents(amount)
        return self._apply(
            db,
            pool_id,
            "release",
            guard=[CreditPool.committed_cents >= cents, CreditPool.active_loans > 0],
            values={
                "committed_cents": CreditPool.committed_cents - cents,
                "available_cents": CreditPool.available_cents + cents,
                "active_loans": CreditPool.active_loans - 1,
            },
        )

    def write_off(self, db: Session, pool_id: str, amount: Decimal) -> bool:
        """Remove a defaulted loan's principal from the pool"""
        cents = self._positive_cents(amount)
        return self._apply(
            db,
            pool_id,
            "write_off",
            guard=[CreditPool.committed_cents >= cents, CreditPool.active_loans > 0],
            values={
                "committed_cents": CreditPool.committed_cents - cents,
                "total_supplied_cents": CreditPool.total_supplied_cents - cents,
                "active_loans": CreditPool.active_loans - 1,
            },
        )

    def invest(self, db: Session, pool_id: str, amount: Decimal) -> CreditPool:
        """
        Add investor capital to a pool.

        Raises:
            ValidationError: amount below the pool's minimum investment
            CapacityError: pool would exceed its maximum capacity
        """
        pool = self.get(db, pool_id)
        cents = self._positive_cents(amount)
        if cents < pool.min_investment_cents:
            raise ValidationError(f"Amount below minimum investment of {pool.min_investment} for {pool_id}")

        applied = self._apply(
            db,
            pool_id,
            "invest",
            guard=[CreditPool.total_supplied_cents + cents <= CreditPool.max_capacity_cents],
            values={
                "total_supplied_cents": CreditPool.total_supplied_cents + cents,
                "available_cents": CreditPool.available_cents + cents,
            },
        )
        if not applied:
            raise CapacityError(f"Pool {pool_id} cannot take {amount}: maximum capacity reached")
        return self.get(db, pool_id)

    def withdraw(self, db: Session, pool_id: str, amount: Decimal) -> CreditPool:
        """
        Take investor capital out of a pool's available capacity.

        Raises:
            CapacityError: not enough uncommitted capacity
        """
        cents = self._positive_cents(amount)
        applied = self._apply(
            db,
            pool_id,
            "withdraw",
            guard=[CreditPool.available_cents >= cents],
            values={
                "total_supplied_cents": CreditPool.total_supplied_cents - cents,
                "available_cents": CreditPool.available_cents - cents,
            },
        )
        if not applied:
            raise CapacityError(f"Pool {pool_id} has insufficient available capacity to withdraw {amount}")
        return self.get(db, pool_id)

    def _apply(self, db: Session, pool_id: str, operation: str, guard: list, values: dict) -> bool:
        self.get(db, pool_id)

        result = db.execute(
            update(CreditPool)
            .where(CreditPool.id == pool_id, *guard)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            logger.info("Ledger guard rejected operation", extra={"pool_id": pool_id, "operation": operation})
            return False

        pool = PoolRepository(db).get(pool_id, refresh=True)
        verify_pool_invariants(pool)
        record_pool_capacity(pool.id, pool.available_capacity)
        logger.debug(
            "Ledger %s applied: pool=%s, available=%d, reserved=%d, committed=%d",
            operation, pool.id, pool.available_cents, pool.reserved_cents, pool.committed_cents,
        )
        return True

    @staticmethod
    def _positive_cents(amount: Decimal) -> int:
        cents = to_cents(amount)
        if cents <= 0:
            raise ValidationError(f"Amount must be positive, got {amount}")
        return cents
