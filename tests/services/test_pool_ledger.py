"""Pool ledger capacity operations against the seeded pools"""

import asyncio
import pytest
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from chainflow_credit.domain.exceptions import CapacityError, NotFoundError, ValidationError
from chainflow_credit.domain.models import CreditRequest
from chainflow_credit.infrastructure.database.models import CreditPool
from chainflow_credit.services.facility import CreditFacility
from chainflow_credit.services.ledger import verify_pool_invariants

POOL = "pool-30d"


def snapshot(facility: CreditFacility, pool_id: str = POOL) -> CreditPool:
    with facility.store.transaction() as db:
        return facility.ledger.get(db, pool_id)


def test_seeded_pools(facility: CreditFacility):
    pools = facility.queries.list_pools()

    assert [p.id for p in pools] == ["pool-30d", "pool-60d", "pool-90d"]
    pool = pools[0]
    assert pool.total_supplied == Decimal("250000.00")
    assert pool.available_capacity == Decimal("150000.00")
    assert pool.committed_capacity == Decimal("100000.00")
    assert pool.reserved_capacity == Decimal("0.00")
    assert pool.utilization == 40.0
    for p in pools:
        verify_pool_invariants(p)


def test_seeding_is_skipped_when_pools_exist(facility: CreditFacility):
    from chainflow_credit.infrastructure.database.seed import seed_default_pools

    with facility.store.transaction() as db:
        assert seed_default_pools(db) == 0
    assert len(facility.queries.list_pools()) == 3


def test_reserve_moves_available_to_reserved(facility: CreditFacility):
    with facility.store.transaction() as db:
        assert facility.ledger.reserve(db, POOL, Decimal("8000")) is True

    pool = snapshot(facility)
    assert pool.available_capacity == Decimal("142000.00")
    assert pool.reserved_capacity == Decimal("8000.00")
    assert pool.total_supplied == Decimal("250000.00")


def test_reserve_rejected_when_required_exceeds_available(facility: CreditFacility):
    with facility.store.transaction() as db:
        applied = facility.ledger.reserve(db, POOL, Decimal("140000"), required=Decimal("150000.01"))

    assert applied is False
    pool = snapshot(facility)
    assert pool.available_capacity == Decimal("150000.00")
    assert pool.reserved_capacity == Decimal("0.00")


def test_commit_and_release_round_trip(facility: CreditFacility):
    with facility.store.transaction() as db:
        facility.ledger.reserve(db, POOL, Decimal("5000"))
        assert facility.ledger.commit(db, POOL, Decimal("5000")) is True

    pool = snapshot(facility)
    assert pool.reserved_capacity == Decimal("0.00")
    assert pool.committed_capacity == Decimal("105000.00")
    assert pool.active_loans == 13

    with facility.store.transaction() as db:
        assert facility.ledger.release(db, POOL, Decimal("5000")) is True

    pool = snapshot(facility)
    assert pool.committed_capacity == Decimal("100000.00")
    assert pool.available_capacity == Decimal("150000.00")
    assert pool.active_loans == 12


def test_commit_requires_reservation(facility: CreditFacility):
    with facility.store.transaction() as db:
        assert facility.ledger.commit(db, POOL, Decimal("1")) is False


def test_cancel_reservation(facility: CreditFacility):
    with facility.store.transaction() as db:
        facility.ledger.reserve(db, POOL, Decimal("3000"))
        assert facility.ledger.cancel_reservation(db, POOL, Decimal("1000")) is True
        assert facility.ledger.cancel_reservation(db, POOL, Decimal("5000")) is False

    pool = snapshot(facility)
    assert pool.reserved_capacity == Decimal("2000.00")
    assert pool.available_capacity == Decimal("148000.00")


def test_write_off_shrinks_supplied_capital(facility: CreditFacility):
    with facility.store.transaction() as db:
        assert facility.ledger.write_off(db, POOL, Decimal("10000")) is True

    pool = snapshot(facility)
    assert pool.total_supplied == Decimal("240000.00")
    assert pool.committed_capacity == Decimal("90000.00")
    assert pool.available_capacity == Decimal("150000.00")
    assert pool.active_loans == 11


def test_invest_and_withdraw(facility: CreditFacility):
    with facility.store.transaction() as db:
        facility.ledger.invest(db, POOL, Decimal("50000"))

    pool = snapshot(facility)
    assert pool.total_supplied == Decimal("300000.00")
    assert pool.available_capacity == Decimal("200000.00")

    with facility.store.transaction() as db:
        facility.ledger.withdraw(db, POOL, Decimal("50000"))

    assert snapshot(facility).total_supplied == Decimal("250000.00")


def test_invest_below_minimum(facility: CreditFacility):
    with pytest.raises(ValidationError):
        with facility.store.transaction() as db:
            facility.ledger.invest(db, POOL, Decimal("999.99"))


def test_invest_beyond_max_capacity(facility: CreditFacility):
    """pool-30d: 250000 supplied, 400000 max"""
    with pytest.raises(CapacityError):
        with facility.store.transaction() as db:
            facility.ledger.invest(db, POOL, Decimal("150000.01"))

    assert snapshot(facility).total_supplied == Decimal("250000.00")


def test_withdraw_limited_to_available(facility: CreditFacility):
    with pytest.raises(CapacityError):
        with facility.store.transaction() as db:
            facility.ledger.withdraw(db, POOL, Decimal("150000.01"))


def test_non_positive_amounts_rejected(facility: CreditFacility):
    with pytest.raises(ValidationError):
        with facility.store.transaction() as db:
            facility.ledger.reserve(db, POOL, Decimal("0"))


def test_unknown_pool(facility: CreditFacility):
    with pytest.raises(NotFoundError):
        with facility.store.transaction() as db:
            facility.ledger.reserve(db, "pool-45d", Decimal("10"))


def test_concurrent_submissions_never_overdraw_pool(facility: CreditFacility):
    """pool-90d has 180000 available: only three 50000 loans fit"""
    request = CreditRequest(
        company_name="Acme Ltda",
        tax_id="12.345.678/0001-90",
        monthly_revenue=Decimal("1000000"),
        requested_amount=Decimal("50000"),
        term_days=90,
        purpose="stock",
    )

    def submit() -> str:
        try:
            return asyncio.run(facility.submit(request)).status
        except CapacityError:
            return "capacity"

    with ThreadPoolExecutor(max_workers=8) as executor:
        outcomes = list(executor.map(lambda _: submit(), range(8)))

    assert sorted(outcomes) == ["approved"] * 3 + ["capacity"] * 5
    pool = snapshot(facility, "pool-90d")
    assert pool.available_capacity == Decimal("30000.00")
    assert pool.reserved_capacity == Decimal("150000.00")
    verify_pool_invariants(pool)
