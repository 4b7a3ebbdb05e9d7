"""Default credit pools loaded into an empty database"""

import logging
from decimal import Decimal

from sqlalchemy.orm import Session

from chainflow_credit.domain.models import RiskTier
from chainflow_credit.infrastructure.database.models import CreditPool
from chainflow_credit.infrastructure.database.repositories import PoolRepository
from chainflow_credit.utils.money import to_cents

logger = logging.getLogger(__name__)

DEFAULT_POOLS = [
    {
        "id": "pool-30d",
        "name": "Credit Pool 30D",
        "term_days": 30,
        "apy": 9.2,
        "total_supplied": Decimal("250000"),
        "available": Decimal("150000"),
        "max_capacity": Decimal("400000"),
        "min_investment": Decimal("1000"),
        "risk_tier": RiskTier.LOW,
        "active_loans": 12,
        "default_rate": 0.8,
        "business_score": 8.5,
    },
    {
        "id": "pool-60d",
        "name": "Credit Pool 60D",
        "term_days": 60,
        "apy": 10.5,
        "total_supplied": Decimal("380000"),
        "available": Decimal("220000"),
        "max_capacity": Decimal("600000"),
        "min_investment": Decimal("1000"),
        "risk_tier": RiskTier.LOW,
        "active_loans": 18,
        "default_rate": 1.2,
        "business_score": 9.1,
    },
    {
        "id": "pool-90d",
        "name": "Credit Pool 90D",
        "term_days": 90,
        "apy": 8.7,
        "total_supplied": Decimal("520000"),
        "available": Decimal("180000"),
        "max_capacity": Decimal("700000"),
        "min_investment": Decimal("1000"),
        "risk_tier": RiskTier.MEDIUM,
        "active_loans": 25,
        "default_rate": 2.1,
        "business_score": 7.8,
    },
]


def build_pool(definition: dict) -> CreditPool:
    """Capital not available is already committed to existing loans"""
    total = to_cents(definition["total_supplied"])
    available = to_cents(definition["available"])
    return CreditPool(
        id=definition["id"],
        name=definition["name"],
        term_days=definition["term_days"],
        apy=definition["apy"],
        total_supplied_cents=total,
        available_cents=available,
        reserved_cents=0,
        committed_cents=total - available,
        max_capacity_cents=to_cents(definition["max_capacity"]),
        min_investment_cents=to_cents(definition["min_investment"]),
        risk_tier=RiskTier(definition["risk_tier"]).value,
        active_loans=definition["active_loans"],
        default_rate=definition["default_rate"],
        business_score=definition["business_score"],
    )


def seed_default_pools(db: Session) -> int:
    """Insert the default pools when none exist. Returns number of pools created."""
    pool_repo = PoolRepository(db)
    if pool_repo.count() > 0:
        return 0

    for definition in DEFAULT_POOLS:
        pool_repo.add(build_pool(definition))

    logger.info("Seeded default credit pools", extra={"pool_count": len(DEFAULT_POOLS)})
    return len(DEFAULT_POOLS)
