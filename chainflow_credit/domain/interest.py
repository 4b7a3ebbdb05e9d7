"""Interest arithmetic for buyer charges and investor returns"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import List, Sequence

from chainflow_credit.utils.money import quantize_currency

DAYS_PER_YEAR = 365


def term_interest(principal: Decimal, interest_rate: float, term_days: int) -> Decimal:
    """
    Simple interest prorated over the credit term.

    interest = principal * rate/100 * term/365
    """
    rate = Decimal(str(interest_rate))
    return principal * rate / 100 * term_days / DAYS_PER_YEAR


def charge_amount(principal: Decimal, interest_rate: float, term_days: int) -> Decimal:
    """
    Amount the buyer pays on the due date, rounded to cents.

    Example:
        8000.00 at 2.65% for 30 days
        8000 * 0.0265 * 30/365 = 17.424... -> 8017.42
    """
    return quantize_currency(principal + term_interest(principal, interest_rate, term_days))


def due_date(start: datetime, term_days: int) -> datetime:
    return start + timedelta(days=term_days)


def expected_investor_return(amount: Decimal, apy: float, term_days: int) -> Decimal:
    """Principal plus APY prorated over the pool term"""
    return quantize_currency(amount * (1 + Decimal(str(apy)) * term_days / (DAYS_PER_YEAR * 100)))


def allocate_interest(stakes: Sequence[Decimal], total_interest: Decimal) -> List[Decimal]:
    """
    Split interest across stakes proportionally.

    Returns one share per stake, in order. An empty or zero-sum stake list
    yields no allocation at all.

    Example:
        stakes [300, 700], interest 100 -> [30, 70]
    """
    total_stake = sum(stakes, Decimal("0"))
    if total_stake <= 0:
        return []

    return [total_interest * stake / total_stake for stake in stakes]
