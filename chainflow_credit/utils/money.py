"""Currency helpers: Decimal amounts at the edges, integer cents in storage"""

from decimal import Decimal, ROUND_HALF_UP

CENT = Decimal("0.01")


def quantize_currency(amount: Decimal) -> Decimal:
    """Round to two decimals, half-up"""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def to_cents(amount: Decimal) -> int:
    """Decimal("1234.565") -> 123457"""
    return int(quantize_currency(amount) * 100)


def from_cents(cents: int) -> Decimal:
    """123457 -> Decimal("1234.57")"""
    return (Decimal(cents) / 100).quantize(CENT)


def format_currency(amount: Decimal, symbol: str = "R$") -> str:
    """Decimal("-1234.5") -> '-R$ 1,234.50'"""
    value = quantize_currency(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol} {abs(value):,.2f}"
