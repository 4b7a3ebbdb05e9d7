"""Unit tests for charge interest, investor allocation, settlement codes and reminder timing"""

from datetime import datetime, timedelta
from decimal import Decimal
from chainflow_credit.domain.interest import (
    allocate_interest,
    charge_amount,
    due_date,
    expected_investor_return,
    term_interest,
)
from chainflow_credit.domain.reminders import overdue_at, reminder_schedule
from chainflow_credit.domain.settlement import generate_settlement_code, new_id
from chainflow_credit.utils.money import format_currency, from_cents, to_cents


def test_charge_amount_prorates_interest_over_term():
    """8000 * 2.65% * 30/365 = 17.42"""
    assert charge_amount(Decimal("8000"), 2.65, 30) == Decimal("8017.42")


def test_term_interest_is_unrounded():
    interest = term_interest(Decimal("8000"), 2.65, 30)
    assert Decimal("17.424") < interest < Decimal("17.425")


def test_due_date_adds_term_days():
    start = datetime(2025, 1, 31, 9, 30)
    assert due_date(start, 30) == datetime(2025, 3, 2, 9, 30)


def test_expected_investor_return():
    """1000 at 9.2% APY for 30 days"""
    assert expected_investor_return(Decimal("1000"), 9.2, 30) == Decimal("1007.56")


def test_allocate_interest_proportionally():
    shares = allocate_interest([Decimal("300"), Decimal("700")], Decimal("100"))
    assert shares == [Decimal("30"), Decimal("70")]


def test_allocate_interest_with_no_stakes():
    assert allocate_interest([], Decimal("100")) == []
    assert allocate_interest([Decimal("0")], Decimal("100")) == []


def test_reminder_schedule_before_and_on_due_date():
    due = datetime(2025, 4, 2, 12, 0)
    reminders = reminder_schedule(due, issued_at=due - timedelta(days=30))

    assert [r.label for r in reminders] == ["3_days_before", "1_day_before", "due_today"]
    assert [r.fire_at for r in reminders] == [
        due - timedelta(days=3),
        due - timedelta(days=1),
        due,
    ]


def test_reminder_schedule_skips_reminders_already_past():
    due = datetime(2025, 4, 2, 12, 0)
    reminders = reminder_schedule(due, issued_at=due - timedelta(days=2))

    assert [r.label for r in reminders] == ["1_day_before", "due_today"]


def test_overdue_one_day_after_due():
    due = datetime(2025, 4, 2, 12, 0)
    assert overdue_at(due) == datetime(2025, 4, 3, 12, 0)


def test_settlement_code_layout():
    issued_at = datetime(2025, 3, 3, 12, 0)
    code = generate_settlement_code(Decimal("8017.42"), "12.345.678/0001-90", issued_at)

    assert code.startswith("PIX")
    assert "801742" in code
    assert "0190" in code
    assert code == code.upper()


def test_settlement_codes_are_unique():
    issued_at = datetime(2025, 3, 3, 12, 0)
    codes = {generate_settlement_code(Decimal("100"), "sup-1", issued_at) for _ in range(50)}
    assert len(codes) == 50


def test_new_id_prefix():
    assert new_id("app").startswith("app_")


def test_cents_conversion_rounds_half_up():
    assert to_cents(Decimal("1234.565")) == 123457
    assert from_cents(123457) == Decimal("1234.57")


def test_format_currency():
    assert format_currency(Decimal("-1234.5")) == "-R$ 1,234.50"
