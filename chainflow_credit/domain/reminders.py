"""Reminder and overdue timing for buyer charges"""

from datetime import datetime, timedelta
from typing import List

from chainflow_credit.domain.models import Reminder

REMINDER_OFFSETS = (
    (timedelta(days=3), "3_days_before"),
    (timedelta(days=1), "1_day_before"),
    (timedelta(0), "due_today"),
)

OVERDUE_GRACE = timedelta(days=1)


def reminder_schedule(due_at: datetime, issued_at: datetime) -> List[Reminder]:
    """
    Reminders before and on the due date.

    Any reminder that would fire at or before issue time is skipped.
    """
    reminders = []
    for offset, label in REMINDER_OFFSETS:
        fire_at = due_at - offset
        if fire_at > issued_at:
            reminders.append(Reminder(fire_at=fire_at, label=label))
    return reminders


def overdue_at(due_at: datetime) -> datetime:
    """Unpaid charges turn overdue one day after the due date"""
    return due_at + OVERDUE_GRACE
