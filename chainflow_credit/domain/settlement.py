"""Settlement codes standing in for PIX payment references"""

import uuid
from datetime import datetime
from decimal import Decimal

from chainflow_credit.utils.money import to_cents


def generate_settlement_code(amount: Decimal, recipient_id: str, issued_at: datetime) -> str:
    """
    Opaque reference combining issue time, amount and recipient.

    Layout: PIX + epoch millis + amount in cents + last 4 chars of recipient
    + 8 random hex chars, upper-cased. The random suffix keeps codes unique
    for identical amount/recipient pairs issued in the same millisecond.
    """
    millis = int(issued_at.timestamp() * 1000)
    recipient = "".join(ch for ch in recipient_id if ch.isalnum())[-4:]
    suffix = uuid.uuid4().hex[:8]
    return f"PIX{millis}{to_cents(amount)}{recipient}{suffix}".upper()


def new_id(prefix: str) -> str:
    """Prefixed entity identifier, e.g. app_3f2a..."""
    return f"{prefix}_{uuid.uuid4().hex}"
