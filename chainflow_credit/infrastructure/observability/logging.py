"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "chainflow-credit"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_decision(
    application_id: str,
    tax_id: str,
    approved: bool,
    business_score: float,
    approved_amount: Decimal | None,
    duration_ms: float,
) -> None:
    """Log structured decision outcome for analysis"""
    logging.getLogger("chainflow_credit.decisions").info(
        "Decision completed",
        extra={
            "application_id": application_id,
            "tax_id": tax_id,
            "step": "decision_complete",
            "approval_outcome": "approved" if approved else "rejected",
            "business_score": business_score,
            "approved_amount": str(approved_amount) if approved_amount is not None else None,
            "duration_ms": duration_ms,
        },
    )


def log_payment_event(step: str, entity_id: str, application_id: str, amount: Decimal, **fields: Any) -> None:
    """Log a supplier payout or buyer charge milestone"""
    logging.getLogger("chainflow_credit.payments").info(
        "Payment event",
        extra={
            "step": step,
            "entity_id": entity_id,
            "application_id": application_id,
            "amount": str(amount),
            **fields,
        },
    )
