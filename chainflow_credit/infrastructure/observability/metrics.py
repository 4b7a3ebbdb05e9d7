"""Prometheus metrics for approval rates, pool capacity, payments and webhook performance"""

from decimal import Decimal

from prometheus_client import Counter, Histogram, Gauge

# Decision metrics
decision_counter = Counter(
    "chainflow_decision_total",
    "Total credit decisions made",
    ["outcome"],  # approved | rejected | ineligible
)

approved_amount_bucket_counter = Counter(
    "chainflow_approved_amount_bucket",
    "Approved credit amounts by bucket",
    ["bucket"],  # 0, 0-5k, 5k-20k, 20k-100k, 100k+
)

# Payment metrics
supplier_payment_counter = Counter(
    "chainflow_supplier_payments_total",
    "Supplier payout orders by resulting status",
    ["status"],  # pending | paid | failed
)

buyer_charge_counter = Counter(
    "chainflow_buyer_charges_total",
    "Buyer charges by resulting status",
    ["status"],  # pending | paid | overdue | cancelled
)

reminder_counter = Counter(
    "chainflow_payment_reminders_total",
    "Payment reminders sent to buyers",
    ["timeframe"],
)

default_counter = Counter(
    "chainflow_defaults_total",
    "Applications moved to defaulted after an overdue charge",
)

# Pool capacity
pool_available_gauge = Gauge(
    "chainflow_pool_available_capacity",
    "Uncommitted capacity per credit pool",
    ["pool_id"],
)

# Webhook metrics
webhook_latency_histogram = Histogram(
    "webhook_latency_seconds",
    "Notification webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

webhook_failure_counter = Counter(
    "webhook_failures_total",
    "Failed webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(approved: bool, eligible: bool, approved_amount: Decimal | None) -> None:
    """Record decision metrics for monitoring approval rates and amount distribution"""
    if not eligible:
        outcome = "ineligible"
    else:
        outcome = "approved" if approved else "rejected"
    decision_counter.labels(outcome=outcome).inc()

    amount = approved_amount or Decimal("0")
    if amount == 0:
        bucket = "0"
    elif amount <= 5_000:
        bucket = "0-5k"
    elif amount <= 20_000:
        bucket = "5k-20k"
    elif amount <= 100_000:
        bucket = "20k-100k"
    else:
        bucket = "100k+"

    approved_amount_bucket_counter.labels(bucket=bucket).inc()


def record_pool_capacity(pool_id: str, available: Decimal) -> None:
    pool_available_gauge.labels(pool_id=pool_id).set(float(available))
