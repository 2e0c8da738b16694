"""Prometheus metrics for settlement views, payments and store health"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_view_counter = Counter(
    "household_settlement_views_total",
    "Monthly settlement views computed",
)

due_item_paid_counter = Counter(
    "household_due_items_paid_total",
    "Due items marked paid or unpaid",
    ["kind", "transition"],  # bill | loan, paid | unpaid
)

ledger_payment_counter = Counter(
    "household_ledger_payments_total",
    "Ledger entries appended",
    ["ledger"],  # loan | savings
)

# Store health
index_fallback_counter = Counter(
    "household_index_fallback_total",
    "Ordered queries served by the in-memory fallback",
    ["collection"],
)

concurrent_update_retry_counter = Counter(
    "household_concurrent_update_retries_total",
    "Balance writes retried after a version conflict",
    ["entity"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_due_item_paid(kind: str, is_paid: bool) -> None:
    """Record a paid-status transition on a settlement item"""
    transition = "paid" if is_paid else "unpaid"
    due_item_paid_counter.labels(kind=kind, transition=transition).inc()
