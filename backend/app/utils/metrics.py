"""
Prometheus collectors for the HTTP surface and the money flows.

Everything registers on ``metrics_registry`` rather than the process
default so repeated app imports (tests, reloaders) never collide.
"""

import re
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client.core import CollectorRegistry

metrics_registry = CollectorRegistry()

_ID_SEGMENT = re.compile(r"/\d+(?=/|$)")

http_requests = Counter(
    "http_requests",
    "HTTP requests served",
    ["path", "method", "status"],
    registry=metrics_registry,
)

http_request_latency = Histogram(
    "http_request_duration_seconds",
    "Time spent serving HTTP requests",
    ["path", "method"],
    registry=metrics_registry,
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

rate_limited = Counter(
    "rate_limited",
    "Requests refused by the per-client rate limiter",
    ["group"],
    registry=metrics_registry,
)

ledger_invariant_violations = Counter(
    "ledger_invariant_violations",
    "Wallets whose stored figures disagreed with their transaction history",
    registry=metrics_registry,
)

wallet_transactions = Counter(
    "wallet_transactions",
    "Transactions reaching a status, by type",
    ["type", "status"],
    registry=metrics_registry,
)

profit_distributions = Counter(
    "profit_distributions",
    "Profit distribution attempts",
    ["result"],
    registry=metrics_registry,
)


def route_label(path: str) -> str:
    """Collapse numeric ids so /admin/profits/42/distribute becomes /admin/profits/{id}/distribute"""
    return _ID_SEGMENT.sub("/{id}", path)


def record_http_request(path: str, method: str, status_code: int, duration_seconds: float) -> None:
    label = route_label(path)
    verb = method.upper()
    http_requests.labels(path=label, method=verb, status=str(status_code)).inc()
    http_request_latency.labels(path=label, method=verb).observe(duration_seconds)


def record_rate_limit_exceeded(group: str) -> None:
    rate_limited.labels(group=group).inc()


def record_ledger_invariant_violation() -> None:
    ledger_invariant_violations.inc()


def record_wallet_transaction(transaction_type: str, status: str) -> None:
    wallet_transactions.labels(type=transaction_type, status=status).inc()


def record_profit_distribution(result: str) -> None:
    # result: distributed or failed
    profit_distributions.labels(result=result).inc()


def get_metrics_output() -> bytes:
    return generate_latest(metrics_registry)


__all__ = [
    "CONTENT_TYPE_LATEST",
    "metrics_registry",
    "get_metrics_output",
    "route_label",
    "record_http_request",
    "record_rate_limit_exceeded",
    "record_ledger_invariant_violation",
    "record_wallet_transaction",
    "record_profit_distribution",
]
