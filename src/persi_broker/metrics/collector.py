"""Prometheus metrics definitions for the broker.

Broker metrics track the lifecycle operations and the claim store calls
they make:
- Operation outcomes (success, conflict, error) and latency
- Store failures per store call (get, create, update, delete)
"""

from prometheus_client import Counter, Histogram

# =============================================================================
# Histogram Buckets
# =============================================================================
# Operations are one or two API server round trips (5ms ~ 30s)
_BUCKETS_API = (
    0.005, 0.01, 0.025, 0.05, 0.1,
    0.25, 0.5, 1, 2.5, 5,
    10, 30,
)  # 12 buckets

OPERATIONS = (
    "catalog",
    "provision",
    "deprovision",
    "bind",
    "unbind",
    "get_instance",
    "get_binding",
)

STORE_CALLS = ("get", "create", "update", "delete")

# =============================================================================
# Operation Metrics
# =============================================================================

BROKER_OPERATIONS = Counter(
    "persi_broker_operations_total",
    "Total broker lifecycle operations",
    ["operation", "outcome"],  # outcome: success, conflict, error
)

BROKER_OPERATION_DURATION = Histogram(
    "persi_broker_operation_duration_seconds",
    "Duration of broker lifecycle operations",
    ["operation"],
    buckets=_BUCKETS_API,
)

# =============================================================================
# Store Metrics
# =============================================================================

BROKER_STORE_ERRORS = Counter(
    "persi_broker_store_errors_total",
    "Total claim store call failures (not-found excluded)",
    ["call"],
)


def _init_metrics() -> None:
    """Initialize labeled metrics with zero values."""
    for op in OPERATIONS:
        BROKER_OPERATION_DURATION.labels(operation=op)
        for outcome in ("success", "conflict", "error"):
            BROKER_OPERATIONS.labels(operation=op, outcome=outcome)

    for call in STORE_CALLS:
        BROKER_STORE_ERRORS.labels(call=call)


_init_metrics()
