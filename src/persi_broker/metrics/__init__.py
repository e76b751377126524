"""Broker metrics."""

from persi_broker.metrics.collector import (
    BROKER_OPERATION_DURATION,
    BROKER_OPERATIONS,
    BROKER_STORE_ERRORS,
)

__all__ = [
    "BROKER_OPERATIONS",
    "BROKER_OPERATION_DURATION",
    "BROKER_STORE_ERRORS",
]
