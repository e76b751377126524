"""Broker HTTP API."""

from persi_broker.api.health import router as health_router
from persi_broker.api.v2 import bindings_router, catalog_router, instances_router

__all__ = [
    "health_router",
    "catalog_router",
    "instances_router",
    "bindings_router",
]
