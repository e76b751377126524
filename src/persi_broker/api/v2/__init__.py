"""Open Service Broker API v2."""

from persi_broker.api.v2.bindings import router as bindings_router
from persi_broker.api.v2.catalog import router as catalog_router
from persi_broker.api.v2.instances import router as instances_router

__all__ = [
    "bindings_router",
    "catalog_router",
    "instances_router",
]
