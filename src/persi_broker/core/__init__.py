"""Broker core: lifecycle operations over volume claims."""

from persi_broker.core.broker import VolumeBroker
from persi_broker.core.interfaces import ClaimStore, ClaimStoreError

__all__ = [
    "VolumeBroker",
    "ClaimStore",
    "ClaimStoreError",
]
