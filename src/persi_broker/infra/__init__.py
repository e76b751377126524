"""Broker infrastructure layer."""

from persi_broker.infra.kube import KubeAPIError, KubeClient, PersistentVolumeClaimAPI
from persi_broker.infra.kubeconfig import (
    KubeConfigError,
    credential_strategies,
    resolve_credentials,
)

__all__ = [
    # Kubernetes API
    "KubeAPIError",
    "KubeClient",
    "PersistentVolumeClaimAPI",
    # Credentials
    "KubeConfigError",
    "credential_strategies",
    "resolve_credentials",
]
