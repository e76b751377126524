"""Kubernetes API client for the broker.

Provides async access to the core/v1 PersistentVolumeClaim endpoints
through kubernetes_asyncio.
"""

import asyncio
import json
import logging
from collections.abc import Awaitable
from typing import Any

import aiohttp
from kubernetes_asyncio.client import ApiClient, Configuration, CoreV1Api
from kubernetes_asyncio.client.exceptions import ApiException

from persi_broker.core.interfaces import ClaimStore, ClaimStoreError
from persi_broker.core.models import VolumeClaim

logger = logging.getLogger(__name__)


class KubeAPIError(ClaimStoreError):
    """Kubernetes API call failed (transport error or non-2xx response)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        if status_code:
            message = f"{message} ({' '.join(filter(None, (str(status_code), reason)))})"
        super().__init__(message)

    @classmethod
    def from_api_exception(cls, action: str, exc: ApiException) -> "KubeAPIError":
        """Build from an ApiException, preferring the Status message and reason."""
        body = exc.body
        if isinstance(body, bytes):
            body = body.decode(errors="replace")
        message, reason = body or exc.reason or "", exc.reason or ""
        try:
            status = json.loads(body) if body else None
        except ValueError:
            status = None
        if isinstance(status, dict):
            message = status.get("message") or message
            reason = status.get("reason") or reason
        return cls(f"{action}: {message}", exc.status, reason)


# =============================================================================
# Kubernetes Client
# =============================================================================


class KubeClient:
    """Async Kubernetes API client."""

    def __init__(self, configuration: Configuration, timeout: float = 30.0) -> None:
        self._configuration = configuration
        self._timeout = timeout
        self._api_client: ApiClient | None = None
        self._core: CoreV1Api | None = None

    @property
    def timeout(self) -> float:
        return self._timeout

    async def core_v1(self) -> CoreV1Api:
        """Get or create the core/v1 API."""
        if self._core is None:
            self._api_client = ApiClient(configuration=self._configuration)
            self._core = CoreV1Api(self._api_client)
        return self._core

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._api_client is not None:
            await self._api_client.close()
            self._api_client = None
            self._core = None


# =============================================================================
# PersistentVolumeClaim API
# =============================================================================


class PersistentVolumeClaimAPI(ClaimStore):
    """Claim store backed by the Kubernetes API server."""

    def __init__(self, client: KubeClient) -> None:
        self._kube = client

    async def _call(self, action: str, call: Awaitable[Any]) -> Any:
        try:
            return await call
        except ApiException as e:
            raise KubeAPIError.from_api_exception(action, e) from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise KubeAPIError(f"{action}: {e}") from e

    @staticmethod
    def _to_claim(core: CoreV1Api, obj: Any) -> VolumeClaim:
        return VolumeClaim.from_api(core.api_client.sanitize_for_serialization(obj))

    async def get(self, namespace: str, name: str) -> VolumeClaim | None:
        """Get a claim; None on 404."""
        core = await self._kube.core_v1()
        try:
            obj = await self._call(
                "get persistent volume claim",
                core.read_namespaced_persistent_volume_claim(
                    name=name, namespace=namespace, _request_timeout=self._kube.timeout
                ),
            )
        except KubeAPIError as e:
            if e.status_code == 404:
                return None
            raise
        return self._to_claim(core, obj)

    async def create(self, namespace: str, claim: VolumeClaim) -> VolumeClaim:
        """Create a claim (409 AlreadyExists is an error)."""
        core = await self._kube.core_v1()
        obj = await self._call(
            "create persistent volume claim",
            core.create_namespaced_persistent_volume_claim(
                namespace=namespace, body=claim.to_api(), _request_timeout=self._kube.timeout
            ),
        )
        logger.debug("Created persistent volume claim: %s/%s", namespace, claim.name)
        return self._to_claim(core, obj)

    async def update(self, namespace: str, claim: VolumeClaim) -> VolumeClaim:
        """Replace a claim; a stale resourceVersion yields 409 Conflict."""
        core = await self._kube.core_v1()
        obj = await self._call(
            "update persistent volume claim",
            core.replace_namespaced_persistent_volume_claim(
                name=claim.name,
                namespace=namespace,
                body=claim.to_api(),
                _request_timeout=self._kube.timeout,
            ),
        )
        return self._to_claim(core, obj)

    async def delete(self, namespace: str, name: str) -> None:
        """Delete a claim."""
        core = await self._kube.core_v1()
        await self._call(
            "delete persistent volume claim",
            core.delete_namespaced_persistent_volume_claim(
                name=name, namespace=namespace, _request_timeout=self._kube.timeout
            ),
        )
        logger.debug("Deleted persistent volume claim: %s/%s", namespace, name)
