"""Claim store interface for the persistent volume claims backing instances."""

from abc import ABC, abstractmethod

from persi_broker.core.models import VolumeClaim


class ClaimStoreError(Exception):
    """Raised by claim store implementations for any failure other than not-found."""

    pass


class ClaimStore(ABC):
    """Interface for namespace scoped volume claim operations.

    Implementations:
    - PersistentVolumeClaimAPI: Kubernetes API server
    - FakeClaimStore: in-memory store for tests
    """

    @abstractmethod
    async def get(self, namespace: str, name: str) -> VolumeClaim | None:
        """Get a claim by name.

        Returns:
            The claim, or None if it does not exist.

        Raises:
            ClaimStoreError: On any other failure.
        """
        ...

    @abstractmethod
    async def create(self, namespace: str, claim: VolumeClaim) -> VolumeClaim:
        """Create a claim.

        Not idempotent: creating an existing name raises ClaimStoreError.
        """
        ...

    @abstractmethod
    async def update(self, namespace: str, claim: VolumeClaim) -> VolumeClaim:
        """Replace a claim.

        Implementations honoring resource_version reject stale writes
        with ClaimStoreError.
        """
        ...

    @abstractmethod
    async def delete(self, namespace: str, name: str) -> None:
        """Delete a claim by name."""
        ...
