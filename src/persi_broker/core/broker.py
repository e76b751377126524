"""Volume broker: service broker lifecycle over persistent volume claims.

An instance is one claim named after the instance id; a binding is one
annotation on that claim. The claim store is the only source of truth:
every operation re-reads the claim, nothing is cached between calls.

Annotations are updated read-modify-write. A concurrent writer can make the
update fail (the API server rejects a stale resourceVersion); the failure is
reported as BindFailed/UnbindFailed and not retried.
"""

import functools
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from persi_broker.config import BrokerConfig
from persi_broker.core.catalog import build_catalog, resolve_plan
from persi_broker.core.interfaces import ClaimStore, ClaimStoreError
from persi_broker.core.models import (
    BindDetails,
    Binding,
    BindingDetails,
    DeprovisionDetails,
    DeprovisionServiceSpec,
    InstanceDetails,
    LastOperation,
    ProvisionDetails,
    ProvisionedServiceSpec,
    Service,
    SharedDevice,
    UnbindDetails,
    UnbindSpec,
    UpdateServiceSpec,
    VolumeClaim,
    VolumeMount,
)
from persi_broker.core.parameters import (
    DEFAULT_ACCESS_MODE,
    BindParameters,
    ProvisionParameters,
    parse_parameters,
)
from persi_broker.core.quantity import parse_size
from persi_broker.errors import (
    BindFailedError,
    BindingAlreadyExistsError,
    BindingDoesNotExistError,
    BrokerError,
    DeprovisionFailedError,
    InstanceAlreadyExistsError,
    InstanceDoesNotExistError,
    InvalidResourceStateError,
    LookupFailedError,
    PlanHasNoDefaultSizeError,
    ProvisionFailedError,
    StoreOperationError,
    UnbindFailedError,
)
from persi_broker.logging_schema import LogEvent
from persi_broker.metrics import (
    BROKER_OPERATION_DURATION,
    BROKER_OPERATIONS,
    BROKER_STORE_ERRORS,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

LABEL_SERVICE_ID = "service-id"
LABEL_PLAN_ID = "plan-id"
LABEL_ORGANIZATION_ID = "organization-id"
LABEL_SPACE_ID = "space-id"


def _tracked(operation: str) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Record outcome and latency of a broker operation."""

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            start = time.monotonic()
            outcome = "error"
            try:
                result = await func(*args, **kwargs)
                outcome = "success"
                return result
            except StoreOperationError:
                raise
            except BrokerError:
                outcome = "conflict"
                raise
            finally:
                BROKER_OPERATION_DURATION.labels(operation=operation).observe(
                    time.monotonic() - start
                )
                BROKER_OPERATIONS.labels(operation=operation, outcome=outcome).inc()

        return wrapper

    return decorator


class VolumeBroker:
    """Stateless broker facade over a claim store.

    Args:
        config: Broker config (catalog, namespace, annotation naming).
        store: Claim store scoped by namespace.
    """

    def __init__(self, config: BrokerConfig, store: ClaimStore) -> None:
        self._config = config
        self._store = store

    @property
    def config(self) -> BrokerConfig:
        return self._config

    @property
    def namespace(self) -> str:
        return self._config.namespace

    def binding_annotation(self, binding_id: str) -> str:
        return f"{self._config.binding_annotation_prefix}{binding_id}"

    # =========================================================================
    # Existence check
    # =========================================================================

    async def exists(
        self,
        instance_id: str,
        failure: type[StoreOperationError] = LookupFailedError,
        context: str = "error getting instance",
    ) -> tuple[bool, VolumeClaim | None]:
        """Fetch the claim backing an instance.

        Not-found is a normal (False, None) result.

        Raises:
            StoreOperationError: `failure` wrapping any other store error.
        """
        try:
            claim = await self._store.get(self.namespace, instance_id)
        except ClaimStoreError as e:
            BROKER_STORE_ERRORS.labels(call="get").inc()
            logger.error(
                "Failed to get persistent volume claim",
                extra={
                    "event": LogEvent.STORE_FAILED,
                    "instance_id": instance_id,
                    "call": "get",
                    "error": str(e),
                },
            )
            raise failure(f"{context}: error getting persistent volume claim: {e}") from e

        return claim is not None, claim

    async def _require_instance(
        self,
        instance_id: str,
        failure: type[StoreOperationError],
        context: str,
    ) -> VolumeClaim:
        found, claim = await self.exists(instance_id, failure, context)
        if not found or claim is None:
            raise InstanceDoesNotExistError()
        return claim

    async def _store_call(
        self,
        call: str,
        coro: Awaitable[T],
        failure: type[StoreOperationError],
        context: str,
        instance_id: str,
    ) -> T:
        try:
            return await coro
        except ClaimStoreError as e:
            BROKER_STORE_ERRORS.labels(call=call).inc()
            logger.error(
                "Claim store call failed",
                extra={
                    "event": LogEvent.STORE_FAILED,
                    "instance_id": instance_id,
                    "call": call,
                    "error": str(e),
                },
            )
            raise failure(f"{context}: {e}") from e

    # =========================================================================
    # Catalog
    # =========================================================================

    @_tracked("catalog")
    async def services(self) -> list[Service]:
        """List the offered service with its plans."""
        return build_catalog(self._config.service)

    # =========================================================================
    # Instances
    # =========================================================================

    @_tracked("provision")
    async def provision(
        self, instance_id: str, details: ProvisionDetails
    ) -> ProvisionedServiceSpec:
        """Create the claim backing a new instance."""
        plan = resolve_plan(self._config.service, details.plan_id)

        found, _ = await self.exists(instance_id, ProvisionFailedError, "error provisioning")
        if found:
            logger.info(
                "Instance already exists",
                extra={"event": LogEvent.INSTANCE_CONFLICT, "instance_id": instance_id},
            )
            raise InstanceAlreadyExistsError()

        params = parse_parameters(ProvisionParameters, details.parameters)

        size = params.size or plan.default_size
        if not size:
            raise PlanHasNoDefaultSizeError()
        access_mode = params.access_mode or plan.default_access_mode or DEFAULT_ACCESS_MODE

        storage_request, size_bytes = parse_size(size)

        claim = VolumeClaim(
            name=instance_id,
            namespace=self.namespace,
            labels={
                LABEL_SERVICE_ID: details.service_id,
                LABEL_PLAN_ID: details.plan_id,
                LABEL_ORGANIZATION_ID: details.organization_guid,
                LABEL_SPACE_ID: details.space_guid,
            },
            storage_class_name=plan.storage_class,
            storage_request=storage_request,
            access_modes=[access_mode],
        )
        await self._store_call(
            "create",
            self._store.create(self.namespace, claim),
            ProvisionFailedError,
            "error provisioning",
            instance_id,
        )

        logger.info(
            "Instance provisioned",
            extra={
                "event": LogEvent.INSTANCE_PROVISIONED,
                "instance_id": instance_id,
                "plan_id": plan.id,
                "storage_class": plan.storage_class,
                "size": claim.storage_request,
                "size_bytes": int(size_bytes),
                "access_mode": access_mode,
            },
        )
        return ProvisionedServiceSpec(is_async=False, dashboard_url=None)

    @_tracked("deprovision")
    async def deprovision(
        self, instance_id: str, details: DeprovisionDetails
    ) -> DeprovisionServiceSpec:
        """Delete the claim backing an instance."""
        await self._require_instance(instance_id, DeprovisionFailedError, "error deprovisioning")

        await self._store_call(
            "delete",
            self._store.delete(self.namespace, instance_id),
            DeprovisionFailedError,
            "error deleting persistent volume claim for deprovisioning",
            instance_id,
        )

        logger.info(
            "Instance deprovisioned",
            extra={"event": LogEvent.INSTANCE_DEPROVISIONED, "instance_id": instance_id},
        )
        return DeprovisionServiceSpec()

    @_tracked("get_instance")
    async def get_instance(self, instance_id: str) -> InstanceDetails:
        """Reconstruct instance details from the claim labels."""
        claim = await self._require_instance(
            instance_id, LookupFailedError, "error getting instance"
        )

        plan_id = claim.labels.get(LABEL_PLAN_ID)
        if plan_id is None:
            raise InvalidResourceStateError(f"{LABEL_PLAN_ID} label missing from pvc")
        service_id = claim.labels.get(LABEL_SERVICE_ID)
        if service_id is None:
            raise InvalidResourceStateError(f"{LABEL_SERVICE_ID} label missing from pvc")

        return InstanceDetails(service_id=service_id, plan_id=plan_id)

    async def update(self, instance_id: str, details: Any = None) -> UpdateServiceSpec:
        """Updates are not supported; always an empty success."""
        return UpdateServiceSpec()

    async def last_operation(self, instance_id: str) -> LastOperation:
        """Operations are synchronous; always an empty success."""
        return LastOperation()

    # =========================================================================
    # Bindings
    # =========================================================================

    @_tracked("bind")
    async def bind(self, instance_id: str, binding_id: str, details: BindDetails) -> Binding:
        """Record a binding as an annotation on the instance claim."""
        claim = await self._require_instance(instance_id, BindFailedError, "error binding")

        key = self.binding_annotation(binding_id)
        if key in (claim.annotations or {}):
            logger.info(
                "Binding already exists",
                extra={
                    "event": LogEvent.BINDING_CONFLICT,
                    "instance_id": instance_id,
                    "binding_id": binding_id,
                },
            )
            raise BindingAlreadyExistsError()

        params = parse_parameters(BindParameters, details.parameters)
        container_dir = params.dir or f"{self._config.default_mount_root}/{binding_id}"

        annotations = dict(claim.annotations or {})
        annotations[key] = container_dir
        claim = claim.model_copy(update={"annotations": annotations})
        await self._store_call(
            "update",
            self._store.update(self.namespace, claim),
            BindFailedError,
            "error updating persistent volume claim annotations for binding",
            instance_id,
        )

        mount = self._volume_mount(claim, container_dir)

        logger.info(
            "Binding created",
            extra={
                "event": LogEvent.BINDING_CREATED,
                "instance_id": instance_id,
                "binding_id": binding_id,
                "container_dir": container_dir,
            },
        )
        return Binding(credentials={"volume_id": claim.name}, volume_mounts=[mount])

    @_tracked("unbind")
    async def unbind(
        self, instance_id: str, binding_id: str, details: UnbindDetails
    ) -> UnbindSpec:
        """Remove the binding annotation from the instance claim."""
        claim = await self._require_instance(instance_id, UnbindFailedError, "error unbinding")

        key = self.binding_annotation(binding_id)
        if not claim.annotations or key not in claim.annotations:
            raise BindingDoesNotExistError()

        annotations = {k: v for k, v in claim.annotations.items() if k != key}
        claim = claim.model_copy(update={"annotations": annotations})
        await self._store_call(
            "update",
            self._store.update(self.namespace, claim),
            UnbindFailedError,
            "error updating persistent volume claim annotations for unbinding",
            instance_id,
        )

        logger.info(
            "Binding removed",
            extra={
                "event": LogEvent.BINDING_REMOVED,
                "instance_id": instance_id,
                "binding_id": binding_id,
            },
        )
        return UnbindSpec()

    @_tracked("get_binding")
    async def get_binding(self, instance_id: str, binding_id: str) -> BindingDetails:
        """Reconstruct the mount descriptor from the binding annotation."""
        claim = await self._require_instance(
            instance_id, LookupFailedError, "error getting binding"
        )

        if not claim.annotations:
            raise BindingDoesNotExistError()
        container_dir = claim.annotations.get(self.binding_annotation(binding_id))
        if container_dir is None:
            raise BindingDoesNotExistError()

        return BindingDetails(volume_mounts=[self._volume_mount(claim, container_dir)])

    async def last_binding_operation(self, instance_id: str, binding_id: str) -> LastOperation:
        """Operations are synchronous; always an empty success."""
        return LastOperation()

    def _volume_mount(self, claim: VolumeClaim, container_dir: str) -> VolumeMount:
        if not claim.storage_class_name:
            raise InvalidResourceStateError("pvc has no storage class")

        return VolumeMount(
            driver=claim.storage_class_name,
            container_dir=container_dir,
            mode="rw",
            device_type="shared",
            device=SharedDevice(volume_id=claim.name),
        )
