"""Models for the claim resource and broker operation results."""

import copy
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

# =============================================================================
# Claim resource
# =============================================================================


class VolumeClaim(BaseModel):
    """Persistent volume claim as seen by the broker.

    Only the fields the broker reads or writes are modeled. The full API
    object is kept in `raw` so an update sends back everything else
    (volumeName, volumeMode, ...) untouched.
    """

    name: str
    namespace: str = ""
    labels: dict[str, str] = {}
    annotations: dict[str, str] | None = None
    storage_class_name: str | None = None
    storage_request: str | None = None
    access_modes: list[str] = []
    resource_version: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True, repr=False)

    model_config = {"frozen": True}

    def to_api(self) -> dict:
        """Convert to Kubernetes API JSON format, overlaying the modeled fields on `raw`."""
        result = copy.deepcopy(self.raw)
        result["apiVersion"] = "v1"
        result["kind"] = "PersistentVolumeClaim"

        metadata = result.setdefault("metadata", {})
        metadata["name"] = self.name
        if self.namespace:
            metadata["namespace"] = self.namespace
        if self.labels:
            metadata["labels"] = dict(self.labels)
        else:
            metadata.pop("labels", None)
        if self.annotations is not None:
            metadata["annotations"] = dict(self.annotations)
        else:
            metadata.pop("annotations", None)
        if self.resource_version:
            metadata["resourceVersion"] = self.resource_version

        spec = result.setdefault("spec", {})
        spec["accessModes"] = list(self.access_modes)
        if self.storage_class_name is not None:
            spec["storageClassName"] = self.storage_class_name
        if self.storage_request is not None:
            resources = spec.setdefault("resources", {})
            resources.setdefault("requests", {})["storage"] = self.storage_request

        return result

    @classmethod
    def from_api(cls, data: dict) -> "VolumeClaim":
        """Build from a Kubernetes API JSON object."""
        metadata = data.get("metadata") or {}
        spec = data.get("spec") or {}
        requests = (spec.get("resources") or {}).get("requests") or {}
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            labels=metadata.get("labels") or {},
            annotations=metadata.get("annotations"),
            storage_class_name=spec.get("storageClassName"),
            storage_request=requests.get("storage"),
            access_modes=spec.get("accessModes") or [],
            resource_version=metadata.get("resourceVersion"),
            raw=data,
        )


# =============================================================================
# Catalog
# =============================================================================


class ServicePlan(BaseModel):
    id: str
    name: str
    description: str
    free: bool


class ServiceMetadata(BaseModel):
    """Service marketing metadata (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True)

    display_name: str = Field(default="", alias="displayName")
    long_description: str = Field(default="", alias="longDescription")
    documentation_url: str = Field(default="", alias="documentationUrl")
    support_url: str = Field(default="", alias="supportUrl")
    image_url: str = Field(default="", alias="imageUrl")
    provider_display_name: str = Field(default="", alias="providerDisplayName")


class Service(BaseModel):
    id: str
    name: str
    description: str
    bindable: bool = True
    tags: list[str] = []
    requires: list[str] = []
    plans: list[ServicePlan] = []
    metadata: ServiceMetadata = Field(default_factory=ServiceMetadata)


# =============================================================================
# Operation results
# =============================================================================


class ProvisionedServiceSpec(BaseModel):
    is_async: bool = False
    dashboard_url: str | None = None


class DeprovisionServiceSpec(BaseModel):
    is_async: bool = False


class UpdateServiceSpec(BaseModel):
    is_async: bool = False
    dashboard_url: str | None = None


class LastOperation(BaseModel):
    """Empty unless asynchronous operations are ever supported."""

    state: str | None = None
    description: str | None = None


class SharedDevice(BaseModel):
    volume_id: str


class VolumeMount(BaseModel):
    """Mount descriptor handed to the platform on bind."""

    driver: str
    container_dir: str
    mode: str = "rw"
    device_type: str = "shared"
    device: SharedDevice


class Binding(BaseModel):
    credentials: dict[str, Any] = {}
    volume_mounts: list[VolumeMount] = []


class UnbindSpec(BaseModel):
    is_async: bool = False


class InstanceDetails(BaseModel):
    service_id: str
    plan_id: str


class BindingDetails(BaseModel):
    volume_mounts: list[VolumeMount] = []


# =============================================================================
# Operation requests
# =============================================================================

# Opaque user payload, validated by core.parameters.parse_parameters
RawParameters = Any


class ProvisionDetails(BaseModel):
    service_id: str = ""
    plan_id: str = ""
    organization_guid: str = ""
    space_guid: str = ""
    parameters: RawParameters = None


class DeprovisionDetails(BaseModel):
    service_id: str = ""
    plan_id: str = ""


class BindDetails(BaseModel):
    service_id: str = ""
    plan_id: str = ""
    app_guid: str = ""
    parameters: RawParameters = None


class UnbindDetails(BaseModel):
    service_id: str = ""
    plan_id: str = ""
