"""API v2 schemas.

Request/response models for the Open Service Broker endpoints.
"""

from typing import Any

from pydantic import BaseModel

from persi_broker.core.models import Service, VolumeMount


# =============================================================================
# Catalog
# =============================================================================


class CatalogResponse(BaseModel):
    services: list[Service]


# =============================================================================
# Instances
# =============================================================================


class ProvisionRequest(BaseModel):
    """Provision request (`cf create-service`)."""

    service_id: str = ""
    plan_id: str = ""
    organization_guid: str = ""
    space_guid: str = ""
    parameters: Any = None
    context: dict[str, Any] | None = None


class UpdateRequest(BaseModel):
    service_id: str = ""
    plan_id: str | None = None
    parameters: Any = None


class ProvisionResponse(BaseModel):
    dashboard_url: str | None = None


class InstanceResponse(BaseModel):
    service_id: str
    plan_id: str


class LastOperationResponse(BaseModel):
    state: str | None = None
    description: str | None = None


# =============================================================================
# Bindings
# =============================================================================


class BindRequest(BaseModel):
    """Bind request (`cf bind-service`)."""

    service_id: str = ""
    plan_id: str = ""
    app_guid: str = ""
    bind_resource: dict[str, Any] | None = None
    parameters: Any = None


class BindingResponse(BaseModel):
    credentials: dict[str, Any] = {}
    volume_mounts: list[VolumeMount] = []


class GetBindingResponse(BaseModel):
    volume_mounts: list[VolumeMount] = []
