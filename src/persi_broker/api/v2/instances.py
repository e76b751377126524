"""Service instance endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from persi_broker.api.dependencies import get_broker
from persi_broker.api.v2.schemas import (
    InstanceResponse,
    LastOperationResponse,
    ProvisionRequest,
    ProvisionResponse,
    UpdateRequest,
)
from persi_broker.core import VolumeBroker
from persi_broker.core.models import DeprovisionDetails, ProvisionDetails
from persi_broker.errors import InstanceDoesNotExistError

router = APIRouter(prefix="/v2/service_instances", tags=["instances"])


@router.put(
    "/{instance_id}",
    status_code=201,
    response_model=ProvisionResponse,
    response_model_exclude_none=True,
)
async def provision(
    instance_id: str,
    request: ProvisionRequest,
    broker: VolumeBroker = Depends(get_broker),
) -> ProvisionResponse:
    """Provision a volume claim for the instance."""
    spec = await broker.provision(
        instance_id,
        ProvisionDetails(
            service_id=request.service_id,
            plan_id=request.plan_id,
            organization_guid=request.organization_guid,
            space_guid=request.space_guid,
            parameters=request.parameters,
        ),
    )
    return ProvisionResponse(dashboard_url=spec.dashboard_url)


@router.get("/{instance_id}", response_model=InstanceResponse)
async def get_instance(
    instance_id: str,
    broker: VolumeBroker = Depends(get_broker),
) -> InstanceResponse:
    """Get the service and plan of an instance."""
    details = await broker.get_instance(instance_id)
    return InstanceResponse(service_id=details.service_id, plan_id=details.plan_id)


@router.patch("/{instance_id}", response_model=ProvisionResponse, response_model_exclude_none=True)
async def update(
    instance_id: str,
    request: UpdateRequest,
    broker: VolumeBroker = Depends(get_broker),
) -> ProvisionResponse:
    """Updates are accepted and ignored."""
    spec = await broker.update(instance_id, request)
    return ProvisionResponse(dashboard_url=spec.dashboard_url)


@router.delete("/{instance_id}", status_code=200)
async def deprovision(
    instance_id: str,
    service_id: str = "",
    plan_id: str = "",
    broker: VolumeBroker = Depends(get_broker),
) -> JSONResponse:
    """Delete the instance's volume claim; 410 Gone if it does not exist."""
    try:
        await broker.deprovision(
            instance_id, DeprovisionDetails(service_id=service_id, plan_id=plan_id)
        )
    except InstanceDoesNotExistError:
        return JSONResponse(status_code=410, content={})
    return JSONResponse(status_code=200, content={})


@router.get(
    "/{instance_id}/last_operation",
    response_model=LastOperationResponse,
    response_model_exclude_none=True,
)
async def last_operation(
    instance_id: str,
    broker: VolumeBroker = Depends(get_broker),
) -> LastOperationResponse:
    """Provisioning is synchronous; nothing to poll."""
    op = await broker.last_operation(instance_id)
    return LastOperationResponse(state=op.state, description=op.description)
