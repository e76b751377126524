"""Service binding endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from persi_broker.api.dependencies import get_broker
from persi_broker.api.v2.schemas import (
    BindingResponse,
    BindRequest,
    GetBindingResponse,
    LastOperationResponse,
)
from persi_broker.core import VolumeBroker
from persi_broker.core.models import BindDetails, UnbindDetails
from persi_broker.errors import BindingDoesNotExistError, InstanceDoesNotExistError

router = APIRouter(
    prefix="/v2/service_instances/{instance_id}/service_bindings",
    tags=["bindings"],
)


@router.put("/{binding_id}", status_code=201, response_model=BindingResponse)
async def bind(
    instance_id: str,
    binding_id: str,
    request: BindRequest,
    broker: VolumeBroker = Depends(get_broker),
) -> BindingResponse:
    """Bind: annotate the instance claim and return the volume mount."""
    binding = await broker.bind(
        instance_id,
        binding_id,
        BindDetails(
            service_id=request.service_id,
            plan_id=request.plan_id,
            app_guid=request.app_guid,
            parameters=request.parameters,
        ),
    )
    return BindingResponse(
        credentials=binding.credentials,
        volume_mounts=binding.volume_mounts,
    )


@router.get("/{binding_id}", response_model=GetBindingResponse)
async def get_binding(
    instance_id: str,
    binding_id: str,
    broker: VolumeBroker = Depends(get_broker),
) -> GetBindingResponse:
    """Get the volume mount of an existing binding."""
    details = await broker.get_binding(instance_id, binding_id)
    return GetBindingResponse(volume_mounts=details.volume_mounts)


@router.delete("/{binding_id}", status_code=200)
async def unbind(
    instance_id: str,
    binding_id: str,
    service_id: str = "",
    plan_id: str = "",
    broker: VolumeBroker = Depends(get_broker),
) -> JSONResponse:
    """Remove the binding annotation; 410 Gone if instance or binding is missing."""
    try:
        await broker.unbind(
            instance_id,
            binding_id,
            UnbindDetails(service_id=service_id, plan_id=plan_id),
        )
    except (InstanceDoesNotExistError, BindingDoesNotExistError):
        return JSONResponse(status_code=410, content={})
    return JSONResponse(status_code=200, content={})


@router.get(
    "/{binding_id}/last_operation",
    response_model=LastOperationResponse,
    response_model_exclude_none=True,
)
async def last_binding_operation(
    instance_id: str,
    binding_id: str,
    broker: VolumeBroker = Depends(get_broker),
) -> LastOperationResponse:
    """Binding is synchronous; nothing to poll."""
    op = await broker.last_binding_operation(instance_id, binding_id)
    return LastOperationResponse(state=op.state, description=op.description)
