"""Catalog endpoint."""

from fastapi import APIRouter, Depends

from persi_broker.api.dependencies import get_broker
from persi_broker.api.v2.schemas import CatalogResponse
from persi_broker.core import VolumeBroker

router = APIRouter(prefix="/v2", tags=["catalog"])


@router.get("/catalog", response_model=CatalogResponse)
async def get_catalog(
    broker: VolumeBroker = Depends(get_broker),
) -> CatalogResponse:
    """List the offered service and its plans."""
    return CatalogResponse(services=await broker.services())
