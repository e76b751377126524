"""Service catalog: plan resolution and catalog listing."""

from persi_broker.config import Plan, ServiceConfig
from persi_broker.core.models import Service, ServiceMetadata, ServicePlan
from persi_broker.errors import PlanIDRequiredError, PlanNotRecognizedError

SERVICE_TAGS = ["kubernetes", "storage"]
SERVICE_REQUIRES = ["volume_mount"]


def resolve_plan(service: ServiceConfig, plan_id: str | None) -> Plan:
    """Find a plan by identifier; first match wins.

    Raises:
        PlanIDRequiredError: If no identifier is given.
        PlanNotRecognizedError: If no plan has this identifier.
    """
    if not plan_id:
        raise PlanIDRequiredError()

    for plan in service.plans:
        if plan.id == plan_id:
            return plan

    raise PlanNotRecognizedError(f"plan_id not recognized: {plan_id}")


def build_catalog(service: ServiceConfig) -> list[Service]:
    """Translate the configured service into the catalog listing (one service)."""
    plans = [
        ServicePlan(
            id=plan.id,
            name=plan.name,
            description=plan.description,
            free=plan.free,
        )
        for plan in service.plans
    ]

    return [
        Service(
            id=service.service_id,
            name=service.service_name,
            description=service.description,
            bindable=True,
            tags=list(SERVICE_TAGS),
            requires=list(SERVICE_REQUIRES),
            plans=plans,
            metadata=ServiceMetadata(
                display_name=service.display_name,
                long_description=service.long_description,
                documentation_url=service.documentation_url,
                support_url=service.support_url,
                image_url=f"data:image/png;base64,{service.icon_image}",
                provider_display_name=service.provider_display_name,
            ),
        )
    ]
