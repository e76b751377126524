"""Fixtures for broker unit tests."""

import pytest

from persi_broker.config import AuthConfig, BrokerConfig, Plan, ServiceConfig
from persi_broker.core import VolumeBroker
from tests.unit.fakes import FakeClaimStore


@pytest.fixture
def service_config() -> ServiceConfig:
    """Service with a sized and an unsized plan."""
    return ServiceConfig(
        service_name="persi",
        service_id="svc-1",
        description="Kubernetes volumes",
        display_name="Persi",
        icon_image="aWNvbg==",
        plans=(
            Plan(
                id="p1",
                name="gold",
                description="Gold storage",
                storage_class="gold",
                free=True,
                default_size="1Gi",
            ),
            Plan(
                id="p2",
                name="silver",
                description="Silver storage, no default size",
                storage_class="silver",
                default_access_mode="ReadWriteOnce",
            ),
        ),
    )


@pytest.fixture
def broker_config(service_config: ServiceConfig) -> BrokerConfig:
    """Broker config with short binding annotation keys."""
    return BrokerConfig(
        service=service_config,
        auth=AuthConfig(username="admin", password="secret"),
        namespace="persi",
        binding_annotation_prefix="binding-",
    )


@pytest.fixture
def store() -> FakeClaimStore:
    """Empty in-memory claim store."""
    return FakeClaimStore()


@pytest.fixture
def broker(broker_config: BrokerConfig, store: FakeClaimStore) -> VolumeBroker:
    """Broker over the in-memory store."""
    return VolumeBroker(broker_config, store)
