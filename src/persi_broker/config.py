"""Broker configuration.

Two layers:
- BrokerSettings: process settings from the environment (pydantic-settings)
- BrokerConfig: the YAML broker config file (service catalog, auth, namespace)

Environment variable prefix: BROKER_
Example: BROKER_LOGGING_FORMAT=json
"""

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(Exception):
    """Raised when the broker config file cannot be loaded."""

    pass


# =============================================================================
# Process settings (environment)
# =============================================================================


class KubeConfig(BaseSettings):
    """Kubernetes API client configuration."""

    model_config = SettingsConfigDict(env_prefix="BROKER_KUBE_")

    api_timeout: float = Field(default=30.0, description="Kubernetes API call timeout (seconds)")
    service_account_dir: str = Field(
        default="/var/run/secrets/kubernetes.io/serviceaccount",
        description="In-cluster service account token and CA directory",
    )


class LoggingConfig(BaseSettings):
    """Logging configuration.

    Supports both text and JSON formats for different environments:
    - text: Human-readable for local development
    - json: Structured logging for production (log aggregation)
    """

    model_config = SettingsConfigDict(env_prefix="BROKER_LOGGING_")

    level: str = Field(default="INFO", description="Log level (DEBUG, INFO, WARNING, ERROR)")
    format: str = Field(default="text", description="Log format (text, json)")
    service_name: str = Field(default="persi-broker", description="Service identifier in logs")


class ServerConfig(BaseSettings):
    """HTTP server configuration (overridden by backend_host/backend_port in the config file)."""

    model_config = SettingsConfigDict(env_prefix="BROKER_SERVER_")

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")


class BrokerSettings(BaseSettings):
    """Process settings aggregating all sub-configs."""

    model_config = SettingsConfigDict(
        env_prefix="BROKER_",
        env_nested_delimiter="__",
    )

    config_path: str = Field(
        default="",
        validation_alias="BROKER_CONFIG_PATH",
        description="Path to the YAML broker config file (required)",
    )
    kubeconfig: str = Field(
        default="",
        validation_alias="KUBECONFIG",
        description="Explicit kube config path; empty means in-cluster or ~/.kube/config",
    )

    kube: KubeConfig = Field(default_factory=KubeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


@lru_cache
def get_broker_settings() -> BrokerSettings:
    """Get cached process settings."""
    return BrokerSettings()


# =============================================================================
# Broker config file (YAML)
# =============================================================================


class Plan(BaseModel):
    """A broker plan backed by a Kubernetes storage class."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="plan_id")
    name: str = Field(default="", alias="plan_name")
    description: str = ""
    storage_class: str = Field(alias="kube_storage_class", min_length=1)
    free: bool = False
    default_size: str = ""
    default_access_mode: str = ""


class ServiceConfig(BaseModel):
    """The single service offered by the broker."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service_name: str = ""
    service_id: str = ""
    plans: tuple[Plan, ...] = ()

    description: str = ""
    long_description: str = ""
    provider_display_name: str = ""
    documentation_url: str = ""
    support_url: str = ""
    display_name: str = ""
    icon_image: str = ""


class AuthConfig(BaseModel):
    """Basic auth credentials for the broker API."""

    model_config = ConfigDict(frozen=True)

    username: str = ""
    password: str = ""


class BrokerConfig(BaseModel):
    """Parsed broker config file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    service: ServiceConfig = Field(default_factory=ServiceConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    host: str = Field(default="", alias="backend_host")
    port: int | None = Field(default=None, alias="backend_port")
    namespace: str = "default"

    binding_annotation_prefix: str = "persi-broker-binding-"
    default_mount_root: str = "/var/vcap/data"


def load_broker_config(path: str | Path) -> BrokerConfig:
    """Load and validate the YAML broker config file.

    Raises:
        ConfigError: If the file cannot be read or does not match the schema.
    """
    try:
        raw = Path(path).read_text()
    except OSError as e:
        raise ConfigError(f"cannot read broker config {path}: {e}") from e

    try:
        data = yaml.safe_load(raw) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"cannot parse broker config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"cannot parse broker config {path}: expected a mapping")

    try:
        return BrokerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"invalid broker config {path}: {e}") from e
