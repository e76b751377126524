"""Log event types for structured logging."""

from enum import StrEnum


class LogEvent(StrEnum):
    """Log event types for the broker.

    Used with logger.info/warning/error extra dict:
        logger.info("message", extra={"event": LogEvent.INSTANCE_PROVISIONED, ...})
    """

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
    CONFIG_LOADED = "config_loaded"
    KUBE_CONFIG_RESOLVED = "kube_config_resolved"

    # Instance events
    INSTANCE_PROVISIONED = "instance_provisioned"
    INSTANCE_DEPROVISIONED = "instance_deprovisioned"
    INSTANCE_CONFLICT = "instance_conflict"

    # Binding events
    BINDING_CREATED = "binding_created"
    BINDING_REMOVED = "binding_removed"
    BINDING_CONFLICT = "binding_conflict"

    # Store events
    STORE_FAILED = "store_failed"

    # Error events
    UNHANDLED_EXCEPTION = "unhandled_exception"
    BROKER_ERROR = "broker_error"
