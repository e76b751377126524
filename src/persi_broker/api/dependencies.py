"""API dependencies for dependency injection."""

from fastapi import Request

from persi_broker.core import VolumeBroker


def get_broker(request: Request) -> VolumeBroker:
    """Get the broker attached to the running app.

    Raises:
        RuntimeError: If called before the app finished starting up.
    """
    broker = getattr(request.app.state, "broker", None)
    if broker is None:
        raise RuntimeError("Broker not initialized. Start the app through its lifespan.")
    return broker
