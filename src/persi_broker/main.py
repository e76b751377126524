"""Persi broker FastAPI application."""

import base64
import binascii
import logging
import secrets
from contextlib import asynccontextmanager
from typing import Callable

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from persi_broker import __version__
from persi_broker.api import bindings_router, catalog_router, health_router, instances_router
from persi_broker.config import (
    AuthConfig,
    BrokerConfig,
    BrokerSettings,
    ConfigError,
    get_broker_settings,
    load_broker_config,
)
from persi_broker.core import VolumeBroker
from persi_broker.errors import BrokerError, StoreOperationError
from persi_broker.infra import (
    KubeClient,
    PersistentVolumeClaimAPI,
    credential_strategies,
    resolve_credentials,
)
from persi_broker.logging import setup_logging
from persi_broker.logging_schema import LogEvent

logger = logging.getLogger(__name__)

BROKER_API_VERSION_HEADER = "X-Broker-API-Version"
SUPPORTED_API_MAJOR = "2"


def load_config(settings: BrokerSettings) -> BrokerConfig:
    """Load the broker config file named by BROKER_CONFIG_PATH."""
    if not settings.config_path:
        raise ConfigError("BROKER_CONFIG_PATH not set")
    config = load_broker_config(settings.config_path)
    logger.info(
        "Loaded broker config",
        extra={
            "event": LogEvent.CONFIG_LOADED,
            "config_path": settings.config_path,
            "namespace": config.namespace,
            "plans": len(config.service.plans),
        },
    )
    return config


def _check_basic_auth(header: str, auth: AuthConfig) -> bool:
    scheme, _, encoded = header.partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return False
    try:
        decoded = base64.b64decode(encoded, validate=True).decode()
    except (binascii.Error, UnicodeDecodeError):
        return False
    username, sep, password = decoded.partition(":")
    if not sep:
        return False
    # Compare both fields even if the first one mismatches
    user_ok = secrets.compare_digest(username.encode(), auth.username.encode())
    pass_ok = secrets.compare_digest(password.encode(), auth.password.encode())
    return user_ok and pass_ok


def create_app(
    broker: VolumeBroker | None = None,
    config: BrokerConfig | None = None,
    settings: BrokerSettings | None = None,
) -> FastAPI:
    """Build the broker application.

    Args:
        broker: Ready broker (tests). When None, the lifespan builds one
            backed by the Kubernetes API.
        config: Broker config. When None, loaded from BROKER_CONFIG_PATH at startup.
        settings: Process settings. Defaults to the environment.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        logger.info(
            "Starting persi broker",
            extra={"event": LogEvent.APP_STARTED, "version": __version__},
        )

        kube: KubeClient | None = None
        if app.state.broker is None:
            process_settings = settings or get_broker_settings()
            broker_config = config or load_config(process_settings)
            configuration = await resolve_credentials(
                credential_strategies(
                    process_settings.kubeconfig,
                    service_account_dir=process_settings.kube.service_account_dir,
                )
            )
            kube = KubeClient(configuration, timeout=process_settings.kube.api_timeout)
            app.state.broker = VolumeBroker(broker_config, PersistentVolumeClaimAPI(kube))
            app.state.auth = broker_config.auth

        yield

        logger.info("Shutting down persi broker", extra={"event": LogEvent.APP_STOPPED})
        if kube is not None:
            await kube.close()

    app = FastAPI(
        title="Persi Broker",
        description="Open Service Broker for Kubernetes persistent volume claims",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.broker = broker
    app.state.auth = broker.config.auth if broker is not None else None

    @app.exception_handler(BrokerError)
    async def broker_error_handler(request: Request, exc: BrokerError) -> JSONResponse:
        """Handle BrokerError exceptions."""
        level = logging.ERROR if isinstance(exc, StoreOperationError) else logging.WARNING
        logger.log(
            level,
            "Broker error",
            extra={
                "event": LogEvent.BROKER_ERROR,
                "error_code": exc.code.value,
                "error_message": exc.message,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response().model_dump(),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Handle unhandled exceptions with logging."""
        logger.exception(
            "Unhandled exception",
            extra={
                "event": LogEvent.UNHANDLED_EXCEPTION,
                "path": request.url.path,
                "method": request.method,
            },
        )
        return JSONResponse(
            status_code=500,
            content={"description": "Internal server error"},
        )

    @app.middleware("http")
    async def broker_api_middleware(
        request: Request, call_next: Callable[[Request], Response]
    ) -> Response:
        """Basic auth and API version check for /v2 endpoints."""
        if not request.url.path.startswith("/v2/"):
            return await call_next(request)

        auth: AuthConfig = request.app.state.auth or AuthConfig()
        if not _check_basic_auth(request.headers.get("Authorization", ""), auth):
            return JSONResponse(
                status_code=401,
                content={"description": "Not authorized"},
                headers={"WWW-Authenticate": 'Basic realm="persi-broker"'},
            )

        version = request.headers.get(BROKER_API_VERSION_HEADER)
        if not version or version.split(".")[0] != SUPPORTED_API_MAJOR:
            return JSONResponse(
                status_code=412,
                content={
                    "description": f"{BROKER_API_VERSION_HEADER} {SUPPORTED_API_MAJOR}.x required"
                },
            )

        return await call_next(request)

    app.include_router(health_router)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Expose Prometheus metrics."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    app.include_router(catalog_router)
    app.include_router(instances_router)
    app.include_router(bindings_router)

    return app


app = create_app()


def main() -> None:
    """Run the broker server."""
    settings = get_broker_settings()
    setup_logging(settings.logging)

    config = load_config(settings)
    host = config.host or settings.server.host
    port = config.port or settings.server.port

    uvicorn.run(
        create_app(config=config, settings=settings),
        host=host,
        port=port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
