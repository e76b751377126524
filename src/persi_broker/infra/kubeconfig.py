"""Kubernetes credential resolution.

Strategies are tried in order; the first one that applies wins:

    no explicit path:  in-cluster -> ~/.kube/config -> default
    explicit path:     that file  -> default

A strategy signals "not applicable" (missing env vars, missing file) by
raising NotApplicable; any other failure is fatal and stops the chain.
Loading itself is done by kubernetes_asyncio, so every auth method a
kubeconfig can name (tokens, certificates, exec plugins, auth providers)
is honored.
"""

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path

import yaml
from kubernetes_asyncio.client import Configuration
from kubernetes_asyncio.config import ConfigException, load_kube_config
from kubernetes_asyncio.config.incluster_config import InClusterConfigLoader

from persi_broker.logging_schema import LogEvent

logger = logging.getLogger(__name__)

SERVICE_HOST_ENV = "KUBERNETES_SERVICE_HOST"
SERVICE_PORT_ENV = "KUBERNETES_SERVICE_PORT"
DEFAULT_SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"
DEFAULT_SERVER = "http://localhost:8080"

# Raised by kubernetes_asyncio while reading a malformed kubeconfig
_LOAD_ERRORS = (ConfigException, yaml.YAMLError, OSError, KeyError, TypeError, ValueError)


class KubeConfigError(Exception):
    """Fatal failure while resolving kube credentials."""

    def __init__(self, cause: object) -> None:
        super().__init__(f"failed to get kube config: {cause}")


class NotApplicable(Exception):
    """The strategy does not apply in this environment."""

    pass


# =============================================================================
# Strategies
# =============================================================================


class CredentialStrategy(ABC):
    """One way of producing an API client configuration."""

    name: str = ""

    @property
    def source(self) -> str:
        return self.name

    @abstractmethod
    async def resolve(self) -> Configuration:
        """Produce a client configuration.

        Raises:
            NotApplicable: The strategy does not apply; try the next one.
            KubeConfigError: Fatal failure.
        """
        ...


class InClusterStrategy(CredentialStrategy):
    """Service account mounted into a pod.

    The token is re-read from disk as it rotates.
    """

    name = "in-cluster"

    def __init__(
        self,
        env: Mapping[str, str],
        service_account_dir: str | Path = DEFAULT_SERVICE_ACCOUNT_DIR,
    ) -> None:
        self._env = env
        self._dir = Path(service_account_dir)

    async def resolve(self) -> Configuration:
        if not self._env.get(SERVICE_HOST_ENV) or not self._env.get(SERVICE_PORT_ENV):
            raise NotApplicable(f"{SERVICE_HOST_ENV} and {SERVICE_PORT_ENV} not set")
        token_path = self._dir / "token"
        if not token_path.is_file():
            raise NotApplicable(f"service account token not found: {token_path}")

        configuration = Configuration()
        loader = InClusterConfigLoader(
            token_filename=str(token_path),
            cert_filename=str(self._dir / "ca.crt"),
            try_refresh_token=True,
            environ=self._env,
        )
        try:
            loader.load_and_set(configuration)
        except _LOAD_ERRORS as e:
            raise KubeConfigError(e) from e
        return configuration


class KubeConfigFileStrategy(CredentialStrategy):
    """A kubeconfig file (explicit path or ~/.kube/config), following current-context."""

    name = "kubeconfig"

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    @property
    def source(self) -> str:
        return str(self._path)

    async def resolve(self) -> Configuration:
        if not self._path.is_file():
            raise NotApplicable(f"{self._path} does not exist")

        configuration = Configuration()
        try:
            await load_kube_config(
                config_file=str(self._path),
                client_configuration=configuration,
                persist_config=False,
            )
        except _LOAD_ERRORS as e:
            raise KubeConfigError(e) from e
        return configuration


class DefaultStrategy(CredentialStrategy):
    """Unauthenticated local API server, the last resort."""

    name = "default"

    async def resolve(self) -> Configuration:
        return Configuration(host=DEFAULT_SERVER)


# =============================================================================
# Resolution
# =============================================================================


def credential_strategies(
    explicit_path: str = "",
    env: Mapping[str, str] | None = None,
    home: Path | None = None,
    service_account_dir: str | Path = DEFAULT_SERVICE_ACCOUNT_DIR,
) -> list[CredentialStrategy]:
    """Build the ordered strategy list."""
    if explicit_path:
        return [KubeConfigFileStrategy(explicit_path), DefaultStrategy()]

    env = os.environ if env is None else env
    if home is None:
        try:
            home = Path.home()
        except RuntimeError as e:
            raise KubeConfigError(e) from e

    return [
        InClusterStrategy(env, service_account_dir),
        KubeConfigFileStrategy(home / ".kube" / "config"),
        DefaultStrategy(),
    ]


async def resolve_credentials(strategies: list[CredentialStrategy]) -> Configuration:
    """Try strategies in order; the first success wins."""
    for strategy in strategies:
        try:
            configuration = await strategy.resolve()
        except NotApplicable as e:
            logger.debug("Kube config strategy %s not applicable: %s", strategy.name, e)
            continue

        logger.info(
            "Using %s kube config",
            strategy.name,
            extra={
                "event": LogEvent.KUBE_CONFIG_RESOLVED,
                "source": strategy.source,
                "server": configuration.host,
            },
        )
        return configuration

    raise KubeConfigError("no kube config strategy applied")
