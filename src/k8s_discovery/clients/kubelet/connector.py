"""Kubelet connection establishment.

The connector probes an ordered list of candidates and keeps the first one
answering ``/healthz`` with a 200:

1. the local kubelet endpoint, over the configured or inferred scheme (both
   schemes when the port gives no hint),
2. the API server node proxy, authenticated with the API server credentials.

Locally, TLS requests carry the service account token read from disk on every
call. Through the proxy authentication is whatever the Kubernetes client
configuration holds.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Protocol, Union

import requests
import structlog

from k8s_discovery.clients.kubernetes.k8s_client import KubernetesClient
from k8s_discovery.config.settings import Settings
from k8s_discovery.core.exceptions import DiscoveryException, KubeletConnectionError, KubeletHttpError
from .transport import (
    Doer,
    SessionFactory,
    api_server_session,
    bearer_token_session,
    join_url,
    plain_session,
)

logger = structlog.get_logger(__name__)

HEALTHZ_PATH = "/healthz"
HTTP_SCHEME = "http"
HTTPS_SCHEME = "https"
DEFAULT_HTTP_KUBELET_PORT = 10255
DEFAULT_HTTPS_KUBELET_PORT = 10250

LOCAL_HTTP = "local-http"
LOCAL_HTTPS = "local-https"
API_PROXY = "api-proxy"

PHASE_PORT = "port resolution"
PHASE_LOCAL = "local probe"
PHASE_PROXY = "proxy probe"


@dataclass(frozen=True)
class ConnectionParams:
    """Base URL and Doer reaching the kubelet."""

    url: str
    doer: Doer
    candidate: str = "static"


@dataclass(frozen=True)
class ConnectionCandidate:
    name: str
    phase: str
    url: str
    doer: Doer


@dataclass(frozen=True)
class ProbeSuccess:
    params: ConnectionParams


@dataclass(frozen=True)
class ProbeFailure:
    candidate: ConnectionCandidate
    cause: Exception


ProbeResult = Union[ProbeSuccess, ProbeFailure]


class Connector(Protocol):
    def connect(self) -> ConnectionParams:
        ...


class StaticConnector:
    """Connector returning fixed parameters without probing anything."""

    def __init__(self, doer: Doer, url: str):
        self.params = ConnectionParams(url=url, doer=doer)

    def connect(self) -> ConnectionParams:
        return self.params


class DefaultConnector:
    """Connector trying the local kubelet first and the API server proxy last."""

    def __init__(
        self,
        k8s_client: KubernetesClient,
        settings: Settings,
        session_factory: Optional[SessionFactory] = None,
    ):
        self.k8s_client = k8s_client
        self.settings = settings
        self.session_factory = session_factory
        self.logger = logger.bind(component="connector", node=settings.node_name)

    def connect(self) -> ConnectionParams:
        """Return the parameters of the first candidate passing the health probe.

        Raises:
            KubeletConnectionError: when the port cannot be resolved or every
                candidate failed; the last failure is chained as the cause.
        """
        port = self.resolve_port()

        last_failure: Optional[ProbeFailure] = None
        for candidate in self.candidates(port):
            if candidate.name == API_PROXY:
                self.logger.warning(
                    "Kubelet not reachable locally, falling back to the API server proxy. "
                    "This could overload the API server, fix the kubelet configuration",
                    api_server=self.k8s_client.host,
                )

            result = self.probe(candidate)
            if isinstance(result, ProbeSuccess):
                self.logger.info("Connected to kubelet", candidate=candidate.name, url=candidate.url)
                return result.params

            self.logger.warning(
                "Kubelet candidate failed", candidate=candidate.name, url=candidate.url, error=str(result.cause)
            )
            candidate.doer.close()
            last_failure = result

        raise KubeletConnectionError(
            last_failure.candidate.phase,
            f"no connection succeeded, last tried {last_failure.candidate.url}: {last_failure.cause}",
            {"candidate": last_failure.candidate.name, "url": last_failure.candidate.url},
        ) from last_failure.cause

    def resolve_port(self) -> int:
        if self.settings.port:
            self.logger.debug("Using kubelet port from configuration", port=self.settings.port)
            return self.settings.port
        try:
            return self.k8s_client.get_kubelet_port(self.settings.node_name)
        except DiscoveryException as e:
            raise KubeletConnectionError(PHASE_PORT, f"getting kubelet port: {e}") from e

    def schemes_for(self, port: int) -> List[str]:
        """Schemes to try locally, in order."""
        use_tls = self.settings.use_tls
        if use_tls is not None:
            self.logger.debug("TLS explicitly configured", tls=use_tls)
            return [HTTPS_SCHEME if use_tls else HTTP_SCHEME]

        if port == DEFAULT_HTTP_KUBELET_PORT:
            return [HTTP_SCHEME]
        if port == DEFAULT_HTTPS_KUBELET_PORT:
            return [HTTPS_SCHEME]

        self.logger.warning(
            f"cannot figure out scheme from non-standard port {port} and no TLS flag was provided, "
            f"trying {HTTP_SCHEME} then {HTTPS_SCHEME}"
        )
        return [HTTP_SCHEME, HTTPS_SCHEME]

    def candidates(self, port: int) -> Iterator[ConnectionCandidate]:
        """Ordered candidates, built only when reached."""
        host = self.settings.kubelet_host
        netloc = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
        timeout = self.settings.timeout_seconds

        for scheme in self.schemes_for(port):
            url = f"{scheme}://{netloc}"
            if scheme == HTTPS_SCHEME:
                doer = bearer_token_session(timeout, self.settings.token_file, self.session_factory)
                yield ConnectionCandidate(LOCAL_HTTPS, PHASE_LOCAL, url, doer)
            else:
                yield ConnectionCandidate(LOCAL_HTTP, PHASE_LOCAL, url, plain_session(timeout, self.session_factory))

        doer = api_server_session(self.k8s_client.configuration, timeout, self.session_factory)
        yield ConnectionCandidate(API_PROXY, PHASE_PROXY, self.k8s_client.node_proxy_url(self.settings.node_name), doer)

    def probe(self, candidate: ConnectionCandidate) -> ProbeResult:
        """Single GET on the health path, no retries."""
        url = join_url(candidate.url, HEALTHZ_PATH)
        self.logger.debug("Probing kubelet", candidate=candidate.name, url=url)
        try:
            response = candidate.doer.request("GET", url)
        except (requests.RequestException, OSError) as e:
            return ProbeFailure(candidate, e)

        try:
            if response.status_code != 200:
                return ProbeFailure(
                    candidate,
                    KubeletHttpError(url, f"got non-200 status code {response.status_code}", response.status_code),
                )
        finally:
            response.close()

        return ProbeSuccess(ConnectionParams(url=candidate.url, doer=candidate.doer, candidate=candidate.name))
