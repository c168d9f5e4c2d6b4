"""HTTP transports (Doers) used to reach the kubelet.

A Doer is anything exposing ``request(method, url, **kwargs)`` and returning a
``requests.Response``; ``requests.Session`` is the concrete one.
"""

from pathlib import Path
from typing import Callable, Optional, Protocol

import requests
from requests.auth import AuthBase
import structlog
import urllib3
from kubernetes.client import Configuration

logger = structlog.get_logger(__name__)


class Doer(Protocol):
    """Performs a single HTTP request."""

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        ...

    def close(self) -> None:
        ...


class TimeoutSession(requests.Session):
    """Session applying a default timeout to every request attempt."""

    def __init__(self, timeout: Optional[float] = None):
        super().__init__()
        self.timeout = timeout

    def request(self, method, url, **kwargs):
        kwargs.setdefault("timeout", self.timeout)
        # verify has to be passed per request, REQUESTS_CA_BUNDLE overrides the session value
        kwargs.setdefault("verify", self.verify)
        return super().request(method, url, **kwargs)


SessionFactory = Callable[[], TimeoutSession]


class BearerTokenFileAuth(AuthBase):
    """Bearer auth reading the token file on every request.

    Service account tokens are rotated on disk, reading per request keeps the
    connection valid without rebuilding it.
    """

    def __init__(self, token_file: str):
        self.token_file = token_file

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        token = Path(self.token_file).read_text().strip()
        r.headers["Authorization"] = f"Bearer {token}"
        return r


class KubernetesApiAuth(AuthBase):
    """Authorization header taken from a kubernetes client Configuration.

    ``get_api_key_with_prefix`` runs the configuration's refresh hook, which
    is how the in-cluster loader re-reads a rotated token.
    """

    def __init__(self, configuration: Configuration):
        self.configuration = configuration

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        value = self.configuration.get_api_key_with_prefix("authorization")
        if value:
            r.headers["Authorization"] = value
        return r


def plain_session(timeout: float, session_factory: Optional[SessionFactory] = None) -> TimeoutSession:
    """Session for the plaintext kubelet endpoint, no credentials attached."""
    session = (session_factory or TimeoutSession)()
    session.timeout = timeout
    return session


def bearer_token_session(
    timeout: float,
    token_file: str,
    session_factory: Optional[SessionFactory] = None,
) -> TimeoutSession:
    """Session for the kubelet TLS endpoint.

    The kubelet serving certificate cannot be verified the way the API server
    one is, so verification is disabled.
    """
    session = (session_factory or TimeoutSession)()
    session.timeout = timeout
    session.verify = False
    urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    if Path(token_file).exists():
        session.auth = BearerTokenFileAuth(token_file)
    else:
        logger.warning("Bearer token file not found, kubelet requests are unauthenticated", token_file=token_file)
    return session


def api_server_session(
    configuration: Configuration,
    timeout: float,
    session_factory: Optional[SessionFactory] = None,
) -> TimeoutSession:
    """Session reusing the API server credentials of a client Configuration."""
    session = (session_factory or TimeoutSession)()
    session.timeout = timeout
    session.auth = KubernetesApiAuth(configuration)

    if configuration.verify_ssl:
        session.verify = configuration.ssl_ca_cert or True
    else:
        session.verify = False
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    if configuration.cert_file and configuration.key_file:
        session.cert = (configuration.cert_file, configuration.key_file)

    if configuration.proxy:
        session.proxies = {"http": configuration.proxy, "https": configuration.proxy}

    return session


def join_url(base_url: str, path: str) -> str:
    """Append ``path`` to the base URL keeping the base path (API proxy prefix)."""
    return base_url.rstrip("/") + "/" + path.lstrip("/")
