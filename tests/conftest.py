"""Pytest configuration and shared fixtures for discovery tests."""

import json
from typing import Any, Callable, Dict, List, Optional
from unittest.mock import MagicMock
from urllib.parse import urlparse

import pytest
import requests
from kubernetes import client
from requests.adapters import BaseAdapter

from k8s_discovery.clients.kubelet.transport import TimeoutSession
from k8s_discovery.clients.kubernetes.k8s_client import KubernetesClient
from k8s_discovery.config.settings import Settings


CLUSTER_NAME = "test-cluster"
NODE_NAME = "test-node"
API_SERVER = "https://apiserver:6443"
API_TOKEN = "api-server-token"
KUBELET_TOKEN = "kubelet-token"

ENV_VARS = (
    "CLUSTER_NAME",
    "NRI_KUBERNETES_NODE_NAME",
    "NRK8S_NODE_NAME",
    "NRIA_NAMESPACES",
    "NRIA_PORT",
    "NRIA_HOST",
    "NRIA_TLS",
    "NRIA_INSECURE",
    "NRIA_TIMEOUT",
    "NRIA_RETRIES",
    "NRIA_RETRY_BACKOFF",
    "NRIA_KUBECONFIG",
    "NRIA_CLUSTER_NAME",
    "NRIA_NODE_NAME",
    "NRIA_TOKEN_FILE",
    "NRIA_DISCOVER_SERVICES",
    "NRIA_LOG_LEVEL",
    "NRIA_LOG_CONFIG",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of the settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ============================================================================
# Fake HTTP transport
# ============================================================================


class FakeAdapter(BaseAdapter):
    """requests adapter answering from a routing table.

    Routes map a full URL to ``(status, body)``, an exception to raise, or a
    list of those consumed in order (the last one repeats). Hosts listed as
    unreachable raise a ConnectionError. Every request is recorded.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None, unreachable: tuple = ()) -> None:
        super().__init__()
        self.routes = routes or {}
        self.unreachable = set(unreachable)
        self.requests: List[requests.PreparedRequest] = []
        self.timeouts: List[Any] = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.requests.append(request)
        self.timeouts.append(timeout)

        if urlparse(request.url).hostname in self.unreachable:
            raise requests.ConnectionError(f"connection refused: {request.url}")

        answer = self.routes.get(request.url, (404, "not found"))
        if isinstance(answer, list):
            answer = answer.pop(0) if len(answer) > 1 else answer[0]
        if isinstance(answer, Exception):
            raise answer

        status, body = answer
        response = requests.Response()
        response.status_code = status
        response._content = body.encode() if isinstance(body, str) else body
        response.encoding = "utf-8"
        response.url = request.url
        response.request = request
        return response

    def close(self) -> None:
        pass

    def urls(self) -> List[str]:
        return [r.url for r in self.requests]


def session_factory_for(adapter: FakeAdapter) -> Callable[[], TimeoutSession]:
    def factory() -> TimeoutSession:
        session = TimeoutSession()
        session.mount("http://", adapter)
        session.mount("https://", adapter)
        return session
    return factory


# ============================================================================
# Settings and Kubernetes client fixtures
# ============================================================================


def make_settings(**overrides: Any) -> Settings:
    values = {"cluster_name": CLUSTER_NAME, "node_name": NODE_NAME, "retry_backoff": 0}
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def token_file(tmp_path) -> str:
    path = tmp_path / "token"
    path.write_text(KUBELET_TOKEN)
    return str(path)


@pytest.fixture
def api_configuration() -> client.Configuration:
    configuration = client.Configuration()
    configuration.host = API_SERVER
    configuration.api_key = {"authorization": API_TOKEN}
    configuration.api_key_prefix = {"authorization": "Bearer"}
    configuration.verify_ssl = False
    return configuration


def node_with_kubelet_port(port: int) -> client.V1Node:
    return client.V1Node(
        metadata=client.V1ObjectMeta(name=NODE_NAME),
        status=client.V1NodeStatus(
            daemon_endpoints=client.V1NodeDaemonEndpoints(
                kubelet_endpoint=client.V1DaemonEndpoint(port=port)
            )
        ),
    )


@pytest.fixture
def core_v1() -> MagicMock:
    """Mock CoreV1Api."""
    api = MagicMock()
    api.read_node.return_value = node_with_kubelet_port(10250)
    return api


@pytest.fixture
def k8s_client(api_configuration: client.Configuration, core_v1: MagicMock) -> KubernetesClient:
    return KubernetesClient(api_configuration, cluster_name=CLUSTER_NAME, core_v1=core_v1)


# ============================================================================
# Kubelet payloads
# ============================================================================


def make_pod(
    name: str,
    namespace: str,
    phase: str = "Running",
    containers: Optional[List[Dict[str, Any]]] = None,
    statuses: Optional[List[Dict[str, Any]]] = None,
    labels: Optional[Dict[str, str]] = None,
    annotations: Optional[Dict[str, str]] = None,
    pod_ip: str = "10.244.0.10",
    host_ip: str = "10.0.0.1",
) -> Dict[str, Any]:
    """Pod as served by the kubelet /pods endpoint."""
    if containers is None:
        containers = [{"name": name, "image": f"{name}-image", "ports": [{"containerPort": 80}]}]
    if statuses is None:
        statuses = [running_status(c["name"]) for c in containers]
    metadata = {"name": name, "namespace": namespace}
    if labels:
        metadata["labels"] = labels
    if annotations:
        metadata["annotations"] = annotations
    return {
        "metadata": metadata,
        "spec": {"containers": containers, "nodeName": NODE_NAME},
        "status": {
            "phase": phase,
            "podIP": pod_ip,
            "hostIP": host_ip,
            "containerStatuses": statuses,
        },
    }


def running_status(name: str) -> Dict[str, Any]:
    return {
        "name": name,
        "containerID": f"containerd://{name}-id",
        "image": f"{name}-image",
        "imageID": f"{name}-image-id",
        "ready": True,
        "state": {"running": {"startedAt": "2024-01-15T10:30:00Z"}},
    }


def waiting_status(name: str) -> Dict[str, Any]:
    status = running_status(name)
    status["ready"] = False
    status["state"] = {"waiting": {"reason": "CrashLoopBackOff"}}
    return status


def terminated_status(name: str) -> Dict[str, Any]:
    status = running_status(name)
    status["ready"] = False
    status["state"] = {"terminated": {"exitCode": 0, "reason": "Completed"}}
    return status


def pod_list(*pods: Dict[str, Any]) -> str:
    return json.dumps({"kind": "PodList", "apiVersion": "v1", "items": list(pods)})
