"""Tests for the kubelet HTTP client."""

import os
from unittest.mock import MagicMock

import pytest
import requests

from k8s_discovery.clients.kubelet.connector import StaticConnector
from k8s_discovery.clients.kubelet.http_client import KubeletHttpClient
from k8s_discovery.clients.kubelet.transport import bearer_token_session
from k8s_discovery.core.exceptions import KubeletConnectionError, KubeletHttpError

from conftest import FakeAdapter, session_factory_for


BASE_URL = "https://apiserver:6443/api/v1/nodes/test-node/proxy/"
PODS_URL = "https://apiserver:6443/api/v1/nodes/test-node/proxy/pods"


def client_for(adapter: FakeAdapter, max_retries: int = 3) -> KubeletHttpClient:
    session = session_factory_for(adapter)()
    return KubeletHttpClient(StaticConnector(session, BASE_URL), max_retries=max_retries, backoff_seconds=0)


class TestKubeletHttpClient:
    """Tests for request building and retries."""

    def test_path_is_joined_to_base_path(self) -> None:
        adapter = FakeAdapter({PODS_URL: (200, "{}")})

        response = client_for(adapter).get("/pods")

        assert response.status_code == 200
        assert adapter.urls() == [PODS_URL]

    def test_server_error_is_retried(self) -> None:
        adapter = FakeAdapter({PODS_URL: [(500, "boom"), (200, "{}")]})

        response = client_for(adapter).get("/pods")

        assert response.status_code == 200
        assert len(adapter.requests) == 2

    def test_too_many_requests_is_retried(self) -> None:
        adapter = FakeAdapter({PODS_URL: [(429, "slow down"), (200, "{}")]})

        assert client_for(adapter).get("/pods").status_code == 200

    def test_exhausted_retries_raise_with_status_and_body(self) -> None:
        adapter = FakeAdapter({PODS_URL: (503, "kubelet unavailable")})

        with pytest.raises(KubeletHttpError) as exc_info:
            client_for(adapter, max_retries=3).get("/pods")

        error = exc_info.value
        assert error.status_code == 503
        assert error.body == "kubelet unavailable"
        assert error.url == PODS_URL
        assert len(adapter.requests) == 3

    def test_client_error_is_not_retried(self) -> None:
        adapter = FakeAdapter({PODS_URL: (404, "not found")})

        with pytest.raises(KubeletHttpError) as exc_info:
            client_for(adapter).get("/pods")

        assert exc_info.value.status_code == 404
        assert len(adapter.requests) == 1

    def test_transport_errors_are_retried_then_raised(self) -> None:
        adapter = FakeAdapter({PODS_URL: [requests.ConnectionError("reset"), requests.Timeout("slow")]})

        with pytest.raises(KubeletHttpError) as exc_info:
            client_for(adapter, max_retries=2).get("/pods")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, requests.Timeout)
        assert len(adapter.requests) == 2

    def test_backoff_is_linear(self, monkeypatch) -> None:
        """Waits are one, two, then three backoff steps."""
        sleeps = []
        monkeypatch.setattr("time.sleep", sleeps.append)
        adapter = FakeAdapter({PODS_URL: (503, "unavailable")})
        session = session_factory_for(adapter)()
        client = KubeletHttpClient(StaticConnector(session, BASE_URL), max_retries=4, backoff_seconds=0.5)

        with pytest.raises(KubeletHttpError):
            client.get("/pods")

        assert len(adapter.requests) == 4
        assert sleeps == pytest.approx([0.5, 1.0, 1.5])

    def test_missing_token_file_raises_http_error(self, token_file) -> None:
        """A token file removed after connecting surfaces as a request failure."""
        adapter = FakeAdapter({"https://kubelet:10250/pods": (200, "{}")})
        session = bearer_token_session(5.0, token_file, session_factory_for(adapter))
        client = KubeletHttpClient(StaticConnector(session, "https://kubelet:10250"), max_retries=3, backoff_seconds=0)
        os.remove(token_file)

        with pytest.raises(KubeletHttpError) as exc_info:
            client.get("/pods")

        assert isinstance(exc_info.value.__cause__, OSError)
        assert adapter.requests == []

    def test_single_attempt_when_retries_disabled(self) -> None:
        adapter = FakeAdapter({PODS_URL: (500, "boom")})

        with pytest.raises(KubeletHttpError):
            client_for(adapter, max_retries=0).get("/pods")

        assert len(adapter.requests) == 1

    def test_connection_failure_surfaces_at_construction(self) -> None:
        connector = MagicMock()
        connector.connect.side_effect = KubeletConnectionError("proxy probe", "nothing answered")

        with pytest.raises(KubeletConnectionError):
            KubeletHttpClient(connector)

    def test_close_closes_transport(self) -> None:
        doer = MagicMock()
        client = KubeletHttpClient(StaticConnector(doer, BASE_URL))

        client.close()

        doer.close.assert_called_once()
        assert client.url == BASE_URL
