"""HTTP client issuing kubelet requests over the connector's transport."""

from typing import Optional

import requests
import structlog
from tenacity import RetryCallState

from k8s_discovery.core.exceptions import KubeletHttpError
from k8s_discovery.core.utils import body_snippet, retry_with_backoff
from .connector import ConnectionParams, Connector
from .transport import join_url

logger = structlog.get_logger(__name__)

DEFAULT_MAX_RETRIES = 5


class RetryableStatusError(Exception):
    """Response status worth another attempt (5xx, 429)."""

    def __init__(self, response: requests.Response):
        self.response = response
        super().__init__(f"status {response.status_code}")


class KubeletHttpClient:
    """GETs against the kubelet with linear backoff retries.

    The connection is established once, when the client is built. Each
    attempt is bounded by the transport timeout, so ``max_retries`` attempts
    can take up to ``max_retries`` times that timeout plus the backoff.
    """

    def __init__(
        self,
        connector: Connector,
        max_retries: int = DEFAULT_MAX_RETRIES,
        backoff_seconds: float = 1.0,
    ):
        self.max_retries = max(1, max_retries)
        self.logger = logger.bind(component="kubelet_http_client")
        self.params: ConnectionParams = connector.connect()
        self._get_with_retries = retry_with_backoff(
            max_retries=self.max_retries,
            backoff_seconds=backoff_seconds,
            retry_on=(requests.RequestException, RetryableStatusError),
            before_sleep=self._log_retry,
        )(self._get_once)

    @property
    def url(self) -> str:
        return self.params.url

    def get(self, path: str) -> requests.Response:
        """GET ``path`` below the connection base URL.

        Raises:
            KubeletHttpError: on a non-2xx answer or once retries are exhausted. Also
                raised when the request cannot be prepared, e.g. an unreadable
                token file.
        """
        url = join_url(self.params.url, path)
        try:
            return self._get_with_retries(url)
        except RetryableStatusError as e:
            response = e.response
            raise KubeletHttpError(
                url,
                f"giving up after {self.max_retries} attempts, status {response.status_code}",
                response.status_code,
                body_snippet(response.text),
            ) from e
        except requests.RequestException as e:
            raise KubeletHttpError(url, f"giving up after {self.max_retries} attempts: {e}") from e
        except OSError as e:
            # bearer token file gone or unreadable
            raise KubeletHttpError(url, f"preparing request: {e}") from e

    def close(self) -> None:
        self.params.doer.close()

    def _get_once(self, url: str) -> requests.Response:
        response = self.params.doer.request("GET", url)
        status = response.status_code
        if status == 429 or status >= 500:
            raise RetryableStatusError(response)
        if not 200 <= status < 300:
            raise KubeletHttpError(url, f"unexpected status {status}", status, body_snippet(response.text))
        return response

    def _log_retry(self, retry_state: RetryCallState) -> None:
        error: Optional[BaseException] = retry_state.outcome.exception() if retry_state.outcome else None
        self.logger.debug(
            "Retrying kubelet request",
            attempt=retry_state.attempt_number,
            max_retries=self.max_retries,
            error=str(error),
        )
