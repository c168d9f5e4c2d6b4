"""Custom exceptions for kubelet discovery."""

from typing import Optional, Dict, Any


class DiscoveryBaseException(Exception):
    """Base exception for the discovery integration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationException(DiscoveryBaseException):
    """Raised when configuration is invalid."""
    pass


class ClientConnectionException(DiscoveryBaseException):
    """Raised when client connections fail."""

    def __init__(self, client_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.client_type = client_type
        super().__init__(f"{client_type} connection failed: {message}", details)


class KubeletConnectionError(ClientConnectionException):
    """Raised when no connection candidate reached the kubelet.

    ``phase`` names the step that failed last (port resolution, local probe,
    proxy probe) and the underlying error is chained as ``__cause__``.
    """

    def __init__(self, phase: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.phase = phase
        super().__init__("Kubelet", f"{phase}: {message}", details)


class KubeletHttpError(DiscoveryBaseException):
    """Raised when a request against the kubelet does not succeed."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        details = {"url": url, "status_code": status_code, "body": body}
        super().__init__(f"request to {url} failed: {message}", details)


class DiscoveryException(DiscoveryBaseException):
    """Raised when discovery operations fail."""

    def __init__(self, discovery_type: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.discovery_type = discovery_type
        super().__init__(f"Discovery failed for {discovery_type}: {message}", details)


class DecodeException(DiscoveryException):
    """Raised when the kubelet answers with a payload that cannot be decoded."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__("decode", message, details)
