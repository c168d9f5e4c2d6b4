from .connector import ConnectionParams, Connector, DefaultConnector, StaticConnector
from .http_client import KubeletHttpClient
from .transport import TimeoutSession

__all__ = [
    "ConnectionParams",
    "Connector",
    "DefaultConnector",
    "StaticConnector",
    "KubeletHttpClient",
    "TimeoutSession",
]
