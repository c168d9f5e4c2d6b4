from .exceptions import *
from .utils import *

__all__ = [
    "DiscoveryBaseException",
    "ConfigurationException",
    "ClientConnectionException",
    "KubeletConnectionError",
    "KubeletHttpError",
    "DiscoveryException",
    "DecodeException",
    "retry_with_backoff",
    "setup_logging",
]
