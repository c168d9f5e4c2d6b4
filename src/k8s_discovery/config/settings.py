# config/settings.py
import os
from enum import Enum
from typing import Annotated, List, Optional

from dotenv import load_dotenv
from kubernetes.config.incluster_config import SERVICE_TOKEN_FILENAME
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from k8s_discovery.core.exceptions import ConfigurationException
from k8s_discovery.core.utils import split_strings

DEFAULT_HOST = "localhost"
DEFAULT_TIMEOUT_MS = 5000
DEFAULT_RETRIES = 5

# Legacy environment keys, these take precedence over flags.
CLUSTER_NAME_ENV = "CLUSTER_NAME"
NODE_NAME_ENV = "NRI_KUBERNETES_NODE_NAME"
NODE_NAME_ENV_LEGACY = "NRK8S_NODE_NAME"


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    """Immutable run configuration, built once and handed to every component."""

    model_config = SettingsConfigDict(
        env_prefix="NRIA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    namespaces: Annotated[List[str], NoDecode] = Field(
        default_factory=list, description="Namespaces to discover pods on, all when empty"
    )
    port: Optional[int] = Field(None, description="Kubelet port, read from the Node object when unset")
    host: Optional[str] = Field(None, description="Kubelet host, the node name when unset")
    tls: Optional[bool] = Field(None, description="Use TLS against the kubelet, inferred from the port when unset")
    insecure: Optional[bool] = Field(None, description="Deprecated, overrides tls when set")
    timeout: int = Field(DEFAULT_TIMEOUT_MS, description="Per request timeout in milliseconds")
    retries: int = Field(DEFAULT_RETRIES, description="Attempts per kubelet request")
    retry_backoff: float = Field(1.0, description="Linear backoff step between attempts in seconds")
    kubeconfig: Optional[str] = Field(None, description="Kubeconfig used when not running in cluster")
    cluster_name: str = Field("", validate_default=True, description="Cluster name reported on every item")
    node_name: str = Field("", description="Node the discovery runs on")
    token_file: str = Field(SERVICE_TOKEN_FILENAME, description="Bearer token file for the kubelet")
    discover_services: bool = Field(False, description="Discover services instead of containers")
    log_level: LogLevel = Field(LogLevel.WARNING, description="Log level")
    log_config: Optional[str] = Field(None, description="YAML logging configuration file")

    @field_validator('namespaces', mode='before')
    @classmethod
    def validate_namespaces(cls, v):
        if v is None:
            return []
        if isinstance(v, str):
            return split_strings(v)
        return v

    @field_validator('cluster_name')
    @classmethod
    def validate_cluster_name(cls, v):
        if not v:
            raise ValueError("cluster name is not set")
        return v

    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        # 0 is treated as "not configured"
        if not v:
            return None
        if not 0 < v < 65536:
            raise ValueError(f"invalid port {v}")
        return v

    @field_validator('log_level', mode='before')
    @classmethod
    def validate_log_level(cls, v):
        if isinstance(v, str):
            return LogLevel(v.upper())
        return v

    @property
    def use_tls(self) -> Optional[bool]:
        """Explicit TLS choice, ``None`` when it has to be inferred."""
        if self.insecure is not None:
            return not self.insecure
        return self.tls

    @property
    def kubelet_host(self) -> str:
        return self.host or self.node_name or DEFAULT_HOST

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    @classmethod
    def create_from_env(cls, **overrides) -> "Settings":
        """Create settings from the environment, explicit overrides first.

        Overrides set to ``None`` are ignored so unset CLI flags fall back to
        the environment.
        """
        load_dotenv()
        values = {k: v for k, v in overrides.items() if v is not None}

        if CLUSTER_NAME_ENV in os.environ:
            values["cluster_name"] = os.environ[CLUSTER_NAME_ENV]
        for env_var in (NODE_NAME_ENV, NODE_NAME_ENV_LEGACY):
            if env_var in os.environ:
                values["node_name"] = os.environ[env_var]

        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationException(f"invalid configuration: {e}", {"errors": e.errors()}) from e
