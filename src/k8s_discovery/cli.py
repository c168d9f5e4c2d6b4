# src/k8s_discovery/cli.py
"""Discovery CLI - one-shot discovery of the workloads running on this node."""

import json
import sys
from enum import IntEnum
from typing import Optional

import click
import structlog

from k8s_discovery.clients.kubelet.connector import DefaultConnector
from k8s_discovery.clients.kubelet.http_client import KubeletHttpClient
from k8s_discovery.clients.kubernetes.client_factory import KubernetesClientFactory
from k8s_discovery.config.settings import Settings
from k8s_discovery.core.exceptions import DiscoveryBaseException
from k8s_discovery.core.utils import setup_logging
from k8s_discovery.discovery.discoverer import Discoverer
from k8s_discovery.discovery.kubernetes import KubeletContainerDiscovery, KubernetesServiceDiscovery
from k8s_discovery.models.discovery_models import dump_output

logger = structlog.get_logger(__name__)


class ExitCode(IntEnum):
    OK = 0
    DISCOVERY_FAILED = 2
    SERIALIZATION_FAILED = 3
    CONFIG_FAILED = 4
    KUBERNETES_CONFIG_FAILED = 5
    KUBERNETES_CLIENT_FAILED = 6
    KUBELET_CLIENT_FAILED = 7


@click.command()
@click.option('--namespaces', default=None, help='Comma separated list of namespaces to discover pods on, all when empty')
@click.option('--port', type=int, default=None, help='Kubelet port, read from the node status when unset')
@click.option('--host', default=None, help='Kubelet host, the node name when unset')
@click.option('--tls/--no-tls', default=None, help='Use a TLS connection to the kubelet, inferred from the port when unset')
@click.option('--insecure/--no-insecure', default=None, help='Deprecated, use a plaintext connection. Takes precedence over --tls')
@click.option('--timeout', type=int, default=None, help='Request timeout in milliseconds (default: 5000)')
@click.option('--retries', type=int, default=None, help='Attempts per kubelet request (default: 5)')
@click.option('--kubeconfig', default=None, help='Kubeconfig used when not running inside the cluster')
@click.option('--cluster_name', '--cluster-name', 'cluster_name', default=None, help='Cluster name')
@click.option('--node_name', '--node-name', 'node_name', default=None, help='Node the discovery runs on, also the default kubelet host')
@click.option('--discover-services/--no-discover-services', default=None, help='Discover services instead of containers')
@click.option('--log-level', default=None, help='Log level (default: WARNING)')
@click.option('--log-config', default=None, help='YAML logging configuration (logging.config.dictConfig schema)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def discover(namespaces, port, host, tls, insecure, timeout, retries, kubeconfig, cluster_name, node_name,
             discover_services, log_level, log_config, verbose):
    """
    Discover the workloads running on this node.

    Prints a single JSON array of discovered items on stdout. Every option
    can also be set through an NRIA_ prefixed environment variable, e.g.
    NRIA_NAMESPACES or NRIA_DISCOVER_SERVICES.

    Example:
        k8s-discovery --cluster_name prod --namespaces default,monitoring
    """
    try:
        settings = Settings.create_from_env(
            namespaces=namespaces,
            port=port,
            host=host,
            tls=tls,
            insecure=insecure,
            timeout=timeout,
            retries=retries,
            kubeconfig=kubeconfig,
            cluster_name=cluster_name,
            node_name=node_name,
            discover_services=discover_services,
            log_level="DEBUG" if verbose else log_level,
            log_config=log_config,
        )
    except DiscoveryBaseException as e:
        click.echo(f"failed to read the configuration: {e}", err=True)
        sys.exit(ExitCode.CONFIG_FAILED)

    setup_logging(settings.log_config, log_level=settings.log_level.value)
    sys.exit(run(settings))


def run(settings: Settings, factory: Optional[KubernetesClientFactory] = None) -> int:
    """Run one discovery and print it, returning the process exit code."""
    factory = factory or KubernetesClientFactory(settings)

    try:
        configuration = factory.load_configuration()
    except DiscoveryBaseException as e:
        logger.error("setting kubernetes configuration", error=str(e))
        return ExitCode.KUBERNETES_CONFIG_FAILED

    try:
        k8s_client = factory.create_client(configuration)
    except DiscoveryBaseException as e:
        logger.error("building kubernetes client", error=str(e))
        return ExitCode.KUBERNETES_CLIENT_FAILED

    kubelet = None
    http_client = None
    service_discoverer = None
    if settings.discover_services:
        service_discoverer = KubernetesServiceDiscovery(k8s_client, settings)
    else:
        try:
            http_client = KubeletHttpClient(
                DefaultConnector(k8s_client, settings),
                max_retries=settings.retries,
                backoff_seconds=settings.retry_backoff,
            )
        except DiscoveryBaseException as e:
            logger.error("building kubelet client", error=str(e))
            return ExitCode.KUBELET_CLIENT_FAILED
        kubelet = KubeletContainerDiscovery(http_client, settings)

    discoverer = Discoverer(
        settings.namespaces,
        kubelet,
        discover_services=settings.discover_services,
        service_discoverer=service_discoverer,
    )
    try:
        items = discoverer.run()
    except DiscoveryBaseException as e:
        logger.error("failed to discover workloads", error=str(e))
        return ExitCode.DISCOVERY_FAILED
    finally:
        if http_client is not None:
            http_client.close()

    try:
        output = json.dumps(dump_output(items), separators=(",", ":"))
    except (TypeError, ValueError) as e:
        logger.error("failed to marshal result to JSON", error=str(e))
        return ExitCode.SERIALIZATION_FAILED

    click.echo(output)
    return ExitCode.OK


def main():
    discover()


if __name__ == '__main__':
    main()
