"""Kubernetes workload discovery for the monitoring agent."""

__version__ = "0.1.0"
