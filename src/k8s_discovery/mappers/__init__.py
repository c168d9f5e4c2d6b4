"""Mappers for transforming discovery records into output items."""

from .discovery_mapper import DiscoveryMapper

__all__ = ["DiscoveryMapper"]
