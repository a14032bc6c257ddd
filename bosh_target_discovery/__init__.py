"""Prometheus service discovery for BOSH deployments."""

__version__ = "0.1.0"
