"""Kubernetes API client loading (in-cluster first, then local kubeconfig)."""

from __future__ import annotations

import logging

from kubernetes import client, config

from ..exceptions import KubernetesClientError

logger = logging.getLogger(__name__)


def load_core_v1_api() -> client.CoreV1Api:
    """Return a configured CoreV1Api. Raises KubernetesClientError if no configuration can be loaded."""
    try:
        logger.debug("Attempting to load in-cluster Kubernetes config")
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
        return client.CoreV1Api()
    except config.ConfigException:
        logger.debug("In-cluster config not found")

    try:
        logger.debug("Attempting to load local kubeconfig")
        config.load_kube_config()
        logger.info("Loaded Kubernetes configuration from kubeconfig file")
    except (config.ConfigException, OSError) as exc:
        raise KubernetesClientError(f"Could not load any Kubernetes configuration: {exc}") from exc
    return client.CoreV1Api()
