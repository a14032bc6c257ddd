"""Custom exception hierarchy for the BOSH target discovery daemon."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .director.models import DeploymentInfo


class DiscoveryError(Exception):
    """Base exception for all daemon errors."""


class ConfigError(DiscoveryError):
    """Invalid or missing configuration."""


class DirectorAPIError(DiscoveryError):
    """Error communicating with the BOSH director API."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class DeploymentLookupError(DiscoveryError):
    """A named deployment could not be read, or the deployment listing failed.

    ``deployments`` holds whatever was gathered before the failure.
    """

    def __init__(self, message: str, deployments: list[DeploymentInfo] | None = None):
        super().__init__(message)
        self.deployments = deployments if deployments is not None else []


class PublishError(DiscoveryError):
    """Target groups could not be serialized or written to the sink."""


class KubernetesClientError(DiscoveryError):
    """The Kubernetes API client could not be initialised."""
