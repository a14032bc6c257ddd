"""BOSH director package: client Protocol and public exports."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .models import DeploymentInfo


@runtime_checkable
class DirectorClient(Protocol):
    """Protocol that every director client must satisfy."""

    def deployments(self) -> list[DeploymentInfo]:
        """Return every deployment known to the director, in director order."""
        ...

    def find_deployment(self, name: str) -> DeploymentInfo:
        """Return the named deployment. Raises DirectorAPIError if it cannot be read."""
        ...

    def current_tasks(self, states: list[str]) -> list[dict[str, Any]]:
        """Return the director tasks (across all deployments) in any of the given states."""
        ...
