"""Deployment selection with a queued-task circuit breaker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..director import DirectorClient
from ..director.models import DeploymentInfo
from ..exceptions import DeploymentLookupError, DiscoveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Deployments visible for one cycle.

    ``throttled`` is set when the queued-task limit was exceeded and the cycle
    was shed; ``deployments`` is then empty.
    """

    deployments: list[DeploymentInfo] = field(default_factory=list)
    throttled: bool = False


class DeploymentSelector:
    """Decides which deployments are collected in a cycle."""

    def __init__(self, director: DirectorClient, filters: list[str] | None = None, queued_tasks_limit: int = 0):
        self._director = director
        self._filters = list(filters or [])
        self._queued_tasks_limit = queued_tasks_limit

    def select_deployments(self) -> list[DeploymentInfo]:
        """Return the deployments to collect; empty (not an error) when the director is overloaded.

        Raises DeploymentLookupError if a named deployment or the listing cannot be read.
        """
        return self.select().deployments

    def select(self) -> Selection:
        if self._queue_limit_exceeded():
            return Selection(throttled=True)

        if self._filters:
            return Selection(deployments=self._find_filtered())
        return Selection(deployments=self._list_all())

    def _queue_limit_exceeded(self) -> bool:
        try:
            queued = self._director.current_tasks(["queued"])
        except DiscoveryError as exc:
            logger.warning("Could not read queued director tasks: %s", exc)
            queued = []

        if self._queued_tasks_limit == 0:
            return False

        logger.debug(
            "Queued task limit set to %d, current task queue is %d",
            self._queued_tasks_limit, len(queued),
        )
        if len(queued) > self._queued_tasks_limit:
            logger.warning(
                "Queued tasks have reached the limit, skipping this cycle",
                extra={"queued_tasks": len(queued)},
            )
            return True
        return False

    def _find_filtered(self) -> list[DeploymentInfo]:
        logger.debug("Filtering deployments by %s", self._filters)
        deployments: list[DeploymentInfo] = []
        for deployment_name in self._filters:
            logger.debug("Reading deployment", extra={"deployment": deployment_name.strip()})
            try:
                deployments.append(self._director.find_deployment(deployment_name.strip()))
            except Exception as exc:
                raise DeploymentLookupError(
                    f"Error while reading deployment '{deployment_name}': {exc}",
                    deployments=deployments,
                ) from exc
        return deployments

    def _list_all(self) -> list[DeploymentInfo]:
        logger.debug("Reading deployments")
        try:
            return list(self._director.deployments())
        except Exception as exc:
            raise DeploymentLookupError(f"Error while reading deployments: {exc}") from exc
