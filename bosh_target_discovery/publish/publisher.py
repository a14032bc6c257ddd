"""Target-group publishing and the service discovery scrape gauges."""

from __future__ import annotations

import json
import logging
import threading
import time

from prometheus_client import REGISTRY, CollectorRegistry, Gauge

from ..director.models import DeploymentInfo
from ..discovery.aggregator import build_target_groups, create_label_groups
from ..discovery.filters import AZsFilter, CidrFilter, ProcessFilter
from ..discovery.models import TargetGroup
from ..exceptions import PublishError
from . import PublishTarget

logger = logging.getLogger(__name__)


class ScrapeMetrics:
    """The two gauges owned by the publisher, bound to the director's identity labels."""

    LABEL_NAMES = ("environment", "bosh_name", "bosh_uuid")

    def __init__(
        self,
        namespace: str,
        environment: str,
        bosh_name: str,
        bosh_uuid: str,
        registry: CollectorRegistry = REGISTRY,
    ):
        label_values = (environment, bosh_name, bosh_uuid)
        self.last_scrape_timestamp = Gauge(
            "last_service_discovery_scrape_timestamp",
            "Number of seconds since 1970 since last scrape of Service Discovery from BOSH.",
            labelnames=self.LABEL_NAMES,
            namespace=namespace,
            registry=registry,
        ).labels(*label_values)
        self.last_scrape_duration_seconds = Gauge(
            "last_service_discovery_scrape_duration_seconds",
            "Duration of the last scrape of Service Discovery from BOSH.",
            labelnames=self.LABEL_NAMES,
            namespace=namespace,
            registry=registry,
        ).labels(*label_values)

    def record(self, began: float) -> None:
        self.last_scrape_timestamp.set(int(time.time()))
        self.last_scrape_duration_seconds.set(time.monotonic() - began)


def serialize_target_groups(target_groups: list[TargetGroup]) -> bytes:
    """Encode target groups as a JSON array (``[]`` when there are none)."""
    try:
        return json.dumps([tg.to_dict() for tg in target_groups]).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PublishError(f"Error while marshalling TargetGroups: {exc}") from exc


class TargetGroupPublisher:
    """Aggregates deployments into target groups and writes them to the configured sink."""

    def __init__(
        self,
        target: PublishTarget,
        metrics: ScrapeMetrics,
        azs_filter: AZsFilter | None = None,
        cidrs_filter: CidrFilter | None = None,
        processes_filter: ProcessFilter | None = None,
    ):
        self._target = target
        self._metrics = metrics
        self._azs_filter = azs_filter or AZsFilter([])
        self._cidrs_filter = cidrs_filter or CidrFilter(["0.0.0.0/0"])
        self._processes_filter = processes_filter or ProcessFilter([])
        self._lock = threading.Lock()

    def collect(self, deployments: list[DeploymentInfo]) -> list[TargetGroup]:
        """Aggregate the deployments and publish the resulting target groups."""
        label_groups = create_label_groups(
            deployments, self._azs_filter, self._cidrs_filter, self._processes_filter,
        )
        target_groups = build_target_groups(label_groups)
        self.publish(target_groups)
        return target_groups

    def publish(self, target_groups: list[TargetGroup]) -> None:
        """Write the target groups to the sink. Gauges are recorded whether or not the write succeeds."""
        with self._lock:
            began = time.monotonic()
            try:
                self._target.write(serialize_target_groups(target_groups))
            finally:
                self._metrics.record(began)

        logger.info(
            "Published target groups",
            extra={"target_groups": len(target_groups)},
        )
