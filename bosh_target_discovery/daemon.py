"""Main polling loop with signal handling and exponential backoff."""

from __future__ import annotations

import logging
import random
import signal
import time
from types import FrameType

from prometheus_client import REGISTRY, CollectorRegistry

from .config import AppConfig
from .director import DirectorClient
from .director.client import BoshDirectorClient
from .discovery.filters import AZsFilter, CidrFilter, ProcessFilter
from .discovery.selector import DeploymentSelector
from .publish import build_publish_target
from .publish.publisher import ScrapeMetrics, TargetGroupPublisher

logger = logging.getLogger(__name__)


class Daemon:
    """Polling daemon: select deployments -> aggregate -> publish -> sleep."""

    def __init__(
        self,
        config: AppConfig,
        director: DirectorClient | None = None,
        core_v1_api=None,
        registry: CollectorRegistry = REGISTRY,
    ):
        self._config = config
        self._director = director if director is not None else BoshDirectorClient(config.bosh)
        self._selector = DeploymentSelector(
            self._director,
            filters=config.filters.deployments,
            queued_tasks_limit=config.filters.queued_tasks_limit,
        )
        self._publisher = TargetGroupPublisher(
            build_publish_target(config.service_discovery, core_v1_api),
            self._build_metrics(registry),
            azs_filter=AZsFilter(config.filters.azs),
            cidrs_filter=CidrFilter(config.filters.cidrs),
            processes_filter=ProcessFilter(config.filters.processes),
        )
        self._shutdown = False
        self._consecutive_failures = 0

    def _build_metrics(self, registry: CollectorRegistry) -> ScrapeMetrics:
        """Bind the scrape gauges to the director identity, asking the director when not configured."""
        metrics_cfg = self._config.metrics
        bosh_name, bosh_uuid = metrics_cfg.bosh_name, metrics_cfg.bosh_uuid
        if not (bosh_name and bosh_uuid) and isinstance(self._director, BoshDirectorClient):
            info = self._director.info()
            bosh_name = bosh_name or info.get("name", "")
            bosh_uuid = bosh_uuid or info.get("uuid", "")
        return ScrapeMetrics(
            namespace=metrics_cfg.namespace,
            environment=metrics_cfg.environment,
            bosh_name=bosh_name,
            bosh_uuid=bosh_uuid,
            registry=registry,
        )

    def run_once(self) -> None:
        """Execute a single selection + publish cycle."""
        self._cycle()

    def run(self) -> None:
        """Run the polling loop until shutdown signal."""
        self._install_signal_handlers()
        logger.info("Daemon started, polling every %ds", self._config.polling.interval_seconds)

        while not self._shutdown:
            cycle_start = time.monotonic()

            try:
                self._cycle()
                self._consecutive_failures = 0
            except Exception:
                self._consecutive_failures += 1
                logger.exception(
                    "Cycle failed (consecutive failures: %d)",
                    self._consecutive_failures,
                )

            elapsed = time.monotonic() - cycle_start
            sleep_time = self._calculate_sleep(elapsed)
            logger.debug("Sleeping %.1fs before next cycle", sleep_time)
            self._interruptible_sleep(sleep_time)

        logger.info("Daemon stopped")

    def _cycle(self) -> None:
        """One full selection-to-publish cycle."""
        start = time.monotonic()

        selection = self._selector.select()
        if selection.throttled:
            # Keep the previously published targets rather than publishing an empty list
            logger.info("Cycle skipped, director task queue over limit")
            return

        target_groups = self._publisher.collect(selection.deployments)

        elapsed = time.monotonic() - start
        logger.info(
            "Cycle complete",
            extra={
                "elapsed_seconds": round(elapsed, 2),
                "deployments": len(selection.deployments),
                "target_groups": len(target_groups),
            },
        )

    def _calculate_sleep(self, elapsed: float) -> float:
        """Determine how long to sleep, applying backoff and jitter."""
        base = self._config.polling.interval_seconds

        if self._consecutive_failures > 0:
            backoff = min(
                self._config.polling.backoff_base_seconds * (2 ** (self._consecutive_failures - 1)),
                self._config.polling.max_backoff_seconds,
            )
            base = backoff

        jitter = random.uniform(0, self._config.polling.jitter_seconds)

        return max(0.0, base - elapsed + jitter)

    def _interruptible_sleep(self, seconds: float) -> None:
        """Sleep in short increments so we can respond to shutdown signals."""
        end = time.monotonic() + seconds
        while not self._shutdown and time.monotonic() < end:
            remaining = end - time.monotonic()
            time.sleep(min(remaining, 1.0))

    def _install_signal_handlers(self) -> None:
        signal.signal(signal.SIGTERM, self._handle_shutdown)
        signal.signal(signal.SIGINT, self._handle_shutdown)

    def _handle_shutdown(self, signum: int, frame: FrameType | None) -> None:
        sig_name = signal.Signals(signum).name
        logger.info("Received %s, shutting down", sig_name)
        self._shutdown = True
