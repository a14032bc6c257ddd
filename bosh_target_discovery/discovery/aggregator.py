"""Aggregation of deployment instances into label groups and target groups."""

from __future__ import annotations

import logging

from ..director.models import DeploymentInfo
from .filters import AZsFilter, CidrFilter, ProcessFilter
from .models import LabelGroupKey, LabelGroups, TargetGroup

logger = logging.getLogger(__name__)


def create_label_groups(
    deployments: list[DeploymentInfo],
    azs_filter: AZsFilter,
    cidrs_filter: CidrFilter,
    processes_filter: ProcessFilter,
) -> LabelGroups:
    """Group the selected address of every instance by (deployment, process).

    An instance without an address inside the CIDR filter, or outside the
    allowed zones, contributes nothing. A process rejected by the process
    filter is skipped without affecting its sibling processes.
    """
    label_groups: LabelGroups = {}

    for deployment in deployments:
        for instance in deployment.instances:
            ip, found = cidrs_filter.select(instance.ips)
            if not found or not azs_filter.enabled(instance.az):
                logger.debug(
                    "Skipping instance %s/%s of %s (address selected: %s, az: %r)",
                    instance.name, instance.id, deployment.name, found, instance.az,
                )
                continue

            for process in instance.processes:
                if not processes_filter.enabled(process.name):
                    continue
                key = LabelGroupKey(deployment.name, process.name)
                label_groups.setdefault(key, []).append(ip)

    return label_groups


def build_target_groups(label_groups: LabelGroups) -> list[TargetGroup]:
    """Convert label groups into target groups sorted by deployment, then process name."""
    return [
        TargetGroup(targets=list(label_groups[key]), labels=key.labels())
        for key in sorted(label_groups)
        if label_groups[key]
    ]
