"""Label-group keys and Prometheus target groups."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

DEPLOYMENT_LABEL = "__meta_bosh_deployment"
PROCESS_NAME_LABEL = "__meta_bosh_job_process_name"


@dataclass(frozen=True, order=True)
class LabelGroupKey:
    """Grouping key: (deployment_name, process_name)."""

    deployment_name: str
    process_name: str

    def labels(self) -> dict[str, str]:
        return {
            DEPLOYMENT_LABEL: self.deployment_name,
            PROCESS_NAME_LABEL: self.process_name,
        }


LabelGroups = dict[LabelGroupKey, list[str]]


@dataclass
class TargetGroup:
    """One entry of a Prometheus file_sd / ConfigMap target list."""

    targets: list[str]
    labels: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"targets": list(self.targets)}
        if self.labels:
            data["labels"] = dict(self.labels)
        return data
