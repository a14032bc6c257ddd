"""Data models for deployments, instances and processes reported by the director."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Process:
    """A monit-managed job process running on an instance."""

    name: str


@dataclass(frozen=True)
class Instance:
    """One VM of a deployment."""

    name: str
    id: str = ""
    index: str = ""
    az: str = ""
    ips: list[str] = field(default_factory=list)
    processes: list[Process] = field(default_factory=list)

    @classmethod
    def from_director(cls, raw: dict[str, Any]) -> Instance:
        """Build an Instance from one line of a ``format=full`` instances task result."""
        return cls(
            name=raw.get("job_name") or "",
            id=raw.get("id") or "",
            index=str(raw["index"]) if raw.get("index") is not None else "",
            az=raw.get("az") or "",
            ips=list(raw.get("ips") or []),
            processes=[Process(name=p["name"]) for p in raw.get("processes") or [] if p.get("name")],
        )


@dataclass(frozen=True)
class DeploymentInfo:
    """A BOSH deployment and its instances, built fresh on every cycle."""

    name: str
    instances: list[Instance] = field(default_factory=list)
