"""Publish targets: provider-agnostic Protocol and sink selection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import ServiceDiscoveryConfig


@runtime_checkable
class PublishTarget(Protocol):
    """Protocol that every target-group sink must satisfy."""

    def write(self, payload: bytes) -> None:
        """Replace the sink contents with the serialized target groups. Raises PublishError."""
        ...


def build_publish_target(config: ServiceDiscoveryConfig, core_v1_api=None) -> PublishTarget:
    """Instantiate the sink selected by configuration: a ConfigMap if one is named, else a file."""
    if config.uses_config_map:
        from .config_map_target import ConfigMapTarget
        from .kube import load_core_v1_api

        api = core_v1_api if core_v1_api is not None else load_core_v1_api()
        return ConfigMapTarget(
            api,
            namespace=config.kubernetes.namespace,
            name=config.kubernetes.config_map,
            key=config.config_map_key,
        )

    from .file_target import FileTarget
    return FileTarget(config.filename)
