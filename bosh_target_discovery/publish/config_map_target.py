"""Kubernetes ConfigMap sink for Prometheus service discovery."""

from __future__ import annotations

import logging

from kubernetes import client

from ..exceptions import PublishError

logger = logging.getLogger(__name__)


class ConfigMapTarget:
    """Stores target groups under a single key of a namespaced ConfigMap.

    The read-then-create-or-replace sequence carries no resourceVersion, so a
    concurrent writer between the read and the replace is overwritten.
    """

    def __init__(self, core_v1_api: client.CoreV1Api, namespace: str, name: str, key: str):
        self._api = core_v1_api
        self.namespace = namespace
        self.name = name
        self.key = key

    @property
    def sink(self) -> str:
        return f"configmap:{self.namespace}/{self.name}"

    def write(self, payload: bytes) -> None:
        body = client.V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=client.V1ObjectMeta(name=self.name),
            data={self.key: payload.decode("utf-8")},
        )

        try:
            self._api.read_namespaced_config_map(self.name, self.namespace)
        except Exception as exc:  # absent or unreachable: both fall through to create
            logger.debug("ConfigMap %s/%s could not be read (%s), creating it", self.namespace, self.name, exc)
            try:
                self._api.create_namespaced_config_map(self.namespace, body)
            except Exception as create_exc:
                raise PublishError(f"error creating configmap: {create_exc}") from create_exc
            logger.info("Created ConfigMap %s/%s", self.namespace, self.name, extra={"sink": self.sink})
            return

        try:
            self._api.replace_namespaced_config_map(self.name, self.namespace, body)
        except Exception as exc:
            raise PublishError(f"error updating configmap: {exc}") from exc
        logger.debug("Updated ConfigMap %s/%s", self.namespace, self.name, extra={"sink": self.sink})
