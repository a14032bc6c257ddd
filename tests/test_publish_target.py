"""Tests for sink selection."""

from unittest.mock import MagicMock, patch

import pytest

from bosh_target_discovery.config import KubernetesConfig, ServiceDiscoveryConfig
from bosh_target_discovery.exceptions import KubernetesClientError
from bosh_target_discovery.publish import PublishTarget, build_publish_target
from bosh_target_discovery.publish.config_map_target import ConfigMapTarget
from bosh_target_discovery.publish.file_target import FileTarget


class TestBuildPublishTarget:
    def test_file_target_by_default(self):
        target = build_publish_target(ServiceDiscoveryConfig(filename="/tmp/sd.json"))
        assert isinstance(target, FileTarget)
        assert isinstance(target, PublishTarget)
        assert target.path == "/tmp/sd.json"

    def test_config_map_target_when_named(self):
        config = ServiceDiscoveryConfig(
            filename="/var/sd/bosh_target_groups.json",
            kubernetes=KubernetesConfig(namespace="monitoring", config_map="bosh-sd"),
        )
        target = build_publish_target(config, core_v1_api=MagicMock())
        assert isinstance(target, ConfigMapTarget)
        assert (target.namespace, target.name, target.key) == ("monitoring", "bosh-sd", "bosh_target_groups.json")

    def test_client_setup_failure_propagates(self):
        config = ServiceDiscoveryConfig(kubernetes=KubernetesConfig(namespace="monitoring", config_map="bosh-sd"))
        with patch(
            "bosh_target_discovery.publish.kube.load_core_v1_api",
            side_effect=KubernetesClientError("no kubeconfig"),
        ):
            with pytest.raises(KubernetesClientError, match="no kubeconfig"):
                build_publish_target(config)


class TestLoadCoreV1Api:
    def test_falls_back_to_kubeconfig(self):
        from kubernetes import config as k8s_config

        from bosh_target_discovery.publish import kube

        with patch.object(kube.config, "load_incluster_config", side_effect=k8s_config.ConfigException("no sa")), \
                patch.object(kube.config, "load_kube_config") as load_kube_config, \
                patch.object(kube.client, "CoreV1Api") as core_v1_api:
            assert kube.load_core_v1_api() is core_v1_api.return_value
        load_kube_config.assert_called_once()

    def test_raises_when_nothing_loads(self):
        from kubernetes import config as k8s_config

        from bosh_target_discovery.publish import kube

        with patch.object(kube.config, "load_incluster_config", side_effect=k8s_config.ConfigException("no sa")), \
                patch.object(kube.config, "load_kube_config", side_effect=k8s_config.ConfigException("no file")):
            with pytest.raises(KubernetesClientError, match="no file"):
                kube.load_core_v1_api()
