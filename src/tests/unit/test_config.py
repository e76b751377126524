"""Tests for broker configuration loading."""

from pathlib import Path

import pytest

from persi_broker.config import BrokerSettings, ConfigError, load_broker_config

CONFIG_YAML = """
backend_host: 127.0.0.1
backend_port: "9090"
namespace: persi
auth:
  username: admin
  password: secret
service:
  service_name: persi
  service_id: 6d1f3f1c-0000-4000-8000-000000000001
  description: Kubernetes volumes
  display_name: Persi
  icon_image: aWNvbg==
  plans:
    - plan_id: p1
      plan_name: gold
      description: Gold storage
      kube_storage_class: gold
      free: true
      default_size: 1Gi
      default_access_mode: ReadWriteOnce
    - plan_id: p2
      plan_name: silver
      kube_storage_class: silver
"""


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "broker.yml"
    path.write_text(text)
    return path


class TestLoadBrokerConfig:
    """Tests for load_broker_config()."""

    def test_full_config(self, tmp_path: Path) -> None:
        """All documented keys are read."""
        config = load_broker_config(write(tmp_path, CONFIG_YAML))

        assert config.host == "127.0.0.1"
        assert config.port == 9090
        assert config.namespace == "persi"
        assert config.auth.username == "admin"
        assert config.service.service_name == "persi"

        gold, silver = config.service.plans
        assert gold.id == "p1"
        assert gold.name == "gold"
        assert gold.storage_class == "gold"
        assert gold.free is True
        assert gold.default_size == "1Gi"
        assert gold.default_access_mode == "ReadWriteOnce"
        assert silver.default_size == ""
        assert silver.free is False

    def test_defaults(self, tmp_path: Path) -> None:
        """Optional keys fall back to defaults."""
        config = load_broker_config(write(tmp_path, "service: {service_name: persi}\n"))

        assert config.namespace == "default"
        assert config.port is None
        assert config.binding_annotation_prefix == "persi-broker-binding-"
        assert config.default_mount_root == "/var/vcap/data"
        assert config.service.plans == ()

    def test_empty_file(self, tmp_path: Path) -> None:
        """Empty file is an empty config."""
        config = load_broker_config(write(tmp_path, ""))

        assert config.service.plans == ()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            load_broker_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot parse"):
            load_broker_config(write(tmp_path, "service: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="expected a mapping"):
            load_broker_config(write(tmp_path, "- a\n- b\n"))

    def test_plan_without_id(self, tmp_path: Path) -> None:
        """Schema violations name the file."""
        path = write(tmp_path, "service:\n  plans:\n    - plan_name: nameless\n")

        with pytest.raises(ConfigError, match="invalid broker config"):
            load_broker_config(path)

    @pytest.mark.parametrize("storage_class", ["", None])
    def test_plan_requires_storage_class(self, tmp_path: Path, storage_class: str | None) -> None:
        """Every plan names the storage class its claims are created with."""
        plan = "    - plan_id: p1\n"
        if storage_class is not None:
            plan += f"      kube_storage_class: \"{storage_class}\"\n"
        path = write(tmp_path, "service:\n  plans:\n" + plan)

        with pytest.raises(ConfigError, match="kube_storage_class"):
            load_broker_config(path)


class TestBrokerSettings:
    """Tests for environment settings."""

    def test_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Settings are read from BROKER_ prefixed variables."""
        monkeypatch.setenv("BROKER_CONFIG_PATH", "/etc/persi/broker.yml")
        monkeypatch.setenv("KUBECONFIG", "/root/.kube/other")
        monkeypatch.setenv("BROKER_KUBE_API_TIMEOUT", "5")
        monkeypatch.setenv("BROKER_LOGGING_FORMAT", "json")

        settings = BrokerSettings()

        assert settings.config_path == "/etc/persi/broker.yml"
        assert settings.kubeconfig == "/root/.kube/other"
        assert settings.kube.api_timeout == 5.0
        assert settings.logging.format == "json"

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("BROKER_CONFIG_PATH", raising=False)
        monkeypatch.delenv("KUBECONFIG", raising=False)

        settings = BrokerSettings()

        assert settings.config_path == ""
        assert settings.kubeconfig == ""
        assert settings.server.port == 8080
