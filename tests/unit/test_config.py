"""
Unit tests for configuration loading.

Author: uldyssian-sh
License: MIT
"""

import pytest

from vsphere_drs_override.config import AcceptanceEnvironment, VCenterConfig, load_config
from vsphere_drs_override.exceptions import ConfigurationError

VCENTER_VARS = [
    "VCENTER_HOST", "VCENTER_USERNAME", "VCENTER_PASSWORD",
    "VCENTER_PORT", "VCENTER_SSL_VERIFY", "VCENTER_TIMEOUT",
]


@pytest.fixture
def clean_env(monkeypatch):
    for name in VCENTER_VARS + list(AcceptanceEnvironment.ENV_VARS.values()):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestVCenterConfig:
    """Test VCenterConfig class"""

    def test_default_values(self):
        config = VCenterConfig(
            host="test.example.com",
            username="test@vsphere.local",
            password="password"
        )

        assert config.port == 443
        assert config.ssl_verify is True
        assert config.timeout == 60


class TestLoadConfig:
    """Test loading configuration from YAML and environment"""

    def test_from_environment(self, clean_env):
        clean_env.setenv("VCENTER_HOST", "vcenter.example.com")
        clean_env.setenv("VCENTER_USERNAME", "administrator@vsphere.local")
        clean_env.setenv("VCENTER_PASSWORD", "secret")
        clean_env.setenv("VCENTER_PORT", "8443")
        clean_env.setenv("VCENTER_SSL_VERIFY", "false")

        config = load_config()

        assert config.host == "vcenter.example.com"
        assert config.port == 8443
        assert config.ssl_verify is False

    def test_from_yaml(self, clean_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "vcenter_host: vc.lab.local\n"
            "vcenter_username: admin\n"
            "vcenter_password: pw\n"
            "vcenter_ssl_verify: false\n"
            "vcenter_timeout: 120\n"
        )

        config = load_config(str(config_file))

        assert config.host == "vc.lab.local"
        assert config.ssl_verify is False
        assert config.timeout == 120
        assert config.port == 443

    def test_missing_file_falls_back_to_environment(self, clean_env, tmp_path):
        clean_env.setenv("VCENTER_HOST", "vcenter.example.com")
        clean_env.setenv("VCENTER_USERNAME", "admin")
        clean_env.setenv("VCENTER_PASSWORD", "pw")

        config = load_config(str(tmp_path / "absent.yaml"))

        assert config.host == "vcenter.example.com"

    def test_missing_host(self, clean_env):
        with pytest.raises(ConfigurationError, match="VCENTER_HOST"):
            load_config()

    def test_yaml_must_be_mapping(self, clean_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigurationError, match="must contain a mapping"):
            load_config(str(config_file))

    def test_yaml_quoted_ssl_verify(self, clean_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "vcenter_host: vc.lab.local\n"
            "vcenter_username: admin\n"
            "vcenter_password: pw\n"
            "vcenter_ssl_verify: \"false\"\n"
        )

        assert load_config(str(config_file)).ssl_verify is False

    def test_invalid_port(self, clean_env):
        clean_env.setenv("VCENTER_HOST", "vcenter.example.com")
        clean_env.setenv("VCENTER_USERNAME", "admin")
        clean_env.setenv("VCENTER_PASSWORD", "pw")
        clean_env.setenv("VCENTER_PORT", "https")

        with pytest.raises(ConfigurationError, match="VCENTER_PORT must be an integer"):
            load_config()

    def test_invalid_yaml_timeout(self, clean_env, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "vcenter_host: vc.lab.local\n"
            "vcenter_username: admin\n"
            "vcenter_password: pw\n"
            "vcenter_timeout: soon\n"
        )

        with pytest.raises(ConfigurationError, match="vcenter_timeout must be an integer"):
            load_config(str(config_file))


class TestAcceptanceEnvironment:
    """Test the acceptance environment"""

    def test_from_env(self, clean_env):
        clean_env.setenv("VSPHERE_DATACENTER", "dc1")
        clean_env.setenv("VSPHERE_CLUSTER", "cluster1")
        clean_env.setenv("VSPHERE_VM", "terraform-test")

        env = AcceptanceEnvironment.from_env()

        assert env.datacenter == "dc1"
        assert env.missing() == "VSPHERE_DATASTORE"
        assert env.cluster_path == "/dc1/host/cluster1"
        assert env.virtual_machine_path == "/dc1/vm/terraform-test"

    def test_complete(self):
        env = AcceptanceEnvironment("dc1", "ds1", "cluster1", "pxe", "vm1")
        assert env.missing() is None
