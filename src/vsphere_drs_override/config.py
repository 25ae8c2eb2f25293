"""
vSphere DRS VM Override Configuration

Connection settings for vCenter and the environment consumed by the
acceptance test fixtures.

Author: uldyssian-sh
License: MIT
"""

import os
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional

import yaml

from .exceptions import ConfigurationError


@dataclass
class VCenterConfig:
    """vCenter connection configuration"""
    host: str
    username: str
    password: str
    port: int = 443
    ssl_verify: bool = True
    timeout: int = 60


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return _env_bool(value)
    return bool(value)


def _as_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from e


def load_config(config_file: Optional[str] = None) -> VCenterConfig:
    """
    Load vCenter configuration.

    A YAML file is used when ``config_file`` points at an existing file,
    otherwise the ``VCENTER_*`` environment variables are read.

    Args:
        config_file: Path of a YAML configuration file (optional)

    Returns:
        Populated VCenterConfig
    """
    if config_file and os.path.exists(config_file):
        with open(config_file, "r") as f:
            raw = yaml.safe_load(f) or {}
        if not isinstance(raw, dict):
            raise ConfigurationError(f"Configuration file {config_file} must contain a mapping")
        data: Dict[str, Any] = {
            "host": raw.get("vcenter_host", ""),
            "username": raw.get("vcenter_username", ""),
            "password": raw.get("vcenter_password", ""),
            "port": _as_int("vcenter_port", raw.get("vcenter_port", 443)),
            "ssl_verify": _as_bool(raw.get("vcenter_ssl_verify", True)),
            "timeout": _as_int("vcenter_timeout", raw.get("vcenter_timeout", 60)),
        }
    else:
        data = {
            "host": os.getenv("VCENTER_HOST", ""),
            "username": os.getenv("VCENTER_USERNAME", ""),
            "password": os.getenv("VCENTER_PASSWORD", ""),
            "port": _as_int("VCENTER_PORT", os.getenv("VCENTER_PORT", "443")),
            "ssl_verify": _env_bool(os.getenv("VCENTER_SSL_VERIFY", "true")),
            "timeout": _as_int("VCENTER_TIMEOUT", os.getenv("VCENTER_TIMEOUT", "60")),
        }

    # Validate required configuration
    for key, env_name in (("host", "VCENTER_HOST"),
                          ("username", "VCENTER_USERNAME"),
                          ("password", "VCENTER_PASSWORD")):
        if not data[key]:
            raise ConfigurationError(
                f"vCenter {key} is required. Set {env_name} environment variable or provide config file."
            )

    return VCenterConfig(**data)


@dataclass
class AcceptanceEnvironment:
    """Environment used by the live acceptance tests and configuration fixtures"""
    datacenter: str = ""
    datastore: str = ""
    cluster: str = ""
    network_label: str = ""
    virtual_machine: str = ""

    ENV_VARS = {
        "datacenter": "VSPHERE_DATACENTER",
        "datastore": "VSPHERE_DATASTORE",
        "cluster": "VSPHERE_CLUSTER",
        "network_label": "VSPHERE_NETWORK_LABEL_PXE",
        "virtual_machine": "VSPHERE_VM",
    }

    @classmethod
    def from_env(cls) -> "AcceptanceEnvironment":
        """Build the environment from ``VSPHERE_*`` variables"""
        return cls(**{name: os.getenv(var, "") for name, var in cls.ENV_VARS.items()})

    def missing(self) -> Optional[str]:
        """Return the first unset environment variable, if any"""
        for f in fields(self):
            if not getattr(self, f.name):
                return self.ENV_VARS[f.name]
        return None

    @property
    def cluster_path(self) -> str:
        """Inventory path of the test cluster"""
        return f"/{self.datacenter}/host/{self.cluster}"

    @property
    def virtual_machine_path(self) -> str:
        """Inventory path of the test virtual machine"""
        return f"/{self.datacenter}/vm/{self.virtual_machine}"
