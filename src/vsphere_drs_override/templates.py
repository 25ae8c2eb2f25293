"""
vSphere DRS VM Override - Configuration Templates

Builders for the declarative configuration text used by acceptance
fixtures. The output declares the datacenter, datastore, cluster, network
and virtual machine lookups plus the vsphere_drs_vm_override resource under
test. The virtual machine must already exist.

Author: uldyssian-sh
License: MIT
"""

from typing import Optional

from .config import AcceptanceEnvironment
from .exceptions import ValidationError
from .structure import DrsBehavior

RESOURCE_TYPE = "vsphere_drs_vm_override"
RESOURCE_NAME = "drs_vm_override"

_BASE_CONFIG = '''
variable "datacenter" {
  default = %s
}

variable "datastore" {
  default = %s
}

variable "cluster" {
  default = %s
}

variable "network_label" {
  default = %s
}

variable "virtual_machine" {
  default = %s
}

data "vsphere_datacenter" "dc" {
  name = "${var.datacenter}"
}

data "vsphere_datastore" "datastore" {
  name          = "${var.datastore}"
  datacenter_id = "${data.vsphere_datacenter.dc.id}"
}

data "vsphere_compute_cluster" "cluster" {
  name          = "${var.cluster}"
  datacenter_id = "${data.vsphere_datacenter.dc.id}"
}

data "vsphere_network" "network" {
  name          = "${var.network_label}"
  datacenter_id = "${data.vsphere_datacenter.dc.id}"
}

data "vsphere_virtual_machine" "vm" {
  name          = "${var.virtual_machine}"
  datacenter_id = "${data.vsphere_datacenter.dc.id}"
}
'''


def _hcl_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("${", "$${")
    return '"%s"' % escaped


def render_override_block(drs_enabled: bool,
                          drs_automation_level: Optional[str] = None) -> str:
    """Render the ``vsphere_drs_vm_override`` resource block"""
    attrs = [
        ("compute_cluster_id", '"${data.vsphere_compute_cluster.cluster.id}"'),
        ("virtual_machine_id", '"${data.vsphere_virtual_machine.vm.id}"'),
        ("drs_enabled", "true" if drs_enabled else "false"),
    ]
    if drs_automation_level is not None:
        level = getattr(drs_automation_level, "value", drs_automation_level)
        if level not in DrsBehavior.values():
            raise ValidationError(f"Invalid drs_automation_level {level!r}")
        attrs.append(("drs_automation_level", _hcl_string(level)))

    width = max(len(name) for name, _ in attrs)
    lines = [f'resource "{RESOURCE_TYPE}" "{RESOURCE_NAME}" {{']
    lines.extend(f"  {name.ljust(width)} = {value}" for name, value in attrs)
    lines.append("}")
    return "\n".join(lines) + "\n"


def render_override_config(env: AcceptanceEnvironment, drs_enabled: bool,
                           drs_automation_level: Optional[str] = None) -> str:
    """Render a complete configuration for one override"""
    base = _BASE_CONFIG % tuple(
        _hcl_string(value) for value in (
            env.datacenter,
            env.datastore,
            env.cluster,
            env.network_label,
            env.virtual_machine,
        )
    )
    return base + "\n" + render_override_block(drs_enabled, drs_automation_level)


def config_override_drs_enabled(env: AcceptanceEnvironment) -> str:
    """Configuration that disables DRS for the test VM"""
    return render_override_config(env, drs_enabled=False)


def config_override_automation_level(env: AcceptanceEnvironment) -> str:
    """Configuration that pins the test VM to fully automated DRS"""
    return render_override_config(
        env,
        drs_enabled=True,
        drs_automation_level=DrsBehavior.FULLY_AUTOMATED.value,
    )
