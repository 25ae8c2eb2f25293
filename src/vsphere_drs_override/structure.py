"""
vSphere DRS VM Override - Structure Helpers

Translation between the declarative override description and the vSphere
cluster configuration data objects.

Author: uldyssian-sh
License: MIT
"""

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pyVmomi import vim

from .exceptions import ValidationError

RESOURCE_ID_SEPARATOR = ":"


class DrsBehavior(str, Enum):
    """DRS automation level of a virtual machine"""
    FULLY_AUTOMATED = "fullyAutomated"
    PARTIALLY_AUTOMATED = "partiallyAutomated"
    MANUAL = "manual"

    @classmethod
    def values(cls):
        return [member.value for member in cls]


class SpecOperation(str, Enum):
    """Array update operation applied to the cluster drsVmConfig list"""
    ADD = "add"
    EDIT = "edit"
    REMOVE = "remove"


@dataclass
class DrsVmOverrideSpec:
    """Desired DRS override for one virtual machine in a compute cluster"""
    compute_cluster_id: str
    virtual_machine_id: str
    drs_enabled: bool = False
    drs_automation_level: str = DrsBehavior.MANUAL.value

    def __post_init__(self) -> None:
        # DrsBehavior members are stored as their plain string value
        if isinstance(self.drs_automation_level, DrsBehavior):
            self.drs_automation_level = self.drs_automation_level.value

    def validate(self) -> None:
        """Validate the override description"""
        if not self.compute_cluster_id:
            raise ValidationError("compute_cluster_id is required")
        if not self.virtual_machine_id:
            raise ValidationError("virtual_machine_id is required")
        if not isinstance(self.drs_enabled, bool):
            raise ValidationError("drs_enabled must be a boolean")
        if self.drs_automation_level not in DrsBehavior.values():
            raise ValidationError(
                f"Invalid drs_automation_level {self.drs_automation_level!r}, "
                f"expected one of {', '.join(DrsBehavior.values())}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DrsVmOverrideSpec":
        """Build a spec from tool arguments or a YAML document"""
        spec = cls(
            compute_cluster_id=data.get("compute_cluster_id", ""),
            virtual_machine_id=data.get("virtual_machine_id", ""),
            drs_enabled=data.get("drs_enabled", False),
            drs_automation_level=data.get("drs_automation_level") or DrsBehavior.MANUAL.value,
        )
        spec.validate()
        return spec

    @property
    def resource_id(self) -> str:
        return format_resource_id(self.compute_cluster_id, self.virtual_machine_id)


@dataclass
class DrsVmOverrideState:
    """Observed DRS override, as read back from the cluster"""
    id: str
    compute_cluster_id: str
    virtual_machine_id: str
    drs_enabled: bool
    drs_automation_level: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def attributes(self) -> Dict[str, Any]:
        """Attributes comparable with a DrsVmOverrideSpec"""
        return {
            "compute_cluster_id": self.compute_cluster_id,
            "virtual_machine_id": self.virtual_machine_id,
            "drs_enabled": self.drs_enabled,
            "drs_automation_level": self.drs_automation_level,
        }


def format_resource_id(cluster_id: str, vm_uuid: str) -> str:
    """Build the resource ID ``<cluster moid>:<vm uuid>``"""
    return f"{cluster_id}{RESOURCE_ID_SEPARATOR}{vm_uuid}"


def parse_resource_id(resource_id: str) -> Tuple[str, str]:
    """Split a resource ID into the cluster managed object ID and the VM UUID"""
    parts = (resource_id or "").split(RESOURCE_ID_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise ValidationError(
            f"Invalid resource ID {resource_id!r}, expected <compute_cluster_id>:<virtual_machine_id>"
        )
    return parts[0], parts[1]


def expand_drs_vm_config_info(spec: DrsVmOverrideSpec, vm: Any) -> Any:
    """Build the ClusterDrsVmConfigInfo for a virtual machine"""
    return vim.cluster.DrsVmConfigInfo(
        key=vm,
        enabled=spec.drs_enabled,
        behavior=getattr(vim.cluster.DrsConfigInfo.DrsBehavior, spec.drs_automation_level),
    )


def build_drs_vm_config_spec(operation: str, vm: Any, info: Optional[Any] = None) -> Any:
    """Wrap a DRS VM config change into a ClusterDrsVmConfigSpec"""
    if operation == SpecOperation.REMOVE.value:
        return vim.cluster.DrsVmConfigSpec(
            operation=vim.option.ArrayUpdateSpec.Operation.remove,
            removeKey=vm,
        )
    if operation in (SpecOperation.ADD.value, SpecOperation.EDIT.value):
        if info is None:
            raise ValidationError(f"Operation {operation!r} requires DRS VM config info")
        return vim.cluster.DrsVmConfigSpec(
            operation=getattr(vim.option.ArrayUpdateSpec.Operation, operation),
            info=info,
        )
    raise ValidationError(f"Unknown DRS VM config operation {operation!r}")


def build_cluster_config_spec(*vm_specs: Any) -> Any:
    """Wrap DRS VM config specs into a cluster ConfigSpecEx"""
    return vim.cluster.ConfigSpecEx(drsVmConfigSpec=list(vm_specs))


def flatten_drs_vm_config_info(info: Any, cluster_id: str, vm_uuid: str) -> DrsVmOverrideState:
    """Convert a ClusterDrsVmConfigInfo into the observed override state"""
    behavior = str(info.behavior) if info.behavior else DrsBehavior.MANUAL.value
    return DrsVmOverrideState(
        id=format_resource_id(cluster_id, vm_uuid),
        compute_cluster_id=cluster_id,
        virtual_machine_id=vm_uuid,
        drs_enabled=bool(info.enabled),
        drs_automation_level=behavior,
    )
