"""
vSphere DRS VM Override Resource

Reconciles a declarative per-VM DRS override against the drsVmConfig list
of a compute cluster. Every change goes through a single
ReconfigureComputeResource_Task call with ``modify=True`` so unrelated
cluster settings are left untouched.

Author: uldyssian-sh
License: MIT
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import structlog

from .client import VCenterClient
from .exceptions import (
    ManagedObjectNotFoundError,
    OverrideExistsError,
    OverrideNotFoundError,
    UUIDNotFoundError,
    ValidationError,
)
from .structure import (
    DrsVmOverrideSpec,
    DrsVmOverrideState,
    SpecOperation,
    build_cluster_config_spec,
    build_drs_vm_config_spec,
    expand_drs_vm_config_info,
    flatten_drs_vm_config_info,
    parse_resource_id,
)

logger = structlog.get_logger(__name__)

IMPORT_CLUSTER_PATH_KEY = "compute_cluster_path"
IMPORT_VM_PATH_KEY = "virtual_machine_path"


@dataclass
class Plan:
    """Planned change for one override"""
    action: str
    resource_id: Optional[str] = None
    replaces: Optional[str] = None
    diff: Dict[str, Tuple[Any, Any]] = field(default_factory=dict)

    @property
    def changed(self) -> bool:
        return self.action != "noop"


class DrsVmOverrideResource:
    """CRUD and drift reconciliation for DRS VM overrides"""

    def __init__(self, client: VCenterClient):
        self.client = client

    # Lookups

    @staticmethod
    def get_override_info(cluster: Any, vm: Any) -> Optional[Any]:
        """Find the ClusterDrsVmConfigInfo keyed by ``vm`` in the cluster configuration"""
        config = cluster.configurationEx
        for info in getattr(config, "drsVmConfig", None) or []:
            if info.key is not None and info.key._moId == vm._moId:
                return info
        return None

    def _resolve(self, resource_id: str) -> Tuple[str, str, Any, Any]:
        cluster_id, vm_uuid = parse_resource_id(resource_id)
        cluster = self.client.get_cluster(cluster_id)
        vm = self.client.get_virtual_machine_by_uuid(vm_uuid)
        return cluster_id, vm_uuid, cluster, vm

    def fetch_override_info(self, resource_id: str) -> Optional[Any]:
        """
        Fetch the raw override record for a resource ID.

        Lookup errors for the cluster or virtual machine propagate.
        """
        _, _, cluster, vm = self._resolve(resource_id)
        return self.get_override_info(cluster, vm)

    async def _reconfigure(self, cluster: Any, vm: Any, operation: str,
                           info: Optional[Any] = None) -> None:
        vm_spec = build_drs_vm_config_spec(operation, vm, info)
        spec = build_cluster_config_spec(vm_spec)
        logger.info(
            "Reconfiguring cluster DRS VM override",
            cluster=cluster._moId,
            vm=vm._moId,
            operation=operation,
        )
        task = cluster.ReconfigureComputeResource_Task(spec=spec, modify=True)
        await self.client.wait_for_task(task)

    # CRUD

    async def create(self, spec: DrsVmOverrideSpec) -> DrsVmOverrideState:
        """Create a DRS override for a virtual machine"""
        spec.validate()
        cluster = self.client.get_cluster(spec.compute_cluster_id)
        vm = self.client.get_virtual_machine_by_uuid(spec.virtual_machine_id)

        if self.get_override_info(cluster, vm) is not None:
            raise OverrideExistsError(
                f"Compute cluster {spec.compute_cluster_id!r} already has a DRS override "
                f"for virtual machine {spec.virtual_machine_id!r}; import it instead"
            )

        info = expand_drs_vm_config_info(spec, vm)
        await self._reconfigure(cluster, vm, SpecOperation.ADD.value, info)

        state = await self.read(spec.resource_id)
        if state is None:
            raise OverrideNotFoundError(
                f"DRS override for virtual machine {spec.virtual_machine_id!r} missing after create"
            )
        return state

    async def read(self, resource_id: str) -> Optional[DrsVmOverrideState]:
        """
        Read the observed override.

        Returns None when the override, its cluster or its virtual machine
        no longer exists.
        """
        try:
            cluster_id, vm_uuid, cluster, vm = self._resolve(resource_id)
        except (ManagedObjectNotFoundError, UUIDNotFoundError) as e:
            logger.warning("DRS override parent object gone", resource_id=resource_id, error=str(e))
            return None

        info = self.get_override_info(cluster, vm)
        if info is None:
            logger.debug("DRS override absent", resource_id=resource_id)
            return None
        return flatten_drs_vm_config_info(info, cluster_id, vm_uuid)

    async def update(self, resource_id: str, spec: DrsVmOverrideSpec) -> DrsVmOverrideState:
        """Update an existing override in place"""
        spec.validate()
        if spec.resource_id != resource_id:
            raise ValidationError(
                f"Override {resource_id!r} cannot be moved to {spec.resource_id!r}; "
                "compute_cluster_id and virtual_machine_id force a new override"
            )

        _, _, cluster, vm = self._resolve(resource_id)
        if self.get_override_info(cluster, vm) is None:
            raise OverrideNotFoundError(f"DRS override {resource_id!r} not found")

        info = expand_drs_vm_config_info(spec, vm)
        await self._reconfigure(cluster, vm, SpecOperation.EDIT.value, info)

        state = await self.read(resource_id)
        if state is None:
            raise OverrideNotFoundError(f"DRS override {resource_id!r} missing after update")
        return state

    async def delete(self, resource_id: str) -> None:
        """Remove an override from its cluster"""
        _, _, cluster, vm = self._resolve(resource_id)
        if self.get_override_info(cluster, vm) is None:
            logger.warning("DRS override already absent", resource_id=resource_id)
            return
        await self._reconfigure(cluster, vm, SpecOperation.REMOVE.value)

    async def exists(self, resource_id: str) -> bool:
        """Check whether the override is present"""
        return await self.read(resource_id) is not None

    # Import

    def parse_import_id(self, import_id: str) -> Tuple[str, str]:
        """Decode a JSON import ID into the cluster and virtual machine paths"""
        try:
            data = json.loads(import_id)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Import ID must be a JSON object: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError("Import ID must be a JSON object")

        cluster_path = data.get(IMPORT_CLUSTER_PATH_KEY)
        vm_path = data.get(IMPORT_VM_PATH_KEY)
        if not cluster_path or not vm_path:
            raise ValidationError(
                f"Import ID requires {IMPORT_CLUSTER_PATH_KEY!r} and {IMPORT_VM_PATH_KEY!r}"
            )
        return cluster_path, vm_path

    async def import_state(self, import_id: str) -> DrsVmOverrideState:
        """Adopt an existing override identified by inventory paths"""
        cluster_path, vm_path = self.parse_import_id(import_id)
        cluster = self.client.find_cluster_by_path(cluster_path)
        vm = self.client.find_virtual_machine_by_path(vm_path)

        info = self.get_override_info(cluster, vm)
        if info is None:
            raise OverrideNotFoundError(
                f"No DRS override for virtual machine {vm_path!r} in compute cluster {cluster_path!r}"
            )

        vm_uuid = self.client.virtual_machine_uuid(vm)
        logger.info("Imported DRS override", cluster=cluster._moId, vm=vm._moId)
        return flatten_drs_vm_config_info(info, cluster._moId, vm_uuid)

    # Reconciliation

    def _diff(self, observed: DrsVmOverrideState,
              spec: DrsVmOverrideSpec) -> Dict[str, Tuple[Any, Any]]:
        desired = {
            "compute_cluster_id": spec.compute_cluster_id,
            "virtual_machine_id": spec.virtual_machine_id,
            "drs_enabled": spec.drs_enabled,
            "drs_automation_level": spec.drs_automation_level,
        }
        current = observed.attributes()
        return {
            key: (current[key], value)
            for key, value in desired.items()
            if current[key] != value
        }

    async def plan(self, spec: DrsVmOverrideSpec,
                   resource_id: Optional[str] = None) -> Plan:
        """
        Compare desired and observed state.

        When ``resource_id`` names a different cluster or virtual machine
        than ``spec``, the override at the spec's own target is read as well
        so an override already sitting there is updated rather than created.
        """
        spec.validate()
        target_id = spec.resource_id
        resource_id = resource_id or target_id

        observed = await self.read(resource_id)
        target = observed
        if resource_id != target_id:
            target = await self.read(target_id)

        if observed is not None and resource_id != target_id:
            return Plan(action="replace", resource_id=target_id, replaces=resource_id,
                        diff=self._diff(observed, spec))
        if target is None:
            return Plan(action="create", resource_id=target_id)

        diff = self._diff(target, spec)
        if not diff:
            return Plan(action="noop", resource_id=target_id)
        return Plan(action="update", resource_id=target_id, diff=diff)

    async def apply(self, spec: DrsVmOverrideSpec,
                    resource_id: Optional[str] = None) -> Tuple[bool, DrsVmOverrideState]:
        """
        Converge the cluster onto the desired override.

        Returns:
            Tuple of (changed, observed state after apply)
        """
        plan = await self.plan(spec, resource_id)
        logger.info("Planned DRS override change", action=plan.action,
                    resource_id=plan.resource_id, replaces=plan.replaces,
                    diff=sorted(plan.diff))

        if plan.action == "create":
            return True, await self.create(spec)
        if plan.action == "replace":
            await self.delete(plan.replaces)
            if await self.exists(plan.resource_id):
                return True, await self.update(plan.resource_id, spec)
            return True, await self.create(spec)
        if plan.action == "update":
            return True, await self.update(plan.resource_id, spec)

        state = await self.read(plan.resource_id)
        return False, state

    def list_overrides(self, cluster_id: str) -> List[Dict[str, Any]]:
        """List every DRS VM override configured on a cluster"""
        cluster = self.client.get_cluster(cluster_id)
        overrides = []
        for info in getattr(cluster.configurationEx, "drsVmConfig", None) or []:
            overrides.append({
                "virtual_machine": info.key._moId if info.key is not None else None,
                "drs_enabled": bool(info.enabled),
                "drs_automation_level": str(info.behavior) if info.behavior else None,
            })
        return overrides
