"""
vSphere DRS VM Override - vCenter Client

pyVmomi session handling and the object lookups the override resource needs.
Lookup failures are mapped onto the package error taxonomy here so callers
never see raw vmodl faults.

Author: uldyssian-sh
License: MIT
"""

import ssl
from typing import Any, Optional

import structlog
from pyVim.connect import Disconnect, SmartConnect
from pyVim.task import WaitForTask
from pyVmomi import vim, vmodl

from .config import VCenterConfig
from .exceptions import (
    ManagedObjectNotFoundError,
    UUIDNotFoundError,
    ValidationError,
    VCenterAuthenticationError,
    VCenterConnectionError,
    VCenterOperationError,
)

logger = structlog.get_logger(__name__)


class VCenterClient:
    """VMware vCenter API client"""

    def __init__(self, config: VCenterConfig):
        self.config = config
        self.service_instance = None
        self.content = None
        self._connected = False

    async def connect(self):
        """Connect to vCenter"""
        try:
            # Create SSL context
            if not self.config.ssl_verify:
                ssl_context = ssl.create_default_context()
                ssl_context.check_hostname = False
                ssl_context.verify_mode = ssl.CERT_NONE
            else:
                ssl_context = None

            self.service_instance = SmartConnect(
                host=self.config.host,
                user=self.config.username,
                pwd=self.config.password,
                port=self.config.port,
                sslContext=ssl_context,
                connectionPoolTimeout=self.config.timeout
            )

            if not self.service_instance:
                raise VCenterConnectionError(f"Failed to connect to vCenter {self.config.host}")

            self.content = self.service_instance.RetrieveContent()
            self._connected = True

            logger.info("Connected to vCenter", host=self.config.host)

        except vim.fault.InvalidLogin as e:
            logger.error("vCenter authentication failed", host=self.config.host)
            raise VCenterAuthenticationError(f"Authentication failed for {self.config.username}") from e
        except VCenterConnectionError:
            raise
        except Exception as e:
            logger.error("vCenter connection failed", host=self.config.host, error=str(e))
            raise VCenterConnectionError(f"Connection failed: {str(e)}") from e

    async def disconnect(self):
        """Disconnect from vCenter"""
        if self.service_instance:
            try:
                Disconnect(self.service_instance)
                logger.info("Disconnected from vCenter")
            except Exception as e:
                logger.error("Disconnect error", error=str(e))
            finally:
                self._connected = False

    def is_connected(self) -> bool:
        """Check if connected to vCenter"""
        return self._connected and self.service_instance is not None

    def _require_content(self) -> Any:
        if not self.content:
            raise VCenterConnectionError("Not connected to vCenter")
        return self.content

    def get_cluster(self, moid: str) -> Any:
        """
        Get a compute cluster by managed object ID.

        Raises:
            ManagedObjectNotFoundError: the ID does not resolve to a live cluster
        """
        self._require_content()
        if not moid:
            raise ValidationError("Compute cluster ID is required")

        cluster = vim.ClusterComputeResource(moid, self.service_instance._stub)
        try:
            # Force a property fetch so stale references fail here
            _ = cluster.name
        except vmodl.fault.ManagedObjectNotFound as e:
            raise ManagedObjectNotFoundError(f"Compute cluster {moid!r} not found") from e
        return cluster

    def get_virtual_machine_by_uuid(self, uuid: str) -> Any:
        """
        Get a virtual machine by its BIOS UUID.

        Raises:
            UUIDNotFoundError: no virtual machine carries the UUID
        """
        content = self._require_content()
        if not uuid:
            raise ValidationError("Virtual machine ID is required")

        vm = content.searchIndex.FindByUuid(None, uuid, True, False)
        if vm is None:
            raise UUIDNotFoundError(f"Virtual machine with UUID {uuid!r} not found")
        return vm

    def virtual_machine_uuid(self, vm: Any) -> str:
        """Return the BIOS UUID used as the virtual machine ID"""
        try:
            config = vm.config
        except vmodl.fault.ManagedObjectNotFound as e:
            raise ManagedObjectNotFoundError(f"Virtual machine {vm._moId!r} not found") from e
        # config is unset while the VM is inaccessible or orphaned
        if config is None or not config.uuid:
            raise ValidationError(
                f"Virtual machine {vm._moId!r} has no readable configuration; it may be inaccessible"
            )
        return config.uuid

    def _find_by_path(self, path: str, vimtype: Any, kind: str) -> Any:
        content = self._require_content()
        if not path:
            raise ValidationError(f"{kind} path is required")

        obj = content.searchIndex.FindByInventoryPath(path)
        if obj is None:
            raise ManagedObjectNotFoundError(f"{kind} at path {path!r} not found")
        if not isinstance(obj, vimtype):
            raise ValidationError(f"Object at path {path!r} is not a {kind.lower()}")
        return obj

    def find_cluster_by_path(self, path: str) -> Any:
        """Get a compute cluster by inventory path"""
        return self._find_by_path(path, vim.ClusterComputeResource, "Compute cluster")

    def find_virtual_machine_by_path(self, path: str) -> Any:
        """Get a virtual machine by inventory path"""
        return self._find_by_path(path, vim.VirtualMachine, "Virtual machine")

    def inventory_path(self, obj: Any) -> str:
        """Build the inventory path of an object, e.g. ``/dc1/host/cluster1``"""
        content = self._require_content()
        root = content.rootFolder

        names = []
        current: Optional[Any] = obj
        while current is not None and current._moId != root._moId:
            names.append(current.name)
            current = current.parent
        return "/" + "/".join(reversed(names))

    async def wait_for_task(self, task: Any) -> Any:
        """Wait for vCenter task completion"""
        try:
            result = WaitForTask(task)
            return result
        except vmodl.fault.ManagedObjectNotFound as e:
            logger.error("Task target disappeared", error=str(e))
            raise ManagedObjectNotFoundError(f"Task failed: {e.msg or str(e)}") from e
        except Exception as e:
            logger.error("Task failed", error=str(e))
            raise VCenterOperationError(f"Task failed: {str(e)}") from e
