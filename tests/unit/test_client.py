"""
Unit tests for the vCenter client.

Author: uldyssian-sh
License: MIT
"""

from types import SimpleNamespace
from unittest.mock import Mock, patch

import pytest
from pyVmomi import vim, vmodl

from vsphere_drs_override.client import VCenterClient
from vsphere_drs_override.config import VCenterConfig
from vsphere_drs_override.exceptions import (
    ManagedObjectNotFoundError,
    UUIDNotFoundError,
    ValidationError,
    VCenterConnectionError,
    VCenterOperationError,
)


class StaleCluster:
    """Cluster reference whose properties can no longer be fetched"""

    @property
    def name(self):
        raise vmodl.fault.ManagedObjectNotFound()


@pytest.fixture
def client():
    config = VCenterConfig(host="test.example.com", username="test@vsphere.local", password="password")
    return VCenterClient(config)


@pytest.fixture
def connected_client(client):
    client.service_instance = Mock()
    client.content = Mock()
    client._connected = True
    return client


class TestConnection:
    """Test connecting and disconnecting"""

    def test_initialization(self, client):
        assert client.service_instance is None
        assert client.content is None
        assert client.is_connected() is False

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.SmartConnect')
    async def test_connect_success(self, mock_connect, client):
        mock_service_instance = Mock()
        mock_content = Mock()
        mock_service_instance.RetrieveContent.return_value = mock_content
        mock_connect.return_value = mock_service_instance

        await client.connect()

        assert client.content == mock_content
        assert client.is_connected() is True
        assert mock_connect.call_args.kwargs["host"] == "test.example.com"
        assert mock_connect.call_args.kwargs["sslContext"] is None

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.SmartConnect')
    async def test_connect_without_ssl_verification(self, mock_connect, client):
        client.config.ssl_verify = False

        await client.connect()

        ssl_context = mock_connect.call_args.kwargs["sslContext"]
        assert ssl_context.check_hostname is False

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.SmartConnect')
    async def test_connect_failure(self, mock_connect, client):
        mock_connect.return_value = None

        with pytest.raises(VCenterConnectionError, match="Failed to connect"):
            await client.connect()

        assert client.is_connected() is False

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.SmartConnect')
    async def test_connect_exception(self, mock_connect, client):
        mock_connect.side_effect = Exception("Connection refused")

        with pytest.raises(VCenterConnectionError, match="Connection refused"):
            await client.connect()

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.Disconnect')
    async def test_disconnect(self, mock_disconnect, connected_client):
        service_instance = connected_client.service_instance

        await connected_client.disconnect()

        mock_disconnect.assert_called_once_with(service_instance)
        assert connected_client.is_connected() is False


class TestLookups:
    """Test object lookups and error mapping"""

    def test_requires_connection(self, client):
        with pytest.raises(VCenterConnectionError, match="Not connected"):
            client.get_cluster("domain-c7")

    @patch('vsphere_drs_override.client.vim')
    def test_get_cluster(self, mock_vim, connected_client):
        cluster = Mock()
        mock_vim.ClusterComputeResource.return_value = cluster

        assert connected_client.get_cluster("domain-c7") is cluster
        mock_vim.ClusterComputeResource.assert_called_once_with(
            "domain-c7", connected_client.service_instance._stub
        )

    @patch('vsphere_drs_override.client.vim')
    def test_get_cluster_not_found(self, mock_vim, connected_client):
        mock_vim.ClusterComputeResource.return_value = StaleCluster()

        with pytest.raises(ManagedObjectNotFoundError, match="domain-c7"):
            connected_client.get_cluster("domain-c7")

    def test_get_cluster_requires_id(self, connected_client):
        with pytest.raises(ValidationError):
            connected_client.get_cluster("")

    def test_get_virtual_machine_by_uuid(self, connected_client):
        vm = vim.VirtualMachine("vm-42")
        connected_client.content.searchIndex.FindByUuid.return_value = vm

        assert connected_client.get_virtual_machine_by_uuid("uuid-1") is vm
        connected_client.content.searchIndex.FindByUuid.assert_called_once_with(None, "uuid-1", True, False)

    def test_get_virtual_machine_uuid_not_found(self, connected_client):
        connected_client.content.searchIndex.FindByUuid.return_value = None

        with pytest.raises(UUIDNotFoundError, match="uuid-1"):
            connected_client.get_virtual_machine_by_uuid("uuid-1")

    def test_virtual_machine_uuid(self, client):
        vm = SimpleNamespace(_moId="vm-42", config=SimpleNamespace(uuid="uuid-1"))
        assert client.virtual_machine_uuid(vm) == "uuid-1"

    def test_virtual_machine_uuid_inaccessible(self, client):
        vm = SimpleNamespace(_moId="vm-42", config=None)

        with pytest.raises(ValidationError, match="may be inaccessible"):
            client.virtual_machine_uuid(vm)

    def test_find_cluster_by_path(self, connected_client):
        cluster = vim.ClusterComputeResource("domain-c7")
        connected_client.content.searchIndex.FindByInventoryPath.return_value = cluster

        assert connected_client.find_cluster_by_path("/dc1/host/cluster1") is cluster

    def test_find_by_path_missing(self, connected_client):
        connected_client.content.searchIndex.FindByInventoryPath.return_value = None

        with pytest.raises(ManagedObjectNotFoundError, match="/dc1/vm/missing"):
            connected_client.find_virtual_machine_by_path("/dc1/vm/missing")

    def test_find_by_path_wrong_type(self, connected_client):
        connected_client.content.searchIndex.FindByInventoryPath.return_value = \
            vim.ClusterComputeResource("domain-c7")

        with pytest.raises(ValidationError, match="not a virtual machine"):
            connected_client.find_virtual_machine_by_path("/dc1/host/cluster1")

    def test_inventory_path(self, connected_client):
        root = SimpleNamespace(_moId="group-d1", name="Datacenters", parent=None)
        dc = SimpleNamespace(_moId="datacenter-2", name="dc1", parent=root)
        host_folder = SimpleNamespace(_moId="group-h4", name="host", parent=dc)
        cluster = SimpleNamespace(_moId="domain-c7", name="cluster1", parent=host_folder)
        connected_client.content.rootFolder = root

        assert connected_client.inventory_path(cluster) == "/dc1/host/cluster1"


class TestWaitForTask:
    """Test task waiting"""

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.WaitForTask')
    async def test_success(self, mock_wait, client):
        mock_wait.return_value = "success"
        assert await client.wait_for_task(Mock()) == "success"

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.WaitForTask')
    async def test_failure(self, mock_wait, client):
        mock_wait.side_effect = Exception("Invalid configuration for device")

        with pytest.raises(VCenterOperationError, match="Task failed: Invalid configuration"):
            await client.wait_for_task(Mock())

    @pytest.mark.asyncio
    @patch('vsphere_drs_override.client.WaitForTask')
    async def test_target_disappeared(self, mock_wait, client):
        mock_wait.side_effect = vmodl.fault.ManagedObjectNotFound(msg="The object has already been deleted")

        with pytest.raises(ManagedObjectNotFoundError, match="already been deleted"):
            await client.wait_for_task(Mock())
