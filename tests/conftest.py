"""
Shared fixtures for vSphere DRS VM Override tests.

Author: uldyssian-sh
License: MIT
"""

import os
import sys
from unittest.mock import AsyncMock, Mock

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pyVmomi import vim

from vsphere_drs_override.client import VCenterClient
from vsphere_drs_override.resource import DrsVmOverrideResource

from tests.fakes import CLUSTER_ID, VM_MOID, VM_UUID, FakeCluster


@pytest.fixture
def vm():
    """Unbound virtual machine reference."""
    return vim.VirtualMachine(VM_MOID)


@pytest.fixture
def cluster():
    """Fake compute cluster with an empty drsVmConfig list."""
    return FakeCluster()


@pytest.fixture
def mock_client(cluster, vm):
    """Mock vCenter client resolving the fake cluster and VM."""
    client = Mock(spec=VCenterClient)
    client.get_cluster.return_value = cluster
    client.get_virtual_machine_by_uuid.return_value = vm
    client.virtual_machine_uuid.return_value = VM_UUID
    client.find_cluster_by_path.return_value = cluster
    client.find_virtual_machine_by_path.return_value = vm
    client.inventory_path.side_effect = lambda obj: {
        CLUSTER_ID: "/dc1/host/cluster1",
        VM_MOID: "/dc1/vm/terraform-test",
    }[obj._moId]
    client.wait_for_task = AsyncMock(return_value=None)
    return client


@pytest.fixture
def resource(mock_client):
    """Override resource bound to the mock client."""
    return DrsVmOverrideResource(mock_client)
