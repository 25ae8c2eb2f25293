"""
vSphere DRS VM Override

Declarative management of per-virtual-machine DRS (Distributed Resource
Scheduler) overrides on vSphere compute clusters. Desired overrides are
reconciled against the cluster's drsVmConfig list through the vCenter API.

Author: uldyssian-sh
License: MIT
Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "uldyssian-sh"
__license__ = "MIT"
__description__ = "vSphere DRS VM Override - per-VM DRS settings reconciliation for vCenter clusters"

from .exceptions import (
    CheckError,
    ConfigurationError,
    DrsOverrideError,
    ManagedObjectNotFoundError,
    OverrideExistsError,
    OverrideNotFoundError,
    ResourceNotFoundError,
    UUIDNotFoundError,
    ValidationError,
    VCenterAuthenticationError,
    VCenterConnectionError,
    VCenterOperationError,
)
from .structure import DrsBehavior, DrsVmOverrideSpec, DrsVmOverrideState


def get_version():
    """Get the current version of vSphere DRS VM Override."""
    return __version__


def get_info():
    """Get information about vSphere DRS VM Override."""
    return {
        "name": "vSphere DRS VM Override",
        "version": __version__,
        "author": __author__,
        "license": __license__,
        "description": __description__,
    }


__all__ = [
    # Metadata
    "__version__",
    "__author__",
    "__license__",
    "__description__",

    # Core functions
    "get_version",
    "get_info",

    # Data model
    "DrsBehavior",
    "DrsVmOverrideSpec",
    "DrsVmOverrideState",

    # Exceptions
    "DrsOverrideError",
    "VCenterConnectionError",
    "VCenterAuthenticationError",
    "VCenterOperationError",
    "ValidationError",
    "ConfigurationError",
    "ResourceNotFoundError",
    "ManagedObjectNotFoundError",
    "UUIDNotFoundError",
    "OverrideExistsError",
    "OverrideNotFoundError",
    "CheckError",
]
