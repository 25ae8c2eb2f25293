"""
vSphere DRS VM Override Exceptions

Custom exception classes for DRS VM override operations.

Author: uldyssian-sh
License: MIT
"""


class DrsOverrideError(Exception):
    """Base exception for vSphere DRS VM override management"""
    pass


class VCenterConnectionError(DrsOverrideError):
    """Raised when connection to vCenter fails"""
    pass


class VCenterAuthenticationError(DrsOverrideError):
    """Raised when vCenter authentication fails"""
    pass


class VCenterOperationError(DrsOverrideError):
    """Raised when a vCenter task fails"""
    pass


class ValidationError(DrsOverrideError):
    """Raised when input validation fails"""
    pass


class ConfigurationError(DrsOverrideError):
    """Raised when configuration is invalid"""
    pass


class ResourceNotFoundError(DrsOverrideError):
    """Raised when requested resource is not found"""
    pass


class ManagedObjectNotFoundError(ResourceNotFoundError):
    """Raised when a managed object reference no longer resolves"""
    pass


class UUIDNotFoundError(ResourceNotFoundError):
    """Raised when no virtual machine matches a UUID"""
    pass


class OverrideExistsError(DrsOverrideError):
    """Raised when creating an override that is already present"""
    pass


class OverrideNotFoundError(ResourceNotFoundError):
    """Raised when an override is expected but absent from the cluster"""
    pass


class CheckError(DrsOverrideError):
    """Raised when a state assertion fails"""
    pass


def is_managed_object_not_found_error(err: BaseException) -> bool:
    """Check if an error means a managed object could not be found."""
    return isinstance(err, ManagedObjectNotFoundError)


def is_uuid_not_found_error(err: BaseException) -> bool:
    """Check if an error means a virtual machine UUID could not be found."""
    return isinstance(err, UUIDNotFoundError)
