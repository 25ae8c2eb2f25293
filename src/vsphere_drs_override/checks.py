"""
vSphere DRS VM Override - State Checks

Assertions over the live cluster configuration, used by the test harness
after every step and after teardown.

Author: uldyssian-sh
License: MIT
"""

from typing import Awaitable, Callable

import structlog

from .exceptions import CheckError, is_managed_object_not_found_error, is_uuid_not_found_error

logger = structlog.get_logger(__name__)

# check(state, resource) -> None, raising CheckError on failure
Check = Callable[..., Awaitable[None]]


def override_exists(expected: bool) -> Check:
    """Check that the override is present (``expected=True``) or absent"""

    async def check(state, resource) -> None:
        if not state.resource_id:
            if expected:
                raise CheckError("DRS VM override has no resource ID in state")
            return

        try:
            info = resource.fetch_override_info(state.resource_id)
        except Exception as e:
            if not expected and (is_managed_object_not_found_error(e) or is_uuid_not_found_error(e)):
                # A missing cluster or VM during destroy means the override is gone too
                logger.debug("Override parent missing, treating as absent", error=str(e))
                return
            raise

        if info is None and not expected:
            return
        if info is None and expected:
            raise CheckError("DRS VM override missing when expected to exist")
        if not expected:
            raise CheckError("DRS VM override still present when expected to be missing")

    return check


def _behavior_value(behavior) -> str:
    return getattr(behavior, "value", behavior)


def _describe(behavior, enabled, key) -> str:
    key_id = getattr(key, "_moId", key)
    return f"ClusterDrsVmConfigInfo(behavior={behavior!r}, enabled={enabled!r}, key={key_id!r})"


def override_matches(behavior: str, enabled: bool) -> Check:
    """Check the override's automation level and enabled flag"""

    async def check(state, resource) -> None:
        actual = resource.fetch_override_info(state.resource_id)
        if actual is None:
            raise CheckError("DRS VM override missing")

        actual_behavior = str(actual.behavior) if actual.behavior is not None else None
        if actual_behavior != _behavior_value(behavior) or actual.enabled != enabled:
            raise CheckError(
                f"expected {_describe(_behavior_value(behavior), enabled, actual.key)} "
                f"got {_describe(actual_behavior, actual.enabled, actual.key)}"
            )

    return check


def compose_checks(*checks: Check) -> Check:
    """Run checks in order, stopping at the first failure"""

    async def check(state, resource) -> None:
        for i, c in enumerate(checks, start=1):
            try:
                await c(state, resource)
            except CheckError as e:
                raise CheckError(f"Check {i}/{len(checks)} error: {e}") from e

    return check
