"""
vSphere DRS VM Override - Test Harness

Step-driven runner for override lifecycle tests. Each test case applies a
sequence of configurations (or imports), runs its checks after every step,
always destroys what it created and finally verifies the teardown.

Author: uldyssian-sh
License: MIT
"""

import inspect
import json
import unittest
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog

from .checks import Check
from .client import VCenterClient
from .config import AcceptanceEnvironment
from .exceptions import CheckError, ValidationError
from .resource import IMPORT_CLUSTER_PATH_KEY, IMPORT_VM_PATH_KEY, DrsVmOverrideResource
from .structure import DrsVmOverrideSpec

logger = structlog.get_logger(__name__)


@dataclass
class HarnessState:
    """Resource state carried between steps"""
    resource_id: Optional[str] = None
    attributes: Dict[str, Any] = field(default_factory=dict)


ConfigSource = Union[DrsVmOverrideSpec, Callable[[], DrsVmOverrideSpec]]
ImportIdFunc = Callable[[HarnessState], Union[str, Awaitable[str]]]


@dataclass
class TestStep:
    """One step of an acceptance test case"""
    __test__ = False

    config: Optional[ConfigSource] = None
    checks: Optional[Check] = None
    import_state: bool = False
    import_state_verify: bool = False
    import_state_id_func: Optional[ImportIdFunc] = None

    def resolve_config(self) -> DrsVmOverrideSpec:
        if self.config is None:
            raise ValidationError("Step has no configuration")
        if callable(self.config):
            return self.config()
        return self.config


@dataclass
class AcceptanceTestCase:
    """Sequence of steps plus the pre- and post-conditions around them"""
    __test__ = False

    steps: List[TestStep]
    precheck: Optional[Callable[[], None]] = None
    check_destroy: Optional[Check] = None

    async def run(self, resource: DrsVmOverrideResource) -> HarnessState:
        """Run every step, destroy the override, then run the destroy check"""
        if self.precheck is not None:
            self.precheck()

        state = HarnessState()
        failed = False
        try:
            for index, step in enumerate(self.steps, start=1):
                logger.info("Running test step", step=index, import_state=step.import_state)
                try:
                    if step.import_state:
                        await self._run_import_step(step, state, resource)
                    else:
                        await self._run_config_step(step, state, resource)
                except CheckError as e:
                    raise CheckError(f"Step {index}/{len(self.steps)} error: {e}") from e
        except BaseException:
            failed = True
            raise
        finally:
            try:
                await self._destroy(state, resource)
            except Exception as e:
                if not failed:
                    raise
                logger.error("Destroy after failed test case also failed", error=str(e))

        if self.check_destroy is not None:
            await self.check_destroy(state, resource)
        return state

    async def _run_config_step(self, step: TestStep, state: HarnessState,
                               resource: DrsVmOverrideResource) -> None:
        spec = step.resolve_config()
        changed, observed = await resource.apply(spec, state.resource_id)
        logger.info("Applied step configuration", changed=changed, resource_id=observed.id)

        state.resource_id = observed.id
        state.attributes = observed.attributes()

        plan = await resource.plan(spec, state.resource_id)
        if plan.changed:
            raise CheckError(
                f"After applying this step, the plan was not empty: {plan.action} {sorted(plan.diff)}"
            )

        if step.checks is not None:
            await step.checks(state, resource)

    async def _run_import_step(self, step: TestStep, state: HarnessState,
                               resource: DrsVmOverrideResource) -> None:
        if step.import_state_id_func is not None:
            import_id = step.import_state_id_func(state)
            if inspect.isawaitable(import_id):
                import_id = await import_id
        else:
            import_id = state.resource_id
        imported = await resource.import_state(import_id)

        if step.import_state_verify:
            expected = dict(state.attributes, id=state.resource_id)
            actual = imported.to_dict()
            mismatched = {
                key: (expected.get(key), actual.get(key))
                for key in sorted(set(expected) | set(actual))
                if expected.get(key) != actual.get(key)
            }
            if mismatched:
                raise CheckError(f"ImportStateVerify attributes not equivalent: {mismatched}")

        if step.checks is not None:
            await step.checks(HarnessState(imported.id, imported.attributes()), resource)

    async def _destroy(self, state: HarnessState, resource: DrsVmOverrideResource) -> None:
        if not state.resource_id:
            return
        if await resource.exists(state.resource_id):
            await resource.delete(state.resource_id)
            logger.info("Destroyed DRS override", resource_id=state.resource_id)


def acceptance_precheck(env: AcceptanceEnvironment) -> Callable[[], None]:
    """Build a precheck that skips unless the acceptance environment is complete"""

    def precheck() -> None:
        missing = env.missing()
        if missing:
            raise unittest.SkipTest(f"set {missing} to run vsphere_drs_vm_override acceptance tests")

    return precheck


def import_state_id(client: VCenterClient, cluster: Any, vm: Any) -> str:
    """Build the JSON import ID for an override from its cluster and VM"""
    return json.dumps({
        IMPORT_CLUSTER_PATH_KEY: client.inventory_path(cluster),
        IMPORT_VM_PATH_KEY: client.inventory_path(vm),
    })
