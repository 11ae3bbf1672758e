"""
Plan reapply engine.

Resubmits the latest plan attempt of a resource with a controlled reset of
its transient block:

- restore_snapshot is always cleared, so a prior snapshot restore is never
  replayed
- the change strategy is replaced when the caller selects one
- plan_configuration is reset to explicit safe defaults (every flag false)
  and the caller's overrides are laid on top

Strategy reference:
- default: the server picks (currently grow and shrink)
- rolling: one instance at a time by name, no downtime
- grow_and_shrink: new instances first, then retire the old ones
- rolling_grow_and_shrink: grow and shrink one instance at a time
- rolling_all: every instance at once, downtime likely, used for major
  upgrades
"""

import json
import logging
from typing import Any, TextIO

from deployctl.api.client import CloudClient
from deployctl.deployment.kinds import KindAdapter, adapter_for
from deployctl.deployment.tracking import ChangeTracker
from deployctl.exceptions import (
    MissingAPIError,
    MultiError,
    NoLatestAttemptError,
    UnsupportedKindError,
)
from deployctl.models import (
    PlanControlConfiguration,
    PlanStrategy,
    ResourcePlan,
    RollingStrategyConfig,
    TransientPlanConfiguration,
)
from deployctl.types import ReapplyOverrides, ResourceKind, validate_deployment_id

logger = logging.getLogger(__name__)

DEFAULT_STRATEGY = PlanStrategy()
GROW_AND_SHRINK_STRATEGY = PlanStrategy(grow_and_shrink={})
ROLLING_GROW_AND_SHRINK_STRATEGY = PlanStrategy(rolling_grow_and_shrink={})
ROLLING_ALL_STRATEGY = PlanStrategy(rolling=RollingStrategyConfig(group_by="__all__"))
ROLLING_BY_NAME_STRATEGY = PlanStrategy(rolling=RollingStrategyConfig(group_by="__name__"))

# Plan configuration field each override maps to.
_OVERRIDE_FIELDS = {
    "reallocate_instances": "reallocate",
    "extended_maintenance": "extended_maintenance",
    "override_failsafe": "override_failsafe",
    "skip_snapshot": "skip_snapshot",
    "skip_data_migration": "skip_data_migration",
    "skip_post_upgrade_steps": "skip_post_upgrade_steps",
    "skip_upgrade_checker": "skip_upgrade_checker",
}


def chosen_strategy(overrides: ReapplyOverrides) -> PlanStrategy | None:
    """The strategy selected by overrides, None when none is selected."""
    if overrides.rolling:
        return ROLLING_BY_NAME_STRATEGY
    if overrides.rolling_all:
        return ROLLING_ALL_STRATEGY
    if overrides.grow_and_shrink:
        return GROW_AND_SHRINK_STRATEGY
    if overrides.default:
        return DEFAULT_STRATEGY
    if overrides.rolling_grow_and_shrink:
        return ROLLING_GROW_AND_SHRINK_STRATEGY
    return None


def safe_plan_configuration(adapter: KindAdapter) -> PlanControlConfiguration:
    """Every plan configuration flag the kind accepts, explicitly false."""
    return PlanControlConfiguration(**{name: False for name in adapter.plan_configuration_fields})


def compute_transient(
    plan: ResourcePlan,
    overrides: ReapplyOverrides,
    kind: ResourceKind | str = ResourceKind.ELASTICSEARCH,
) -> ResourcePlan:
    """
    Return a copy of plan with its transient block rewritten.

    Pure: the input plan is left untouched, and equal inputs always give
    equal outputs.
    """
    adapter = adapter_for(kind)
    result = plan.model_copy(deep=True)
    if result.transient is None:
        result.transient = TransientPlanConfiguration()
    transient = result.transient

    transient.restore_snapshot = None

    strategy = chosen_strategy(overrides)
    if strategy is not None:
        transient.strategy = strategy.model_copy(deep=True)

    configuration = safe_plan_configuration(adapter)
    for field_name, override in _OVERRIDE_FIELDS.items():
        if field_name not in adapter.plan_configuration_fields:
            continue
        value = getattr(overrides, override)
        if value is not None:
            setattr(configuration, field_name, bool(value))
    transient.plan_configuration = configuration

    return result


def latest_attempt(history: list[Any], resource_id: str) -> ResourcePlan:
    """
    The plan of the last history entry.

    Raises:
        NoLatestAttemptError: When history is empty or its last entry has no plan.
    """
    if not history or history[-1].plan is None:
        raise NoLatestAttemptError(resource_id)
    return history[-1].plan


class PlanReapplyEngine:
    """
    Reapplies the latest plan attempt of a resource.

    Example:
        engine = PlanReapplyEngine(client, sys.stdout)
        await engine.reapply(
            ResourceKind.ELASTICSEARCH,
            resource_id,
            ReapplyOverrides(rolling=True, skip_snapshot=True),
        )
    """

    def __init__(self, client: CloudClient | None, output: TextIO) -> None:
        self.client = client
        self.output = output

    def validate(self, kind: ResourceKind | str, resource_id: str, overrides: ReapplyOverrides) -> None:
        """Raise a MultiError holding every fault of the call, without any I/O."""
        merr = MultiError()
        if self.client is None:
            merr.append(MissingAPIError())
        merr.append(validate_deployment_id(resource_id))
        try:
            adapter_for(kind)
        except UnsupportedKindError as e:
            merr.append(e)
        merr.append(overrides.validate())
        merr.raise_if_any()

    async def reapply(
        self,
        kind: ResourceKind | str,
        resource_id: str,
        overrides: ReapplyOverrides,
        tracker: ChangeTracker | None = None,
    ) -> dict[str, Any]:
        """
        Reapply the latest plan attempt with rewritten transient settings.

        Steps run strictly in order: validate, fetch history, rewrite,
        print, submit, and track when a tracker is given.

        Returns:
            The server's plan update response.

        Raises:
            MultiError: On invalid input, before any request.
            NoLatestAttemptError: When the resource has no plan history.
            TrackingError: When tracking fails after a successful submit,
                with the submit response attached.
        """
        self.validate(kind, resource_id, overrides)
        adapter = adapter_for(kind)
        kind_name = adapter.kind.value

        activity = await self.client.get_plan_activity(kind_name, resource_id, show_plan_defaults=True)
        plan = compute_transient(latest_attempt(activity.history, resource_id), overrides, adapter.kind)

        if not overrides.hide_plan:
            print(json.dumps(plan.to_wire(), indent=2), file=self.output)

        logger.info(f"Reapplying latest plan of [{kind_name}][{resource_id}]")
        response = await self.client.update_plan(kind_name, resource_id, plan)

        if tracker is not None:
            await tracker.track_resource(adapter.kind, resource_id, response=response)

        return response
