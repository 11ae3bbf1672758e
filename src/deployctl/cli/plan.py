"""Plan CLI commands.

- reapply: Reapply the latest plan attempt of a resource. Every override
  has its own flag.
- history: List the plan attempts of a resource.
"""

import sys

import typer

from deployctl.cli.common import make_tracker, run_command
from deployctl.deployment import resources
from deployctl.deployment.reapply import PlanReapplyEngine
from deployctl.types import ReapplyOverrides

plan_app = typer.Typer(help="Manage resource plans")

KIND_HELP = "Resource kind (elasticsearch, kibana, apm, appsearch)"


@plan_app.command("reapply")
def reapply(
    resource_id: str = typer.Argument(..., help="Resource ID"),
    kind: str = typer.Option("elasticsearch", "--kind", "-k", help=KIND_HELP),
    track: bool = typer.Option(False, "--track", "-t", help="Track the plan progress"),
    hide_plan: bool = typer.Option(False, "--hide-plan", help="Don't print the plan before reapplying"),
    default: bool = typer.Option(False, "--default", help="Overwrites the strategy to the default one"),
    rolling: bool = typer.Option(False, "--rolling", help="Overwrites the strategy to rolling"),
    grow_and_shrink: bool = typer.Option(
        False, "--grow-and-shrink", help="Overwrites the strategy to grow and shrink"
    ),
    rolling_grow_and_shrink: bool = typer.Option(
        False,
        "--rolling-grow-and-shrink",
        help="Overwrites the strategy to rolling grow and shrink (one at a time)",
    ),
    rolling_all: bool = typer.Option(
        False,
        "--rolling-all",
        help="Overwrites the strategy to apply the change in all the instances at a time (causes downtime)",
    ),
    reallocate: bool = typer.Option(False, "--reallocate", help="Forces creation of new instances"),
    extended_maintenance: bool = typer.Option(
        False,
        "--extended-maintenance",
        help="Stops routing to the cluster instances after the plan has been applied",
    ),
    override_failsafe: bool = typer.Option(
        False,
        "--override-failsafe",
        help="Overrides failsafe at the constructor level that prevent bad things from happening",
    ),
    skip_snapshot: bool = typer.Option(
        False, "--skip-snapshot", help="Skips snapshot on the reapplied plan"
    ),
    skip_data_migration: bool = typer.Option(
        False,
        "--skip-data-migration",
        help="Doesn't wait for data to be migrated from old instances before continuing the plan",
    ),
    skip_post_upgrade_steps: bool = typer.Option(
        False, "--skip-post-upgrade-steps", help="Bypasses the post upgrade operations"
    ),
    skip_upgrade_checker: bool = typer.Option(
        False,
        "--skip-upgrade-checker",
        help="Bypasses issue checks that should be resolved before migration",
    ),
) -> None:
    """Reapply the latest plan attempt of a resource."""
    overrides = ReapplyOverrides(
        hide_plan=hide_plan,
        default=default,
        rolling=rolling,
        grow_and_shrink=grow_and_shrink,
        rolling_grow_and_shrink=rolling_grow_and_shrink,
        rolling_all=rolling_all,
        reallocate=reallocate,
        extended_maintenance=extended_maintenance,
        override_failsafe=override_failsafe,
        skip_snapshot=skip_snapshot,
        skip_data_migration=skip_data_migration,
        skip_post_upgrade_steps=skip_post_upgrade_steps,
        skip_upgrade_checker=skip_upgrade_checker,
    )

    async def _reapply(client, settings):
        engine = PlanReapplyEngine(client, sys.stdout)
        return await engine.reapply(
            kind, resource_id, overrides, tracker=make_tracker(client, settings, track)
        )

    run_command(_reapply)


@plan_app.command("history")
def history(
    resource_id: str = typer.Argument(..., help="Resource ID"),
    kind: str = typer.Option("elasticsearch", "--kind", "-k", help=KIND_HELP),
    plan_defaults: bool = typer.Option(False, "--plan-defaults", help="Include plan defaults"),
) -> None:
    """List the plan attempts of a resource, oldest first."""

    async def _history(client, settings):
        return await resources.list_plan_history(
            client, kind, resource_id, show_plan_defaults=plan_defaults
        )

    run_command(_history)
