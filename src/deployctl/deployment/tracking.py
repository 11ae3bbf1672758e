"""
Concurrent change tracking for deployment resources.

This module provides ChangeTracker, which follows the pending plan of every
resource touched by a deployment change until each one finishes or fails:

- One worker task per live resource plus one per orphaned resource id
- Workers poll the plan activity endpoint at a fixed cadence and retry
  transient failures within a bounded budget
- Results flow through an asyncio.Queue to the collector, which aggregates
  every failure into a single TrackingError
- Progress lines go to the caller's writer; a write never spans an await

Tracking is best-effort: a failed tracker never rolls back the change it
was following.

Per MonitorLoop patterns:
- asyncio.Event for cancellation
- wait_for with timeout for interruptible sleep
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, TextIO

import httpx

from deployctl.api.client import CloudClient
from deployctl.deployment.kinds import adapter_for
from deployctl.exceptions import (
    DeployctlError,
    PlanFailedError,
    RemoteError,
    TrackCancelledError,
    TrackingError,
    TrackTimeoutError,
    UnsupportedTrackingError,
)
from deployctl.models import DeploymentResource, Orphaned, PlanAttempt, PlansInfo
from deployctl.types import ResourceKind, TrackTask

logger = logging.getLogger(__name__)

STEP_STATUS_ERROR = "error"


@dataclass
class TrackFrequency:
    """
    Poll cadence and retry budget of a tracker worker.

    Attributes:
        poll_frequency: Seconds between plan activity polls (default 2.0)
        max_retries: Failed polls tolerated per resource (default 3)

    Example:
        frequency = TrackFrequency(poll_frequency=5.0, max_retries=10)
        tracker = ChangeTracker(client, sys.stdout, frequency)
    """

    poll_frequency: float = 2.0
    max_retries: int = 3

    def should_retry(self, retry_count: int) -> bool:
        """
        Check if another poll should be made after a failure.

        Args:
            retry_count: Failed polls so far

        Returns:
            True if retry_count <= max_retries, False otherwise
        """
        return retry_count <= self.max_retries


def build_worklist(
    resources: Iterable[DeploymentResource | TrackTask],
    orphaned: Orphaned | None = None,
) -> list[TrackTask]:
    """One task per live resource, then one per orphaned resource id."""
    tasks = []
    for resource in resources:
        if isinstance(resource, TrackTask):
            tasks.append(resource)
        else:
            tasks.append(TrackTask(resource_id=resource.id, kind=resource.kind))

    if orphaned is not None:
        for es in orphaned.elasticsearch:
            tasks.append(TrackTask(resource_id=es.id, kind=ResourceKind.ELASTICSEARCH))
        for kind in (ResourceKind.KIBANA, ResourceKind.APM, ResourceKind.APPSEARCH):
            for resource_id in getattr(orphaned, kind.value):
                tasks.append(TrackTask(resource_id=resource_id, kind=kind))

    return tasks


def _parse_time(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def plan_duration(attempt: PlanAttempt) -> timedelta:
    """
    Elapsed time of a plan attempt.

    Measured from attempt_start_time to attempt_end_time (or now while the
    attempt runs), falling back to the sum of its step durations.
    """
    start = _parse_time(attempt.attempt_start_time)
    if start is not None:
        end = _parse_time(attempt.attempt_end_time) or datetime.now(timezone.utc)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return max(end - start, timedelta(0))

    millis = sum(step.duration_in_millis or 0 for step in attempt.plan_attempt_log)
    return timedelta(milliseconds=millis)


def format_duration(duration: timedelta) -> str:
    return str(timedelta(seconds=round(duration.total_seconds())))


class _Cancelled:
    """Marker result of a worker stopped by cancellation."""


CANCELLED = _Cancelled()


class ChangeTracker:
    """
    Follows plan changes of many resources concurrently.

    Workers share only the HTTP client, which is used read-only, and the
    output writer.

    Example:
        tracker = ChangeTracker(client, sys.stdout)
        response = await client.update_deployment(deployment_id, request)
        await tracker.track(response.resources, response.shutdown_resources)
    """

    def __init__(
        self,
        client: CloudClient,
        output: TextIO,
        frequency: TrackFrequency | None = None,
    ) -> None:
        """
        Initialize tracker.

        Args:
            client: API client used to poll plan activity
            output: Writer receiving progress lines
            frequency: Poll cadence and retry budget (default TrackFrequency())
        """
        self.client = client
        self.output = output
        self.frequency = frequency or TrackFrequency()

    def _write(self, line: str) -> None:
        print(line, file=self.output)

    async def _sleep(self, cancel: asyncio.Event | None) -> bool:
        """Sleep one poll interval. Returns True when cancelled meanwhile."""
        if cancel is None:
            await asyncio.sleep(self.frequency.poll_frequency)
            return False
        try:
            await asyncio.wait_for(cancel.wait(), timeout=self.frequency.poll_frequency)
        except asyncio.TimeoutError:
            pass
        return cancel.is_set()

    async def track(
        self,
        resources: Iterable[DeploymentResource | TrackTask],
        orphaned: Orphaned | None = None,
        cancel: asyncio.Event | None = None,
        response: Any = None,
    ) -> None:
        """
        Track every resource until it finishes or fails.

        Cancelling the calling task, for example through asyncio.timeout,
        stops every worker and is recorded like a set cancel event.

        Args:
            resources: Live resources of a change response, or explicit tasks
            orphaned: Resources retired by the change
            cancel: Setting this event stops every worker at its next poll
            response: Submit response attached to a raised TrackingError

        Raises:
            TrackingError: Holding every per-resource failure, with
                cancellation recorded once.
        """
        tasks = build_worklist(resources, orphaned)
        if not tasks:
            return

        results: asyncio.Queue = asyncio.Queue()
        cancelled = False
        try:
            async with asyncio.TaskGroup() as group:
                for task in tasks:
                    group.create_task(self._worker(task, cancel, results))
        except asyncio.CancelledError:
            logger.warning(f"Tracking of {len(tasks)} resources was cancelled")
            cancelled = True

        errors: list[Exception] = []
        while not results.empty():
            result = results.get_nowait()
            if result is CANCELLED:
                cancelled = True
            elif result is not None:
                errors.append(result)
        if cancelled:
            errors.append(TrackCancelledError())

        if errors:
            raise TrackingError(errors, response=response)

    async def track_resource(
        self,
        kind: ResourceKind | str,
        resource_id: str,
        cancel: asyncio.Event | None = None,
        response: Any = None,
    ) -> None:
        """Track a single resource. Raises TrackingError on failure."""
        await self.track([TrackTask(resource_id=resource_id, kind=kind)], cancel=cancel, response=response)

    async def _worker(
        self,
        task: TrackTask,
        cancel: asyncio.Event | None,
        results: asyncio.Queue,
    ) -> None:
        """Run one tracker, posting None, CANCELLED or an error to results."""
        try:
            result = await self._follow(task, cancel)
        except DeployctlError as e:
            result = e
        except Exception as e:
            logger.warning(f"Tracking resource {task.resource_id} failed: {e!r}")
            result = e
        results.put_nowait(result)

    async def _follow(self, task: TrackTask, cancel: asyncio.Event | None) -> _Cancelled | None:
        adapter = adapter_for(task.kind)
        kind = adapter.kind.value
        if not adapter.supports_tracking:
            raise UnsupportedTrackingError(task.resource_id, kind)

        retries = 0
        seen_pending = False
        settle_checked = False
        last_step = None

        while True:
            if cancel is not None and cancel.is_set():
                return CANCELLED

            try:
                activity = await self.client.get_plan_activity(kind, task.resource_id)
            except (RemoteError, httpx.HTTPError) as e:
                retries += 1
                if not self.frequency.should_retry(retries):
                    raise TrackTimeoutError(task.resource_id, kind, retries, e) from e
                logger.warning(
                    f"Polling [{kind}][{task.resource_id}] failed "
                    f"(attempt {retries}/{self.frequency.max_retries}): {e}"
                )
                if await self._sleep(cancel):
                    return CANCELLED
                continue

            pending = activity.pending
            if pending is not None:
                seen_pending = True
                step = pending.plan_attempt_log[-1] if pending.plan_attempt_log else None
                if step is not None and step.step_id != last_step:
                    last_step = step.step_id
                    self._write(
                        f"Deployment resource [{kind}][{task.resource_id}]: running step "
                        f'"{step.step_id}" (Plan duration {format_duration(plan_duration(pending))})...'
                    )
            else:
                # The pending plan may not be registered right after a submit.
                if not seen_pending and not settle_checked:
                    settle_checked = True
                    retries += 1
                    if self.frequency.should_retry(retries):
                        if await self._sleep(cancel):
                            return CANCELLED
                        continue
                return self._finish(task.resource_id, kind, activity)

            if await self._sleep(cancel):
                return CANCELLED

    def _finish(self, resource_id: str, kind: str, activity: PlansInfo) -> None:
        attempt = activity.current
        if attempt is None and activity.history:
            attempt = activity.history[-1]

        if attempt is None:
            logger.info(f"No plan attempt recorded for [{kind}][{resource_id}]")
            return None

        final = attempt.plan_attempt_log[-1] if attempt.plan_attempt_log else None
        if final is not None and final.status == STEP_STATUS_ERROR:
            details = getattr(final, "details", None) or final.stage or ""
            raise PlanFailedError(resource_id, kind, final.step_id, str(details))

        self._write(
            f"Deployment resource [{kind}][{resource_id}]: finished running all the plan "
            f"steps (Total plan duration: {format_duration(plan_duration(attempt))})"
        )
        return None
