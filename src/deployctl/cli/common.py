"""Shared plumbing for CLI commands.

- run_command() builds the API client from Settings, runs one async
  operation with asyncio.run() and prints its result as JSON
- DeployctlError and transport failures are printed in red and turned
  into exit code 1
- A failed tracking after a successful submit still prints the response
"""

import asyncio
import sys
from typing import Any, Awaitable, Callable

import httpx
import typer
from pydantic import BaseModel, ValidationError
from rich.console import Console
from rich.markup import escape

from deployctl.api.client import CloudClient, create_http_client
from deployctl.config import Settings
from deployctl.deployment.tracking import ChangeTracker, TrackFrequency
from deployctl.exceptions import DeployctlError, TrackingError

console = Console()

Operation = Callable[[CloudClient, Settings], Awaitable[Any]]


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", exclude_none=True)
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    return value


def print_json(value: Any) -> None:
    console.print_json(data=to_jsonable(value))


def print_error(err: Exception) -> None:
    console.print(f"[red]Error:[/red] {escape(str(err))}")


def make_tracker(client: CloudClient, settings: Settings, track: bool) -> ChangeTracker | None:
    """A tracker writing to stdout when track is set, None otherwise."""
    if not track:
        return None
    frequency = TrackFrequency(
        poll_frequency=settings.poll_frequency,
        max_retries=settings.max_retries,
    )
    return ChangeTracker(client, sys.stdout, frequency)


def run_command(operation: Operation, show_result: bool = True) -> None:
    """Run an async operation against the configured API."""
    settings = Settings()

    async def _run() -> Any:
        async with create_http_client(settings) as http:
            return await operation(CloudClient(http=http), settings)

    try:
        result = asyncio.run(_run())
    except TrackingError as e:
        if e.response is not None:
            print_json(e.response)
        print_error(e)
        raise typer.Exit(1)
    except (DeployctlError, ValidationError, httpx.HTTPError) as e:
        print_error(e)
        raise typer.Exit(1)

    if show_result and result is not None:
        print_json(result)
