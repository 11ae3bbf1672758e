"""deployctl CLI - control tool for hosted Elasticsearch deployments."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from deployctl.cli.deployment import deployment_app
from deployctl.cli.plan import plan_app
from deployctl.cli.resource import resource_app
from deployctl.cli.stateless import stateless_app
from deployctl.config import Settings

app = typer.Typer(
    name="deployctl",
    help="Manage hosted Elasticsearch deployments",
    no_args_is_help=True,
)

# Add command groups
app.add_typer(deployment_app, name="deployment")
app.add_typer(resource_app, name="resource")
app.add_typer(plan_app, name="plan")
app.add_typer(stateless_app, name="stateless")


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every API request"),
) -> None:
    """Configure logging for every command."""
    verbose = verbose or Settings().verbose
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
