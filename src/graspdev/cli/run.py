"""Run operations for graspdev.

Wires the lifecycle controller to the console and maps aborted outcomes
to exit codes.
"""

from __future__ import annotations

import sys

import click
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..docker import DockerEngine
from ..errors import ContainerError, GraspDevError
from ..lifecycle import Controller, Listing
from ..logging import get_logger
from ..run_config import RunConfig
from .utils import console, output

logger = get_logger(__name__)


def show_target(image: str) -> None:
    console.print(Panel.fit(f"[bold]{escape(image)}[/bold]", border_style="blue"))


def show_listing(listing: Listing) -> None:
    """Render matched containers, then matched images."""
    containers = Table(title=f"Containers ({listing.reference})")
    containers.add_column("Container ID", style="cyan")
    containers.add_column("Image")
    containers.add_column("Status")
    containers.add_column("Names", style="dim")
    for row in listing.containers:
        status = row.get("Status", "")
        style = "green" if status.startswith("Up") else "yellow"
        containers.add_row(
            row.get("ID", ""),
            row.get("Image", ""),
            f"[{style}]{escape(status)}[/{style}]",
            row.get("Names", ""),
        )

    images = Table(title=f"Images ({listing.reference})")
    images.add_column("Repository", style="cyan")
    images.add_column("Tag")
    images.add_column("Image ID", style="dim")
    images.add_column("Created")
    images.add_column("Size", justify="right")
    for row in listing.images:
        images.add_row(
            row.get("Repository", ""),
            row.get("Tag", ""),
            row.get("ID", ""),
            row.get("CreatedSince", ""),
            row.get("Size", ""),
        )

    output.print(containers)
    output.print(images)


def exit_code_for(error: GraspDevError, config: RunConfig) -> int:
    """Exit code for an aborted invocation.

    Dry-run never fails: nothing was attempted. A failed `docker run` /
    `docker exec` passes the container's exit code through.
    """
    if config.dry_run:
        return 0
    if isinstance(error, ContainerError) and error.returncode:
        return error.returncode
    return 1


def run(config: RunConfig) -> None:
    """Resolve the target container and attach to it, or list matches."""
    engine = DockerEngine(dry_run=config.dry_run, echo=click.echo)
    controller = Controller(engine, on_target=show_target)

    try:
        if config.list_only:
            show_listing(controller.list_matches(config))
            return
        attachment = controller.resolve_and_attach(config)
    except GraspDevError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]", highlight=False)
        sys.exit(exit_code_for(e, config))

    logger.debug(
        "Session finished: %s from %s %s (%s)",
        attachment.action.value,
        attachment.state.value,
        attachment.container or "",
        attachment.image,
    )
