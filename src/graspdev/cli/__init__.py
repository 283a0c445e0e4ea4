"""CLI package for graspdev.

- ``cli``: the click command (this module)
- run: lifecycle execution and output rendering
- utils: console and argv normalization

The run module is imported lazily so ``--help`` / ``--version`` stay fast.
"""

from __future__ import annotations

import click

from .. import __version__
from ..config import load_config
from ..constants import CONTAINER_GRASP_PLUGIN_DIR, SUPPORTED_DISTROS
from ..errors import ConfigError
from ..logging import set_debug
from ..run_config import RunConfig
from .utils import PASSTHROUGH_KEY, normalize_mount_args, split_passthrough

__all__ = ["cli"]

EPILOG = """\b
Examples:
  graspdev focal v1.7.0                 resume or create a 1.7-focal container
  graspdev --new --mount=false xenial v1.6.0
  graspdev --container epic_darwin      attach to a specific container
  graspdev --image-name grasp-test:bionic-1.7
  graspdev --list xenial                list xenial containers and images
  graspdev --new focal v1.7.0 --args build
"""


class GraspDevCommand(click.Command):
    """Command that pre-processes ``--args`` and ``--mount=<bool>``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        args, passthrough = split_passthrough(list(args))
        ctx.meta[PASSTHROUGH_KEY] = passthrough
        return super().parse_args(ctx, normalize_mount_args(args))


@click.command(
    cls=GraspDevCommand,
    epilog=EPILOG,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.argument("distro", required=False, type=click.Choice(SUPPORTED_DISTROS))
@click.argument("cnoid_tag", required=False)
@click.option("--container", "-C", help="Attach to this container (id or name)")
@click.option("--image-name", "-i", help="Image repository, optionally repo:tag")
@click.option("--image-tag", "-t", help="Image tag")
@click.option("--new", "-n", is_flag=True, help="Always create a new container")
@click.option(
    "--mount/--not-mount",
    " /-M",
    default=True,
    help=f"Mount Grasp Plugin source at {CONTAINER_GRASP_PLUGIN_DIR} (--mount=true|false)",
)
@click.option(
    "--grasp-plugin",
    "-g",
    type=click.Path(file_okay=False),
    help="Grasp Plugin directory on the host to mount",
)
@click.option("--list", "-l", "list_only", is_flag=True, help="List matching containers and images")
@click.option("--dry-run", "-d", is_flag=True, help="Print commands instead of running them")
@click.option("--verbose", "-v", is_flag=True, help="Print debugging messages")
@click.pass_context
@click.version_option(version=__version__, prog_name="graspdev")
def cli(
    ctx: click.Context,
    distro: str | None,
    cnoid_tag: str | None,
    container: str | None,
    image_name: str | None,
    image_tag: str | None,
    new: bool,
    mount: bool,
    grasp_plugin: str | None,
    list_only: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    """graspdev - Resume or create a Choreonoid + Grasp Plugin dev container.

    DISTRO is an Ubuntu codename and CNOID_TAG a Choreonoid release
    (e.g. v1.7.0). Both are optional; without them the newest image of the
    repository is used. Arguments after --args are passed to a new container.
    """
    if verbose:
        set_debug(True)

    try:
        config = RunConfig.from_cli(
            load_config(),
            distro=distro,
            cnoid_tag=cnoid_tag,
            container=container,
            image_name=image_name,
            image_tag=image_tag,
            new=new,
            mount=mount,
            grasp_plugin=grasp_plugin,
            args=ctx.meta.get(PASSTHROUGH_KEY, ()),
            list_only=list_only,
            dry_run=dry_run,
            verbose=verbose,
        )
    except ConfigError as e:
        raise click.UsageError(str(e), ctx=ctx) from e

    from .run import run as _run

    _run(config)


if __name__ == "__main__":  # pragma: no cover
    cli()
