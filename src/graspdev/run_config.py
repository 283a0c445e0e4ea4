"""Run configuration dataclass for graspdev.

Bundles CLI arguments into a single configuration object, built once after
parsing and passed to the lifecycle controller.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import Config
from .selector import ImageReference


@dataclass(frozen=True)
class RunConfig:
    """Configuration for a graspdev invocation.

    Immutable dataclass bundling all CLI arguments.
    """

    # Selectors
    distro: str | None = None
    cnoid_tag: str | None = None
    container: str | None = None
    image_repo: str = Config.image_repo
    image_tag: str | None = None

    # Container creation
    new: bool = False
    mount: bool = True
    grasp_plugin: str = Config.grasp_plugin_dir
    args: tuple[str, ...] = ()
    shell: str = Config.shell

    # Modes
    list_only: bool = False
    dry_run: bool = False
    verbose: bool = False

    @classmethod
    def from_cli(
        cls,
        config: Config,
        *,
        distro: str | None = None,
        cnoid_tag: str | None = None,
        container: str | None = None,
        image_name: str | None = None,
        image_tag: str | None = None,
        new: bool = False,
        mount: bool = True,
        grasp_plugin: str | None = None,
        args: tuple[str, ...] = (),
        list_only: bool = False,
        dry_run: bool = False,
        verbose: bool = False,
    ) -> RunConfig:
        """Create RunConfig from CLI arguments on top of the user config.

        ``--image-name repo:tag`` sets both repository and tag; an explicit
        ``--image-tag`` wins over the tag part.
        """
        image_repo = config.image_repo
        if image_name:
            parsed = ImageReference.parse(image_name)
            image_repo = parsed.repository
            image_tag = image_tag or parsed.tag or None

        return cls(
            distro=distro,
            cnoid_tag=cnoid_tag,
            container=container,
            image_repo=image_repo,
            image_tag=image_tag,
            new=new,
            mount=mount,
            grasp_plugin=grasp_plugin or config.grasp_plugin_dir,
            args=tuple(args),
            shell=config.shell,
            list_only=list_only,
            dry_run=dry_run,
            verbose=verbose,
        )
