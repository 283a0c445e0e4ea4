"""Container lifecycle: resolve a target container and attach to it.

Resuming existing work is preferred over creating new containers:

    selector -> image -> newest running/exited container of that image
                            |-- none     -> docker run
                            |-- exited   -> docker start, poll, docker exec
                            `-- running  -> docker exec

The only retry is the short poll after `docker start`, which absorbs the
delay between the start request and the engine reporting "running".
"""

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from .constants import START_POLL_ATTEMPTS, START_POLL_INTERVAL
from .docker import ContainerStatus
from .errors import (
    ContainerNotFoundError,
    ContainerStartError,
    DockerNotRunningError,
    ImageNotFoundError,
    UnsupportedStatusError,
)
from .logging import get_logger
from .paths import grasp_plugin_mount
from .resolver import estimate_image, list_image_candidates
from .selector import Selector, SelectorKind, select

if TYPE_CHECKING:
    from .docker import DockerEngine
    from .run_config import RunConfig

logger = get_logger(__name__)

# Statuses a container may have to be resumed
RESUMABLE = (ContainerStatus.RUNNING, ContainerStatus.EXITED)


class TargetState(str, Enum):
    """Where resolution of the target container stands."""

    UNRESOLVED = "unresolved"
    FOUND_RUNNING = "found_running"
    FOUND_EXITED = "found_exited"
    NOT_FOUND = "not_found"


_OBSERVED_STATES = {
    ContainerStatus.RUNNING: TargetState.FOUND_RUNNING,
    ContainerStatus.EXITED: TargetState.FOUND_EXITED,
}


class Action(str, Enum):
    """How the session was attached."""

    CREATED = "created"
    RESUMED = "resumed"
    ATTACHED = "attached"


@dataclass(frozen=True)
class Attachment:
    """Successful outcome of `Controller.resolve_and_attach`."""

    action: Action
    image: str
    container: str | None = None
    state: TargetState = TargetState.UNRESOLVED


@dataclass
class Listing:
    """Containers and images matched by `--list`."""

    reference: str
    images: list[dict[str, str]] = field(default_factory=list)
    containers: list[dict[str, str]] = field(default_factory=list)


class Controller:
    """Drives one invocation from selector to an attached session.

    Args:
        engine: Docker engine wrapper; carries the dry-run setting.
        sleep: Delay function used between start polls (default time.sleep).
        on_target: Called with a label (image reference) once the target is
            known, before anything is attached.
    """

    def __init__(
        self,
        engine: DockerEngine,
        *,
        sleep: Callable[[float], None] | None = None,
        on_target: Callable[[str], None] | None = None,
    ) -> None:
        self.engine = engine
        self._sleep = sleep or time.sleep
        self._on_target = on_target
        self.state = TargetState.UNRESOLVED

    def ensure_engine(self) -> None:
        if not self.engine.is_alive():
            raise DockerNotRunningError("Docker is not running (cannot connect to the daemon)")

    # --- resolution ---

    def _lookup_container(self, handle: str) -> str:
        """Find an existing container by exact name, then by id prefix."""
        found = self.engine.find_containers(name=f"^/?{re.escape(handle)}$")
        if not found:
            found = self.engine.find_containers(container_id=handle)
        if not found:
            raise ContainerNotFoundError(f"no such container: {handle}")
        logger.debug("Container %s resolved to %s", handle, found[0])
        return found[0]

    def _resolve_image(self, selector: Selector) -> str:
        image = estimate_image(self.engine, selector.repository, selector.tag_pattern)
        if image is None:
            raise ImageNotFoundError(f"no image available: {selector.reference}")
        logger.debug("Image for %s: %s", selector.describe(), image)
        return str(image)

    def _latest_container(self, image: str) -> str | None:
        found = self.engine.find_containers(ancestors=[image], statuses=RESUMABLE, latest=True)
        return found[0] if found else None

    def _observe(self, container: str) -> ContainerStatus:
        status = self.engine.container_status(container)
        if status is None:
            raise ContainerNotFoundError(f"container disappeared: {container}")
        self.state = _OBSERVED_STATES.get(status, TargetState.UNRESOLVED)
        return status

    def _announce(self, label: str) -> None:
        if self._on_target is not None:
            self._on_target(label)

    # --- actions ---

    def create(self, image: str, config: RunConfig) -> Attachment:
        mount = None
        if config.mount:
            if not Path(config.grasp_plugin).expanduser().is_dir():
                logger.warning("Grasp Plugin directory not found: %s", config.grasp_plugin)
            mount = grasp_plugin_mount(config.grasp_plugin)
        self.engine.run(image, mount=mount, args=config.args)
        return Attachment(Action.CREATED, image, state=self.state)

    def _wait_until_running(self, container: str) -> None:
        for attempt in range(1, START_POLL_ATTEMPTS + 1):
            status = self.engine.container_status(container)
            logger.debug("Start poll %d/%d: %s", attempt, START_POLL_ATTEMPTS, status)
            if status is ContainerStatus.RUNNING:
                self.state = TargetState.FOUND_RUNNING
                return
            if attempt < START_POLL_ATTEMPTS:
                self._sleep(START_POLL_INTERVAL)
        raise ContainerStartError(f"cannot start container: {container}")

    def resume(self, container: str, image: str, config: RunConfig) -> Attachment:
        status = self._observe(container)

        if self.state is TargetState.FOUND_EXITED:
            self.engine.start(container)
            if self.engine.dry_run:
                # Nothing was started; continue as if it had been.
                self.state = TargetState.FOUND_RUNNING
            else:
                self._wait_until_running(container)
            action = Action.RESUMED
        elif self.state is TargetState.FOUND_RUNNING:
            action = Action.ATTACHED
        else:
            raise UnsupportedStatusError(f"cannot handle current status: {status.value}")

        self.engine.exec_shell(container, config.shell)
        return Attachment(action, image, container, self.state)

    # --- entry points ---

    def resolve_and_attach(self, config: RunConfig) -> Attachment:
        """Resolve the target container and attach to it.

        Raises:
            GraspDevError: A subclass naming why the invocation was aborted.
        """
        self.ensure_engine()
        selector = select(config)
        logger.debug("Selector: %s", selector)

        if selector.kind is SelectorKind.CONTAINER:
            container = self._lookup_container(selector.container or "")
            if config.image_tag:
                image = f"{config.image_repo}:{config.image_tag}"
            else:
                image = self.engine.container_image(container) or container
            self._announce(image)
            return self.resume(container, image, config)

        image = self._resolve_image(selector)
        self._announce(image)

        if config.new:
            return self.create(image, config)

        container = self._latest_container(image)
        if container is None:
            self.state = TargetState.NOT_FOUND
            logger.debug("No container found for %s", image)
            return self.create(image, config)
        return self.resume(container, image, config)

    def list_matches(self, config: RunConfig) -> Listing:
        """Collect containers and images matching the selector (read-only).

        With an explicit container, only that container and its image are
        listed. When the selector's tag pattern matches no image, the listing
        falls back to every image of the repository.
        """
        self.ensure_engine()
        selector = select(config)

        if selector.kind is SelectorKind.CONTAINER:
            container = self._lookup_container(selector.container or "")
            image = self.engine.container_image(container)
            if image is None:
                raise ContainerNotFoundError(f"container disappeared: {container}")
            return Listing(
                image,
                images=self.engine.describe_images(image),
                containers=self.engine.describe_containers(container_id=container),
            )

        reference = selector.reference
        images = list_image_candidates(self.engine, selector.repository, selector.tag_pattern)
        if not images and reference != selector.repository:
            logger.warning("Nothing matches %s, listing %s", reference, selector.repository)
            reference = selector.repository
            images = list_image_candidates(self.engine, selector.repository)

        listing = Listing(reference)
        listing.images = self.engine.describe_images(reference)
        listing.containers = self.engine.describe_containers(str(image) for image in images)
        return listing
