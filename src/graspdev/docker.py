"""Docker operations for graspdev.

Three layers, all thin wrappers over the `docker` binary:

- command builders (`images_cmd`, `ps_cmd`, ...) return argv lists and never
  touch the engine;
- `safe_docker_run` executes read-only queries with consistent error handling;
- `DockerEngine` exposes the queries and the mutating operations the
  lifecycle controller needs. Dry-run is applied here, so every mutating
  command is printed instead of executed when it is enabled.
"""

from __future__ import annotations

import json
import shlex
import subprocess
from enum import Enum
from typing import TYPE_CHECKING, Callable

from .constants import DOCKER_COMMAND_TIMEOUT, EXIT_INTERRUPTED
from .errors import (
    ContainerError,
    ContainerStartError,
    DockerNotFoundError,
    DockerTimeoutError,
)
from .logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = get_logger(__name__)

# Go templates understood by `docker images` / `docker container inspect`
IMAGE_REF_FORMAT = "{{.Repository}}:{{.Tag}}"
JSON_FORMAT = "{{json .}}"
STATUS_FORMAT = "{{.State.Status}}"
CONFIG_IMAGE_FORMAT = "{{.Config.Image}}"

__all__ = [
    "ContainerStatus",
    "DockerEngine",
    "check_docker_status",
    "exec_cmd",
    "images_cmd",
    "info_cmd",
    "inspect_container_cmd",
    "ps_cmd",
    "run_cmd",
    "safe_docker_run",
    "start_cmd",
]


class ContainerStatus(str, Enum):
    """Container states reported by `docker container inspect`."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    RESTARTING = "restarting"
    REMOVING = "removing"
    EXITED = "exited"
    DEAD = "dead"
    UNKNOWN = "unknown"

    @classmethod
    def from_engine(cls, value: str) -> ContainerStatus:
        """Parse a status string, mapping anything unrecognized to UNKNOWN."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# === Command builders ===


def info_cmd() -> list[str]:
    return ["docker", "info"]


def images_cmd(reference: str | None = None, *, fmt: str = IMAGE_REF_FORMAT) -> list[str]:
    """`docker images` filtered by a repository[:tag] reference (globs allowed)."""
    cmd = ["docker", "images", "--format", fmt]
    if reference:
        cmd.extend(["--filter", f"reference={reference}"])
    return cmd


def ps_cmd(
    *,
    name: str | None = None,
    container_id: str | None = None,
    ancestors: Iterable[str] = (),
    statuses: Iterable[ContainerStatus] = (),
    latest: bool = False,
    fmt: str | None = None,
) -> list[str]:
    """`docker ps --all` with filters.

    Repeated filters of the same key are OR'ed by the engine, different keys
    are AND'ed. Output is ids only unless a format is given.
    """
    cmd = ["docker", "ps", "--all"]
    if fmt:
        cmd.extend(["--format", fmt])
    else:
        cmd.append("--quiet")
    if latest:
        cmd.append("--latest")
    if name:
        cmd.extend(["--filter", f"name={name}"])
    if container_id:
        cmd.extend(["--filter", f"id={container_id}"])
    for ancestor in ancestors:
        cmd.extend(["--filter", f"ancestor={ancestor}"])
    for status in statuses:
        cmd.extend(["--filter", f"status={status.value}"])
    return cmd


def inspect_container_cmd(container: str, fmt: str) -> list[str]:
    return ["docker", "container", "inspect", "--format", fmt, container]


def start_cmd(container: str) -> list[str]:
    return ["docker", "start", container]


def run_cmd(image: str, *, mount: str | None = None, args: Sequence[str] = ()) -> list[str]:
    """`docker run -it [-v mount] image [args...]`."""
    cmd = ["docker", "run", "-it"]
    if mount:
        cmd.extend(["-v", mount])
    cmd.append(image)
    cmd.extend(args)
    return cmd


def exec_cmd(container: str, shell: str) -> list[str]:
    return ["docker", "exec", "-it", container, shell]


# === Execution ===


def safe_docker_run(
    cmd: Sequence[str],
    *,
    timeout: int = DOCKER_COMMAND_TIMEOUT,
) -> subprocess.CompletedProcess[str]:
    """Run a Docker query with consistent error handling.

    Args:
        cmd: Command to run (should start with 'docker').
        timeout: Command timeout in seconds.

    Raises:
        DockerNotFoundError: If docker command is not found.
        DockerTimeoutError: If command times out.
    """
    cmd_str = shlex.join(cmd)
    logger.debug("Running Docker command: %s", cmd_str)
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        logger.debug("Docker command completed: exit=%d", result.returncode)
        return result
    except FileNotFoundError as e:
        logger.error("Docker not found in PATH: %s", cmd_str)
        raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
    except subprocess.TimeoutExpired as e:
        logger.error("Docker command timed out after %ds: %s", timeout, cmd_str)
        raise DockerTimeoutError(
            f"Docker command timed out after {timeout}s. Command: {cmd_str}"
        ) from e


def check_docker_status() -> bool:
    """Check if Docker daemon is responsive."""
    try:
        return safe_docker_run(info_cmd()).returncode == 0
    except (DockerNotFoundError, DockerTimeoutError):
        return False


def _lines(output: str) -> list[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


class DockerEngine:
    """Queries and mutations against the local Docker engine.

    Queries always execute, even in dry-run mode, since they are needed to
    take the same decisions. `start`, `run` and `exec_shell` are echoed
    instead when `dry_run` is set.
    """

    def __init__(self, *, dry_run: bool = False, echo: Callable[[str], None] = print) -> None:
        self.dry_run = dry_run
        self._echo = echo

    # --- queries ---

    def is_alive(self) -> bool:
        return check_docker_status()

    def list_images(self, reference: str) -> list[str]:
        """Return `repository:tag` references matching `reference`, newest first.

        Untagged (`<none>`) entries are dropped.
        """
        result = safe_docker_run(images_cmd(reference))
        if result.returncode != 0:
            logger.warning("docker images failed: %s", result.stderr.strip())
            return []
        return [ref for ref in _lines(result.stdout) if not ref.endswith(":<none>")]

    def find_containers(
        self,
        *,
        name: str | None = None,
        container_id: str | None = None,
        ancestors: Iterable[str] = (),
        statuses: Iterable[ContainerStatus] = (),
        latest: bool = False,
    ) -> list[str]:
        """Return container ids matching the filters, newest first."""
        cmd = ps_cmd(
            name=name,
            container_id=container_id,
            ancestors=ancestors,
            statuses=statuses,
            latest=latest,
        )
        result = safe_docker_run(cmd)
        if result.returncode != 0:
            logger.warning("docker ps failed: %s", result.stderr.strip())
            return []
        return _lines(result.stdout)

    def describe_containers(
        self, ancestors: Iterable[str] = (), *, container_id: str | None = None
    ) -> list[dict[str, str]]:
        """Return `docker ps` rows (as dicts) for containers of the given images.

        With `container_id`, only that container is described.
        """
        ancestors = list(ancestors)
        if not ancestors and not container_id:
            return []
        cmd = ps_cmd(container_id=container_id, ancestors=ancestors, fmt=JSON_FORMAT)
        result = safe_docker_run(cmd)
        if result.returncode != 0:
            logger.warning("docker ps failed: %s", result.stderr.strip())
            return []
        return [json.loads(line) for line in _lines(result.stdout)]

    def describe_images(self, reference: str) -> list[dict[str, str]]:
        result = safe_docker_run(images_cmd(reference, fmt=JSON_FORMAT))
        if result.returncode != 0:
            logger.warning("docker images failed: %s", result.stderr.strip())
            return []
        return [json.loads(line) for line in _lines(result.stdout)]

    def _inspect(self, container: str, fmt: str) -> str | None:
        result = safe_docker_run(inspect_container_cmd(container, fmt))
        if result.returncode != 0:
            logger.debug("inspect %s failed: %s", container, result.stderr.strip())
            return None
        return result.stdout.strip()

    def container_status(self, container: str) -> ContainerStatus | None:
        """Current status of a container, or None if it no longer exists."""
        value = self._inspect(container, STATUS_FORMAT)
        return None if value is None else ContainerStatus.from_engine(value)

    def container_image(self, container: str) -> str | None:
        """Image reference the container was created from."""
        return self._inspect(container, CONFIG_IMAGE_FORMAT)

    # --- mutations ---

    def _mutate(self, cmd: list[str], *, interactive: bool) -> int:
        cmd_str = shlex.join(cmd)
        if self.dry_run:
            self._echo(cmd_str)
            return 0

        logger.debug("Running Docker command: %s", cmd_str)
        try:
            if interactive:
                returncode = subprocess.run(cmd, check=False).returncode
            else:
                result = safe_docker_run(cmd)
                if result.returncode != 0:
                    logger.error("%s: %s", cmd_str, result.stderr.strip())
                returncode = result.returncode
        except FileNotFoundError as e:
            raise DockerNotFoundError(f"Docker not found in PATH. Command: {cmd_str}") from e
        except KeyboardInterrupt:
            returncode = EXIT_INTERRUPTED
        logger.debug("Docker command completed: exit=%d", returncode)
        return returncode

    def start(self, container: str) -> None:
        """Request a stopped container to start (does not wait for it)."""
        returncode = self._mutate(start_cmd(container), interactive=False)
        if returncode != 0:
            raise ContainerStartError(f"cannot start container: {container}", returncode)

    def _interactive(self, cmd: list[str]) -> None:
        returncode = self._mutate(cmd, interactive=True)
        if returncode not in (0, EXIT_INTERRUPTED):
            raise ContainerError(f"'{shlex.join(cmd)}' exited with code {returncode}", returncode)

    def run(self, image: str, *, mount: str | None = None, args: Sequence[str] = ()) -> None:
        """Create a container from `image` and attach to it."""
        self._interactive(run_cmd(image, mount=mount, args=args))

    def exec_shell(self, container: str, shell: str) -> None:
        """Open an interactive shell in a running container."""
        self._interactive(exec_cmd(container, shell))
