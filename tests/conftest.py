"""Pytest configuration and fixtures for graspdev tests.

Puts the src directory on the path so tests run without installation, and
provides a fake `docker` CLI that answers the commands graspdev issues.
"""

from __future__ import annotations

import fnmatch
import json
import re
import subprocess
import sys
from collections.abc import Iterator
from dataclasses import dataclass, replace
from pathlib import Path
from unittest.mock import patch

import pytest

# Add src directory to path for development testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@dataclass
class FakeImage:
    repository: str
    tag: str
    id: str
    created: str = "6 days ago"
    size: str = "2GB"

    @property
    def ref(self) -> str:
        return f"{self.repository}:{self.tag}"


@dataclass
class FakeContainer:
    id: str
    image: str
    status: str
    name: str


# Newest first, as `docker images` and `docker ps` list them
IMAGES = [
    FakeImage("grasp-plugin-dev", "1.7-focal", "67314cfd8d4c"),
    FakeImage("grasp-plugin-dev", "1.7-bionic", "533852bf9da0"),
    FakeImage("grasp-plugin-dev", "1.5-xenial", "439adde29d8d"),
    FakeImage("grasp-plugin-dev", "1.6-xenial", "91cded17a5d1"),
    FakeImage("grasp-plugin-dev", "1.7-xenial", "5c29cc2f42eb", created="7 days ago"),
]

CONTAINERS = [
    FakeContainer("ccf685315d94", "grasp-plugin-dev:1.6-xenial", "running", "laughing_pare"),
    FakeContainer("7581a090cbd8", "grasp-plugin-dev:1.5-xenial", "running", "affectionate_poitras"),
    FakeContainer("7ae8180e0c70", "grasp-plugin-dev:1.5-xenial", "exited", "epic_darwin"),
    FakeContainer("905da50fc5fd", "grasp-plugin-dev:1.5-xenial", "exited", "strange_goldwasser"),
]


def _completed(cmd: list[str], returncode: int = 0, stdout: str = "", stderr: str = ""):
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def _options(args: list[str]) -> tuple[dict[str, list[str]], set[str], str | None]:
    """Split docker arguments into filters, bare flags and the --format value."""
    filters: dict[str, list[str]] = {}
    flags: set[str] = set()
    fmt = None
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--filter":
            key, _, value = args[i + 1].partition("=")
            filters.setdefault(key, []).append(value)
            i += 1
        elif arg == "--format":
            fmt = args[i + 1]
            i += 1
        elif arg.startswith("-"):
            flags.add(arg)
        i += 1
    return filters, flags, fmt


class FakeDocker:
    """Stand-in for the docker binary, called in place of subprocess.run."""

    def __init__(
        self,
        images: list[FakeImage] | None = None,
        containers: list[FakeContainer] | None = None,
    ) -> None:
        self.images = list(IMAGES if images is None else images)
        self.containers = [replace(c) for c in (CONTAINERS if containers is None else containers)]
        self.daemon_running = True
        self.start_succeeds = True
        self.interactive_returncode = 0
        self.calls: list[list[str]] = []

    def __call__(self, cmd, *args, **kwargs) -> subprocess.CompletedProcess[str]:
        cmd = list(cmd)
        self.calls.append(cmd)
        handler = getattr(self, f"_{cmd[1]}", None)
        if handler is None:
            return _completed(cmd, 1, stderr=f"unhandled docker subcommand: {cmd[1]}")
        return handler(cmd)

    def commands(self, subcommand: str) -> list[list[str]]:
        return [c for c in self.calls if c[1] == subcommand]

    def mutating_calls(self) -> list[list[str]]:
        return [c for c in self.calls if c[1] in ("start", "run", "exec")]

    def _find(self, handle: str) -> FakeContainer | None:
        for container in self.containers:
            if container.name == handle or container.id.startswith(handle):
                return container
        return None

    def _info(self, cmd: list[str]):
        return _completed(cmd, 0 if self.daemon_running else 1)

    def _images(self, cmd: list[str]):
        filters, _, fmt = _options(cmd[2:])
        matched = self.images
        for reference in filters.get("reference", []):
            if ":" in reference:
                matched = [i for i in matched if fnmatch.fnmatchcase(i.ref, reference)]
            else:
                matched = [i for i in matched if fnmatch.fnmatchcase(i.repository, reference)]
        if fmt == "{{json .}}":
            lines = [
                json.dumps(
                    {
                        "Repository": i.repository,
                        "Tag": i.tag,
                        "ID": i.id,
                        "CreatedSince": i.created,
                        "Size": i.size,
                    }
                )
                for i in matched
            ]
        else:
            lines = [i.ref for i in matched]
        return _completed(cmd, stdout="".join(f"{line}\n" for line in lines))

    def _ps(self, cmd: list[str]):
        filters, flags, fmt = _options(cmd[2:])
        matched = self.containers
        if "name" in filters:
            matched = [c for c in matched if any(re.search(p, c.name) for p in filters["name"])]
        if "id" in filters:
            matched = [c for c in matched if any(c.id.startswith(p) for p in filters["id"])]
        if "ancestor" in filters:
            matched = [c for c in matched if c.image in filters["ancestor"]]
        if "status" in filters:
            matched = [c for c in matched if c.status in filters["status"]]
        if "--latest" in flags:
            matched = matched[:1]
        if fmt == "{{json .}}":
            lines = [
                json.dumps(
                    {
                        "ID": c.id,
                        "Image": c.image,
                        "Status": "Up 3 minutes" if c.status == "running" else "Exited (0)",
                        "Names": c.name,
                    }
                )
                for c in matched
            ]
        else:
            lines = [c.id for c in matched]
        return _completed(cmd, stdout="".join(f"{line}\n" for line in lines))

    def _container(self, cmd: list[str]):
        # docker container inspect --format <fmt> <container>
        _, _, fmt = _options(cmd[3:])
        container = self._find(cmd[-1])
        if container is None:
            return _completed(cmd, 1, stderr=f"Error: No such container: {cmd[-1]}")
        value = container.status if fmt == "{{.State.Status}}" else container.image
        return _completed(cmd, stdout=f"{value}\n")

    def _start(self, cmd: list[str]):
        container = self._find(cmd[-1])
        if container is None:
            return _completed(cmd, 1, stderr=f"Error: No such container: {cmd[-1]}")
        if self.start_succeeds:
            container.status = "running"
        return _completed(cmd, stdout=f"{cmd[-1]}\n")

    def _run(self, cmd: list[str]):
        return _completed(cmd, self.interactive_returncode)

    def _exec(self, cmd: list[str]):
        return _completed(cmd, self.interactive_returncode)


@pytest.fixture
def fake_docker() -> Iterator[FakeDocker]:
    """Replace subprocess.run in graspdev.docker with a FakeDocker."""
    fake = FakeDocker()
    with patch("graspdev.docker.subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the user's ~/.graspdev and GRASPDEV_* variables out of tests."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("GRASPDEV_IMAGE_REPO", "GRASPDEV_GRASP_PLUGIN", "GRASPDEV_DEBUG"):
        monkeypatch.delenv(var, raising=False)
