"""Host path handling for the Grasp Plugin bind mount.

Docker Desktop expects POSIX-style mount sources (/c/Users/...), so Windows
drive paths and WSL /mnt/<drive> paths are rewritten before they reach
`docker run -v`.
"""

from __future__ import annotations

import re
from pathlib import Path

from .constants import CONTAINER_GRASP_PLUGIN_DIR

_WINDOWS_DRIVE = re.compile(r"^([A-Za-z]):[/\\]*(.*)$")
_WSL_DRIVE = re.compile(r"^/mnt/([a-z])(?:/(.*))?$")


def _collapse_slashes(path_str: str) -> str:
    """Use forward slashes only, drop duplicate and trailing ones."""
    normalized = re.sub(r"/{2,}", "/", path_str.replace("\\", "/"))
    if len(normalized) > 1:
        normalized = normalized.rstrip("/")
    return normalized


def _drive_path(drive: str, rest: str) -> str:
    rest = _collapse_slashes(rest)
    return f"/{drive.lower()}/{rest}" if rest else f"/{drive.lower()}"


def resolve_for_docker(path: str | Path) -> str:
    """Convert a host path into a Docker-compatible mount source.

    Examples:
        >>> resolve_for_docker("D:\\\\src\\\\graspPlugin")
        '/d/src/graspPlugin'
        >>> resolve_for_docker("/mnt/c/Users/me/graspPlugin")
        '/c/Users/me/graspPlugin'
        >>> resolve_for_docker("/home/me/graspPlugin")
        '/home/me/graspPlugin'
    """
    path_str = str(path).replace("\\", "/")

    match = _WINDOWS_DRIVE.match(path_str)
    if match:
        return _drive_path(match.group(1), match.group(2))

    match = _WSL_DRIVE.match(path_str)
    if match:
        return _drive_path(match.group(1), match.group(2) or "")

    return path_str


def grasp_plugin_mount(host_dir: str | Path) -> str:
    """Build the `-v` argument mounting the plugin source into the container."""
    source = resolve_for_docker(Path(host_dir).expanduser().resolve())
    return f"{source}:{CONTAINER_GRASP_PLUGIN_DIR}"
