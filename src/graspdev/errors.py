"""Unified exception hierarchy for graspdev.

All custom exceptions inherit from GraspDevError for consistent error handling.
The CLI catches these and converts them to user-friendly messages.

Dependency direction:
    This module has NO internal dependencies (leaf module).
    It may be imported by: all other graspdev modules.
    It should NOT import from any other graspdev modules.
"""

from __future__ import annotations


class GraspDevError(Exception):
    """Base exception for all graspdev errors.

    Every exception raised on purpose by graspdev inherits from this class,
    so the CLI layer can report it and pick an exit code in one place.
    """


class ConfigError(GraspDevError):
    """Configuration-related errors.

    Examples:
        - Malformed selector (e.g. empty image repository)
        - Configuration file with unusable values
    """


class ValidationError(GraspDevError):
    """Input validation errors.

    Examples:
        - Empty repository passed to the image resolver
        - Invalid value for --mount
    """


class ResolutionError(GraspDevError):
    """A selector could not be turned into a concrete image or container."""


class ImageNotFoundError(ResolutionError):
    """Raised when no local image matches the requested reference."""


class ContainerNotFoundError(ResolutionError):
    """Raised when an explicitly requested container does not exist."""


class DockerError(GraspDevError):
    """Docker operation errors.

    Base class for all Docker-related exceptions.
    """


class DockerNotFoundError(DockerError):
    """Raised when Docker is not installed or not in PATH."""


class DockerTimeoutError(DockerError):
    """Raised when a Docker operation times out."""


class DockerNotRunningError(DockerError):
    """Raised when Docker daemon is not running."""


class ContainerError(DockerError):
    """Raised when container operations fail.

    Attributes:
        returncode: Exit code of the failed docker command, if any.
    """

    def __init__(self, message: str, returncode: int | None = None) -> None:
        super().__init__(message)
        self.returncode = returncode


class ContainerStartError(ContainerError):
    """Raised when a stopped container does not reach the running state."""


class UnsupportedStatusError(ContainerError):
    """Raised for container states with no defined recovery (paused, dead, ...)."""
