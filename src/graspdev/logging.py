"""Debug logging for graspdev.

User-facing messages go through rich consoles; this module only carries
debug tracing: every docker command, the resolved selector and image, and
each start poll attempt.

Usage:
    from graspdev.logging import get_logger
    logger = get_logger(__name__)
    logger.debug("Docker command: %s", cmd)

Debug output is on when either ``--verbose`` was given or ``GRASPDEV_DEBUG``
is set to 1/true/yes. Otherwise only warnings are shown.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER = "graspdev"
DEBUG_ENV = "GRASPDEV_DEBUG"

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%H:%M:%S"

_handler: logging.Handler | None = None
_verbose = False


def debug_enabled() -> bool:
    """True when --verbose was given or GRASPDEV_DEBUG asks for debug output."""
    return _verbose or os.environ.get(DEBUG_ENV, "").lower() in ("1", "true", "yes")


def _configure() -> None:
    """Install the stderr handler once and apply the current level to it."""
    global _handler
    root_logger = logging.getLogger(ROOT_LOGGER)
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        root_logger.addHandler(_handler)

    debug = debug_enabled()
    level = logging.DEBUG if debug else logging.WARNING
    root_logger.setLevel(level)
    _handler.setLevel(level)
    _handler.setFormatter(
        logging.Formatter(LOG_FORMAT_DEBUG if debug else LOG_FORMAT, datefmt=DATE_FORMAT)
    )


def get_logger(name: str) -> logging.Logger:
    """Logger under the graspdev namespace (``docker`` -> ``graspdev.docker``)."""
    if _handler is None:
        _configure()
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def set_debug(enabled: bool = True) -> None:
    """Turn --verbose on or off; GRASPDEV_DEBUG still applies when off."""
    global _verbose
    _verbose = enabled
    _configure()
