"""Constants module for graspdev.

All timeout values and shared constants are defined here (SSOT).
"""

from __future__ import annotations

# === Docker Timeouts (seconds) ===
DOCKER_COMMAND_TIMEOUT = 30  # Quick docker commands (info, inspect, ps, images)

# === Start confirmation poll ===
START_POLL_ATTEMPTS = 3  # Status checks after `docker start`
START_POLL_INTERVAL = 1.0  # Seconds between status checks

# === Image naming ===
DEFAULT_IMAGE_REPO = "grasp-plugin-dev"  # Repository the build step tags images into
SUPPORTED_DISTROS = ("xenial", "bionic", "focal")  # Ubuntu codenames with a Dockerfile

# === Path Constants ===
# Host paths
DEFAULT_GRASP_PLUGIN_DIR = "graspPlugin"  # Relative to the working directory

# Container paths
CONTAINER_GRASP_PLUGIN_DIR = "/opt/choreonoid/ext/graspPlugin"  # Plugin mount point
DEFAULT_SHELL = "/bin/bash"  # Shell opened by `docker exec`

# Exit code of an interactive session interrupted with Ctrl+C
EXIT_INTERRUPTED = 130
