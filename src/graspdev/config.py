"""Configuration management for graspdev.

Values are resolved in this order (later wins):
defaults -> ~/.graspdev/config.json -> GRASPDEV_* environment -> CLI options.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path

from rich.console import Console

from .constants import DEFAULT_GRASP_PLUGIN_DIR, DEFAULT_IMAGE_REPO, DEFAULT_SHELL

console = Console(stderr=True)

# Environment variable -> Config field
ENV_OVERRIDES: dict[str, str] = {
    "GRASPDEV_IMAGE_REPO": "image_repo",
    "GRASPDEV_GRASP_PLUGIN": "grasp_plugin_dir",
}


@dataclass(frozen=True)
class Config:
    """graspdev configuration model."""

    # Repository the build step tags images into
    image_repo: str = DEFAULT_IMAGE_REPO

    # Grasp Plugin source tree on the host, bind-mounted into new containers
    grasp_plugin_dir: str = DEFAULT_GRASP_PLUGIN_DIR

    # Shell opened when attaching to a running container
    shell: str = DEFAULT_SHELL


def get_config_dir() -> Path:
    """Get the graspdev configuration directory."""
    return Path.home() / ".graspdev"


def get_config_path() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def _apply_env(config: Config) -> Config:
    overrides = {
        field: os.environ[var] for var, field in ENV_OVERRIDES.items() if os.environ.get(var)
    }
    return replace(config, **overrides) if overrides else config


def load_config() -> Config:
    """Load configuration from file and environment, or return defaults.

    Unknown keys in the file are ignored; an unreadable file falls back
    to defaults with a warning.
    """
    config = Config()
    config_path = get_config_path()

    if config_path.exists():
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
            known = {f.name for f in fields(Config)}
            config = Config(**{k: str(v) for k, v in data.items() if k in known})
        except (json.JSONDecodeError, ValueError, AttributeError, OSError) as e:
            console.print(f"[yellow]Warning: Failed to load config ({e}), using defaults[/yellow]")

    return _apply_env(config)
