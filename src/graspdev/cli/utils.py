"""CLI utilities for graspdev.

Console setup and argv normalization for options click cannot express
directly (``--mount=<bool>`` and the ``--args`` passthrough).
"""

from __future__ import annotations

import click
from rich.console import Console

# Status and errors go to stderr; listings are the command output.
console = Console(stderr=True, legacy_windows=False)
output = Console(legacy_windows=False)

PASSTHROUGH_KEY = "graspdev.passthrough"
PASSTHROUGH_MARKER = "--args"

TRUE_VALUES = frozenset({"true", "yes", "1", "on"})
FALSE_VALUES = frozenset({"false", "no", "0", "off"})
LEGACY_MOUNT_TOKENS = frozenset({"true", "false"})


def split_passthrough(args: list[str]) -> tuple[list[str], tuple[str, ...]]:
    """Split argv at ``--args``; everything after it goes to the container."""
    if PASSTHROUGH_MARKER not in args:
        return args, ()
    idx = args.index(PASSTHROUGH_MARKER)
    return args[:idx], tuple(args[idx + 1 :])


def _mount_flag(value: str) -> str:
    lowered = value.lower()
    if lowered in TRUE_VALUES:
        return "--mount"
    if lowered in FALSE_VALUES:
        return "--not-mount"
    raise click.BadParameter(f"expected true or false, got {value!r}", param_hint="'--mount'")


def normalize_mount_args(args: list[str]) -> list[str]:
    """Rewrite ``--mount=<bool>`` into the ``--mount/--not-mount`` flag pair.

    The legacy form ``--mount true|false`` (value as a separate token) is
    still accepted for those two literals, with a deprecation warning. Any
    other token after a bare ``--mount`` is left alone, so
    ``--mount xenial v1.7.0`` keeps ``xenial`` as the distro.
    """
    normalized: list[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg == "--":
            normalized.extend(args[i:])
            break
        if arg.startswith("--mount="):
            normalized.append(_mount_flag(arg.split("=", 1)[1]))
        elif arg == "--mount" and i + 1 < len(args) and args[i + 1].lower() in LEGACY_MOUNT_TOKENS:
            console.print(
                f"[yellow]Warning: '--mount {args[i + 1]}' is deprecated, "
                f"use '--mount={args[i + 1]}'[/yellow]",
                highlight=False,
            )
            normalized.append(_mount_flag(args[i + 1]))
            i += 1
        else:
            normalized.append(arg)
        i += 1
    return normalized
