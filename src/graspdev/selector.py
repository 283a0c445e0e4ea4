"""Selectors: turning CLI input into what should be resolved.

Exactly one strategy is active per invocation, in this order of precedence:

1. an explicit container (``--container``)
2. an explicit image tag (``--image-tag`` or ``--image-name repo:tag``)
3. a distro / Choreonoid tag pair (positional arguments)
4. any image of the configured repository
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .errors import ConfigError

if TYPE_CHECKING:
    from .run_config import RunConfig

# v1.7.0 -> 1.7, v1.10.0 -> 1.10; anything else is kept as is
_RELEASE_TAG = re.compile(r"^v([0-9.]+)\.0")

WILDCARD = "*"


def short_cnoid_tag(cnoid_tag: str) -> str:
    """Shorten a Choreonoid release tag the way image tags are named."""
    return _RELEASE_TAG.sub(r"\1", cnoid_tag, count=1)


@dataclass(frozen=True)
class ImageReference:
    """A local image, identified by repository and tag."""

    repository: str
    tag: str

    def __post_init__(self) -> None:
        if not self.repository:
            raise ConfigError("image repository must not be empty")

    def __str__(self) -> str:
        return f"{self.repository}:{self.tag}" if self.tag else self.repository

    @classmethod
    def parse(cls, reference: str) -> ImageReference:
        """Split ``repo[:tag]``.

        A colon only separates the tag when it comes after the last slash,
        so ``localhost:5000/grasp`` has no tag.
        """
        head, sep, tail = reference.rpartition(":")
        if sep and "/" not in tail:
            return cls(head, tail)
        return cls(reference, "")


@dataclass(frozen=True)
class TagPattern:
    """Partial image tag; missing parts match anything."""

    version_prefix: str = ""
    distro: str = ""
    literal: str | None = None

    @classmethod
    def exact(cls, tag: str) -> TagPattern:
        return cls(literal=tag)

    @classmethod
    def from_release(cls, distro: str | None, cnoid_tag: str | None) -> TagPattern:
        return cls(short_cnoid_tag(cnoid_tag) if cnoid_tag else "", distro or "")

    def __str__(self) -> str:
        if self.literal is not None:
            return self.literal
        if not self.version_prefix and not self.distro:
            return ""
        return f"{self.version_prefix or WILDCARD}-{self.distro or WILDCARD}"

    def reference(self, repository: str) -> str:
        """The ``repository[:pattern]`` string used as an image filter."""
        if not repository:
            raise ConfigError("image repository must not be empty")
        text = str(self)
        return f"{repository}:{text}" if text else repository


class SelectorKind(str, Enum):
    CONTAINER = "container"
    IMAGE = "image"
    DISTRO = "distro"
    REPOSITORY = "repository"


@dataclass(frozen=True)
class Selector:
    """What the user asked to attach to."""

    kind: SelectorKind
    repository: str
    tag_pattern: TagPattern = TagPattern()
    container: str | None = None

    @property
    def reference(self) -> str:
        return self.tag_pattern.reference(self.repository)

    def describe(self) -> str:
        if self.kind is SelectorKind.CONTAINER:
            return f"container {self.container}"
        return f"image {self.reference}"


def select(config: RunConfig) -> Selector:
    """Pick the single selection strategy for this invocation."""
    if not config.image_repo:
        raise ConfigError("image repository must not be empty")

    if config.container:
        return Selector(SelectorKind.CONTAINER, config.image_repo, container=config.container)
    if config.image_tag:
        return Selector(SelectorKind.IMAGE, config.image_repo, TagPattern.exact(config.image_tag))
    if config.distro or config.cnoid_tag:
        pattern = TagPattern.from_release(config.distro, config.cnoid_tag)
        return Selector(SelectorKind.DISTRO, config.image_repo, pattern)
    return Selector(SelectorKind.REPOSITORY, config.image_repo)
