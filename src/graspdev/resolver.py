"""Image resolution: pick the newest local image matching a tag pattern."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import ValidationError
from .logging import get_logger
from .selector import ImageReference, TagPattern

if TYPE_CHECKING:
    from .docker import DockerEngine

logger = get_logger(__name__)


def list_image_candidates(
    engine: DockerEngine, repository: str, tag_pattern: TagPattern | None = None
) -> list[ImageReference]:
    """All local images matching ``repository[:tag_pattern]``, newest first."""
    if not repository:
        raise ValidationError("repository must not be empty")
    reference = (tag_pattern or TagPattern()).reference(repository)
    candidates = [ImageReference.parse(ref) for ref in engine.list_images(reference)]
    logger.debug("Images matching %s: %s", reference, [str(c) for c in candidates])
    return [c for c in candidates if c.tag]


def estimate_image(
    engine: DockerEngine, repository: str, tag_pattern: TagPattern | None = None
) -> ImageReference | None:
    """Return the most recently created image matching the pattern.

    `docker images` lists newest first, so the first match wins.
    Returns None when nothing matches.
    """
    candidates = list_image_candidates(engine, repository, tag_pattern)
    return candidates[0] if candidates else None
