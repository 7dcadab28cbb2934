"""Utility helpers for skillcraft."""

from __future__ import annotations

import re
import unicodedata
from typing import Optional

from .errors import InvalidInputError

_SEPARATOR_PATTERN = re.compile(r"\s+")
_INVALID_PATTERN = re.compile(r"[^a-z0-9-]+")
_HYPHEN_RUN_PATTERN = re.compile(r"-{2,}")


def slugify(value: str) -> str:
    """Return the canonical filesystem-safe slug for a topic or subtopic.

    Whitespace runs become hyphens, anything outside
    ``[a-z0-9-]`` is dropped and hyphen runs collapse to one.
    """
    ascii_value = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = _SEPARATOR_PATTERN.sub("-", ascii_value.lower())
    slug = _INVALID_PATTERN.sub("", slug)
    slug = _HYPHEN_RUN_PATTERN.sub("-", slug).strip("-")
    if not slug:
        raise InvalidInputError(f"Topic {value!r} has no usable characters; please provide a topic.")
    return slug


def entry_name(topic_slug: str, subtopic: Optional[str] = None) -> str:
    """Compose an entry directory name for single or multi-skill mode."""
    if subtopic is None:
        return topic_slug
    sub_slug = slugify(subtopic)
    if sub_slug == topic_slug or sub_slug.startswith(f"{topic_slug}-"):
        return sub_slug
    return f"{topic_slug}-{sub_slug}"
