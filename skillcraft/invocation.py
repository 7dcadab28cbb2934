"""Parse raw command arguments and resolve the output root."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from .errors import InvalidInputError
from .utils import slugify

if TYPE_CHECKING:  # pragma: no cover
    from .config import Settings


class Scope(str, Enum):
    PROJECT = "project"
    USER = "user"


USER_FLAGS = ("--global", "-g", "--user")
PROJECT_FLAGS = ("--project", "-p")
REPLACE_FLAG = "--replace"
MULTI_FLAG = "--multi"
SINGLE_FLAG = "--single"

_KNOWN_FLAGS = USER_FLAGS + PROJECT_FLAGS + (REPLACE_FLAG, MULTI_FLAG, SINGLE_FLAG)


def _flag_pattern(flag: str) -> re.Pattern[str]:
    return re.compile(rf"(?<!\S){re.escape(flag)}(?!\S)")


_FLAG_PATTERNS = {flag: _flag_pattern(flag) for flag in _KNOWN_FLAGS}


@dataclass(frozen=True)
class Modifiers:
    """Flags found in a raw argument string, plus the leftover text."""

    scope: Scope
    scope_explicit: bool
    replace: bool
    multi: Optional[bool]
    remainder: str


@dataclass(frozen=True)
class Invocation:
    """Topic and modifiers extracted from a raw argument string."""

    raw: str
    topic: str
    slug: str
    scope: Scope
    scope_explicit: bool
    replace: bool
    multi: Optional[bool]


def _has_flag(raw: str, flag: str) -> bool:
    return bool(_FLAG_PATTERNS[flag].search(raw))


def parse_modifiers(raw: str, default_scope: Scope) -> Modifiers:
    """Find modifier flags anywhere in ``raw`` as whitespace-delimited tokens.

    ``default_scope`` applies when no scope flag is present.
    """
    wants_user = any(_has_flag(raw, flag) for flag in USER_FLAGS)
    wants_project = any(_has_flag(raw, flag) for flag in PROJECT_FLAGS)
    if wants_user and wants_project:
        raise InvalidInputError(
            "Both a user-scope and a project-scope flag were given; pick one.",
            suggestions=["--global", "--project"],
        )
    wants_multi = _has_flag(raw, MULTI_FLAG)
    wants_single = _has_flag(raw, SINGLE_FLAG)
    if wants_multi and wants_single:
        raise InvalidInputError("--multi and --single cannot be combined.")

    remainder = raw
    for pattern in _FLAG_PATTERNS.values():
        remainder = pattern.sub(" ", remainder)

    if wants_user:
        scope = Scope.USER
    elif wants_project:
        scope = Scope.PROJECT
    else:
        scope = default_scope
    multi: Optional[bool] = None
    if wants_multi:
        multi = True
    elif wants_single:
        multi = False
    return Modifiers(
        scope=scope,
        scope_explicit=wants_user or wants_project,
        replace=_has_flag(raw, REPLACE_FLAG),
        multi=multi,
        remainder=" ".join(remainder.split()),
    )


def parse_invocation(raw: str, default_scope: Scope) -> Invocation:
    """Split ``raw`` into the topic and its modifier flags."""
    modifiers = parse_modifiers(raw, default_scope)
    if not modifiers.remainder:
        raise InvalidInputError("No topic given. What should be learned?", suggestions=["laravel 12", "react hooks"])
    return Invocation(
        raw=raw,
        topic=modifiers.remainder,
        slug=slugify(modifiers.remainder),
        scope=modifiers.scope,
        scope_explicit=modifiers.scope_explicit,
        replace=modifiers.replace,
        multi=modifiers.multi,
    )


def resolve_root(scope: Scope, settings: "Settings", cwd: Path, home: Path) -> Path:
    """Return the output root for ``scope``; pure in its arguments."""
    if scope is Scope.USER:
        return home / settings.user_dir
    return cwd / settings.project_dir
