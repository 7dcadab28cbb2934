"""Generation plans: the content handed to skillcraft for writing."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import InvalidInputError, ResearchUnavailableError
from .utils import entry_name

SKELETON_SECTIONS = ("Overview", "Key Concepts", "Patterns", "Pitfalls", "References")


class SubtopicPlan(BaseModel):
    name: str
    description: Optional[str] = None
    sources: List[str] = Field(default_factory=list)
    body: str = ""

    @field_validator("name")
    def name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Subtopic name must not be empty")
        return value.strip()


class TopicPlan(BaseModel):
    """Pydantic model for a YAML generation plan."""

    topic: str
    description: Optional[str] = None
    sources: List[str] = Field(default_factory=list)
    body: str = ""
    subtopics: List[SubtopicPlan] = Field(default_factory=list)
    skeleton: bool = False

    @field_validator("topic")
    def topic_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Plan topic must not be empty")
        return value.strip()


@dataclass
class PlannedEntry:
    """One entry ready to be written."""

    name: str
    title: str
    description: str
    body: str
    sources: List[str] = field(default_factory=list)


def load_plan(path: Path) -> TopicPlan:
    """Load and validate a YAML plan file."""
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as exc:
        raise InvalidInputError(f"Unable to read plan {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"Invalid YAML in plan {path}: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Plan {path} must be a mapping")
    try:
        return TopicPlan(**raw)
    except ValidationError as exc:
        raise InvalidInputError(f"Invalid plan {path}: {exc}") from exc


def skeleton_plan(topic: str) -> TopicPlan:
    """Plan with section headings only, for filling in by hand."""
    body = "\n\n".join(f"## {section}\n\n_Not yet written._" for section in SKELETON_SECTIONS)
    return TopicPlan(topic=topic, body=body, skeleton=True)


def _description(text: Optional[str], fallback: str, limit: int) -> str:
    value = " ".join((text or "").split()) or " ".join(fallback.split())
    if len(value) > limit:
        value = value[: limit - 3].rstrip() + "..."
    return value


def _require_content(name: str, body: str, sources: List[str], skeleton: bool) -> None:
    if skeleton:
        return
    if not body.strip() and not sources:
        raise ResearchUnavailableError(
            f"No sources or content available for {name!r}; provide notes or sources manually."
        )


def _single_body(plan: TopicPlan) -> str:
    parts = [f"# {plan.topic}"]
    if plan.body.strip():
        parts.append(plan.body.strip())
    for sub in plan.subtopics:
        section = f"## {sub.name}"
        if sub.body.strip():
            section += f"\n\n{sub.body.strip()}"
        parts.append(section)
    return "\n\n".join(parts)


def plan_entries(plan: TopicPlan, topic_slug: str, multi: bool, description_max: int = 200) -> List[PlannedEntry]:
    """Expand ``plan`` into ordered entries for single or multi-skill mode."""
    if not multi or not plan.subtopics:
        sources = list(dict.fromkeys(plan.sources + [src for sub in plan.subtopics for src in sub.sources]))
        body = _single_body(plan)
        has_content = bool(plan.body.strip()) or any(sub.body.strip() for sub in plan.subtopics)
        _require_content(plan.topic, body if has_content else "", sources, plan.skeleton)
        return [
            PlannedEntry(
                name=entry_name(topic_slug),
                title=plan.topic,
                description=_description(plan.description, f"Reference notes for {plan.topic}.", description_max),
                body=body,
                sources=sources,
            )
        ]

    entries: List[PlannedEntry] = []
    seen = set()
    for sub in plan.subtopics:
        name = entry_name(topic_slug, sub.name)
        if name in seen:
            raise InvalidInputError(f"Subtopic {sub.name!r} duplicates entry {name}")
        seen.add(name)
        sources = sub.sources or list(plan.sources)
        _require_content(sub.name, sub.body, sources, plan.skeleton)
        title = f"{plan.topic}: {sub.name}"
        body = f"# {title}"
        if sub.body.strip():
            body += f"\n\n{sub.body.strip()}"
        entries.append(
            PlannedEntry(
                name=name,
                title=title,
                description=_description(sub.description, f"{sub.name} in {plan.topic}.", description_max),
                body=body,
                sources=sources,
            )
        )
    return entries
