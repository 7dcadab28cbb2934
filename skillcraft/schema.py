"""SKILL.md front matter parsing and rendering."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

SKILL_FILE = "SKILL.md"
FRONTMATTER_PATTERN = re.compile(r"^---\s*\n(?P<frontmatter>.*?)\n---\s*\n", re.DOTALL)


class SkillDocumentError(ValueError):
    """Raised when a SKILL.md file cannot be parsed."""


class EntryMetadata(BaseModel):
    """Bookkeeping stored under the ``metadata`` key."""

    topic: Optional[str] = None
    generated: Optional[str] = None
    sources: List[str] = Field(default_factory=list)
    checksum: Optional[str] = None

    @field_validator("generated", mode="before")
    def coerce_generated(cls, value: Any) -> Optional[str]:
        # PyYAML turns bare ISO dates into datetime.date
        if value is None:
            return None
        return str(value)


class SkillMetadata(BaseModel):
    """Pydantic model describing SKILL.md front matter."""

    name: str
    description: str
    metadata: EntryMetadata = Field(default_factory=EntryMetadata)

    @field_validator("name")
    def name_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Skill name must not be empty")
        return value

    @field_validator("description")
    def description_not_empty(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Skill description must not be empty")
        return value


def body_checksum(body: str) -> str:
    """Hash of the normalized Markdown body, used to detect user edits."""
    normalized = body.strip().replace("\r\n", "\n")
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def parse_skill_md(text: str) -> Tuple[SkillMetadata, str]:
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        raise SkillDocumentError("SKILL.md must begin with YAML front matter delimited by ---")
    try:
        parsed = yaml.safe_load(match.group("frontmatter")) or {}
    except yaml.YAMLError as exc:
        raise SkillDocumentError(f"Invalid YAML front matter: {exc}") from exc
    if not isinstance(parsed, dict):
        raise SkillDocumentError("SKILL.md front matter must be a mapping")
    try:
        metadata = SkillMetadata(**parsed)
    except ValidationError as exc:
        raise SkillDocumentError(str(exc)) from exc
    return metadata, text[match.end() :]


def render_skill_md(metadata: SkillMetadata, body: str) -> str:
    frontmatter: Dict[str, Any] = {
        "name": metadata.name,
        "description": metadata.description,
        "metadata": metadata.metadata.model_dump(exclude_none=True),
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True).strip()
    return f"---\n{header}\n---\n\n{body.strip()}\n"


def load_skill_metadata(entry_dir: Path) -> Tuple[SkillMetadata, str]:
    """Load SKILL.md metadata and body from an entry directory."""
    skill_md = entry_dir / SKILL_FILE
    if not skill_md.exists():
        raise SkillDocumentError(f"Missing {SKILL_FILE} in {entry_dir}")
    return parse_skill_md(skill_md.read_text(encoding="utf-8"))


def is_modified(entry_dir: Path) -> bool:
    """True when the body no longer matches the checksum recorded at generation."""
    try:
        metadata, body = load_skill_metadata(entry_dir)
    except (SkillDocumentError, OSError, UnicodeDecodeError):
        return True
    recorded = metadata.metadata.checksum
    if recorded is None:
        return True
    return recorded != body_checksum(body)
