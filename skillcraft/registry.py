"""Enumerate existing skill entries under an output root."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from .errors import FilesystemFailureError
from .schema import SKILL_FILE, SkillDocumentError, body_checksum, load_skill_metadata

logger = logging.getLogger(__name__)

STAGING_PREFIX = ".skillcraft-"


@dataclass
class EntryInfo:
    """Summary of one entry directory."""

    name: str
    path: Path
    description: str = ""
    topic: Optional[str] = None
    generated: Optional[str] = None
    source_count: int = 0
    modified: bool = False
    valid: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "path": str(self.path),
            "description": self.description,
            "topic": self.topic,
            "generated": self.generated,
            "source_count": self.source_count,
            "modified": self.modified,
            "valid": self.valid,
        }


def _iter_entry_dirs(root: Path) -> List[Path]:
    if not root.exists():
        return []
    if not root.is_dir():
        raise FilesystemFailureError(f"Output root {root} exists but is not a directory")
    try:
        children = sorted(root.iterdir(), key=lambda child: child.name)
    except OSError as exc:
        raise FilesystemFailureError(f"Unable to read {root}: {exc}") from exc
    return [child for child in children if child.is_dir() and not child.name.startswith(STAGING_PREFIX)]


def _recorded_topic(entry_dir: Path) -> Optional[str]:
    if not (entry_dir / SKILL_FILE).exists():
        return None
    try:
        metadata, _ = load_skill_metadata(entry_dir)
    except (SkillDocumentError, OSError, UnicodeDecodeError):
        return None
    return metadata.metadata.topic


def scan_entries(root: Path, slug: str) -> List[str]:
    """Return sorted names of entries under ``root`` that belong to ``slug``.

    An entry matches when its name is ``slug`` or starts with ``slug-``,
    unless its SKILL.md records a different topic.
    """
    matches: List[str] = []
    for entry_dir in _iter_entry_dirs(root):
        name = entry_dir.name
        if name != slug and not name.startswith(f"{slug}-"):
            continue
        topic = _recorded_topic(entry_dir)
        if topic is not None and topic != slug:
            logger.debug("Skipping %s: generated for topic %s", name, topic)
            continue
        matches.append(name)
    logger.debug("Found %d existing entries for %s under %s", len(matches), slug, root)
    return matches


def foreign_entries(root: Path, names: Sequence[str], owned: Sequence[str]) -> List[str]:
    """Return planned ``names`` already present under ``root`` but not in ``owned``.

    Such a path was generated for another topic (or is not a directory at
    all), so it is never written or removed on this topic's behalf.
    """
    claimed = set(owned)
    taken = [name for name in names if name not in claimed and (root / name).exists()]
    if taken:
        logger.warning("Entries owned by another topic left untouched: %s", ", ".join(taken))
    return taken


def list_entries(root: Path) -> List[EntryInfo]:
    """Describe every entry directory under ``root``."""
    entries: List[EntryInfo] = []
    for entry_dir in _iter_entry_dirs(root):
        try:
            metadata, body = load_skill_metadata(entry_dir)
        except (SkillDocumentError, OSError, UnicodeDecodeError) as exc:
            logger.debug("Unreadable entry %s: %s", entry_dir, exc)
            entries.append(EntryInfo(name=entry_dir.name, path=entry_dir, valid=False))
            continue
        recorded = metadata.metadata.checksum
        entries.append(
            EntryInfo(
                name=entry_dir.name,
                path=entry_dir,
                description=metadata.description,
                topic=metadata.metadata.topic,
                generated=metadata.metadata.generated,
                source_count=len(metadata.metadata.sources),
                modified=recorded is None or recorded != body_checksum(body),
            )
        )
    return entries
