"""Apply a :class:`~skillcraft.decision.Decision` to an output root.

Deletions are staged by renaming matched entries into a hidden directory
under the root. The staging is undone if any step fails, so a topic never
ends up with a mix of old and new entries.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from datetime import date
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import ValidationError

from .decision import Decision
from .errors import FilesystemFailureError, InvalidInputError, SkillcraftError
from .plan import PlannedEntry
from .registry import STAGING_PREFIX
from .report import RunReport
from .schema import SKILL_FILE, EntryMetadata, SkillMetadata, body_checksum, render_skill_md

logger = logging.getLogger(__name__)


def render_entry(entry: PlannedEntry, topic_slug: str, today: date) -> str:
    try:
        metadata = SkillMetadata(
            name=entry.name,
            description=entry.description,
            metadata=EntryMetadata(
                topic=topic_slug,
                generated=today.isoformat(),
                sources=entry.sources,
                checksum=body_checksum(entry.body),
            ),
        )
    except ValidationError as exc:
        raise InvalidInputError(f"Cannot render entry {entry.name}: {exc}") from exc
    return render_skill_md(metadata, entry.body)


class _Transaction:
    """Tracks staged deletions and written entries for rollback."""

    def __init__(self, root: Path):
        self.root = root
        self.staging: Optional[Path] = None
        self.staged: List[str] = []
        self.created: List[Path] = []
        self.previous: Dict[Path, str] = {}

    def stage_deletions(self, names: Sequence[str]) -> None:
        if not names:
            return
        try:
            self.staging = Path(tempfile.mkdtemp(prefix=f"{STAGING_PREFIX}trash-", dir=self.root))
        except OSError as exc:
            raise FilesystemFailureError(f"Unable to stage removals under {self.root}: {exc}") from exc
        for name in names:
            try:
                (self.root / name).rename(self.staging / name)
            except OSError as exc:
                self.rollback()
                raise FilesystemFailureError(f"Unable to remove {name}: {exc}; nothing was removed") from exc
            self.staged.append(name)
            logger.debug("Staged %s for removal", name)

    def write(self, entry_dir: Path, text: str, create: bool = False) -> None:
        skill_md = entry_dir / SKILL_FILE
        if create and entry_dir.exists():
            raise FileExistsError(f"{entry_dir} already exists and is not part of this topic")
        if entry_dir.exists():
            if skill_md.exists():
                self.previous[skill_md] = skill_md.read_text(encoding="utf-8")
        else:
            entry_dir.mkdir(parents=True)
            self.created.append(entry_dir)
        skill_md.write_text(text, encoding="utf-8")

    def rollback(self) -> None:
        for entry_dir in reversed(self.created):
            shutil.rmtree(entry_dir, ignore_errors=True)
        for skill_md, text in self.previous.items():
            try:
                skill_md.write_text(text, encoding="utf-8")
            except OSError:
                logger.error("Could not restore %s", skill_md)
        if self.staging is not None:
            for name in reversed(self.staged):
                try:
                    (self.staging / name).rename(self.root / name)
                except OSError:
                    logger.error("Could not restore %s from %s", name, self.staging)
            self.staged = []
            if not any(self.staging.iterdir()):
                self.staging.rmdir()

    def commit(self) -> None:
        if self.staging is not None:
            shutil.rmtree(self.staging, ignore_errors=True)


def apply_decision(
    root: Path,
    decision: Decision,
    entries: Sequence[PlannedEntry],
    report: RunReport,
    today: Optional[date] = None,
    dry_run: bool = False,
) -> RunReport:
    """Delete, create and update entries under ``root`` as ``decision`` says.

    Every entry is rendered before anything on disk changes. A failure after
    that rolls back; filesystem errors surface as
    :class:`FilesystemFailureError`, anything else is re-raised.
    """
    if not decision.actionable:
        raise SkillcraftError(f"Decision {decision.outcome.value} cannot be applied")
    by_name = {entry.name: entry for entry in entries}
    today = today or date.today()
    rendered = {name: render_entry(by_name[name], report.slug, today) for name in decision.writes}
    report.outcome = decision.outcome.value
    report.skipped = list(decision.skip)
    report.dry_run = dry_run
    if dry_run:
        report.removed = list(decision.delete)
        report.created = list(decision.create)
        report.updated = list(decision.update)
        return report

    try:
        root.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise FilesystemFailureError(f"Unable to create {root}: {exc}") from exc

    creating = set(decision.create)
    txn = _Transaction(root)
    txn.stage_deletions(decision.delete)
    try:
        for name in decision.writes:
            txn.write(root / name, rendered[name], create=name in creating)
            logger.debug("Wrote %s", root / name / SKILL_FILE)
    except OSError as exc:
        txn.rollback()
        raise FilesystemFailureError(f"Unable to write entries under {root}: {exc}; changes rolled back") from exc
    except Exception:
        txn.rollback()
        raise
    txn.commit()

    report.removed = list(decision.delete)
    report.created = list(decision.create)
    report.updated = list(decision.update)
    logger.info("Applied %s for %s under %s", decision.outcome.value, report.slug, root)
    return report


def remove_entries(root: Path, names: Sequence[str]) -> List[str]:
    """Remove all ``names`` under ``root`` or none of them."""
    txn = _Transaction(root)
    txn.stage_deletions(names)
    txn.commit()
    return list(names)
