"""Run summaries for learn/analyze/remove."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List


@dataclass
class RunReport:
    """What one invocation created, updated, removed and skipped."""

    topic: str
    slug: str
    scope: str
    root: Path
    outcome: str
    created: List[str] = field(default_factory=list)
    updated: List[str] = field(default_factory=list)
    removed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.created or self.updated or self.removed)

    def summary_line(self) -> str:
        prefix = "Dry run:" if self.dry_run else "Done:"
        return (
            f"{prefix} created {len(self.created)}, updated {len(self.updated)}, "
            f"removed {len(self.removed)}, skipped {len(self.skipped)} for '{self.topic}' ({self.scope} scope)"
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "topic": self.topic,
            "slug": self.slug,
            "scope": self.scope,
            "root": str(self.root),
            "outcome": self.outcome,
            "dry_run": self.dry_run,
            "created": self.created,
            "updated": self.updated,
            "removed": self.removed,
            "skipped": self.skipped,
            "counts": {
                "created": len(self.created),
                "updated": len(self.updated),
                "removed": len(self.removed),
                "skipped": len(self.skipped),
            },
        }
