"""Replace / merge / skip decisions for colliding entries.

Nothing here touches the filesystem: ``decide`` takes the scanner result and
the planned entry names and returns a :class:`Decision` that the writer
applies.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Sequence, Set

from .errors import InvalidInputError


class ReplacementPolicy(str, Enum):
    REPLACE = "replace"
    MERGE = "merge"
    ADDITIVE = "additive"
    PROMPT = "prompt"
    ABORT = "abort"


class CollisionMode(str, Enum):
    PER_TOPIC = "per-topic"
    PER_ENTRY = "per-entry"


class Outcome(str, Enum):
    FRESH = "fresh"
    REPLACE = "replace"
    MERGE = "merge"
    ADDITIVE = "additive"
    ABORT = "abort"
    NEEDS_CONFIRMATION = "needs-confirmation"


@dataclass(frozen=True)
class Decision:
    """What to do with existing and planned entries for one topic."""

    outcome: Outcome
    existing: List[str] = field(default_factory=list)
    delete: List[str] = field(default_factory=list)
    create: List[str] = field(default_factory=list)
    update: List[str] = field(default_factory=list)
    skip: List[str] = field(default_factory=list)

    @property
    def writes(self) -> List[str]:
        return self.create + self.update

    @property
    def actionable(self) -> bool:
        return self.outcome not in {Outcome.ABORT, Outcome.NEEDS_CONFIRMATION}

    def select(self, planned: Sequence[str], indices: Iterable[int]) -> "Decision":
        """Keep only the planned entries at 1-based ``indices``.

        Deletions are left as they are: under replace every matched entry
        still goes.
        """
        chosen = {planned[idx - 1] for idx in indices}
        dropped = [name for name in planned if name not in chosen and name in self.writes]
        return replace(
            self,
            create=[name for name in self.create if name in chosen],
            update=[name for name in self.update if name in chosen],
            skip=self.skip + dropped,
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "outcome": self.outcome.value,
            "existing": self.existing,
            "delete": self.delete,
            "create": self.create,
            "update": self.update,
            "skip": self.skip,
        }


def decide(
    existing: Sequence[str],
    planned: Sequence[str],
    policy: ReplacementPolicy,
    confirmed: bool = False,
    modified: Iterable[str] = (),
    occupied: Iterable[str] = (),
) -> Decision:
    """Choose an outcome for ``planned`` entries given ``existing`` ones.

    ``confirmed`` answers the replace confirmation; it only matters for the
    replace and prompt policies. ``modified`` names existing entries edited
    since they were generated; merge leaves those alone. ``occupied`` names
    planned entries whose directory already belongs to another topic; they
    are always skipped.
    """
    existing_list = list(existing)
    blocked = set(occupied)
    planned_list = list(planned)
    writable = [name for name in planned_list if name not in blocked]
    taken = [name for name in planned_list if name in blocked]
    if not existing_list:
        return Decision(outcome=Outcome.FRESH, create=writable, skip=taken)

    existing_set: Set[str] = set(existing_list)
    if policy in (ReplacementPolicy.REPLACE, ReplacementPolicy.PROMPT):
        if not confirmed:
            return Decision(outcome=Outcome.NEEDS_CONFIRMATION, existing=existing_list)
        return Decision(
            outcome=Outcome.REPLACE,
            existing=existing_list,
            delete=existing_list,
            create=writable,
            skip=taken,
        )
    if policy is ReplacementPolicy.ABORT:
        return Decision(outcome=Outcome.ABORT, existing=existing_list, skip=planned_list)
    if policy is ReplacementPolicy.ADDITIVE:
        return Decision(
            outcome=Outcome.ADDITIVE,
            existing=existing_list,
            create=[name for name in writable if name not in existing_set],
            skip=[name for name in planned_list if name in existing_set or name in blocked],
        )

    edited = set(modified)
    return Decision(
        outcome=Outcome.MERGE,
        existing=existing_list,
        create=[name for name in writable if name not in existing_set],
        update=[name for name in writable if name in existing_set and name not in edited],
        skip=[name for name in planned_list if name in blocked or (name in existing_set and name in edited)],
    )


_RANGE_PATTERN = re.compile(r"^(\d+)(?:-(\d+))?$")


def _parse_numbers(text: str, count: int) -> Set[int]:
    numbers: Set[int] = set()
    for token in re.split(r"[,\s]+", text.strip()):
        if not token:
            continue
        match = _RANGE_PATTERN.match(token)
        if not match:
            raise InvalidInputError(f"Cannot read selection {token!r}; use numbers like 1,3 or 2-4")
        start = int(match.group(1))
        end = int(match.group(2) or start)
        if start > end:
            start, end = end, start
        for number in range(start, end + 1):
            if number < 1 or number > count:
                raise InvalidInputError(f"Selection {number} is out of range 1-{count}")
            numbers.add(number)
    return numbers


def parse_selection(text: str, count: int) -> List[int]:
    """Parse ``all``, ``none``, ``skip 2,4``, ``only 1,3`` or a bare list.

    Returns sorted 1-based indices into a numbered preview of ``count`` items.
    ``none`` returns an empty list, meaning nothing should be written; any
    other selection that leaves nothing is rejected.
    """
    cleaned = text.strip().lower()
    everything = set(range(1, count + 1))
    if cleaned in {"none", "no", "n"}:
        return []
    if cleaned in {"", "all", "yes", "y"}:
        chosen = everything
    elif cleaned.startswith("skip"):
        chosen = everything - _parse_numbers(cleaned[len("skip") :], count)
    elif cleaned.startswith("only"):
        chosen = _parse_numbers(cleaned[len("only") :], count)
    else:
        chosen = _parse_numbers(cleaned, count)
    if not chosen:
        raise InvalidInputError("Selection leaves nothing to generate; answer 'none' to stop instead.")
    return sorted(chosen)
