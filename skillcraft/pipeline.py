"""Slug -> root -> scan -> decide -> write, for one topic."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .decision import CollisionMode, Decision, Outcome, ReplacementPolicy, decide, parse_selection
from .otel import record_result, record_step, topic_span
from .plan import PlannedEntry, TopicPlan, plan_entries
from .registry import foreign_entries, scan_entries
from .report import RunReport
from .schema import is_modified
from .writer import apply_decision

logger = logging.getLogger(__name__)

ConfirmFn = Callable[[Decision], bool]
SelectFn = Callable[[Decision, List[PlannedEntry]], str]


@dataclass
class TopicRequest:
    """Everything one topic run needs, resolved up front."""

    topic: str
    slug: str
    scope: str
    root: Path
    plan: TopicPlan
    multi: bool = False
    policy: ReplacementPolicy = ReplacementPolicy.REPLACE
    collision_mode: CollisionMode = CollisionMode.PER_TOPIC
    confirmed: bool = False
    selection: Optional[str] = None
    description_max: int = 200
    dry_run: bool = False


@dataclass
class _Scan:
    entries: List[PlannedEntry]
    existing: List[str]
    modified: List[str]
    foreign: List[str]

    @property
    def names(self) -> List[str]:
        return [entry.name for entry in self.entries]

    def decide(self, policy: ReplacementPolicy, confirmed: bool) -> Decision:
        return decide(self.existing, self.names, policy, confirmed, self.modified, self.foreign)


def _scan(request: TopicRequest) -> _Scan:
    entries = plan_entries(request.plan, request.slug, request.multi, request.description_max)
    existing = scan_entries(request.root, request.slug)
    return _Scan(
        entries=entries,
        existing=existing,
        modified=[name for name in existing if is_modified(request.root / name)],
        foreign=foreign_entries(request.root, [entry.name for entry in entries], existing),
    )


def preview(request: TopicRequest) -> Tuple[List[PlannedEntry], Decision]:
    """Plan entries and the unconfirmed decision without touching disk."""
    scan = _scan(request)
    return scan.entries, scan.decide(request.policy, request.confirmed)


def _approve(request: TopicRequest, decision: Decision, confirm: Optional[ConfirmFn]) -> bool:
    if confirm is not None:
        return confirm(decision)
    if request.policy is ReplacementPolicy.PROMPT:
        logger.warning("Policy 'prompt' needs someone to confirm; leaving %s unchanged", request.slug)
        return False
    logger.info("Replacing %s without asking", ", ".join(decision.existing))
    return True


def _stop(report: RunReport, decision: Decision, names: List[str]) -> RunReport:
    report.outcome = Outcome.ABORT.value
    report.skipped = list(decision.skip) if decision.outcome is Outcome.ABORT else list(names)
    return report


def run_topic(
    request: TopicRequest,
    confirm: Optional[ConfirmFn] = None,
    select: Optional[SelectFn] = None,
    today: Optional[date] = None,
) -> RunReport:
    """Run the full pipeline for one topic.

    ``confirm`` is asked when existing entries would be replaced. Without it
    the ``replace`` policy proceeds and ``prompt`` stops, leaving everything
    in place. ``select`` supplies a per-entry selection string when
    ``request.selection`` is unset; selecting ``none`` stops the same way.
    """
    attributes = {
        "skillcraft.topic": request.topic,
        "skillcraft.scope": request.scope,
        "skillcraft.root": str(request.root),
        "skillcraft.policy": request.policy.value,
        "skillcraft.dry_run": request.dry_run,
    }
    with topic_span(request.slug, attributes) as span:
        report = _run(request, confirm, select, today, span)
        record_result(
            span,
            {
                "skillcraft.outcome": report.outcome,
                "skillcraft.created": len(report.created),
                "skillcraft.updated": len(report.updated),
                "skillcraft.removed": len(report.removed),
                "skillcraft.skipped": len(report.skipped),
            },
        )
    return report


def _run(
    request: TopicRequest,
    confirm: Optional[ConfirmFn],
    select: Optional[SelectFn],
    today: Optional[date],
    span,
) -> RunReport:
    scan = _scan(request)
    names = scan.names
    record_step(span, "scan", {"existing": scan.existing, "modified": scan.modified, "foreign": scan.foreign})
    decision = scan.decide(request.policy, request.confirmed)
    record_step(span, "decide", {"outcome": decision.outcome.value, "planned": names})
    report = RunReport(
        topic=request.topic,
        slug=request.slug,
        scope=request.scope,
        root=request.root,
        outcome=decision.outcome.value,
    )

    if decision.outcome is Outcome.NEEDS_CONFIRMATION:
        approved = _approve(request, decision, confirm)
        record_step(span, "confirm", {"approved": approved})
        if not approved:
            logger.info("Replacement of %s declined", request.slug)
            return _stop(report, decision, names)
        decision = scan.decide(request.policy, confirmed=True)

    if decision.outcome is Outcome.ABORT:
        return _stop(report, decision, names)

    if request.collision_mode is CollisionMode.PER_ENTRY and names:
        text = request.selection
        if text is None and select is not None:
            text = select(decision, scan.entries)
        if text is not None:
            indices = parse_selection(text, len(names))
            record_step(span, "select", {"selection": text, "chosen": len(indices)})
            if not indices:
                logger.info("Nothing selected for %s", request.slug)
                return _stop(report, decision, names)
            decision = decision.select(names, indices)

    report = apply_decision(request.root, decision, scan.entries, report, today=today, dry_run=request.dry_run)
    record_step(
        span,
        "apply",
        {
            "created": len(report.created),
            "updated": len(report.updated),
            "removed": len(report.removed),
            "dry_run": report.dry_run,
        },
    )
    return report
