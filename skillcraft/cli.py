"""Typer CLI for skillcraft."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import Settings, load_settings
from .decision import CollisionMode, Decision, Outcome, ReplacementPolicy
from .detect import detect_topics
from .errors import InvalidInputError, SkillcraftError
from .invocation import Scope, parse_invocation, parse_modifiers, resolve_root
from .pipeline import TopicRequest, run_topic
from .plan import PlannedEntry, TopicPlan, load_plan, skeleton_plan
from .registry import list_entries, scan_entries
from .report import RunReport
from .utils import slugify
from .writer import remove_entries

app = typer.Typer(
    add_completion=False,
    help="Resolve, scan and (re)generate topic skills for /learn and /analyze.",
)

console = Console()
err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

RAW_ARGS = {"allow_extra_args": True, "ignore_unknown_options": True}


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Show onboarding guidance when no command is provided."""
    _configure_logging(verbose)
    if ctx.invoked_subcommand is not None:
        return
    console.print("skillcraft: topic skills for /learn and /analyze", style="bold")
    console.print("Quickstart:")
    console.print("  skillcraft learn react hooks")
    console.print("  skillcraft learn laravel 12 --global --plan plan.yaml")
    console.print("  skillcraft analyze .")
    console.print("  skillcraft list")
    raise typer.Exit(code=0)


def _configure_logging(verbose: bool) -> None:
    root_logger = logging.getLogger("skillcraft")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    if not any(isinstance(handler, RichHandler) for handler in root_logger.handlers):
        root_logger.addHandler(RichHandler(console=err_console, show_path=False))


@contextmanager
def _user_errors() -> Iterator[None]:
    try:
        yield
    except SkillcraftError as exc:
        console.print(str(exc), style="bold red")
        suggestions = getattr(exc, "suggestions", None)
        if suggestions:
            console.print("Try: " + ", ".join(suggestions), style="yellow")
        raise typer.Exit(code=1) from exc


def _load_settings(path: Optional[Path]) -> Settings:
    with _user_errors():
        return load_settings(path)


def _option_enum(enum_cls, value: Optional[str], fallback, name: str):
    if value is None:
        return fallback
    try:
        return enum_cls(value.strip().lower())
    except ValueError as exc:
        choices = "|".join(member.value for member in enum_cls)
        raise typer.BadParameter(f"{name} must be one of: {choices}") from exc


def _is_interactive(interactive: Optional[bool]) -> bool:
    if interactive is not None:
        return interactive
    return sys.stdin.isatty()


def _save_json(payload: dict, path: Path) -> None:
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _render_preview(decision: Decision, entries: List[PlannedEntry]) -> None:
    table = Table(title="Planned entries", expand=False)
    table.add_column("#", justify="right")
    table.add_column("Entry", style="bold")
    table.add_column("Status")
    table.add_column("Description")
    existing = set(decision.existing)
    for idx, entry in enumerate(entries, start=1):
        table.add_row(str(idx), entry.name, "exists" if entry.name in existing else "new", entry.description)
    console.print(table)


def _confirm_replace(decision: Decision) -> bool:
    console.print(f"Existing entries: {', '.join(decision.existing)}", style="yellow")
    return typer.confirm("Remove these entries and regenerate?", default=False)


def _select_entries(interactive: bool):
    def _select(decision: Decision, entries: List[PlannedEntry]) -> Optional[str]:
        _render_preview(decision, entries)
        if not interactive:
            return None
        return typer.prompt("Generate which entries? (all, none, skip 2,4, only 1,3)", default="all")

    return _select


def _render_report(report: RunReport) -> None:
    table = Table(title=f"skillcraft: {report.topic}", expand=False)
    table.add_column("Action", style="bold cyan")
    table.add_column("Entries")
    table.add_row("Created", ", ".join(report.created) or "-")
    table.add_row("Updated", ", ".join(report.updated) or "-")
    table.add_row("Removed", ", ".join(report.removed) or "-")
    table.add_row("Skipped", ", ".join(report.skipped) or "-")
    console.print(table)
    console.print(f"Root: {report.root}", style="dim")
    style = "green" if report.outcome != Outcome.ABORT.value else "yellow"
    console.print(report.summary_line(), style=style)


@app.command("help")
def help_cmd() -> None:
    """Print a compact help reference."""
    console.print("Help: skillcraft", style="bold")
    console.print("Modifiers inside the topic text:")
    console.print("  --global, -g, --user   write to the user-level skills root")
    console.print("  --project, -p          write to the project-level skills root")
    console.print("  --replace              confirm replacing existing entries")
    console.print("  --multi / --single     one entry per subtopic, or one entry")
    console.print("Policies: replace, merge, additive, prompt, abort")
    console.print("  prompt always asks and changes nothing when there is no one to ask")


@app.command(context_settings=RAW_ARGS)
def learn(
    arguments: List[str] = typer.Argument(..., help="Topic text with optional modifiers, e.g. 'laravel 12 --global'."),
    plan: Optional[Path] = typer.Option(None, "--plan", exists=True, dir_okay=False, help="YAML plan with content and sources."),
    policy: Optional[str] = typer.Option(None, "--policy", help="replace|merge|additive|prompt|abort (default from config)."),
    collision_mode: Optional[str] = typer.Option(None, "--collision-mode", help="per-topic|per-entry."),
    select: Optional[str] = typer.Option(None, "--select", help="Per-entry selection, e.g. 'skip 2,4' or 'only 1,3'."),
    assume_yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to the replace confirmation (replace and prompt policies)."),
    interactive: Optional[bool] = typer.Option(None, "--interactive/--no-interactive", help="Force prompting on or off."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing."),
    json_out: Optional[Path] = typer.Option(None, "--json", help="Save the run summary as JSON."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to skillcraft config YAML."),
) -> None:
    """Create or regenerate the skill entries for one topic."""
    settings = _load_settings(config)
    policy_obj = _option_enum(ReplacementPolicy, policy, settings.replacement_policy, "policy")
    mode_obj = _option_enum(CollisionMode, collision_mode, settings.collision_mode, "collision-mode")
    is_interactive = _is_interactive(interactive)
    with _user_errors():
        invocation = parse_invocation(" ".join(arguments), settings.default_scope)
        root_dir = resolve_root(invocation.scope, settings, Path.cwd(), Path.home())
        topic_plan = load_plan(plan) if plan is not None else skeleton_plan(invocation.topic)
        multi = settings.multi if invocation.multi is None else invocation.multi
        request = TopicRequest(
            topic=invocation.topic,
            slug=invocation.slug,
            scope=invocation.scope.value,
            root=root_dir,
            plan=topic_plan,
            multi=multi,
            policy=policy_obj,
            collision_mode=mode_obj,
            confirmed=invocation.replace or assume_yes,
            selection=select,
            description_max=settings.description_max,
            dry_run=dry_run,
        )
        logger.debug("learn %s -> %s (%s)", invocation.topic, root_dir, policy_obj.value)
        report = run_topic(
            request,
            confirm=_confirm_replace if is_interactive else None,
            select=_select_entries(is_interactive),
        )
    _render_report(report)
    if json_out is not None:
        _save_json(report.to_dict(), json_out)
        console.print(f"Run summary saved to {json_out}", style="green")
    raise typer.Exit(code=1 if report.outcome == Outcome.ABORT.value else 0)


def _analyze_plan(topic: str, sources: List[str], plan_dir: Optional[Path], slug: str) -> TopicPlan:
    if plan_dir is not None:
        candidate = plan_dir / f"{slug}.yaml"
        if candidate.exists():
            return load_plan(candidate)
    plan = skeleton_plan(topic)
    plan.sources = list(sources)
    return plan


@app.command(context_settings=RAW_ARGS)
def analyze(
    arguments: Optional[List[str]] = typer.Argument(None, help="Optional focus text and modifiers, e.g. 'react --global'."),
    project_dir: Path = typer.Option(Path("."), "--project-dir", exists=True, file_okay=False, help="Project to analyze."),
    plan_dir: Optional[Path] = typer.Option(None, "--plan-dir", exists=True, file_okay=False, help="Directory of <slug>.yaml plans."),
    policy: Optional[str] = typer.Option(None, "--policy", help="replace|merge|additive|prompt|abort (default from config)."),
    assume_yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to the replace confirmation (replace and prompt policies)."),
    interactive: Optional[bool] = typer.Option(None, "--interactive/--no-interactive", help="Force prompting on or off."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Report what would change without writing."),
    json_out: Optional[Path] = typer.Option(None, "--json", help="Save the run summaries as JSON."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to skillcraft config YAML."),
) -> None:
    """Detect the project's stack and create a skill entry per topic."""
    settings = _load_settings(config)
    policy_obj = _option_enum(ReplacementPolicy, policy, settings.replacement_policy, "policy")
    is_interactive = _is_interactive(interactive)
    reports: List[RunReport] = []
    with _user_errors():
        modifiers = parse_modifiers(" ".join(arguments or []), settings.default_scope)
        topics = detect_topics(project_dir.resolve(), focus=modifiers.remainder or None)
        if not topics:
            raise InvalidInputError(f"No known technologies detected in {project_dir}.")
        root_dir = resolve_root(modifiers.scope, settings, Path.cwd(), Path.home())
        for detected in topics:
            request = TopicRequest(
                topic=detected.topic,
                slug=detected.slug,
                scope=modifiers.scope.value,
                root=root_dir,
                plan=_analyze_plan(detected.topic, detected.sources, plan_dir, detected.slug),
                multi=settings.multi if modifiers.multi is None else modifiers.multi,
                policy=policy_obj,
                confirmed=modifiers.replace or assume_yes,
                description_max=settings.description_max,
                dry_run=dry_run,
            )
            reports.append(run_topic(request, confirm=_confirm_replace if is_interactive else None))
    summary = Table(title=f"Analyze: {project_dir}", expand=False)
    summary.add_column("Topic", style="bold")
    summary.add_column("Outcome")
    summary.add_column("Created", justify="right")
    summary.add_column("Updated", justify="right")
    summary.add_column("Removed", justify="right")
    summary.add_column("Skipped", justify="right")
    for report in reports:
        summary.add_row(
            report.topic,
            report.outcome,
            str(len(report.created)),
            str(len(report.updated)),
            str(len(report.removed)),
            str(len(report.skipped)),
        )
    console.print(summary)
    console.print(f"Root: {reports[0].root}", style="dim")
    if json_out is not None:
        _save_json({"reports": [report.to_dict() for report in reports]}, json_out)
        console.print(f"Run summary saved to {json_out}", style="green")


@app.command("list")
def list_cmd(
    scope: Optional[str] = typer.Option(None, "--scope", help="project|user (default from config)."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to skillcraft config YAML."),
) -> None:
    """List existing skill entries under a scope root."""
    settings = _load_settings(config)
    scope_obj = _option_enum(Scope, scope, settings.default_scope, "scope")
    root_dir = resolve_root(scope_obj, settings, Path.cwd(), Path.home())
    with _user_errors():
        entries = list_entries(root_dir)
    if not entries:
        console.print(f"No skill entries under {root_dir}.", style="yellow")
        return
    table = Table(title=f"Skills ({scope_obj.value}): {root_dir}", expand=True)
    table.add_column("Entry", style="bold")
    table.add_column("Topic")
    table.add_column("Generated")
    table.add_column("Sources", justify="right")
    table.add_column("Edited")
    table.add_column("Description")
    for entry in entries:
        if not entry.valid:
            table.add_row(entry.name, "-", "-", "-", "-", "[red]unreadable SKILL.md[/red]")
            continue
        table.add_row(
            entry.name,
            entry.topic or "-",
            entry.generated or "-",
            str(entry.source_count),
            "yes" if entry.modified else "no",
            entry.description,
        )
    console.print(table)


@app.command("slug")
def slug_cmd(topic: List[str] = typer.Argument(..., help="Topic text.")) -> None:
    """Print the canonical slug for a topic."""
    with _user_errors():
        console.print(slugify(" ".join(topic)))


@app.command(context_settings=RAW_ARGS)
def remove(
    arguments: List[str] = typer.Argument(..., help="Topic text with optional scope modifier."),
    assume_yes: bool = typer.Option(False, "--yes", "-y", help="Remove without prompting."),
    interactive: Optional[bool] = typer.Option(None, "--interactive/--no-interactive", help="Force prompting on or off."),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to skillcraft config YAML."),
) -> None:
    """Remove every entry generated for a topic, all or nothing."""
    settings = _load_settings(config)
    with _user_errors():
        invocation = parse_invocation(" ".join(arguments), settings.default_scope)
        root_dir = resolve_root(invocation.scope, settings, Path.cwd(), Path.home())
        existing = scan_entries(root_dir, invocation.slug)
        if not existing:
            console.print(f"No entries for '{invocation.slug}' under {root_dir}.", style="yellow")
            raise typer.Exit(code=0)
        console.print(f"Entries for '{invocation.slug}': {', '.join(existing)}")
        if not assume_yes and _is_interactive(interactive):
            if not typer.confirm("Remove them?", default=False):
                console.print("Nothing removed.", style="yellow")
                raise typer.Exit(code=1)
        removed = remove_entries(root_dir, existing)
    console.print(f"Removed {len(removed)} entries from {root_dir}", style="green")


def main() -> None:
    """Entrypoint for console script."""
    app()


if __name__ == "__main__":
    main()
