from datetime import date
from pathlib import Path

import pytest

from skillcraft.decision import CollisionMode, Outcome, ReplacementPolicy
from skillcraft.invocation import parse_invocation, resolve_root
from skillcraft.pipeline import TopicRequest, run_topic
from skillcraft.plan import TopicPlan, skeleton_plan
from skillcraft.registry import scan_entries

TODAY = date(2026, 10, 19)


def _plan(*subtopics: str) -> TopicPlan:
    return TopicPlan(
        topic="React Hooks",
        sources=["https://react.dev"],
        subtopics=[{"name": name, "body": f"Notes on {name}."} for name in subtopics],
    )


def _request(root: Path, plan: TopicPlan, **kwargs) -> TopicRequest:
    return TopicRequest(topic="React Hooks", slug="react-hooks", scope="project", root=root, plan=plan, **kwargs)


def test_first_learn_creates_entry_under_resolved_root(settings, tmp_path: Path, make_entry) -> None:
    invocation = parse_invocation("React Hooks", settings.default_scope)
    root = resolve_root(invocation.scope, settings, tmp_path / "repo", tmp_path / "home")
    make_entry(root, "vue", "vue")
    request = TopicRequest(
        topic=invocation.topic,
        slug=invocation.slug,
        scope=invocation.scope.value,
        root=root,
        plan=skeleton_plan(invocation.topic),
    )
    report = run_topic(request, today=TODAY)
    assert report.outcome == Outcome.FRESH.value
    assert report.created == ["react-hooks"]
    assert report.removed == []
    assert (tmp_path / "repo" / ".claude" / "skills" / "react-hooks" / "SKILL.md").exists()
    assert (root / "vue").exists()


def test_multi_mode_names(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    report = run_topic(_request(root, _plan("State", "Effects"), multi=True), today=TODAY)
    assert report.created == ["react-hooks-state", "react-hooks-effects"]


def test_second_learn_with_replace_leaves_no_orphans(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State", "Effects", "Context"), multi=True), today=TODAY)
    assert scan_entries(root, "react-hooks") == ["react-hooks-context", "react-hooks-effects", "react-hooks-state"]

    report = run_topic(_request(root, _plan("State", "Refs"), multi=True, confirmed=True), today=TODAY)
    assert report.outcome == Outcome.REPLACE.value
    assert report.removed == ["react-hooks-context", "react-hooks-effects", "react-hooks-state"]
    assert scan_entries(root, "react-hooks") == ["react-hooks-refs", "react-hooks-state"]


def test_declined_confirmation_aborts_without_changes(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State"), multi=True), today=TODAY)
    asked = []

    def decline(decision):
        asked.append(decision.existing)
        return False

    report = run_topic(_request(root, _plan("Refs"), multi=True), confirm=decline, today=TODAY)
    assert asked == [["react-hooks-state"]]
    assert report.outcome == Outcome.ABORT.value
    assert not report.changed
    assert scan_entries(root, "react-hooks") == ["react-hooks-state"]


def test_without_confirm_callback_replace_proceeds(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State"), multi=True), today=TODAY)
    report = run_topic(_request(root, _plan("Refs"), multi=True, policy=ReplacementPolicy.REPLACE), today=TODAY)
    assert report.outcome == Outcome.REPLACE.value
    assert scan_entries(root, "react-hooks") == ["react-hooks-refs"]


def test_without_confirm_callback_prompt_changes_nothing(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State"), multi=True), today=TODAY)
    report = run_topic(_request(root, _plan("Refs"), multi=True, policy=ReplacementPolicy.PROMPT), today=TODAY)
    assert report.outcome == Outcome.ABORT.value
    assert report.skipped == ["react-hooks-refs"]
    assert scan_entries(root, "react-hooks") == ["react-hooks-state"]

    confirmed = _request(root, _plan("Refs"), multi=True, policy=ReplacementPolicy.PROMPT, confirmed=True)
    assert run_topic(confirmed, today=TODAY).outcome == Outcome.REPLACE.value
    assert scan_entries(root, "react-hooks") == ["react-hooks-refs"]


@pytest.mark.parametrize(
    "policy, expected_entries, expected_outcome",
    [
        (ReplacementPolicy.ADDITIVE, ["react-hooks-refs", "react-hooks-state"], Outcome.ADDITIVE),
        (ReplacementPolicy.MERGE, ["react-hooks-refs", "react-hooks-state"], Outcome.MERGE),
        (ReplacementPolicy.ABORT, ["react-hooks-state"], Outcome.ABORT),
    ],
)
def test_rerun_without_confirmation_per_policy(tmp_path: Path, policy, expected_entries, expected_outcome) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State"), multi=True), today=TODAY)
    report = run_topic(_request(root, _plan("State", "Refs"), multi=True, policy=policy), today=TODAY)
    assert report.outcome == expected_outcome.value
    assert scan_entries(root, "react-hooks") == expected_entries


def test_per_entry_selection(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    request = _request(
        root,
        _plan("State", "Effects", "Refs", "Context"),
        multi=True,
        collision_mode=CollisionMode.PER_ENTRY,
        selection="skip 2,4",
    )
    report = run_topic(request, today=TODAY)
    assert report.created == ["react-hooks-state", "react-hooks-refs"]
    assert report.skipped == ["react-hooks-effects", "react-hooks-context"]


def test_per_entry_selection_from_callback(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    seen = []

    def choose(decision, entries):
        seen.append([entry.name for entry in entries])
        return "only 1"

    request = _request(root, _plan("State", "Refs"), multi=True, collision_mode=CollisionMode.PER_ENTRY)
    report = run_topic(request, select=choose, today=TODAY)
    assert seen == [["react-hooks-state", "react-hooks-refs"]]
    assert report.created == ["react-hooks-state"]


def test_confirmation_keeps_user_edits_under_merge(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react-hooks", "react-hooks", edited=True)
    before = (root / "react-hooks" / "SKILL.md").read_text(encoding="utf-8")
    report = run_topic(_request(root, _plan(), policy=ReplacementPolicy.MERGE, confirmed=True), today=TODAY)
    assert report.outcome == Outcome.MERGE.value
    assert report.removed == []
    assert report.skipped == ["react-hooks"]
    assert (root / "react-hooks" / "SKILL.md").read_text(encoding="utf-8") == before


def test_entry_owned_by_another_topic_is_left_alone(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react-hooks", "react", body="hand written")
    before = (root / "react-hooks" / "SKILL.md").read_text(encoding="utf-8")
    for policy in (ReplacementPolicy.ABORT, ReplacementPolicy.REPLACE):
        request = _request(root, skeleton_plan("React Hooks"), policy=policy, confirmed=True)
        report = run_topic(request, today=TODAY)
        assert report.outcome == Outcome.FRESH.value
        assert report.created == []
        assert report.skipped == ["react-hooks"]
    assert (root / "react-hooks" / "SKILL.md").read_text(encoding="utf-8") == before


def test_selecting_none_changes_nothing(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    run_topic(_request(root, _plan("State"), multi=True), today=TODAY)
    request = _request(
        root,
        _plan("State", "Refs"),
        multi=True,
        confirmed=True,
        collision_mode=CollisionMode.PER_ENTRY,
        selection="none",
    )
    report = run_topic(request, today=TODAY)
    assert report.outcome == Outcome.ABORT.value
    assert report.skipped == ["react-hooks-state", "react-hooks-refs"]
    assert not report.changed
    assert scan_entries(root, "react-hooks") == ["react-hooks-state"]


def test_blank_description_replaces_cleanly(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react-hooks", "react-hooks")
    plan = TopicPlan(topic="React Hooks", description="   ", sources=["https://react.dev"], body="Hooks notes.")
    report = run_topic(_request(root, plan, confirmed=True), today=TODAY)
    assert report.outcome == Outcome.REPLACE.value
    assert [path.name for path in root.iterdir()] == ["react-hooks"]
    assert "Hooks notes." in (root / "react-hooks" / "SKILL.md").read_text(encoding="utf-8")
