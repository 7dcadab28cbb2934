from pathlib import Path

import pytest

from skillcraft.errors import InvalidInputError
from skillcraft.invocation import Scope, parse_invocation, parse_modifiers, resolve_root


def test_parse_invocation_defaults_scope() -> None:
    invocation = parse_invocation("Laravel 12", Scope.PROJECT)
    assert invocation.topic == "Laravel 12"
    assert invocation.slug == "laravel-12"
    assert invocation.scope is Scope.PROJECT
    assert not invocation.scope_explicit
    assert not invocation.replace
    assert invocation.multi is None


@pytest.mark.parametrize("flag", ["--global", "-g", "--user"])
def test_parse_invocation_user_flags(flag: str) -> None:
    invocation = parse_invocation(f"react hooks {flag}", Scope.PROJECT)
    assert invocation.scope is Scope.USER
    assert invocation.scope_explicit
    assert invocation.topic == "react hooks"


def test_parse_invocation_flag_position_and_extras() -> None:
    invocation = parse_invocation("--project --replace  kubernetes   networking --multi", Scope.USER)
    assert invocation.scope is Scope.PROJECT
    assert invocation.replace
    assert invocation.multi is True
    assert invocation.topic == "kubernetes networking"


def test_flags_inside_words_are_not_flags() -> None:
    invocation = parse_invocation("tailwind--global-styles", Scope.PROJECT)
    assert invocation.scope is Scope.PROJECT
    assert invocation.topic == "tailwind--global-styles"


def test_conflicting_scope_flags_rejected() -> None:
    with pytest.raises(InvalidInputError) as excinfo:
        parse_invocation("vue --global --project", Scope.PROJECT)
    assert "--global" in excinfo.value.suggestions


def test_empty_topic_after_flags_rejected() -> None:
    with pytest.raises(InvalidInputError):
        parse_invocation("  --global --replace ", Scope.PROJECT)


def test_parse_modifiers_allows_empty_remainder() -> None:
    modifiers = parse_modifiers("--user", Scope.PROJECT)
    assert modifiers.scope is Scope.USER
    assert modifiers.remainder == ""


def test_resolve_root_is_total_and_pure(settings, tmp_path: Path) -> None:
    cwd = tmp_path / "work"
    home = tmp_path / "home"
    project_root = resolve_root(Scope.PROJECT, settings, cwd, home)
    user_root = resolve_root(Scope.USER, settings, cwd, home)
    assert project_root == cwd / ".claude" / "skills"
    assert user_root == home / ".claude" / "skills"
    assert resolve_root(Scope.PROJECT, settings, cwd, home) == project_root
    assert not project_root.exists()
