from pathlib import Path

import pytest

from skillcraft.errors import FilesystemFailureError
from skillcraft.registry import foreign_entries, list_entries, scan_entries


def test_scan_missing_root_returns_empty(tmp_path: Path) -> None:
    assert scan_entries(tmp_path / "does" / "not" / "exist", "react-hooks") == []


def test_scan_root_that_is_a_file(tmp_path: Path) -> None:
    root = tmp_path / "skills"
    root.write_text("not a directory", encoding="utf-8")
    with pytest.raises(FilesystemFailureError):
        scan_entries(root, "react")


def test_scan_matches_slug_and_prefix_sorted(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react-hooks-state", "react-hooks")
    make_entry(root, "react-hooks", "react-hooks")
    make_entry(root, "react-hooks-effects", "react-hooks")
    make_entry(root, "vue", "vue")
    (root / "react-hooks-stray.md").write_text("file, not entry", encoding="utf-8")
    assert scan_entries(root, "react-hooks") == [
        "react-hooks",
        "react-hooks-effects",
        "react-hooks-state",
    ]


def test_scan_excludes_entries_of_other_topics(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react", "react")
    make_entry(root, "react-native", "react-native")
    make_entry(root, "react-native-navigation", "react-native")
    (root / "react-legacy").mkdir()  # hand-made, no SKILL.md
    assert scan_entries(root, "react") == ["react", "react-legacy"]


def test_foreign_entries_lists_names_taken_by_other_topics(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "react-hooks", "react")
    make_entry(root, "react-hooks-state", "react-hooks")
    owned = scan_entries(root, "react-hooks")
    assert owned == ["react-hooks-state"]
    planned = ["react-hooks", "react-hooks-state", "react-hooks-refs"]
    assert foreign_entries(root, planned, owned) == ["react-hooks"]
    assert foreign_entries(tmp_path / "missing", planned, []) == []


def test_scan_ignores_staging_directories(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "go", "go")
    (root / ".skillcraft-trash-abc" / "go").mkdir(parents=True)
    assert scan_entries(root, "go") == ["go"]


def test_list_entries_reports_metadata_and_edits(tmp_path: Path, make_entry) -> None:
    root = tmp_path / "skills"
    make_entry(root, "django", "django")
    make_entry(root, "flask", "flask", edited=True)
    broken = root / "broken"
    broken.mkdir()
    (broken / "SKILL.md").write_text("no front matter here", encoding="utf-8")

    entries = {entry.name: entry for entry in list_entries(root)}
    assert sorted(entries) == ["broken", "django", "flask"]
    assert entries["django"].topic == "django"
    assert entries["django"].generated == "2026-01-05"
    assert entries["django"].source_count == 1
    assert not entries["django"].modified
    assert entries["flask"].modified
    assert not entries["broken"].valid
    assert entries["django"].to_dict()["name"] == "django"
