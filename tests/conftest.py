from __future__ import annotations

from pathlib import Path

import pytest

from skillcraft.config import load_settings
from skillcraft.schema import EntryMetadata, SkillMetadata, body_checksum, render_skill_md


@pytest.fixture
def settings():
    return load_settings(environ={})


@pytest.fixture
def make_entry():
    def _make(root: Path, name: str, topic: str, body: str = "# Notes\n\nGenerated.", edited: bool = False) -> Path:
        entry_dir = root / name
        entry_dir.mkdir(parents=True)
        metadata = SkillMetadata(
            name=name,
            description=f"Notes for {name}",
            metadata=EntryMetadata(
                topic=topic,
                generated="2026-01-05",
                sources=["https://example.com/docs"],
                checksum=body_checksum(body),
            ),
        )
        text = render_skill_md(metadata, body)
        if edited:
            text += "\nLocal addition by hand.\n"
        (entry_dir / "SKILL.md").write_text(text, encoding="utf-8")
        return entry_dir

    return _make


@pytest.fixture
def write_plan(tmp_path: Path):
    def _write(text: str, name: str = "plan.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
