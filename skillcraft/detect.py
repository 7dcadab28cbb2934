"""Detect the technologies a project uses from its manifest files."""

from __future__ import annotations

import json
import logging
import re
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import InvalidInputError
from .utils import slugify

logger = logging.getLogger(__name__)

# dependency name (lowercase) -> topic
KNOWN_TOPICS: Dict[str, Dict[str, str]] = {
    "pypi": {
        "django": "Django",
        "djangorestframework": "Django REST Framework",
        "fastapi": "FastAPI",
        "flask": "Flask",
        "sqlalchemy": "SQLAlchemy",
        "pydantic": "Pydantic",
        "celery": "Celery",
        "pytest": "pytest",
        "pandas": "pandas",
        "numpy": "NumPy",
        "typer": "Typer",
        "click": "Click",
        "langchain": "LangChain",
        "torch": "PyTorch",
    },
    "npm": {
        "react": "React",
        "next": "Next.js",
        "vue": "Vue",
        "nuxt": "Nuxt",
        "svelte": "Svelte",
        "@angular/core": "Angular",
        "express": "Express",
        "@nestjs/core": "NestJS",
        "typescript": "TypeScript",
        "tailwindcss": "Tailwind CSS",
        "prisma": "Prisma",
        "vite": "Vite",
        "jest": "Jest",
        "vitest": "Vitest",
    },
    "composer": {
        "laravel/framework": "Laravel",
        "symfony/framework-bundle": "Symfony",
        "livewire/livewire": "Livewire",
        "inertiajs/inertia-laravel": "Inertia",
        "pestphp/pest": "Pest",
        "phpunit/phpunit": "PHPUnit",
    },
    "go": {
        "github.com/gin-gonic/gin": "Gin",
        "github.com/labstack/echo/v4": "Echo",
        "gorm.io/gorm": "GORM",
        "github.com/spf13/cobra": "Cobra",
    },
    "cargo": {
        "tokio": "Tokio",
        "axum": "Axum",
        "actix-web": "Actix Web",
        "serde": "Serde",
        "clap": "Clap",
    },
    "rubygems": {
        "rails": "Ruby on Rails",
        "sinatra": "Sinatra",
        "rspec": "RSpec",
    },
}

_REQ_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*")
_PEP508_NAME_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9_.-]*)")
_GO_REQUIRE_RE = re.compile(r"^\s*(?:require\s+)?([\w.\-/]+\.[\w.\-/]+)\s+v[\w.\-+]+", re.MULTILINE)
_GEM_RE = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"]""", re.MULTILINE)


@dataclass
class DetectedTopic:
    topic: str
    slug: str
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, object]:
        return {"topic": self.topic, "slug": self.slug, "sources": self.sources}


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Skipping unreadable manifest %s: %s", path, exc)
        return None


def _pyproject_names(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("Invalid pyproject.toml: %s", exc)
        return []
    specs: List[str] = list(data.get("project", {}).get("dependencies", []) or [])
    for extra in (data.get("project", {}).get("optional-dependencies", {}) or {}).values():
        specs.extend(extra or [])
    names = []
    for spec in specs:
        match = _PEP508_NAME_RE.match(str(spec))
        if match:
            names.append(match.group(1))
    poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {}) or {}
    names.extend(name for name in poetry if name.lower() != "python")
    return names


def _requirements_names(text: str) -> List[str]:
    names = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith(("#", "-")):
            continue
        match = _REQ_NAME_RE.match(stripped)
        if match:
            names.append(match.group(0))
    return names


def _json_dependency_names(text: str, keys: Iterable[str]) -> List[str]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Invalid JSON manifest: %s", exc)
        return []
    names: List[str] = []
    for key in keys:
        section = data.get(key) or {}
        if isinstance(section, dict):
            names.extend(section.keys())
    return names


def _cargo_names(text: str) -> List[str]:
    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        logger.warning("Invalid Cargo.toml: %s", exc)
        return []
    names: List[str] = []
    for key in ("dependencies", "dev-dependencies"):
        names.extend((data.get(key) or {}).keys())
    return names


def _manifest_names(project_dir: Path) -> Dict[str, Dict[str, List[str]]]:
    """Map ecosystem -> dependency name -> manifest files that declare it."""
    found: Dict[str, Dict[str, List[str]]] = {}

    def record(ecosystem: str, names: Iterable[str], path: Path) -> None:
        relative = str(path.relative_to(project_dir))
        bucket = found.setdefault(ecosystem, {})
        for name in names:
            key = name.lower().replace("_", "-") if ecosystem == "pypi" else name.lower()
            files = bucket.setdefault(key, [])
            if relative not in files:
                files.append(relative)

    readers = [
        ("pypi", "pyproject.toml", _pyproject_names),
        ("npm", "package.json", lambda text: _json_dependency_names(text, ("dependencies", "devDependencies"))),
        ("composer", "composer.json", lambda text: _json_dependency_names(text, ("require", "require-dev"))),
        ("go", "go.mod", lambda text: _GO_REQUIRE_RE.findall(text)),
        ("cargo", "Cargo.toml", _cargo_names),
        ("rubygems", "Gemfile", lambda text: _GEM_RE.findall(text)),
    ]
    for ecosystem, filename, reader in readers:
        path = project_dir / filename
        if path.is_file():
            text = _read_text(path)
            if text is not None:
                record(ecosystem, reader(text), path)
    for path in sorted(project_dir.glob("requirements*.txt")):
        text = _read_text(path)
        if text is not None:
            record("pypi", _requirements_names(text), path)
    return found


def detect_topics(project_dir: Path, focus: Optional[str] = None) -> List[DetectedTopic]:
    """Return known topics declared by manifests in ``project_dir``, sorted by slug.

    ``focus`` keeps only topics whose slug contains the focus slug.
    """
    if not project_dir.is_dir():
        raise InvalidInputError(f"{project_dir} is not a directory")
    topics: Dict[str, DetectedTopic] = {}
    for ecosystem, names in _manifest_names(project_dir).items():
        known = KNOWN_TOPICS.get(ecosystem, {})
        for name, files in names.items():
            topic = known.get(name)
            if topic is None:
                continue
            slug = slugify(topic)
            detected = topics.setdefault(slug, DetectedTopic(topic=topic, slug=slug))
            for source in files:
                if source not in detected.sources:
                    detected.sources.append(source)
    ordered = [topics[slug] for slug in sorted(topics)]
    logger.info("Detected %d topics in %s", len(ordered), project_dir)
    if focus is None:
        return ordered
    focus_slug = slugify(focus)
    focused = [item for item in ordered if focus_slug in item.slug]
    if not focused:
        raise InvalidInputError(
            f"Focus {focus!r} matches none of the detected topics.",
            suggestions=[item.topic for item in ordered],
        )
    return focused
