"""Configuration loader for skillcraft."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .decision import CollisionMode, ReplacementPolicy
from .errors import InvalidInputError
from .invocation import Scope

ENV_CONFIG = "SKILLCRAFT_CONFIG"
ENV_SCOPE = "SKILLCRAFT_SCOPE"
ENV_POLICY = "SKILLCRAFT_POLICY"


@dataclass
class Settings:
    """Configuration document parsed from YAML."""

    raw: Dict[str, Any]
    path: str
    sha256: str
    default_scope: Scope = Scope.PROJECT
    project_dir: str = ".claude/skills"
    user_dir: str = ".claude/skills"
    multi: bool = False
    description_max: int = 200
    replacement_policy: ReplacementPolicy = ReplacementPolicy.REPLACE
    collision_mode: CollisionMode = CollisionMode.PER_TOPIC
    overrides: Dict[str, str] = field(default_factory=dict)


def _enum_value(enum_cls, value: Any, key: str):
    try:
        return enum_cls(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"Invalid {key} {value!r}; expected one of: {choices}") from exc


def load_settings(config_path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Load settings from YAML (defaults to the bundled config) and apply env overrides."""
    env = os.environ if environ is None else environ
    if config_path is None and env.get(ENV_CONFIG):
        config_path = Path(env[ENV_CONFIG])
    if config_path is not None:
        try:
            raw_text = config_path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidInputError(f"Unable to read config {config_path}: {exc}") from exc
        location = str(config_path.resolve())
    else:
        resource = resources.files("skillcraft.defaults").joinpath("default.config.yaml")
        raw_text = resource.read_text(encoding="utf-8")
        location = "package://skillcraft/defaults/default.config.yaml"
    try:
        raw = yaml.safe_load(raw_text) or {}
    except yaml.YAMLError as exc:
        raise InvalidInputError(f"Invalid YAML in config {location}: {exc}") from exc
    if not isinstance(raw, dict):
        raise InvalidInputError(f"Config {location} must be a mapping")
    checksum = hashlib.sha256(raw_text.encode("utf-8")).hexdigest()

    scope_cfg = raw.get("scope", {}) or {}
    entries_cfg = raw.get("entries", {}) or {}
    collisions_cfg = raw.get("collisions", {}) or {}

    overrides: Dict[str, str] = {}
    scope_value = scope_cfg.get("default", Scope.PROJECT.value)
    if env.get(ENV_SCOPE):
        scope_value = env[ENV_SCOPE]
        overrides["default_scope"] = ENV_SCOPE
    policy_value = collisions_cfg.get("policy", ReplacementPolicy.REPLACE.value)
    if env.get(ENV_POLICY):
        policy_value = env[ENV_POLICY]
        overrides["replacement_policy"] = ENV_POLICY

    return Settings(
        raw=raw,
        path=location,
        sha256=checksum,
        default_scope=_enum_value(Scope, scope_value, "scope"),
        project_dir=str(scope_cfg.get("project_dir", ".claude/skills")),
        user_dir=str(scope_cfg.get("user_dir", ".claude/skills")),
        multi=bool(entries_cfg.get("multi", False)),
        description_max=int(entries_cfg.get("description_max", 200)),
        replacement_policy=_enum_value(ReplacementPolicy, policy_value, "replacement policy"),
        collision_mode=_enum_value(CollisionMode, collisions_cfg.get("mode", CollisionMode.PER_TOPIC.value), "collision mode"),
        overrides=overrides,
    )
