"""Skillcraft package exports."""

from __future__ import annotations

from .cli import app, main
from .config import Settings, load_settings
from .decision import CollisionMode, Decision, Outcome, ReplacementPolicy, decide, parse_selection
from .detect import DetectedTopic, detect_topics
from .errors import FilesystemFailureError, InvalidInputError, ResearchUnavailableError, SkillcraftError
from .invocation import Invocation, Scope, parse_invocation, parse_modifiers, resolve_root
from .pipeline import TopicRequest, run_topic
from .plan import PlannedEntry, TopicPlan, load_plan, plan_entries, skeleton_plan
from .registry import EntryInfo, foreign_entries, list_entries, scan_entries
from .report import RunReport
from .schema import SkillMetadata, load_skill_metadata
from .utils import entry_name, slugify
from .writer import apply_decision, remove_entries

__all__ = [
    "app",
    "main",
    "Settings",
    "load_settings",
    "CollisionMode",
    "Decision",
    "Outcome",
    "ReplacementPolicy",
    "decide",
    "parse_selection",
    "DetectedTopic",
    "detect_topics",
    "FilesystemFailureError",
    "InvalidInputError",
    "ResearchUnavailableError",
    "SkillcraftError",
    "Invocation",
    "Scope",
    "parse_invocation",
    "parse_modifiers",
    "resolve_root",
    "TopicRequest",
    "run_topic",
    "PlannedEntry",
    "TopicPlan",
    "load_plan",
    "plan_entries",
    "skeleton_plan",
    "EntryInfo",
    "foreign_entries",
    "list_entries",
    "scan_entries",
    "RunReport",
    "SkillMetadata",
    "load_skill_metadata",
    "entry_name",
    "slugify",
    "apply_decision",
    "remove_entries",
]

__version__ = "0.1.0"
