"""Error taxonomy for skillcraft."""

from __future__ import annotations

from typing import List, Optional


class SkillcraftError(RuntimeError):
    """Base class for failures surfaced to the user."""


class InvalidInputError(SkillcraftError):
    """Raised when the invocation cannot be acted on without more input."""

    def __init__(self, message: str, suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.suggestions = list(suggestions or [])


class ResearchUnavailableError(SkillcraftError):
    """Raised when an entry has neither sources nor content to write."""


class FilesystemFailureError(SkillcraftError):
    """Raised when creating, deleting or writing entries fails."""
