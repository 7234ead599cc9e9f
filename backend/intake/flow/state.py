"""Intake flow vocabulary.

Enums shared by the section registry, the step sequencer, the section
controller and the API schemas.

Section phases:
    VIEWING ──continue──▶ VALIDATING ──ok──▶ SUBMITTING ──ok──▶ SUBMITTED
                              │                   │                 │
                              ▼ invalid           ▼ remote failure  ▼ next step
                           BLOCKED             VIEWING            VIEWING
"""

from enum import Enum


class SectionKey(str, Enum):
    """Sections of the intake flow in canonical order."""

    CORE = "core"
    SAFETY = "safety"
    SWIM = "swim"
    CLUB = "club"
    ACADEMY = "academy"
    SIGNALS = "signals"
    REVIEW = "review"

    @classmethod
    def parse(cls, value: "str | SectionKey | None") -> "SectionKey | None":
        """Convert an external value (query string, draft field) to a key.

        Args:
            value: Raw section key, or None.

        Returns:
            The matching SectionKey, or None if the value is unknown.
        """
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


class ProgramId(str, Enum):
    """Membership programs.

    Community is the base tier; club and academy are optional programs.
    Academy is the deepest: requesting it implies wanting club too.
    """

    COMMUNITY = "community"
    CLUB = "club"
    ACADEMY = "academy"


class SectionPhase(str, Enum):
    """Per-section controller state."""

    VIEWING = "viewing"
    VALIDATING = "validating"
    BLOCKED = "blocked"
    SUBMITTING = "submitting"
    SUBMITTED = "submitted"
    COMPLETED = "completed"
    """Terminal: review finished and the session handed off."""


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ActivationTarget(str, Enum):
    """Which activation/billing path the review stage hands off to."""

    CLUB = "club"
    COMMUNITY = "community"
