"""Intake flow engine: sections, context, sequencing, forms and review.

Everything in this package is pure and synchronous. I/O (member API,
draft persistence, autosave timers) lives in intake.services and
intake.providers.
"""

from intake.flow.context import MembershipContext, resolve_context
from intake.flow.review import ReviewOutcome, evaluate_review
from intake.flow.sections import SECTION_REGISTRY, Section, get_section
from intake.flow.sequencer import (
    compute_sequence,
    first_incomplete,
    next_step,
    previous_step,
    progress_percent,
    reconcile_requested_step,
    resolve_starting_step,
)
from intake.flow.state import (
    ActivationTarget,
    NoticeLevel,
    ProgramId,
    SectionKey,
    SectionPhase,
)

__all__ = [
    "SECTION_REGISTRY",
    "ActivationTarget",
    "MembershipContext",
    "NoticeLevel",
    "ProgramId",
    "ReviewOutcome",
    "Section",
    "SectionKey",
    "SectionPhase",
    "compute_sequence",
    "evaluate_review",
    "first_incomplete",
    "get_section",
    "next_step",
    "previous_step",
    "progress_percent",
    "reconcile_requested_step",
    "resolve_context",
    "resolve_starting_step",
]
