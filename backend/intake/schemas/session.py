"""Intake session schemas.

Read models returned by the onboarding API: a snapshot of one session
(position, sequence, forms, validation errors, notices) and the review
summary.
"""

from typing import Any

from pydantic import BaseModel, Field

from intake.flow.review import ReviewOutcome
from intake.flow.state import ActivationTarget, NoticeLevel, SectionKey, SectionPhase


class StepInfo(BaseModel):
    """One entry of the current step sequence.

    Attributes:
        key: Section key.
        title: Display title.
        required: Whether the step blocks completion.
        satisfied: Whether the entity already holds the section's fields.
        filled: Entity fields present, for per-step progress display.
        total: Entity fields the section collects.
    """

    key: SectionKey
    title: str
    required: bool
    satisfied: bool
    filled: int
    total: int


class NoticeOut(BaseModel):
    """User-visible notice (toast)."""

    level: NoticeLevel
    message: str


class MissingSectionOut(BaseModel):
    key: SectionKey
    title: str


class ReviewSummary(BaseModel):
    """Review stage state."""

    complete: bool
    message: str
    missing: list[MissingSectionOut] = Field(default_factory=list)
    first_missing: SectionKey | None = None
    activation_target: ActivationTarget | None = None
    cta_label: str | None = None
    cta_href: str | None = None
    description: str
    dashboard_href: str

    @classmethod
    def from_outcome(cls, outcome: ReviewOutcome) -> "ReviewSummary":
        return cls(
            complete=outcome.complete,
            message=outcome.message,
            missing=[
                MissingSectionOut(key=m.key, title=m.title) for m in outcome.missing
            ],
            first_missing=outcome.first_missing,
            activation_target=outcome.activation_target,
            cta_label=outcome.cta_label,
            cta_href=outcome.cta_href,
            description=outcome.description,
            dashboard_href=outcome.dashboard_href,
        )


class SessionSnapshot(BaseModel):
    """Everything a client needs to render the current step.

    Attributes:
        id: Session id.
        member_id: Id of the member being onboarded.
        current_step: Step on screen.
        phase: Section controller phase.
        sequence: Current step sequence, recomputed from the entity.
        progress_percent: Share of required steps complete.
        can_continue: Current form passes validation and nothing is in flight.
        can_go_back: A previous step exists.
        forms: Form state by section key.
        errors: Validation errors for the current step.
        notices: Notices queued since the last response.
        review: Review summary while on the review step.
        completed: Review finished and the session handed off.
    """

    id: str
    member_id: str | None = None
    current_step: SectionKey | None = None
    phase: SectionPhase
    sequence: list[StepInfo] = Field(default_factory=list)
    progress_percent: int = 0
    can_continue: bool = False
    can_go_back: bool = False
    forms: dict[str, dict[str, Any]] = Field(default_factory=dict)
    errors: list[dict] = Field(default_factory=list)
    notices: list[NoticeOut] = Field(default_factory=list)
    review: ReviewSummary | None = None
    completed: bool = False


# =============================================================================
# Requests
# =============================================================================


class CreateSessionRequest(BaseModel):
    """Body for starting a session.

    Attributes:
        requested_step: Resumption hint (e.g. "club" from an upgrade link).
            Ignored when the step is not in the member's sequence.
        focus_section: Profile-edit mode: open on this section only.
    """

    requested_step: str | None = None
    focus_section: SectionKey | None = None


class ToggleOptionRequest(BaseModel):
    field: str
    option: str


class JumpRequest(BaseModel):
    step: str


class FinishResult(BaseModel):
    """Outcome of finishing the intake.

    Attributes:
        review: Review summary at finish time.
        redirect_href: Where the client goes next: the activation link, the
            dashboard, or nowhere (None) when sections are still missing.
        session: Session snapshot after finishing.
    """

    review: ReviewSummary
    redirect_href: str | None = None
    session: SessionSnapshot
