"""Intake session: the section controller for one member.

Owns the current step pointer, per-section form state, validation errors,
debounced draft autosave and the submit flow. Everything it knows about
completion comes from the member entity; the step sequence is recomputed
after every refresh.

Submit flow for the current section:
    validate -> PATCH the section's sub-records -> clear the draft ->
    silently re-fetch the entity -> recompute context and sequence ->
    advance with the submitted section assumed satisfied.

Remote failures never escape as exceptions from continue_(): they become
error notices and the member stays on the same section with the same
form state.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from intake.core.config import settings
from intake.core.errors import (
    EntityFetchError,
    InvalidStateError,
    NotFoundError,
    PersistenceError,
    SubmissionInProgressError,
    ValidationError,
)
from intake.flow import forms as form_ops
from intake.flow.context import MembershipContext, resolve_context
from intake.flow.forms import FORM_MODELS, SectionForm
from intake.flow.review import ReviewOutcome, evaluate_review
from intake.flow.sections import get_section
from intake.flow.sequencer import (
    compute_sequence,
    next_step,
    previous_step,
    progress_percent,
    reconcile_requested_step,
    resolve_starting_step,
)
from intake.flow.state import NoticeLevel, SectionKey, SectionPhase
from intake.providers.members.base import MemberProvider
from intake.schemas.member import Member
from intake.schemas.session import (
    NoticeOut,
    ReviewSummary,
    SessionSnapshot,
    StepInfo,
)
from intake.services.autosave import Debouncer
from intake.services.draft_store import DraftStore, draft_identity, get_draft_store

logger = logging.getLogger(__name__)

RESTORED_MESSAGE = "Restored your in-progress onboarding"


@dataclass(frozen=True)
class Notice:
    """A user-visible notification queued by the session."""

    level: NoticeLevel
    message: str


class IntakeSession:
    """Drives one member through the intake flow.

    Attributes:
        id: Session id.
        member: Freshest member entity (None until mounted).
        context: Membership context derived from `member`.
        sequence: Current step sequence.
        current: Step on screen.
        phase: Controller phase of the current step.
        forms: Form state by section.
        errors: Validation errors for the current step.
        focus_section: Profile-edit mode; the session opens on this section
            and goes to review once it is saved.
    """

    def __init__(
        self,
        provider: MemberProvider,
        *,
        draft_store: DraftStore | None = None,
        autosave_delay: float | None = None,
        focus_section: SectionKey | str | None = None,
        session_id: str | None = None,
    ) -> None:
        """Initialize an unmounted session.

        Args:
            provider: Member API access for this member.
            draft_store: Draft persistence. Defaults to the app singleton.
            autosave_delay: Debounce delay in seconds. Defaults to settings.
            focus_section: Open on one section only (profile editing).
            session_id: Explicit id. Defaults to a random UUID.

        Raises:
            NotFoundError: If focus_section is not a data section.
        """
        self.id = session_id or str(uuid.uuid4())
        self._provider = provider
        self._drafts = draft_store if draft_store is not None else get_draft_store()
        delay = (
            autosave_delay
            if autosave_delay is not None
            else settings.autosave_delay_seconds
        )
        self._autosave = Debouncer(delay, self._write_draft)

        self.focus_section: SectionKey | None = None
        if focus_section is not None:
            self.focus_section = self._form_key(focus_section)

        self.member: Member | None = None
        self.context: MembershipContext | None = None
        self.sequence: list[SectionKey] = []
        self.current: SectionKey | None = None
        self.phase = SectionPhase.VIEWING
        self.forms: dict[SectionKey, SectionForm] = {}
        self.errors: list[dict] = []
        self.club_upgrade = False

        self._identity = "me"
        self._visited: set[SectionKey] = set()
        self._notices: list[Notice] = []
        self._mounted = False
        self._closed = False
        self._in_flight = False

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def completed(self) -> bool:
        return self.phase == SectionPhase.COMPLETED

    @property
    def autosave_pending(self) -> bool:
        return self._autosave.pending

    @property
    def can_continue(self) -> bool:
        """Continue is enabled: a valid data step with nothing in flight."""
        if not self._mounted or self._closed or self.completed:
            return False
        if self.current is None or self.current not in FORM_MODELS:
            return False
        if self._in_flight:
            return False
        return not form_ops.validate_form(self.current, self.forms[self.current])

    @property
    def can_go_back(self) -> bool:
        return (
            self.current is not None
            and self.current in self.sequence
            and self.sequence.index(self.current) > 0
        )

    # =========================================================================
    # Mount
    # =========================================================================

    async def mount(self, requested_step: SectionKey | str | None = None) -> SessionSnapshot:
        """Load the entity, restore any draft and pick the starting step.

        Precedence for the starting step: focus section, then a resumption
        hint that names a step in the sequence, then the draft's step, then
        the first incomplete step.

        Args:
            requested_step: External resumption hint (e.g. ?step=club).

        Returns:
            Snapshot of the mounted session.

        Raises:
            EntityFetchError: If the member cannot be loaded.
            InvalidStateError: If the session is already mounted or closed.
        """
        if self._closed:
            raise InvalidStateError("Session is closed")
        if self._mounted:
            raise InvalidStateError("Session is already mounted")

        try:
            member = await self._provider.get_member()
        except EntityFetchError:
            logger.warning("Intake session %s could not load the member", self.id)
            raise
        self._apply_entity(member)
        self._identity = draft_identity(member)
        self.forms = form_ops.seed_forms(member)

        draft = self._drafts.load(self._identity)
        draft_step: SectionKey | None = None
        if draft is not None:
            try:
                restored = {
                    key: form_ops.restore_form(self.forms[key], payload)
                    for key, payload in draft.forms.items()
                }
            except PydanticValidationError:
                logger.info("Discarding draft with incompatible form state")
                draft = None
            else:
                self.forms.update(restored)
                self._visited.update(restored)
                draft_step = draft.current_step

        self.club_upgrade = SectionKey.parse(requested_step) == SectionKey.CLUB
        hint = reconcile_requested_step(requested_step, self.sequence)

        if self.focus_section is not None and self.focus_section in self.sequence:
            start = self.focus_section
        else:
            start = resolve_starting_step(
                self.sequence,
                member,
                requested=hint,
                draft_step=draft_step,
            )
            if draft is not None and hint is None:
                self._notify(NoticeLevel.INFO, RESTORED_MESSAGE)

        self._set_step(start)
        self._mounted = True
        logger.info(
            "Intake session %s mounted on %s (%d steps)",
            self.id,
            start.value,
            len(self.sequence),
        )
        return self.snapshot()

    # =========================================================================
    # Form state
    # =========================================================================

    def update_form(self, section: SectionKey | str, changes: dict[str, Any]) -> SessionSnapshot:
        """Overwrite fields of one section's form and schedule autosave.

        Raises:
            NotFoundError: If the section collects no data.
            ValidationError: If a field is unknown or has the wrong type.
        """
        self._require_active()
        key = self._form_key(section)
        self.forms[key] = form_ops.apply_changes(self.forms[key], changes)
        self._after_edit(key)
        return self.snapshot()

    def toggle_option(
        self,
        section: SectionKey | str,
        field: str,
        option: str,
    ) -> SessionSnapshot:
        """Toggle one option of a multi-select field and schedule autosave.

        Raises:
            NotFoundError: If the section collects no data.
            ValidationError: If the field is not a multi-select field.
        """
        self._require_active()
        key = self._form_key(section)
        self.forms[key] = form_ops.toggle_option(self.forms[key], field, option)
        self._after_edit(key)
        return self.snapshot()

    def _after_edit(self, key: SectionKey) -> None:
        self._visited.add(key)
        if key == self.current and self.phase == SectionPhase.BLOCKED:
            self.errors = form_ops.validate_form(key, self.forms[key])
            if not self.errors:
                self.phase = SectionPhase.VIEWING
        self._autosave.schedule()

    # =========================================================================
    # Navigation
    # =========================================================================

    async def continue_(self) -> SessionSnapshot:
        """Validate and submit the current section, then advance.

        Returns:
            Snapshot after the transition, or unchanged position with an
            error notice when the remote update failed.

        Raises:
            SubmissionInProgressError: If a submission is already in flight.
            ValidationError: If the form fails validation (no network call).
            InvalidStateError: If the current step has no form (review).
        """
        self._require_active()
        if self._in_flight:
            raise SubmissionInProgressError()
        key = self._current()
        if key not in FORM_MODELS:
            raise InvalidStateError("Review has nothing to submit; use finish")

        section = get_section(key)
        form = self.forms[key]

        self.phase = SectionPhase.VALIDATING
        errors = form_ops.validate_form(key, form)
        if errors:
            self.phase = SectionPhase.BLOCKED
            self.errors = errors
            logger.info("Section %s blocked by %d validation errors", key.value, len(errors))
            raise ValidationError(
                message=f"Complete the required fields in {section.title}.",
                details=errors,
            )
        self.errors = []

        if key == SectionKey.SIGNALS and not form_ops.has_signals(form):
            self.phase = SectionPhase.VIEWING
            self._set_step(self._advance_from(key, assume_satisfied=None))
            self._autosave.schedule()
            return self.snapshot()

        # Held from the PATCH until the advance lands, refresh included
        self._in_flight = True
        self.phase = SectionPhase.SUBMITTING
        try:
            try:
                await self._provider.update_member(form_ops.build_patch(key, form))
            except PersistenceError:
                self.phase = SectionPhase.VIEWING
                self._notify(NoticeLevel.ERROR, f"Failed to save {section.title.lower()}")
                logger.warning("Intake session %s failed to save %s", self.id, key.value)
                return self.snapshot()

            self.phase = SectionPhase.SUBMITTED
            self._notify(NoticeLevel.SUCCESS, f"{section.title} saved")
            self._autosave.cancel()
            self._drafts.clear(self._identity)
            self._visited.discard(key)

            await self._refresh()
            self._set_step(self._advance_from(key, assume_satisfied=key))
        finally:
            self._in_flight = False
            if self.phase in (SectionPhase.SUBMITTING, SectionPhase.SUBMITTED):
                self.phase = SectionPhase.VIEWING

        self._autosave.schedule()
        logger.info("Section %s submitted; now on %s", key.value, self.current.value)
        return self.snapshot()

    def go_back(self) -> SessionSnapshot:
        """Move to the previous step without validation.

        Raises:
            SubmissionInProgressError: If a submission is in flight.
        """
        self._require_active()
        if self._in_flight:
            raise SubmissionInProgressError()
        self._set_step(previous_step(self._current(), self.sequence))
        self._autosave.schedule()
        return self.snapshot()

    def skip(self) -> SessionSnapshot:
        """Leave an optional section without saving it.

        Raises:
            InvalidStateError: If the current step is required.
        """
        self._require_active()
        if self._in_flight:
            raise SubmissionInProgressError()
        key = self._current()
        if get_section(key).required:
            raise InvalidStateError(f"{get_section(key).title} cannot be skipped")
        self._set_step(self._advance_from(key, assume_satisfied=None))
        self._autosave.schedule()
        return self.snapshot()

    def jump_to(self, step: SectionKey | str) -> SessionSnapshot:
        """Navigate directly to a step of the current sequence.

        Raises:
            InvalidStateError: If the step is not in the sequence.
        """
        self._require_active()
        if self._in_flight:
            raise SubmissionInProgressError()
        key = SectionKey.parse(step)
        if key is None or key not in self.sequence:
            raise InvalidStateError(f"Step '{step}' is not part of this onboarding")
        self._set_step(key)
        self._autosave.schedule()
        return self.snapshot()

    def _advance_from(
        self,
        key: SectionKey,
        *,
        assume_satisfied: SectionKey | None,
    ) -> SectionKey:
        if self.focus_section is not None:
            return SectionKey.REVIEW
        return next_step(
            key,
            self.sequence,
            self._member(),
            assume_satisfied=assume_satisfied,
        )

    # =========================================================================
    # Review
    # =========================================================================

    async def review(self) -> ReviewOutcome:
        """Re-evaluate completion against a freshly fetched entity."""
        self._require_active()
        await self._refresh()
        return self._evaluate_review()

    async def finish(self) -> ReviewOutcome:
        """Complete the intake, or send the member back to what is missing.

        When required sections are still unsatisfied, the session moves to
        the first of them and queues an error notice. Otherwise the draft is
        cleared and the session is marked completed.
        """
        self._require_active()
        if self._in_flight:
            raise SubmissionInProgressError()
        outcome = await self.review()
        if not outcome.complete:
            self._set_step(outcome.first_missing)
            self._notify(NoticeLevel.ERROR, outcome.message)
            self._autosave.schedule()
            return outcome

        self._autosave.cancel()
        self._drafts.clear(self._identity)
        self._set_step(SectionKey.REVIEW)
        self.phase = SectionPhase.COMPLETED
        logger.info(
            "Intake session %s completed (activation=%s)",
            self.id,
            outcome.activation_target.value if outcome.activation_target else "none",
        )
        return outcome

    def _evaluate_review(self) -> ReviewOutcome:
        return evaluate_review(
            self.sequence,
            self._member(),
            self.context,
            club_upgrade=self.club_upgrade,
        )

    # =========================================================================
    # Lifecycle and output
    # =========================================================================

    def close(self) -> None:
        """Tear the session down; a pending autosave is dropped, not written."""
        self._autosave.cancel()
        self._closed = True

    def drain_notices(self) -> list[Notice]:
        """Return and clear queued notices."""
        notices, self._notices = self._notices, []
        return notices

    def snapshot(self, *, include_notices: bool = False) -> SessionSnapshot:
        """Current session state for rendering.

        Args:
            include_notices: Drain queued notices into the snapshot.
        """
        member = self.member
        steps = []
        if member is not None:
            for key in self.sequence:
                section = get_section(key)
                filled, total = section.field_completeness(member)
                steps.append(
                    StepInfo(
                        key=key,
                        title=section.title,
                        required=section.required,
                        satisfied=section.is_satisfied(member),
                        filled=filled,
                        total=total,
                    )
                )

        review = None
        if self.current == SectionKey.REVIEW and member is not None:
            review = ReviewSummary.from_outcome(self._evaluate_review())

        return SessionSnapshot(
            id=self.id,
            member_id=member.id if member else None,
            current_step=self.current,
            phase=self.phase,
            sequence=steps,
            progress_percent=(
                progress_percent(self.sequence, member, self.current)
                if member is not None and self.current is not None
                else 0
            ),
            can_continue=self.can_continue,
            can_go_back=self.can_go_back,
            forms={key.value: form.model_dump() for key, form in self.forms.items()},
            errors=list(self.errors),
            notices=(
                [NoticeOut(level=n.level, message=n.message) for n in self.drain_notices()]
                if include_notices
                else []
            ),
            review=review,
            completed=self.completed,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _apply_entity(self, member: Member) -> None:
        self.member = member
        self.context = resolve_context(member)
        self.sequence = compute_sequence(self.context)

    async def _refresh(self) -> None:
        """Re-fetch the entity; on failure keep the previous one."""
        try:
            member = await self._provider.get_member()
        except EntityFetchError:
            logger.warning("Intake session %s kept a stale member after refresh failure", self.id)
            return
        self._apply_entity(member)

    def _set_step(self, key: SectionKey) -> None:
        self.current = key
        self.phase = SectionPhase.VIEWING
        self.errors = []
        if key in FORM_MODELS:
            self._visited.add(key)

    def _write_draft(self) -> None:
        if self._closed or self.current is None:
            return
        forms = {
            key: form_ops.draft_payload(self.forms[key])
            for key in sorted(self._visited, key=list(SectionKey).index)
        }
        self._drafts.save(self._identity, self._drafts.new_draft(self.current, forms))

    def _notify(self, level: NoticeLevel, message: str) -> None:
        self._notices.append(Notice(level=level, message=message))

    def _member(self) -> Member:
        if self.member is None:
            raise InvalidStateError("Session is not mounted")
        return self.member

    def _current(self) -> SectionKey:
        if self.current is None:
            raise InvalidStateError("Session is not mounted")
        return self.current

    def _require_active(self) -> None:
        if self._closed:
            raise InvalidStateError("Session is closed")
        if not self._mounted:
            raise InvalidStateError("Session is not mounted")
        if self.completed:
            raise InvalidStateError("Onboarding is already complete")

    @staticmethod
    def _form_key(section: SectionKey | str) -> SectionKey:
        key = SectionKey.parse(section)
        if key is None or key not in FORM_MODELS:
            raise NotFoundError("Section", str(getattr(section, "value", section)))
        return key
