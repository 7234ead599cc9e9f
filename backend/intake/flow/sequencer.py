"""Step sequencer.

Builds the ordered, context-filtered list of intake steps and computes
transitions over it. The sequence is never persisted: it is recomputed
from the membership context whenever the entity is refreshed, so
conditional sections can appear or disappear mid-flow.

All functions are pure; satisfaction is always read from the entity.
"""

import logging
from collections.abc import Sequence

from intake.flow.context import MembershipContext
from intake.flow.sections import SECTION_REGISTRY, get_section
from intake.flow.state import SectionKey
from intake.schemas.member import Member

logger = logging.getLogger(__name__)


def compute_sequence(context: MembershipContext) -> list[SectionKey]:
    """Relevant sections in canonical order, terminated by review.

    Args:
        context: Current membership context.

    Returns:
        Ordered list of section keys; review appears exactly once, last.
    """
    keys = [
        section.key
        for section in SECTION_REGISTRY
        if section.key != SectionKey.REVIEW and section.is_relevant(context)
    ]
    keys.append(SectionKey.REVIEW)
    return keys


def _blocks(key: SectionKey, member: Member, assume_satisfied: SectionKey | None) -> bool:
    """Whether a required section still needs the member's input."""
    if key == SectionKey.REVIEW or key == assume_satisfied:
        return False
    section = get_section(key)
    return section.required and not section.is_satisfied(member)


def first_incomplete(
    sequence: Sequence[SectionKey],
    member: Member,
    *,
    assume_satisfied: SectionKey | None = None,
) -> SectionKey:
    """First required section in the sequence the entity does not satisfy.

    Args:
        sequence: Current step sequence.
        member: Current member entity.
        assume_satisfied: Section to treat as satisfied regardless of the
            entity (a submission whose refresh has not landed yet).

    Returns:
        The first unsatisfied required key, or review when none remain.
    """
    for key in sequence:
        if _blocks(key, member, assume_satisfied):
            return key
    return SectionKey.REVIEW


def next_step(
    current: SectionKey,
    sequence: Sequence[SectionKey],
    member: Member,
    *,
    assume_satisfied: SectionKey | None = None,
) -> SectionKey:
    """Step to move to after `current` was saved or skipped.

    Scans forward from `current`. Optional sections and review are returned
    as soon as they are reached; required sections are skipped while the
    entity already satisfies them.

    Args:
        current: Step being left.
        sequence: Current step sequence (recomputed after the refresh).
        member: Current member entity.
        assume_satisfied: Section to treat as satisfied regardless of the
            entity.

    Returns:
        Next step key. Review when the scan runs off the end. When `current`
        is no longer in the sequence, the first incomplete step.
    """
    if current not in sequence:
        logger.info("Step %s left the sequence; resuming at first incomplete", current.value)
        return first_incomplete(sequence, member, assume_satisfied=assume_satisfied)

    index = list(sequence).index(current)
    for key in sequence[index + 1 :]:
        if key == SectionKey.REVIEW or not get_section(key).required:
            return key
        if _blocks(key, member, assume_satisfied):
            return key
    return SectionKey.REVIEW


def previous_step(current: SectionKey, sequence: Sequence[SectionKey]) -> SectionKey:
    """The step immediately before `current`; no validation gate.

    Returns the first step when already at the start, or when `current`
    is no longer part of the sequence.
    """
    if current not in sequence:
        return sequence[0]
    index = list(sequence).index(current)
    return sequence[max(index - 1, 0)]


def reconcile_requested_step(
    requested: SectionKey | str | None,
    sequence: Sequence[SectionKey],
) -> SectionKey | None:
    """Honor an external resumption hint if it names a step in the sequence.

    Args:
        requested: Raw hint (e.g. a query-string value).
        sequence: Current step sequence.

    Returns:
        The requested key, or None when it is unknown or not in the sequence.
    """
    key = SectionKey.parse(requested)
    if key is None or key not in sequence:
        if requested:
            logger.info("Ignoring resumption hint %r not in sequence", requested)
        return None
    return key


def resolve_starting_step(
    sequence: Sequence[SectionKey],
    member: Member,
    *,
    requested: SectionKey | str | None = None,
    draft_step: SectionKey | str | None = None,
) -> SectionKey:
    """Pick the step a freshly mounted session opens on.

    Precedence: a valid resumption hint, then the draft's step if it is
    still in the sequence, then the first incomplete step.
    """
    honored = reconcile_requested_step(requested, sequence)
    if honored is not None:
        return honored
    restored = SectionKey.parse(draft_step)
    if restored is not None and restored in sequence:
        return restored
    return first_incomplete(sequence, member)


def progress_percent(
    sequence: Sequence[SectionKey],
    member: Member,
    current: SectionKey,
) -> int:
    """Share of required steps complete, as a rounded percentage.

    Review counts as complete only while the member is on it.
    """
    required = [key for key in sequence if get_section(key).required]
    if not required:
        return 100
    done = 0
    for key in required:
        if key == SectionKey.REVIEW:
            done += 1 if current == SectionKey.REVIEW else 0
        elif get_section(key).is_satisfied(member):
            done += 1
    return round(done / len(required) * 100)
