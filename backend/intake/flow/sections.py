"""Section registry.

Fixed, ordered catalog of intake sections. Each section knows whether it
appears for a given membership context and whether the member entity
already holds everything it collects.

Completion is always recomputed from the entity, never stored, so it heals
itself when the entity changes through another path (e.g., an admin edit).
Predicates are total: a missing sub-record means "not satisfied".

Registry (canonical order):
    core      Core profile          required
    safety    Safety & logistics    required
    swim      Swimming background   required
    club      Club readiness        required, club context only
    academy   Academy readiness     required, academy context only
    signals   Community signals     optional
    review    Finish                terminal
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from intake.flow.context import MembershipContext
from intake.flow.state import SectionKey
from intake.schemas.member import Member

ACADEMY_ASSESSMENT_KEYS = (
    "canFloat",
    "headUnderwater",
    "deepWaterComfort",
    "canSwim25m",
)


def is_present(value: Any) -> bool:
    """True for a non-blank string, a non-empty collection or any other non-None value."""
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set, frozenset, dict)):
        return len(value) > 0
    return True


# =============================================================================
# Field checks
# =============================================================================


def _core_fields(member: Member) -> list[bool]:
    profile = member.profile
    return [
        is_present(member.profile_photo_media_id),
        is_present(profile and profile.gender),
        is_present(profile and profile.date_of_birth),
        is_present(member.first_name),
        is_present(member.last_name),
        is_present(profile and profile.phone),
        is_present(profile and profile.country),
        is_present(profile and profile.city),
        is_present(profile and profile.time_zone),
    ]


def _safety_fields(member: Member) -> list[bool]:
    emergency = member.emergency_contact
    availability = member.availability
    return [
        is_present(emergency and emergency.name),
        is_present(emergency and emergency.contact_relationship),
        is_present(emergency and emergency.phone),
        is_present(availability and availability.preferred_locations),
        is_present(availability and availability.preferred_times),
    ]


def _swim_fields(member: Member) -> list[bool]:
    profile = member.profile
    return [
        is_present(profile and profile.swim_level),
        is_present(profile and profile.deep_water_comfort),
        is_present(profile and profile.personal_goals),
    ]


def _club_fields(member: Member) -> list[bool]:
    availability = member.availability
    return [is_present(availability and availability.available_days)]


def _academy_fields(member: Member) -> list[bool]:
    membership = member.membership
    assessment = (membership.academy_skill_assessment if membership else None) or {}
    return [
        any(key in assessment for key in ACADEMY_ASSESSMENT_KEYS),
        is_present(membership and membership.academy_goals),
        is_present(membership and membership.academy_preferred_coach_gender),
        is_present(membership and membership.academy_lesson_preference),
    ]


def _signals_fields(member: Member) -> list[bool]:
    profile = member.profile
    preferences = member.preferences
    return [
        is_present(profile and profile.interests),
        is_present(preferences and preferences.volunteer_interest),
    ]


def _no_fields(_member: Member) -> list[bool]:
    return []


def _always(_context: MembershipContext) -> bool:
    return True


def _in_club_context(context: MembershipContext) -> bool:
    return context.club_context


def _in_academy_context(context: MembershipContext) -> bool:
    return context.academy_context


# =============================================================================
# Section definition
# =============================================================================


@dataclass(frozen=True)
class Section:
    """Static definition of one intake section.

    Attributes:
        key: Unique section identifier.
        title: Display title, used in review messages and notices.
        required: Non-required sections never block navigation or completion.
        relevance: Whether the section appears for a membership context.
        field_checks: One presence flag per entity field the section collects.
        combine: How field flags roll up into satisfaction (all for required
            sections, any for optional ones).
    """

    key: SectionKey
    title: str
    required: bool
    relevance: Callable[[MembershipContext], bool]
    field_checks: Callable[[Member], list[bool]]
    combine: Callable[[Iterable[bool]], bool] = all

    def is_relevant(self, context: MembershipContext) -> bool:
        """Whether this section appears in the sequence for the context."""
        return self.relevance(context)

    def is_satisfied(self, member: Member) -> bool:
        """Whether the entity already holds this section's fields."""
        return self.combine(self.field_checks(member))

    def field_completeness(self, member: Member) -> tuple[int, int]:
        """Count filled fields for progress display.

        Returns:
            Tuple of (filled, total).
        """
        checks = self.field_checks(member)
        return sum(1 for present in checks if present), len(checks)


SECTION_REGISTRY: tuple[Section, ...] = (
    Section(SectionKey.CORE, "Core profile", True, _always, _core_fields),
    Section(SectionKey.SAFETY, "Safety & logistics", True, _always, _safety_fields),
    Section(SectionKey.SWIM, "Swimming background", True, _always, _swim_fields),
    Section(SectionKey.CLUB, "Club readiness", True, _in_club_context, _club_fields),
    Section(
        SectionKey.ACADEMY,
        "Academy readiness",
        True,
        _in_academy_context,
        _academy_fields,
    ),
    Section(
        SectionKey.SIGNALS,
        "Community signals",
        False,
        _always,
        _signals_fields,
        combine=any,
    ),
    Section(SectionKey.REVIEW, "Finish", True, _always, _no_fields),
)

_SECTIONS_BY_KEY: dict[SectionKey, Section] = {s.key: s for s in SECTION_REGISTRY}


def get_section(key: SectionKey | str) -> Section:
    """Look up a section definition.

    Args:
        key: Section key or its string value.

    Returns:
        The Section definition.

    Raises:
        KeyError: If no section has that key.
    """
    parsed = SectionKey.parse(key)
    if parsed is None:
        raise KeyError(key)
    return _SECTIONS_BY_KEY[parsed]
