"""Member entity schemas.

The member entity is owned by the remote member API. These models describe
the subset of it the intake flow reads. Every field is optional and every
nested sub-record may be absent: completion predicates treat a missing
record as "not satisfied", never as an error. Unknown fields sent by the
API are ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict


class _EntityModel(BaseModel):
    """Base for entity records: tolerant of extra fields from the API."""

    model_config = ConfigDict(extra="ignore")


class MemberProfile(_EntityModel):
    """Core identity, location and swim background fields."""

    phone: str | None = None
    area_in_lagos: str | None = None
    city: str | None = None
    state: str | None = None
    country: str | None = None
    time_zone: str | None = None
    gender: str | None = None
    date_of_birth: str | None = None
    swim_level: str | None = None
    deep_water_comfort: str | None = None
    strokes: list[str] | None = None
    interests: list[str] | None = None
    personal_goals: str | None = None


class MemberEmergencyContact(_EntityModel):
    """Safety contact for pool sessions."""

    name: str | None = None
    contact_relationship: str | None = None
    phone: str | None = None
    medical_info: str | None = None


class MemberAvailability(_EntityModel):
    """When and where the member can swim."""

    available_days: list[str] | None = None
    preferred_times: list[str] | None = None
    preferred_locations: list[str] | None = None


class MemberMembership(_EntityModel):
    """Program tiers and program-specific readiness fields.

    Attributes:
        primary_tier: Legacy single tier, used when active_tiers is empty.
        active_tiers: Programs the member is approved for.
        requested_tiers: Programs the member asked to join.
        community_paid_until: ISO timestamp; community access expiry.
        academy_skill_assessment: Water-skill checklist keyed by skill
            (canFloat, headUnderwater, deepWaterComfort, canSwim25m).
    """

    primary_tier: str | None = None
    active_tiers: list[str] | None = None
    requested_tiers: list[str] | None = None
    community_paid_until: str | None = None
    club_paid_until: str | None = None
    academy_paid_until: str | None = None
    club_notes: str | None = None
    academy_skill_assessment: dict[str, Any] | None = None
    academy_goals: str | None = None
    academy_preferred_coach_gender: str | None = None
    academy_lesson_preference: str | None = None


class MemberPreferences(_EntityModel):
    """Communication and community preferences."""

    comms_preference: str | None = None
    language_preference: str | None = None
    volunteer_interest: list[str] | None = None


class Member(_EntityModel):
    """Current member as returned by GET /members/me.

    The single source of truth for section completion. The intake flow
    only reads it and sends partial updates; it never stores a parallel
    list of completed sections.
    """

    id: str | None = None
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    profile_photo_url: str | None = None
    profile_photo_media_id: str | None = None

    profile: MemberProfile | None = None
    emergency_contact: MemberEmergencyContact | None = None
    availability: MemberAvailability | None = None
    membership: MemberMembership | None = None
    preferences: MemberPreferences | None = None
