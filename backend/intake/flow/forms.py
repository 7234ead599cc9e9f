"""Section form state.

One pydantic model per section holds the member's in-progress answers.
Forms are seeded from the entity, overlaid with a restored draft, mutated
by the UI, validated locally and finally turned into the partial-update
body for that section.

Validation is synchronous and local: a form that fails it can never be
submitted, so no invalid section ever reaches the member API.
"""

import re
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from intake.core.errors import ValidationError
from intake.flow.sections import ACADEMY_ASSESSMENT_KEYS, is_present
from intake.flow.state import SectionKey
from intake.schemas.member import Member

OTHER_GOAL_VALUE = "Other"

SWIM_GOAL_OPTIONS: tuple[str, ...] = (
    "Swim confidently",
    "Learn freestyle",
    "Improve technique",
    "Build endurance",
    "Learn to breathe better",
    "Prepare for open water",
    "Prepare for triathlon",
    OTHER_GOAL_VALUE,
)

_GOAL_SEPARATORS = re.compile(r"[\n;,]+")
_INLINE_IMAGE_PREFIX = "data:"
_REQUIRED_MSG = "This field is required."


# =============================================================================
# Form models
# =============================================================================


class SectionForm(BaseModel):
    """Base for section forms: unknown fields are rejected."""

    model_config = ConfigDict(extra="forbid")


class CoreForm(SectionForm):
    """Identity, contact and location.

    profile_photo_media_id is the upload reference confirmed by the media
    service; profile_photo_url is display-only and may hold an inline
    preview that is never persisted to drafts.
    """

    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    area_in_lagos: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    gender: str = ""
    date_of_birth: str = ""
    profile_photo_url: str = ""
    profile_photo_media_id: str = ""
    time_zone: str = ""


class SafetyForm(SectionForm):
    """Emergency contact and session logistics."""

    emergency_contact_name: str = ""
    emergency_contact_relationship: str = ""
    emergency_contact_phone: str = ""
    medical_info: str = ""
    location_preference: list[str] = Field(default_factory=list)
    time_of_day_availability: list[str] = Field(default_factory=list)


class SwimForm(SectionForm):
    """Self-declared swim level, comfort and goals."""

    swim_level: str = ""
    deep_water_comfort: str = ""
    strokes: list[str] = Field(default_factory=list)
    goals: list[str] = Field(default_factory=list)
    other_goals: str = ""


class ClubForm(SectionForm):
    """Club training availability."""

    availability_slots: list[str] = Field(default_factory=list)
    club_notes: str = ""


def _empty_assessment() -> dict[str, bool]:
    return {key: False for key in ACADEMY_ASSESSMENT_KEYS}


class AcademyForm(SectionForm):
    """Academy skill checklist and lesson preferences."""

    skill_assessment: dict[str, bool] = Field(default_factory=_empty_assessment)
    academy_goals: str = ""
    academy_preferred_coach_gender: str = ""
    academy_lesson_preference: str = ""


class SignalsForm(SectionForm):
    """Optional community interests and volunteering."""

    interests: list[str] = Field(default_factory=list)
    volunteer_interest: list[str] = Field(default_factory=list)


FORM_MODELS: dict[SectionKey, type[SectionForm]] = {
    SectionKey.CORE: CoreForm,
    SectionKey.SAFETY: SafetyForm,
    SectionKey.SWIM: SwimForm,
    SectionKey.CLUB: ClubForm,
    SectionKey.ACADEMY: AcademyForm,
    SectionKey.SIGNALS: SignalsForm,
}
# Review has no form.


# =============================================================================
# Goals narrative
# =============================================================================


def parse_goals_narrative(text: str | None) -> tuple[list[str], str]:
    """Split the stored goals narrative back into checklist and free text.

    Segments matching a known goal option (case-insensitive) become
    checklist entries; everything else is joined into the free-text
    "other" goal, which also ticks the Other option.

    Args:
        text: personal_goals value from the entity.

    Returns:
        Tuple of (goals, other_goals).
    """
    raw = str(text or "").strip()
    if not raw:
        return [], ""

    options = {option.lower(): option for option in SWIM_GOAL_OPTIONS}
    goals: list[str] = []
    other_parts: list[str] = []
    for part in (p.strip() for p in _GOAL_SEPARATORS.split(raw)):
        if not part:
            continue
        matched = options.get(part.lower())
        if matched:
            if matched not in goals:
                goals.append(matched)
        else:
            other_parts.append(part)

    other_goals = "; ".join(other_parts)
    if other_goals and OTHER_GOAL_VALUE not in goals:
        goals.append(OTHER_GOAL_VALUE)

    if not goals and not other_goals:
        return [], raw
    return goals, other_goals


def build_goals_narrative(goals: list[str], other_goals: str) -> str:
    """Join checklist goals and free text into the stored narrative.

    Args:
        goals: Selected goal options (Other is dropped; its text is used).
        other_goals: Free-text goal.

    Returns:
        "; "-separated narrative.
    """
    segments: list[str] = []
    for goal in goals or []:
        if goal and goal != OTHER_GOAL_VALUE and goal not in segments:
            segments.append(goal)
    extra = str(other_goals or "").strip()
    if extra:
        segments.append(extra)
    return "; ".join(segments)


# =============================================================================
# Seeding
# =============================================================================


def format_date_for_input(value: str | None) -> str:
    """Trim an entity date/timestamp to YYYY-MM-DD; blank if unparseable."""
    if not value:
        return ""
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text[:10]).isoformat()
    except ValueError:
        return ""


def seed_forms(member: Member) -> dict[SectionKey, SectionForm]:
    """Build initial form state for every section from the entity.

    Args:
        member: Current member entity.

    Returns:
        Dict of section key to form, covering every data section.
    """
    profile = member.profile
    emergency = member.emergency_contact
    availability = member.availability
    membership = member.membership
    preferences = member.preferences

    goals, other_goals = parse_goals_narrative(profile.personal_goals if profile else None)

    assessment = _empty_assessment()
    if membership and membership.academy_skill_assessment:
        assessment.update(
            {
                key: bool(value)
                for key, value in membership.academy_skill_assessment.items()
                if key in ACADEMY_ASSESSMENT_KEYS
            }
        )

    return {
        SectionKey.CORE: CoreForm(
            first_name=member.first_name or "",
            last_name=member.last_name or "",
            phone=(profile and profile.phone) or "",
            area_in_lagos=(profile and profile.area_in_lagos) or "",
            city=(profile and profile.city) or "",
            state=(profile and profile.state) or "",
            country=(profile and profile.country) or "",
            gender=(profile and profile.gender) or "",
            date_of_birth=format_date_for_input(profile and profile.date_of_birth),
            profile_photo_url=member.profile_photo_url or "",
            profile_photo_media_id=member.profile_photo_media_id or "",
            time_zone=(profile and profile.time_zone) or "",
        ),
        SectionKey.SAFETY: SafetyForm(
            emergency_contact_name=(emergency and emergency.name) or "",
            emergency_contact_relationship=(
                (emergency and emergency.contact_relationship) or ""
            ),
            emergency_contact_phone=(emergency and emergency.phone) or "",
            medical_info=(emergency and emergency.medical_info) or "",
            location_preference=list(
                (availability and availability.preferred_locations) or []
            ),
            time_of_day_availability=list(
                (availability and availability.preferred_times) or []
            ),
        ),
        SectionKey.SWIM: SwimForm(
            swim_level=(profile and profile.swim_level) or "",
            deep_water_comfort=(profile and profile.deep_water_comfort) or "",
            strokes=list((profile and profile.strokes) or []),
            goals=goals,
            other_goals=other_goals,
        ),
        SectionKey.CLUB: ClubForm(
            availability_slots=list(
                (availability and availability.available_days) or []
            ),
            club_notes=(membership and membership.club_notes) or "",
        ),
        SectionKey.ACADEMY: AcademyForm(
            skill_assessment=assessment,
            academy_goals=(membership and membership.academy_goals) or "",
            academy_preferred_coach_gender=(
                (membership and membership.academy_preferred_coach_gender) or ""
            ),
            academy_lesson_preference=(
                (membership and membership.academy_lesson_preference) or ""
            ),
        ),
        SectionKey.SIGNALS: SignalsForm(
            interests=list((profile and profile.interests) or []),
            volunteer_interest=list(
                (preferences and preferences.volunteer_interest) or []
            ),
        ),
    }


# =============================================================================
# Mutation
# =============================================================================


def _details_from_pydantic(exc: PydanticValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]


def apply_changes(form: SectionForm, changes: dict[str, Any]) -> SectionForm:
    """Return a copy of the form with the given fields replaced.

    Args:
        form: Current form state.
        changes: Field values to overwrite.

    Returns:
        New form instance.

    Raises:
        ValidationError: If a field is unknown or a value has the wrong type.
    """
    try:
        return type(form).model_validate({**form.model_dump(), **changes})
    except PydanticValidationError as exc:
        raise ValidationError(
            message="Invalid form update",
            details=_details_from_pydantic(exc),
        ) from exc


def toggle_option(form: SectionForm, field: str, option: str) -> SectionForm:
    """Add or remove one option of a multi-select field.

    Deselecting the Other swim goal also clears its free text.

    Raises:
        ValidationError: If the field is not a multi-select field.
    """
    current = getattr(form, field, None)
    if field not in type(form).model_fields or not isinstance(current, list):
        raise ValidationError(
            message="Invalid form update",
            details=[{"field": field, "message": "Not a multi-select field."}],
        )

    selected = option in current
    values = [v for v in current if v != option] if selected else [*current, option]
    changes: dict[str, Any] = {field: values}
    if isinstance(form, SwimForm) and field == "goals" and option == OTHER_GOAL_VALUE:
        if selected:
            changes["other_goals"] = ""
    return apply_changes(form, changes)


# =============================================================================
# Validation
# =============================================================================


def _require(errors: list[dict], form: SectionForm, *fields: str) -> None:
    for field in fields:
        if not is_present(getattr(form, field)):
            errors.append({"field": field, "message": _REQUIRED_MSG})


def _validate_core(form: CoreForm, today: date) -> list[dict]:
    errors: list[dict] = []
    _require(
        errors,
        form,
        "first_name",
        "last_name",
        "phone",
        "country",
        "state",
        "city",
        "gender",
        "date_of_birth",
        "time_zone",
    )
    if is_present(form.date_of_birth):
        try:
            born = date.fromisoformat(form.date_of_birth.strip())
        except ValueError:
            errors.append(
                {"field": "date_of_birth", "message": "Use the YYYY-MM-DD format."}
            )
        else:
            if born > today:
                errors.append(
                    {
                        "field": "date_of_birth",
                        "message": "Date of birth cannot be in the future.",
                    }
                )
    if not is_present(form.profile_photo_media_id):
        errors.append(
            {"field": "profile_photo_media_id", "message": "Upload a profile photo."}
        )
    return errors


def _validate_safety(form: SafetyForm) -> list[dict]:
    errors: list[dict] = []
    _require(
        errors,
        form,
        "emergency_contact_name",
        "emergency_contact_relationship",
        "emergency_contact_phone",
    )
    if not form.location_preference:
        errors.append(
            {"field": "location_preference", "message": "Select at least one location."}
        )
    if not form.time_of_day_availability:
        errors.append(
            {
                "field": "time_of_day_availability",
                "message": "Select at least one time of day.",
            }
        )
    return errors


def _validate_swim(form: SwimForm) -> list[dict]:
    errors: list[dict] = []
    _require(errors, form, "swim_level", "deep_water_comfort")
    if not form.goals:
        errors.append({"field": "goals", "message": "Select at least one goal."})
    if OTHER_GOAL_VALUE in form.goals and not is_present(form.other_goals):
        errors.append(
            {"field": "other_goals", "message": "Describe your other goal."}
        )
    return errors


def _validate_club(form: ClubForm) -> list[dict]:
    if form.availability_slots:
        return []
    return [{"field": "availability_slots", "message": "Select at least one slot."}]


def _validate_academy(form: AcademyForm) -> list[dict]:
    errors: list[dict] = []
    _require(
        errors,
        form,
        "academy_goals",
        "academy_preferred_coach_gender",
        "academy_lesson_preference",
    )
    return errors


def validate_form(
    key: SectionKey,
    form: SectionForm,
    *,
    today: date | None = None,
) -> list[dict]:
    """Check a section form before submission.

    Args:
        key: Section being validated.
        form: Its current form state.
        today: Reference date for date-of-birth checks. Defaults to today.

    Returns:
        List of {"field", "message"} errors; empty when the form is valid.
    """
    if key == SectionKey.CORE:
        return _validate_core(form, today or date.today())  # type: ignore[arg-type]
    if key == SectionKey.SAFETY:
        return _validate_safety(form)  # type: ignore[arg-type]
    if key == SectionKey.SWIM:
        return _validate_swim(form)  # type: ignore[arg-type]
    if key == SectionKey.CLUB:
        return _validate_club(form)  # type: ignore[arg-type]
    if key == SectionKey.ACADEMY:
        return _validate_academy(form)  # type: ignore[arg-type]
    return []


# =============================================================================
# Payloads
# =============================================================================


def build_patch(key: SectionKey, form: SectionForm) -> dict[str, Any]:
    """Build the partial-update body for one section.

    Only the sub-records this section owns are included, so repeated
    submissions merge idempotently on the server.

    Args:
        key: Section being submitted.
        form: Its validated form state.

    Returns:
        JSON-ready PATCH body.

    Raises:
        KeyError: If the section collects no data.
    """
    if isinstance(form, CoreForm):
        profile: dict[str, Any] = {
            "phone": form.phone,
            "country": form.country,
            "city": form.city,
            "state": form.state,
            "gender": form.gender,
            "date_of_birth": form.date_of_birth,
            "time_zone": form.time_zone,
        }
        if form.area_in_lagos:
            profile["area_in_lagos"] = form.area_in_lagos
            profile["address"] = form.area_in_lagos
        return {
            "first_name": form.first_name,
            "last_name": form.last_name,
            "profile_photo_media_id": form.profile_photo_media_id or None,
            "profile": profile,
        }
    if isinstance(form, SafetyForm):
        return {
            "emergency_contact": {
                "name": form.emergency_contact_name,
                "contact_relationship": form.emergency_contact_relationship,
                "phone": form.emergency_contact_phone,
                "medical_info": form.medical_info,
            },
            "availability": {
                "preferred_locations": list(form.location_preference),
                "preferred_times": list(form.time_of_day_availability),
            },
        }
    if isinstance(form, SwimForm):
        return {
            "profile": {
                "swim_level": form.swim_level,
                "deep_water_comfort": form.deep_water_comfort,
                "strokes": list(form.strokes),
                "personal_goals": build_goals_narrative(form.goals, form.other_goals),
            },
        }
    if isinstance(form, ClubForm):
        membership: dict[str, Any] = {}
        if form.club_notes:
            membership["club_notes"] = form.club_notes
        patch: dict[str, Any] = {
            "availability": {"available_days": list(form.availability_slots)},
        }
        if membership:
            patch["membership"] = membership
        return patch
    if isinstance(form, AcademyForm):
        return {
            "membership": {
                "academy_skill_assessment": dict(form.skill_assessment),
                "academy_goals": form.academy_goals,
                "academy_preferred_coach_gender": form.academy_preferred_coach_gender,
                "academy_lesson_preference": form.academy_lesson_preference,
            },
        }
    if isinstance(form, SignalsForm):
        return {
            "profile": {"interests": list(form.interests)},
            "preferences": {"volunteer_interest": list(form.volunteer_interest)},
        }
    raise KeyError(key)


def has_signals(form: SectionForm) -> bool:
    """True when the optional signals form has any selection."""
    return isinstance(form, SignalsForm) and bool(
        form.interests or form.volunteer_interest
    )


def draft_payload(form: SectionForm) -> dict[str, Any]:
    """JSON-safe projection of a form for the local draft.

    Inline photo previews (data: URLs) are dropped; only an already
    uploaded URL survives, next to the confirmed media id.
    """
    payload = form.model_dump(mode="json")
    if isinstance(form, CoreForm) and form.profile_photo_url.startswith(
        _INLINE_IMAGE_PREFIX
    ):
        payload["profile_photo_url"] = ""
    return payload


def restore_form(seeded: SectionForm, payload: dict[str, Any]) -> SectionForm:
    """Overlay a draft payload on the entity-seeded form.

    A blank photo URL in the draft keeps the entity's URL.

    Raises:
        pydantic.ValidationError: If the payload does not fit the form.
    """
    merged = {**seeded.model_dump(), **payload}
    if isinstance(seeded, CoreForm) and not merged.get("profile_photo_url"):
        merged["profile_photo_url"] = seeded.profile_photo_url
    return type(seeded).model_validate(merged)
