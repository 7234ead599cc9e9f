"""Tests for section forms.

Covers:
- seeding from the entity (dates, goals narrative, assessment)
- validation rules per section, including cross-field rules
- PATCH bodies per section
- draft payloads and restoring them over seeded forms
- multi-select toggling
"""

from datetime import date

import pytest
from pydantic import ValidationError as PydanticValidationError

from intake.core.errors import ValidationError
from intake.flow.forms import (
    OTHER_GOAL_VALUE,
    AcademyForm,
    ClubForm,
    CoreForm,
    SignalsForm,
    SwimForm,
    apply_changes,
    build_goals_narrative,
    build_patch,
    draft_payload,
    format_date_for_input,
    has_signals,
    parse_goals_narrative,
    restore_form,
    seed_forms,
    toggle_option,
    validate_form,
)
from intake.flow.state import SectionKey
from tests.conftest import (
    TEST_MEDIA_ID,
    bare_member_data,
    complete_member_data,
    make_member,
)

_TODAY = date(2026, 6, 1)


def _fields(errors: list[dict]) -> set[str]:
    return {e["field"] for e in errors}


def _valid_core(**overrides) -> CoreForm:
    data = {
        "first_name": "Ada",
        "last_name": "Obi",
        "phone": "+2348012345678",
        "city": "Lagos",
        "state": "Lagos",
        "country": "Nigeria",
        "gender": "female",
        "date_of_birth": "1990-04-12",
        "time_zone": "Africa/Lagos",
        "profile_photo_media_id": TEST_MEDIA_ID,
    }
    data.update(overrides)
    return CoreForm(**data)


# =============================================================================
# Goals narrative
# =============================================================================


class TestGoalsNarrative:
    def test_parse_known_options_case_insensitively(self):
        goals, other = parse_goals_narrative("swim confidently; LEARN FREESTYLE")
        assert goals == ["Swim confidently", "Learn freestyle"]
        assert other == ""

    def test_parse_unknown_segments_into_other(self):
        goals, other = parse_goals_narrative("Build endurance\nSwim with my kids, Cross the lagoon")
        assert goals == ["Build endurance", OTHER_GOAL_VALUE]
        assert other == "Swim with my kids; Cross the lagoon"

    def test_parse_empty(self):
        assert parse_goals_narrative(None) == ([], "")
        assert parse_goals_narrative("   ") == ([], "")

    def test_build_drops_other_marker_and_appends_text(self):
        narrative = build_goals_narrative(
            ["Learn freestyle", OTHER_GOAL_VALUE], "Swim with my kids"
        )
        assert narrative == "Learn freestyle; Swim with my kids"

    def test_build_then_parse_restores_selection(self):
        narrative = build_goals_narrative(["Build endurance", OTHER_GOAL_VALUE], "Open water mile")
        assert parse_goals_narrative(narrative) == (
            ["Build endurance", OTHER_GOAL_VALUE],
            "Open water mile",
        )


# =============================================================================
# Seeding
# =============================================================================


class TestSeedForms:
    def test_seeds_every_data_section(self):
        forms = seed_forms(make_member(bare_member_data()))
        assert set(forms) == {
            SectionKey.CORE,
            SectionKey.SAFETY,
            SectionKey.SWIM,
            SectionKey.CLUB,
            SectionKey.ACADEMY,
            SectionKey.SIGNALS,
        }
        assert forms[SectionKey.CORE].first_name == "Ada"
        assert forms[SectionKey.CORE].phone == ""

    def test_seeds_from_complete_member(self):
        forms = seed_forms(make_member(complete_member_data()))
        assert forms[SectionKey.CORE].profile_photo_media_id == TEST_MEDIA_ID
        assert forms[SectionKey.SAFETY].location_preference == ["Yaba"]
        assert forms[SectionKey.SWIM].goals == ["Swim confidently", "Learn freestyle"]
        assert forms[SectionKey.SIGNALS].interests == ["social swims"]

    def test_trims_timestamp_date_of_birth(self):
        member = make_member(
            complete_member_data(profile={"date_of_birth": "1990-04-12T00:00:00Z"})
        )
        assert seed_forms(member)[SectionKey.CORE].date_of_birth == "1990-04-12"

    def test_assessment_defaults_to_all_false(self):
        academy = seed_forms(make_member(bare_member_data()))[SectionKey.ACADEMY]
        assert academy.skill_assessment == {
            "canFloat": False,
            "headUnderwater": False,
            "deepWaterComfort": False,
            "canSwim25m": False,
        }

    def test_format_date_for_input_blanks_garbage(self):
        assert format_date_for_input("soon") == ""
        assert format_date_for_input(None) == ""


# =============================================================================
# Validation
# =============================================================================


class TestValidateCore:
    def test_valid_core(self):
        assert validate_form(SectionKey.CORE, _valid_core(), today=_TODAY) == []

    def test_missing_required_field(self):
        errors = validate_form(SectionKey.CORE, _valid_core(phone=""), today=_TODAY)
        assert _fields(errors) == {"phone"}

    def test_photo_media_id_required(self):
        errors = validate_form(
            SectionKey.CORE,
            _valid_core(profile_photo_media_id="", profile_photo_url="https://x/y.jpg"),
            today=_TODAY,
        )
        assert _fields(errors) == {"profile_photo_media_id"}

    def test_future_date_of_birth_rejected(self):
        errors = validate_form(
            SectionKey.CORE, _valid_core(date_of_birth="2030-01-01"), today=_TODAY
        )
        assert _fields(errors) == {"date_of_birth"}

    def test_malformed_date_of_birth_rejected(self):
        errors = validate_form(
            SectionKey.CORE, _valid_core(date_of_birth="12/04/1990"), today=_TODAY
        )
        assert "YYYY-MM-DD" in errors[0]["message"]


class TestValidateOtherSections:
    def test_safety_requires_contact_and_choices(self):
        forms = seed_forms(make_member(bare_member_data()))
        errors = validate_form(SectionKey.SAFETY, forms[SectionKey.SAFETY])
        assert _fields(errors) == {
            "emergency_contact_name",
            "emergency_contact_relationship",
            "emergency_contact_phone",
            "location_preference",
            "time_of_day_availability",
        }

    def test_other_goal_requires_text(self):
        form = SwimForm(
            swim_level="beginner",
            deep_water_comfort="ok",
            goals=[OTHER_GOAL_VALUE],
            other_goals="  ",
        )
        assert _fields(validate_form(SectionKey.SWIM, form)) == {"other_goals"}

    def test_swim_requires_a_goal(self):
        form = SwimForm(swim_level="beginner", deep_water_comfort="ok")
        assert _fields(validate_form(SectionKey.SWIM, form)) == {"goals"}

    def test_club_requires_a_slot(self):
        assert _fields(validate_form(SectionKey.CLUB, ClubForm())) == {
            "availability_slots"
        }

    def test_academy_requires_preferences(self):
        errors = validate_form(SectionKey.ACADEMY, AcademyForm(academy_goals="float"))
        assert _fields(errors) == {
            "academy_preferred_coach_gender",
            "academy_lesson_preference",
        }

    def test_signals_never_blocks(self):
        assert validate_form(SectionKey.SIGNALS, SignalsForm()) == []


# =============================================================================
# Patches
# =============================================================================


class TestBuildPatch:
    def test_core_patch_omits_blank_area(self):
        patch = build_patch(SectionKey.CORE, _valid_core())
        assert patch["profile_photo_media_id"] == TEST_MEDIA_ID
        assert "area_in_lagos" not in patch["profile"]
        assert "address" not in patch["profile"]
        assert set(patch) == {
            "first_name",
            "last_name",
            "profile_photo_media_id",
            "profile",
        }

    def test_core_patch_mirrors_area_into_address(self):
        patch = build_patch(SectionKey.CORE, _valid_core(area_in_lagos="Yaba"))
        assert patch["profile"]["area_in_lagos"] == "Yaba"
        assert patch["profile"]["address"] == "Yaba"

    def test_swim_patch_builds_goals_narrative(self):
        form = SwimForm(
            swim_level="beginner",
            deep_water_comfort="ok",
            goals=["Learn freestyle", OTHER_GOAL_VALUE],
            other_goals="Cross the lagoon",
        )
        patch = build_patch(SectionKey.SWIM, form)
        assert patch == {
            "profile": {
                "swim_level": "beginner",
                "deep_water_comfort": "ok",
                "strokes": [],
                "personal_goals": "Learn freestyle; Cross the lagoon",
            }
        }

    def test_club_patch_only_touches_availability_without_notes(self):
        patch = build_patch(SectionKey.CLUB, ClubForm(availability_slots=["sat"]))
        assert patch == {"availability": {"available_days": ["sat"]}}

    def test_academy_patch_sends_full_assessment(self):
        patch = build_patch(SectionKey.ACADEMY, AcademyForm(academy_goals="float"))
        assessment = patch["membership"]["academy_skill_assessment"]
        assert set(assessment) == {
            "canFloat",
            "headUnderwater",
            "deepWaterComfort",
            "canSwim25m",
        }

    def test_signals_patch(self):
        patch = build_patch(SectionKey.SIGNALS, SignalsForm(interests=["events"]))
        assert patch == {
            "profile": {"interests": ["events"]},
            "preferences": {"volunteer_interest": []},
        }


# =============================================================================
# Drafts
# =============================================================================


class TestDraftPayload:
    def test_drops_inline_photo_preview(self):
        payload = draft_payload(_valid_core(profile_photo_url="data:image/png;base64,AAAA"))
        assert payload["profile_photo_url"] == ""
        assert payload["profile_photo_media_id"] == TEST_MEDIA_ID

    def test_keeps_uploaded_photo_url(self):
        payload = draft_payload(_valid_core(profile_photo_url="https://cdn/x.jpg"))
        assert payload["profile_photo_url"] == "https://cdn/x.jpg"

    def test_restore_overlays_draft_and_keeps_entity_photo(self):
        seeded = _valid_core(profile_photo_url="https://cdn/entity.jpg")
        restored = restore_form(seeded, {"phone": "+234000", "profile_photo_url": ""})
        assert restored.phone == "+234000"
        assert restored.profile_photo_url == "https://cdn/entity.jpg"

    def test_restore_rejects_unknown_fields(self):
        with pytest.raises(PydanticValidationError):
            restore_form(_valid_core(), {"shoe_size": 42})


# =============================================================================
# Mutation
# =============================================================================


class TestMutation:
    def test_apply_changes_returns_new_form(self):
        form = ClubForm()
        updated = apply_changes(form, {"club_notes": "early bird"})
        assert updated.club_notes == "early bird"
        assert form.club_notes == ""

    def test_apply_changes_rejects_unknown_field(self):
        with pytest.raises(ValidationError) as exc_info:
            apply_changes(ClubForm(), {"nickname": "x"})
        assert exc_info.value.details[0]["field"] == "nickname"

    def test_toggle_adds_then_removes(self):
        form = toggle_option(SignalsForm(), "interests", "events")
        assert form.interests == ["events"]
        assert has_signals(form)
        form = toggle_option(form, "interests", "events")
        assert form.interests == []
        assert not has_signals(form)

    def test_deselecting_other_goal_clears_text(self):
        form = SwimForm(goals=[OTHER_GOAL_VALUE], other_goals="Cross the lagoon")
        form = toggle_option(form, "goals", OTHER_GOAL_VALUE)
        assert form.goals == []
        assert form.other_goals == ""

    def test_toggle_rejects_scalar_field(self):
        with pytest.raises(ValidationError):
            toggle_option(SwimForm(), "swim_level", "beginner")
