"""Tests for the section registry.

Completion predicates are pure functions of the entity: total over
missing sub-records, recomputed on every call.
"""

import pytest

from intake.flow.context import MembershipContext
from intake.flow.sections import SECTION_REGISTRY, get_section, is_present
from intake.flow.state import SectionKey
from tests.conftest import bare_member_data, complete_member_data, make_member

_NO_PROGRAMS = MembershipContext(
    approved_programs=frozenset({"community"}),
    requested_programs=frozenset(),
)
_ACADEMY = MembershipContext(
    approved_programs=frozenset({"community"}),
    requested_programs=frozenset({"academy"}),
)


class TestRegistry:
    def test_canonical_order(self):
        assert [s.key for s in SECTION_REGISTRY] == list(SectionKey)

    def test_only_signals_is_optional(self):
        optional = [s.key for s in SECTION_REGISTRY if not s.required]
        assert optional == [SectionKey.SIGNALS]

    def test_get_section_accepts_string(self):
        assert get_section("swim").title == "Swimming background"

    def test_get_section_rejects_unknown_key(self):
        with pytest.raises(KeyError):
            get_section("payments")


class TestRelevance:
    @pytest.mark.parametrize("key", [SectionKey.CLUB, SectionKey.ACADEMY])
    def test_conditional_sections_hidden_without_programs(self, key):
        assert not get_section(key).is_relevant(_NO_PROGRAMS)

    @pytest.mark.parametrize("key", [SectionKey.CLUB, SectionKey.ACADEMY])
    def test_conditional_sections_shown_for_academy(self, key):
        assert get_section(key).is_relevant(_ACADEMY)


class TestPredicates:
    def test_bare_member_satisfies_nothing_required(self):
        member = make_member(bare_member_data())
        for section in SECTION_REGISTRY:
            if section.key == SectionKey.REVIEW:
                continue
            assert not section.is_satisfied(member), section.key

    def test_complete_member_satisfies_base_sections(self):
        member = make_member(complete_member_data())
        for key in (SectionKey.CORE, SectionKey.SAFETY, SectionKey.SWIM):
            assert get_section(key).is_satisfied(member)

    def test_core_requires_confirmed_photo_media_id(self):
        member = make_member(complete_member_data(profile_photo_media_id=None))
        assert not get_section(SectionKey.CORE).is_satisfied(member)

    def test_blank_string_is_not_present(self):
        member = make_member(complete_member_data(profile={"phone": "   "}))
        assert not get_section(SectionKey.CORE).is_satisfied(member)

    def test_empty_list_is_not_present(self):
        member = make_member(complete_member_data(availability={"preferred_times": []}))
        assert not get_section(SectionKey.SAFETY).is_satisfied(member)

    def test_club_satisfied_by_available_days(self):
        member = make_member(
            complete_member_data(availability={"available_days": ["saturday"]})
        )
        assert get_section(SectionKey.CLUB).is_satisfied(member)

    def test_academy_needs_assessment_and_preferences(self):
        membership = {
            "academy_goals": "Learn to swim",
            "academy_preferred_coach_gender": "any",
            "academy_lesson_preference": "group",
        }
        partial = make_member(complete_member_data(membership=membership))
        assert not get_section(SectionKey.ACADEMY).is_satisfied(partial)

        membership["academy_skill_assessment"] = {"canFloat": False}
        full = make_member(complete_member_data(membership=membership))
        assert get_section(SectionKey.ACADEMY).is_satisfied(full)

    def test_signals_satisfied_by_either_field(self):
        member = make_member(
            bare_member_data(preferences={"volunteer_interest": ["lifeguard"]})
        )
        assert get_section(SectionKey.SIGNALS).is_satisfied(member)


class TestFieldCompleteness:
    def test_counts_filled_fields(self):
        member = make_member(bare_member_data())
        assert get_section(SectionKey.CORE).field_completeness(member) == (2, 9)

    def test_review_has_no_fields(self):
        member = make_member(bare_member_data())
        assert get_section(SectionKey.REVIEW).field_completeness(member) == (0, 0)


class TestIsPresent:
    @pytest.mark.parametrize("value", [None, "", "  ", [], {}])
    def test_absent_values(self, value):
        assert not is_present(value)

    @pytest.mark.parametrize("value", ["x", ["a"], {"k": 1}, 0, False])
    def test_present_values(self, value):
        assert is_present(value)
