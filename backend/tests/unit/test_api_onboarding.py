"""Tests for Onboarding API endpoints.

These tests verify:
- session lifecycle: create, get, delete
- form updates and toggles
- continue/back/skip/jump transitions and their error envelopes
- review and finish
- exception handlers and the health endpoint
"""

import pytest
from httpx import AsyncClient

from intake.api.deps import get_bearer_token
from tests.conftest import TEST_MEDIA_ID, complete_member_data

# =============================================================================
# Test Helpers
# =============================================================================

_BASE = "/api/v1/onboarding/sessions"

_CORE_ANSWERS = {
    "phone": "+2348012345678",
    "city": "Lagos",
    "state": "Lagos",
    "country": "Nigeria",
    "gender": "female",
    "date_of_birth": "1990-04-12",
    "time_zone": "Africa/Lagos",
    "profile_photo_media_id": TEST_MEDIA_ID,
}


async def _create(client: AsyncClient, **body) -> dict:
    resp = await client.post(_BASE, json=body or None)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# =============================================================================
# Session lifecycle
# =============================================================================


class TestSessionLifecycle:
    @pytest.mark.asyncio
    async def test_create_mounts_on_first_incomplete(self, client):
        data = await _create(client)

        assert data["current_step"] == "core"
        assert [s["key"] for s in data["sequence"]] == [
            "core",
            "safety",
            "swim",
            "signals",
            "review",
        ]
        assert data["phase"] == "viewing"
        assert data["progress_percent"] == 0

    @pytest.mark.asyncio
    async def test_create_with_unknown_hint_falls_back(self, client):
        data = await _create(client, requested_step="academy")
        assert data["current_step"] == "core"

    @pytest.mark.asyncio
    async def test_get_returns_snapshot(self, client):
        created = await _create(client)
        resp = await client.get(f"{_BASE}/{created['id']}")
        assert resp.status_code == 200
        assert resp.json()["data"]["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_unknown_session_is_404(self, client):
        resp = await client.get(f"{_BASE}/nope")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "NOT_FOUND"

    @pytest.mark.asyncio
    async def test_delete_closes_session(self, client):
        created = await _create(client)
        resp = await client.delete(f"{_BASE}/{created['id']}")
        assert resp.status_code == 204
        assert (await client.get(f"{_BASE}/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_member_fetch_failure_is_502(self, client, provider):
        provider.fail_fetches = 1
        resp = await client.post(_BASE)
        assert resp.status_code == 502
        assert resp.json()["error"]["code"] == "ENTITY_FETCH_FAILED"


# =============================================================================
# Forms
# =============================================================================


class TestForms:
    @pytest.mark.asyncio
    async def test_patch_form_updates_state(self, client):
        created = await _create(client)
        resp = await client.patch(
            f"{_BASE}/{created['id']}/forms/core", json={"phone": "+234"}
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["forms"]["core"]["phone"] == "+234"

    @pytest.mark.asyncio
    async def test_patch_unknown_field_is_400(self, client):
        created = await _create(client)
        resp = await client.patch(
            f"{_BASE}/{created['id']}/forms/core", json={"shoe_size": 42}
        )
        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_patch_unknown_section_is_404(self, client):
        created = await _create(client)
        resp = await client.patch(f"{_BASE}/{created['id']}/forms/billing", json={})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_toggle_option(self, client):
        created = await _create(client)
        resp = await client.post(
            f"{_BASE}/{created['id']}/forms/signals/toggle",
            json={"field": "interests", "option": "events"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["forms"]["signals"]["interests"] == ["events"]


# =============================================================================
# Transitions
# =============================================================================


class TestTransitions:
    @pytest.mark.asyncio
    async def test_continue_with_missing_fields_is_400_without_network(
        self, client, provider
    ):
        created = await _create(client)
        resp = await client.post(f"{_BASE}/{created['id']}/continue")

        assert resp.status_code == 400
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert {d["field"] for d in error["details"]} >= {"phone", "profile_photo_media_id"}
        assert provider.update_calls == []

        snapshot = (await client.get(f"{_BASE}/{created['id']}")).json()["data"]
        assert snapshot["current_step"] == "core"
        assert snapshot["phase"] == "blocked"

    @pytest.mark.asyncio
    async def test_continue_saves_and_advances(self, client, provider):
        created = await _create(client)
        sid = created["id"]
        await client.patch(f"{_BASE}/{sid}/forms/core", json=_CORE_ANSWERS)

        resp = await client.post(f"{_BASE}/{sid}/continue")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["current_step"] == "safety"
        assert data["notices"] == [{"level": "success", "message": "Core profile saved"}]
        assert len(provider.update_calls) == 1

    @pytest.mark.asyncio
    async def test_remote_failure_is_a_notice_not_an_error(self, client, provider):
        created = await _create(client)
        sid = created["id"]
        await client.patch(f"{_BASE}/{sid}/forms/core", json=_CORE_ANSWERS)
        provider.fail_updates = 1

        resp = await client.post(f"{_BASE}/{sid}/continue")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["current_step"] == "core"
        assert data["notices"] == [
            {"level": "error", "message": "Failed to save core profile"}
        ]

    @pytest.mark.asyncio
    async def test_back_skip_and_jump(self, client):
        created = await _create(client)
        sid = created["id"]

        resp = await client.post(f"{_BASE}/{sid}/jump", json={"step": "signals"})
        assert resp.json()["data"]["current_step"] == "signals"

        resp = await client.post(f"{_BASE}/{sid}/back")
        assert resp.json()["data"]["current_step"] == "swim"

        resp = await client.post(f"{_BASE}/{sid}/skip")
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"

        await client.post(f"{_BASE}/{sid}/jump", json={"step": "signals"})
        resp = await client.post(f"{_BASE}/{sid}/skip")
        assert resp.json()["data"]["current_step"] == "review"

    @pytest.mark.asyncio
    async def test_jump_outside_sequence_is_422(self, client):
        created = await _create(client)
        resp = await client.post(
            f"{_BASE}/{created['id']}/jump", json={"step": "academy"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_missing_body_field_uses_error_envelope(self, client):
        created = await _create(client)
        resp = await client.post(f"{_BASE}/{created['id']}/jump", json={})
        assert resp.status_code == 400
        assert resp.json()["error"]["message"] == "Request validation failed"


# =============================================================================
# Review and finish
# =============================================================================


class TestReviewAndFinish:
    @pytest.mark.asyncio
    async def test_review_lists_missing_sections(self, client):
        created = await _create(client)
        resp = await client.get(f"{_BASE}/{created['id']}/review")

        assert resp.status_code == 200
        review = resp.json()["data"]
        assert not review["complete"]
        assert [m["key"] for m in review["missing"]] == ["core", "safety", "swim"]
        assert review["first_missing"] == "core"

    @pytest.mark.asyncio
    async def test_finish_incomplete_returns_to_first_missing(self, client):
        created = await _create(client)
        resp = await client.post(f"{_BASE}/{created['id']}/finish")

        data = resp.json()["data"]
        assert data["redirect_href"] is None
        assert data["session"]["current_step"] == "core"
        assert data["session"]["notices"][0]["level"] == "error"

    @pytest.mark.asyncio
    async def test_finish_complete_hands_off_to_activation(self, client, provider):
        provider.replace_member(complete_member_data())
        created = await _create(client)
        assert created["current_step"] == "review"
        assert created["review"]["cta_label"] == "Activate Community Membership"

        resp = await client.post(f"{_BASE}/{created['id']}/finish")

        data = resp.json()["data"]
        assert data["review"]["complete"]
        assert data["redirect_href"] == "/checkout?purpose=community"
        assert data["session"]["completed"]

    @pytest.mark.asyncio
    async def test_club_upgrade_link_targets_club_activation(self, client, provider):
        provider.replace_member(
            complete_member_data(
                membership={"requested_tiers": ["club"]},
                availability={"available_days": ["saturday"]},
            )
        )
        created = await _create(client, requested_step="club")
        assert created["current_step"] == "club"

        resp = await client.post(f"{_BASE}/{created['id']}/finish")

        assert resp.json()["data"]["redirect_href"] == "/upgrade/club/plan"


# =============================================================================
# App
# =============================================================================


class TestApp:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "healthy"}


class TestBearerToken:
    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            (None, None),
            ("Bearer abc", "abc"),
            ("bearer   abc ", "abc"),
            ("Basic dXNlcg==", None),
            ("Bearer ", None),
        ],
    )
    def test_extracts_token(self, header, expected):
        assert get_bearer_token(header) == expected
