"""Shared fixtures and member builders for intake tests."""

import copy
from collections.abc import AsyncGenerator, Iterator
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from intake.providers import factory
from intake.providers.members.mock_adapter import MockMemberProvider
from intake.schemas.member import Member
from intake.services.draft_store import (
    DraftStore,
    MemoryDraftBackend,
    reset_draft_store,
)
from intake.services.session_registry import reset_session_registry

TEST_MEMBER_ID = "member-0001"
TEST_MEMBER_EMAIL = "ada@example.com"
TEST_MEDIA_ID = "media-42"


# =============================================================================
# Member builders
# =============================================================================


def bare_member_data(**overrides: Any) -> dict[str, Any]:
    """A freshly registered member: identity only, nothing collected yet."""
    data: dict[str, Any] = {
        "id": TEST_MEMBER_ID,
        "email": TEST_MEMBER_EMAIL,
        "first_name": "Ada",
        "last_name": "Obi",
    }
    data.update(overrides)
    return data


def complete_member_data(**overrides: Any) -> dict[str, Any]:
    """A member whose entity satisfies core, safety, swim and signals."""
    data: dict[str, Any] = {
        "id": TEST_MEMBER_ID,
        "email": TEST_MEMBER_EMAIL,
        "first_name": "Ada",
        "last_name": "Obi",
        "profile_photo_url": "https://cdn.example.com/ada.jpg",
        "profile_photo_media_id": TEST_MEDIA_ID,
        "profile": {
            "phone": "+2348012345678",
            "area_in_lagos": "Yaba",
            "city": "Lagos",
            "state": "Lagos",
            "country": "Nigeria",
            "time_zone": "Africa/Lagos",
            "gender": "female",
            "date_of_birth": "1990-04-12",
            "swim_level": "beginner",
            "deep_water_comfort": "uncomfortable",
            "strokes": ["freestyle"],
            "interests": ["social swims"],
            "personal_goals": "Swim confidently; Learn freestyle",
        },
        "emergency_contact": {
            "name": "Chidi Obi",
            "contact_relationship": "brother",
            "phone": "+2348098765432",
        },
        "availability": {
            "preferred_locations": ["Yaba"],
            "preferred_times": ["mornings"],
        },
        "membership": {
            "primary_tier": "community",
            "active_tiers": ["community"],
            "requested_tiers": [],
        },
        "preferences": {"volunteer_interest": []},
    }
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(data.get(key), dict):
            data[key] = {**data[key], **value}
        else:
            data[key] = value
    return copy.deepcopy(data)


def make_member(data: dict[str, Any]) -> Member:
    return Member.model_validate(data)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_singletons() -> Iterator[None]:
    """Isolate module-level singletons between tests."""
    yield
    factory.reset_member_provider()
    reset_session_registry()
    reset_draft_store()


@pytest.fixture
def drafts() -> DraftStore:
    """In-memory draft store."""
    return DraftStore(MemoryDraftBackend(), namespace="test")


@pytest.fixture
def provider() -> MockMemberProvider:
    """Mock member API holding a bare member."""
    return MockMemberProvider(bare_member_data())


@pytest_asyncio.fixture
async def client(
    provider: MockMemberProvider,
    drafts: DraftStore,
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the app with the mock member API and memory drafts."""
    from intake.api.deps import get_drafts, get_member_provider_dep
    from intake.main import create_app

    app = create_app()
    app.dependency_overrides[get_member_provider_dep] = lambda: provider
    app.dependency_overrides[get_drafts] = lambda: drafts

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
