"""Mock member provider for testing and local development.

Keeps the member entity in memory and applies PATCH bodies with the same
nested-merge semantics as the member API.
"""

import copy
from typing import Any

from intake.core.errors import EntityFetchError, PersistenceError
from intake.providers.members.base import MemberProvider
from intake.schemas.member import Member


def deep_merge(base: dict[str, Any], patch: dict[str, Any]) -> dict[str, Any]:
    """Merge a PATCH body into an entity dict.

    Nested dicts merge key by key; every other value (lists included)
    replaces the stored one.
    """
    merged = dict(base)
    for key, value in patch.items():
        current = merged.get(key)
        if isinstance(value, dict) and isinstance(current, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class MockMemberProvider(MemberProvider):
    """In-memory member provider.

    Attributes:
        calls: Record of all method invocations for test assertions.
        fail_fetches: Number of upcoming get_member calls that will fail.
        fail_updates: Number of upcoming update_member calls that will fail.
    """

    def __init__(self, member: Member | dict[str, Any] | None = None) -> None:
        """Initialize with an optional starting entity.

        Args:
            member: Starting entity. Defaults to a bare member with an id.
        """
        if member is None:
            member = {"id": "mock-member", "email": "member@example.com"}
        if isinstance(member, Member):
            member = member.model_dump(exclude_none=True)
        self._entity: dict[str, Any] = copy.deepcopy(member)
        self.calls: list[dict[str, Any]] = []
        self.fail_fetches = 0
        self.fail_updates = 0

    @property
    def provider_name(self) -> str:
        """Return 'mock' for testing."""
        return "mock"

    @property
    def member(self) -> Member:
        """Current stored entity."""
        return Member.model_validate(self._entity)

    def replace_member(self, member: Member | dict[str, Any]) -> None:
        """Swap the stored entity, as if edited through another path."""
        if isinstance(member, Member):
            member = member.model_dump(exclude_none=True)
        self._entity = copy.deepcopy(member)

    @property
    def update_calls(self) -> list[dict[str, Any]]:
        """PATCH bodies received, in order."""
        return [c["data"] for c in self.calls if c["method"] == "update_member"]

    async def get_member(self) -> Member:
        """Return the stored entity.

        Raises:
            EntityFetchError: While fail_fetches is positive.
        """
        self.calls.append({"method": "get_member"})
        if self.fail_fetches > 0:
            self.fail_fetches -= 1
            raise EntityFetchError()
        return self.member

    async def update_member(self, data: dict[str, Any]) -> Member | None:
        """Merge the PATCH body into the stored entity.

        Raises:
            PersistenceError: While fail_updates is positive.
        """
        self.calls.append({"method": "update_member", "data": copy.deepcopy(data)})
        if self.fail_updates > 0:
            self.fail_updates -= 1
            raise PersistenceError()
        self._entity = deep_merge(self._entity, data)
        return self.member
