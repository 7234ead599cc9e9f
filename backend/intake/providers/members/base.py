"""Abstract base class for member providers.

A member provider is the intake flow's only view of the remote member
entity: one read of the current member and one partial update. The flow
never keeps a parallel record of completed sections; everything it knows
about completion comes back through get_member().
"""

from abc import ABC, abstractmethod
from typing import Any

from intake.schemas.member import Member


class MemberProvider(ABC):
    """Read and partially update the current member entity.

    Implementations must convert transport failures into the intake error
    taxonomy: EntityFetchError for reads, PersistenceError for updates.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Short name for logging (e.g., "http", "mock")."""

    @abstractmethod
    async def get_member(self) -> Member:
        """Fetch the current member entity.

        Returns:
            Member with its nested sub-records.

        Raises:
            EntityFetchError: If the entity cannot be read or parsed.
        """

    @abstractmethod
    async def update_member(self, data: dict[str, Any]) -> Member | None:
        """Apply a partial update to the current member.

        The server merges nested sub-records, so sending the same body twice
        is safe.

        Args:
            data: PATCH body holding only the sub-records being changed.

        Returns:
            The updated member when the server echoes it, else None.

        Raises:
            PersistenceError: If the update is rejected or the call fails.
        """
