"""Membership context resolution.

Derives which optional programs a member has requested or been approved
for. Pure and synchronous; recomputed from every fresh entity, never
cached across refreshes, because a member requesting a program later must
bring the matching sections back into the sequence.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from intake.flow.state import ProgramId
from intake.schemas.member import Member


@dataclass(frozen=True)
class MembershipContext:
    """Program flags derived from the member entity.

    Attributes:
        approved_programs: Lower-cased program ids the member is approved
            for. Falls back to the primary tier, then to community.
        requested_programs: Lower-cased program ids the member asked for.
        community_active: True while community membership is paid up.
    """

    approved_programs: frozenset[str]
    requested_programs: frozenset[str]
    community_active: bool = False

    @property
    def wants_academy(self) -> bool:
        """Member requested the academy program."""
        return ProgramId.ACADEMY.value in self.requested_programs

    @property
    def wants_club(self) -> bool:
        """Member requested club, directly or through academy."""
        return ProgramId.CLUB.value in self.requested_programs or self.wants_academy

    @property
    def club_context(self) -> bool:
        """Club readiness applies: wanted, or club/academy already approved."""
        return (
            self.wants_club
            or ProgramId.CLUB.value in self.approved_programs
            or ProgramId.ACADEMY.value in self.approved_programs
        )

    @property
    def academy_context(self) -> bool:
        """Academy readiness applies: wanted, or academy already approved."""
        return self.wants_academy or ProgramId.ACADEMY.value in self.approved_programs


def _normalize(tiers: list[str] | None) -> list[str]:
    return [str(t).lower() for t in tiers or [] if t]


def _parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO timestamp from the API; None when absent or malformed."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def resolve_context(member: Member, *, now: datetime | None = None) -> MembershipContext:
    """Derive the membership context from the current member entity.

    Args:
        member: Freshly fetched member entity.
        now: Reference time for paid-until checks. Defaults to current UTC.

    Returns:
        MembershipContext for this entity snapshot.
    """
    membership = member.membership
    active = _normalize(membership.active_tiers if membership else None)
    if active:
        approved = active
    elif membership and membership.primary_tier:
        approved = _normalize([membership.primary_tier])
    else:
        approved = [ProgramId.COMMUNITY.value]

    requested = _normalize(membership.requested_tiers if membership else None)

    paid_until = _parse_timestamp(
        membership.community_paid_until if membership else None
    )
    reference = now or datetime.now(UTC)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=UTC)
    community_active = paid_until is not None and paid_until > reference

    return MembershipContext(
        approved_programs=frozenset(approved),
        requested_programs=frozenset(requested),
        community_active=community_active,
    )
