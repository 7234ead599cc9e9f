"""Pydantic schemas for the member entity and API payloads."""

from intake.schemas.member import (
    Member,
    MemberAvailability,
    MemberEmergencyContact,
    MemberMembership,
    MemberPreferences,
    MemberProfile,
)

__all__ = [
    "Member",
    "MemberAvailability",
    "MemberEmergencyContact",
    "MemberMembership",
    "MemberPreferences",
    "MemberProfile",
]
