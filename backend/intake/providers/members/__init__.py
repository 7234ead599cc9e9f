"""Member provider module: interface and adapters."""

from intake.providers.members.base import MemberProvider
from intake.providers.members.http_adapter import HTTPMemberProvider
from intake.providers.members.mock_adapter import MockMemberProvider, deep_merge

__all__ = [
    "HTTPMemberProvider",
    "MemberProvider",
    "MockMemberProvider",
    "deep_merge",
]
