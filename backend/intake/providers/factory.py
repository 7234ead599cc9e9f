"""Member provider factory.

Requests carry the member's own bearer token, so the HTTP provider is built
per call. A provider installed with set_member_provider() replaces it for
every caller (local development against the mock, tests).
"""

from intake.providers.members.base import MemberProvider
from intake.providers.members.http_adapter import HTTPMemberProvider

_member_provider: MemberProvider | None = None


def get_member_provider(token: str | None = None) -> MemberProvider:
    """Get the member provider for a request.

    Args:
        token: Bearer token of the signed-in member.

    Returns:
        The installed provider if any, else an HTTPMemberProvider for the token.
    """
    if _member_provider is not None:
        return _member_provider
    return HTTPMemberProvider(token)


def set_member_provider(provider: MemberProvider) -> None:
    """Install a provider used for every request."""
    global _member_provider
    _member_provider = provider


def reset_member_provider() -> None:
    """Reset the installed provider.

    Used in tests to ensure isolation between test cases.
    """
    global _member_provider
    _member_provider = None
