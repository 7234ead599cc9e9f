"""Shared dependencies for API endpoints.

The member provider is resolved per request from the Authorization header
and forwarded to the member API as-is; this service does not validate the
token itself. Tests override get_member_provider_dep to inject a mock.
"""

from typing import Annotated

from fastapi import Depends, Header

from intake.providers.factory import get_member_provider
from intake.providers.members.base import MemberProvider
from intake.services.draft_store import DraftStore, get_draft_store
from intake.services.intake_session import IntakeSession
from intake.services.session_registry import SessionRegistry, get_session_registry

_BEARER_PREFIX = "bearer "


def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Extract the bearer token from the Authorization header, if any."""
    if not authorization:
        return None
    if authorization.lower().startswith(_BEARER_PREFIX):
        token = authorization[len(_BEARER_PREFIX) :].strip()
        return token or None
    return None


def get_member_provider_dep(
    token: Annotated[str | None, Depends(get_bearer_token)],
) -> MemberProvider:
    """Member provider for the calling member."""
    return get_member_provider(token)


def get_registry() -> SessionRegistry:
    return get_session_registry()


def get_drafts() -> DraftStore:
    return get_draft_store()


Provider = Annotated[MemberProvider, Depends(get_member_provider_dep)]
Registry = Annotated[SessionRegistry, Depends(get_registry)]
Drafts = Annotated[DraftStore, Depends(get_drafts)]


def get_session(session_id: str, registry: Registry) -> IntakeSession:
    """Resolve a live session from the path.

    Raises:
        NotFoundError: If the session is unknown or expired.
    """
    return registry.get(session_id)


Session = Annotated[IntakeSession, Depends(get_session)]
