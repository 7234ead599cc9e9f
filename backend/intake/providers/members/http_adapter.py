"""HTTP member provider.

Talks to the member API with httpx: GET and PATCH on the current-member
resource, forwarding the caller's bearer token. There is no client timeout
by default; failures surface as rejections and the user retries manually.
"""

from typing import Any

import httpx
import structlog
from pydantic import ValidationError as PydanticValidationError

from intake.core.config import settings
from intake.core.errors import EntityFetchError, PersistenceError
from intake.providers.members.base import MemberProvider
from intake.schemas.member import Member

logger = structlog.get_logger()


class HTTPMemberProvider(MemberProvider):
    """Member provider backed by the remote member API.

    Attributes:
        url: Absolute URL of the current-member resource.
        timeout: Client timeout in seconds, or None for no timeout.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the provider.

        Args:
            token: Bearer token of the signed-in member, forwarded as-is.
            url: Override for the member resource URL. Defaults to settings.
            timeout: Override for the client timeout. Defaults to settings.
            transport: Optional httpx transport (tests use MockTransport).
        """
        self.url = url or settings.members_api_url
        self.timeout = timeout if timeout is not None else settings.members_api_timeout
        self._token = token
        self._transport = transport

    @property
    def provider_name(self) -> str:
        """Return 'http'."""
        return "http"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self.timeout)

    async def get_member(self) -> Member:
        """Fetch the current member.

        Raises:
            EntityFetchError: On any HTTP failure or an unparseable body.
        """
        try:
            async with self._client() as client:
                resp = await client.get(self.url, headers=self._headers())
                resp.raise_for_status()
                payload = resp.json()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("member_fetch_failed", error=type(exc).__name__)
            raise EntityFetchError() from exc
        except ValueError as exc:
            logger.warning("member_fetch_unparseable")
            raise EntityFetchError() from exc

        try:
            return Member.model_validate(payload)
        except PydanticValidationError as exc:
            logger.warning("member_fetch_invalid", errors=exc.error_count())
            raise EntityFetchError() from exc

    async def update_member(self, data: dict[str, Any]) -> Member | None:
        """PATCH the current member with one section's sub-records.

        Raises:
            PersistenceError: On any HTTP failure.
        """
        try:
            async with self._client() as client:
                resp = await client.patch(
                    self.url, json=data, headers=self._headers()
                )
                resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning(
                "member_update_failed",
                error=type(exc).__name__,
                sections=sorted(data),
            )
            raise PersistenceError() from exc

        if not resp.content:
            return None
        try:
            return Member.model_validate(resp.json())
        except (ValueError, PydanticValidationError):
            # Body is advisory; the caller re-fetches the entity anyway
            logger.info("member_update_unparsed_body")
            return None
