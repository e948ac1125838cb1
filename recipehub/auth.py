"""Bearer-token verification against the hosted auth service.

The service owns users and tokens; this module only asks it who a token
belongs to (``GET /auth/v1/user``) and wraps the answer in an ``Identity``.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

from .errors import AuthError, UpstreamError

logger = logging.getLogger("recipehub.auth")

BEARER_PREFIX = "Bearer "


@dataclass(frozen=True)
class Identity:
    """A verified caller."""
    id: str
    claims: dict[str, Any] = field(default_factory=dict)
    token: Optional[str] = None


def parse_bearer(header: Optional[str]) -> Optional[str]:
    """Return the token from an ``Authorization: Bearer <token>`` header, or None."""
    if not header or not header.startswith(BEARER_PREFIX):
        return None
    token = header[len(BEARER_PREFIX):].strip()
    return token or None


class AuthClient:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        # One pooled client for the life of the app; closed by aclose()
        self._client = httpx.AsyncClient(
            base_url=self.base_url, timeout=timeout, transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_user(self, token: str) -> Identity:
        """Resolve a bearer token to an Identity.

        Raises:
            AuthError: the service rejected the token
            UpstreamError: the service could not be reached or answered unexpectedly
        """
        headers = {
            "apikey": self.api_key,
            "Authorization": f"{BEARER_PREFIX}{token}",
        }
        try:
            response = await self._client.get("/auth/v1/user", headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Auth service request failed: {e}")
            raise UpstreamError("Authentication error", detail=str(e)) from e

        if response.status_code in (401, 403):
            raise AuthError("Token is invalid or expired")
        if response.status_code != 200:
            logger.error(f"Auth service answered {response.status_code}")
            raise UpstreamError("Authentication error", detail=f"auth service status {response.status_code}")

        try:
            user = response.json()
        except ValueError as e:
            raise UpstreamError("Authentication error", detail="auth service returned invalid JSON") from e

        user_id = user.get("id") if isinstance(user, dict) else None
        if not user_id:
            raise AuthError("Token is invalid or expired")

        claims = {
            "sub": str(user_id),
            "role": user.get("role") or "authenticated",
            "email": user.get("email"),
        }
        return Identity(id=str(user_id), claims=claims, token=token)
