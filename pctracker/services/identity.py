"""
Identity service.

Talks to the Supabase auth API (``/auth/v1``): resolves the user behind an
access token, builds the provider-brokered OAuth redirect and completes it
by exchanging the returned code for a session (PKCE flow).
"""

import base64
import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from pctracker.config import settings

logger = logging.getLogger(__name__)


class IdentityError(Exception):
    """Raised when the auth API fails or rejects a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class User:
    """An authenticated user."""

    id: str
    email: str | None = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "User":
        return cls(id=payload["id"], email=payload.get("email"))


@dataclass(frozen=True)
class Session:
    """A validated access token and the user it belongs to."""

    access_token: str
    user: User
    refresh_token: str | None = None
    expires_in: int | None = None


@dataclass(frozen=True)
class OAuthRedirect:
    """Where to send the browser to sign in, plus the PKCE verifier to keep."""

    url: str
    code_verifier: str


def generate_code_verifier() -> str:
    """Random PKCE code verifier (RFC 7636, 43-128 chars)."""
    return secrets.token_urlsafe(64)


def code_challenge(verifier: str) -> str:
    """S256 code challenge for a verifier, base64url without padding."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


class IdentityClient:
    """Client for the auth API."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str | None = None,
        api_key: str | None = None,
    ) -> None:
        self.http = http
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_anon_key

    def _url(self, path: str) -> str:
        return f"{self.base_url}/auth/v1/{path}"

    async def _send(
        self,
        method: str,
        path: str,
        *,
        access_token: str | None = None,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        headers = {"apikey": self.api_key}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        try:
            response = await self.http.request(
                method, self._url(path), headers=headers, params=params, json=json
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IdentityError(
                f"Auth request {path} failed: HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise IdentityError(f"Auth request {path} failed: {e}") from e
        return response

    async def get_current_user(self, access_token: str | None) -> User | None:
        """
        Resolve the user behind an access token.

        Returns None when there is no token or the token is rejected
        (expired, revoked, malformed).

        Raises:
            IdentityError: If the auth API is unreachable or errors
        """
        if not access_token:
            return None

        try:
            response = await self._send("GET", "user", access_token=access_token)
        except IdentityError as e:
            if e.status_code in (401, 403):
                logger.debug("Access token rejected: %s", e)
                return None
            raise

        return User.from_payload(response.json())

    async def get_session(self, access_token: str | None) -> Session | None:
        """Return the session for an access token, or None if not signed in."""
        user = await self.get_current_user(access_token)
        if user is None or access_token is None:
            return None
        return Session(access_token=access_token, user=user)

    async def sign_in_with_oauth(self, provider: str, redirect_to: str) -> OAuthRedirect:
        """
        Prepare a provider-brokered sign-in.

        Checks that the provider is enabled for the project, then builds the
        authorize URL the browser must be redirected to. After login the
        provider sends the browser to ``redirect_to`` with a ``code``
        parameter.

        Raises:
            IdentityError: If the provider is not enabled or the API fails
        """
        response = await self._send("GET", "settings")
        external = response.json().get("external", {})
        if not external.get(provider):
            raise IdentityError(f"OAuth provider '{provider}' is not enabled")

        verifier = generate_code_verifier()
        query = urlencode(
            {
                "provider": provider,
                "redirect_to": redirect_to,
                "code_challenge": code_challenge(verifier),
                "code_challenge_method": "s256",
            }
        )
        return OAuthRedirect(url=f"{self._url('authorize')}?{query}", code_verifier=verifier)

    async def exchange_code_for_session(self, auth_code: str, code_verifier: str) -> Session:
        """
        Complete the OAuth flow.

        Raises:
            IdentityError: If the code or verifier is rejected
        """
        response = await self._send(
            "POST",
            "token",
            params={"grant_type": "pkce"},
            json={"auth_code": auth_code, "code_verifier": code_verifier},
        )
        payload = response.json()
        return Session(
            access_token=payload["access_token"],
            user=User.from_payload(payload["user"]),
            refresh_token=payload.get("refresh_token"),
            expires_in=payload.get("expires_in"),
        )

    async def ping(self) -> None:
        """
        Check that the auth API is reachable.

        Raises:
            IdentityError: If the health endpoint fails
        """
        await self._send("GET", "health")
