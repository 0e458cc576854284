"""Tests for the identity service and session gate."""

import json
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import respx

from pctracker.services.identity import (
    IdentityClient,
    IdentityError,
    OAuthRedirect,
    User,
    code_challenge,
    generate_code_verifier,
)
from pctracker.services.session_gate import SessionGate
from tests.conftest import ACCESS_TOKEN, ANON_KEY, SUPABASE_URL, USER_ID

USER_PAYLOAD = {"id": USER_ID, "email": "fan@example.com", "aud": "authenticated"}
SETTINGS_PAYLOAD = {"external": {"google": True, "github": False}}


class TestPkce:
    def test_verifier_length(self) -> None:
        verifier = generate_code_verifier()
        assert 43 <= len(verifier) <= 128

    def test_challenge_is_unpadded_base64url_sha256(self) -> None:
        challenge = code_challenge("verifier")

        assert len(challenge) == 43
        assert "=" not in challenge
        assert "+" not in challenge and "/" not in challenge

    def test_challenge_is_deterministic(self) -> None:
        assert code_challenge("abc") == code_challenge("abc")
        assert code_challenge("abc") != code_challenge("abd")


class TestGetCurrentUser:
    async def test_no_token_means_no_user(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        route = supabase.get("/auth/v1/user")

        assert await identity.get_current_user(None) is None
        assert not route.called

    async def test_valid_token(self, identity: IdentityClient, supabase: respx.MockRouter) -> None:
        route = supabase.get("/auth/v1/user").mock(
            return_value=httpx.Response(200, json=USER_PAYLOAD)
        )

        user = await identity.get_current_user(ACCESS_TOKEN)

        assert user == User(id=USER_ID, email="fan@example.com")
        request = route.calls.last.request
        assert request.headers["Authorization"] == f"Bearer {ACCESS_TOKEN}"
        assert request.headers["apikey"] == ANON_KEY

    async def test_rejected_token_means_no_user(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/user").mock(return_value=httpx.Response(401))

        assert await identity.get_current_user("expired") is None

    async def test_server_error_raises(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/user").mock(return_value=httpx.Response(502))

        with pytest.raises(IdentityError) as excinfo:
            await identity.get_current_user(ACCESS_TOKEN)

        assert excinfo.value.status_code == 502

    async def test_get_session(self, identity: IdentityClient, supabase: respx.MockRouter) -> None:
        supabase.get("/auth/v1/user").mock(return_value=httpx.Response(200, json=USER_PAYLOAD))

        session = await identity.get_session(ACCESS_TOKEN)

        assert session is not None
        assert session.access_token == ACCESS_TOKEN
        assert session.user.id == USER_ID


class TestSignInWithOAuth:
    async def test_builds_authorize_url(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/settings").mock(
            return_value=httpx.Response(200, json=SETTINGS_PAYLOAD)
        )

        redirect = await identity.sign_in_with_oauth(
            "google", redirect_to="https://pcs.example.com/auth/callback"
        )

        url = urlparse(redirect.url)
        query = parse_qs(url.query)
        assert f"{url.scheme}://{url.netloc}" == SUPABASE_URL
        assert url.path == "/auth/v1/authorize"
        assert query["provider"] == ["google"]
        assert query["redirect_to"] == ["https://pcs.example.com/auth/callback"]
        assert query["code_challenge"] == [code_challenge(redirect.code_verifier)]
        assert query["code_challenge_method"] == ["s256"]

    async def test_disabled_provider_raises(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/settings").mock(
            return_value=httpx.Response(200, json=SETTINGS_PAYLOAD)
        )

        with pytest.raises(IdentityError, match="not enabled"):
            await identity.sign_in_with_oauth("github", redirect_to="https://pcs.example.com")


class TestExchangeCode:
    async def test_exchanges_code_for_session(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        route = supabase.post("/auth/v1/token").mock(
            return_value=httpx.Response(
                200,
                json={
                    "access_token": "new-token",
                    "refresh_token": "refresh",
                    "expires_in": 3600,
                    "user": USER_PAYLOAD,
                },
            )
        )

        session = await identity.exchange_code_for_session("auth-code", "verifier")

        assert session.access_token == "new-token"
        assert session.expires_in == 3600
        assert session.user.id == USER_ID
        request = route.calls.last.request
        assert request.url.params["grant_type"] == "pkce"
        assert json.loads(request.content) == {
            "auth_code": "auth-code",
            "code_verifier": "verifier",
        }

    async def test_rejected_code_raises(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.post("/auth/v1/token").mock(return_value=httpx.Response(400))

        with pytest.raises(IdentityError):
            await identity.exchange_code_for_session("bad-code", "verifier")


class TestSessionGate:
    async def test_signed_in_user_is_redirected(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/user").mock(return_value=httpx.Response(200, json=USER_PAYLOAD))
        gate = SessionGate(identity)

        assert await gate.resolve(ACCESS_TOKEN) == "/board"

    async def test_redirect_is_idempotent(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        """Revisiting the gate while signed in keeps redirecting."""
        supabase.get("/auth/v1/user").mock(return_value=httpx.Response(200, json=USER_PAYLOAD))
        gate = SessionGate(identity)

        assert await gate.resolve(ACCESS_TOKEN) == await gate.resolve(ACCESS_TOKEN) == "/board"

    async def test_signed_out_user_stays(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        gate = SessionGate(identity)

        assert await gate.resolve(None) is None

    async def test_auth_outage_counts_as_signed_out(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/user").mock(side_effect=httpx.ConnectError("down"))
        gate = SessionGate(identity)

        assert await gate.resolve(ACCESS_TOKEN) is None

    async def test_sign_in_returns_redirect_and_reenables(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/settings").mock(
            return_value=httpx.Response(200, json=SETTINGS_PAYLOAD)
        )
        gate = SessionGate(identity, provider="google")

        redirect = await gate.sign_in("https://pcs.example.com/auth/callback")

        assert isinstance(redirect, OAuthRedirect)
        assert gate.busy is False

    async def test_failed_sign_in_leaves_gate_idle(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        supabase.get("/auth/v1/settings").mock(return_value=httpx.Response(500))
        gate = SessionGate(identity, provider="google")

        assert await gate.sign_in("https://pcs.example.com/auth/callback") is None
        assert gate.busy is False

    async def test_sign_in_ignored_while_busy(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        """A second sign-in during a pending one does nothing."""
        route = supabase.get("/auth/v1/settings").mock(
            return_value=httpx.Response(200, json=SETTINGS_PAYLOAD)
        )
        gate = SessionGate(identity, provider="google")
        gate.busy = True

        assert await gate.sign_in("https://pcs.example.com/auth/callback") is None
        assert not route.called
        assert gate.busy is True

    async def test_pending_sign_in_restores_busy_gate(
        self, identity: IdentityClient, supabase: respx.MockRouter
    ) -> None:
        route = supabase.get("/auth/v1/settings")
        gate = SessionGate(identity, busy=True)

        assert await gate.sign_in("https://pcs.example.com/auth/callback") is None
        assert not route.called
