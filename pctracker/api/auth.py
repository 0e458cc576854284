"""
Sign-in endpoints.

The login screen redirects signed-in users to the board and otherwise
offers a single sign-in action. Sign-in is delegated to the OAuth provider
through the auth API; the callback completes the flow and stores the access
token in a cookie.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, Field

from pctracker.api.dependencies import AccessToken, get_identity_client
from pctracker.config import BOARD_PATH, CALLBACK_PATH, LOGIN_PATH, settings
from pctracker.services.identity import IdentityClient, IdentityError
from pctracker.services.session_gate import SessionGate

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

# PKCE verifier lifetime; the provider round trip must finish within it
VERIFIER_MAX_AGE = 600

Identity = Annotated[IdentityClient, Depends(get_identity_client)]


def _sign_in_pending(request: Request) -> bool:
    """A sign-in is in progress while its PKCE verifier cookie is alive."""
    return settings.verifier_cookie_name in request.cookies


class SignInAction(BaseModel):
    """The single action offered to a signed-out user."""

    method: str = "POST"
    href: str = LOGIN_PATH
    label: str
    disabled: bool = False


class LoginResponse(BaseModel):
    """Login screen for a signed-out user."""

    authenticated: bool = False
    provider: str
    sign_in: SignInAction = Field(..., description="Starts the delegated OAuth flow")


def _redirect(url: str) -> RedirectResponse:
    return RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)


def _abandon_sign_in() -> RedirectResponse:
    """Back to the login screen with the sign-in action enabled again."""
    response = _redirect(LOGIN_PATH)
    response.delete_cookie(settings.verifier_cookie_name)
    return response


@router.get(
    LOGIN_PATH,
    response_model=LoginResponse,
    responses={303: {"description": "Already signed in, redirect to the board"}},
)
async def login_page(
    request: Request,
    identity: Identity,
    access_token: AccessToken,
) -> LoginResponse | RedirectResponse:
    """
    Show the login screen.

    Redirects to the board if the caller is already signed in. The sign-in
    action is disabled while an earlier sign-in is still in progress.
    """
    gate = SessionGate(identity, busy=_sign_in_pending(request))
    target = await gate.resolve(access_token)
    if target is not None:
        return _redirect(target)

    return LoginResponse(
        provider=gate.provider,
        sign_in=SignInAction(
            label=f"Continue with {gate.provider.capitalize()}",
            disabled=gate.busy,
        ),
    )


@router.post(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
async def start_sign_in(request: Request, identity: Identity) -> RedirectResponse:
    """
    Start sign-in with the OAuth provider.

    Redirects to the provider's authorize page, returning to this origin's
    callback afterwards. If sign-in cannot start, or one is already in
    progress, redirects back to the login screen.
    """
    gate = SessionGate(identity, busy=_sign_in_pending(request))
    origin = str(request.base_url).rstrip("/")
    redirect = await gate.sign_in(return_to=f"{origin}{CALLBACK_PATH}")
    if redirect is None:
        return _redirect(LOGIN_PATH)

    response = _redirect(redirect.url)
    response.set_cookie(
        settings.verifier_cookie_name,
        redirect.code_verifier,
        max_age=VERIFIER_MAX_AGE,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    return response


@router.get(CALLBACK_PATH, status_code=status.HTTP_303_SEE_OTHER)
async def auth_callback(
    request: Request,
    identity: Identity,
    code: str | None = None,
) -> RedirectResponse:
    """
    Complete sign-in.

    Exchanges the provider's code for a session, stores the access token and
    redirects to the board. Any failure returns the user to the login screen.
    """
    verifier = request.cookies.get(settings.verifier_cookie_name)
    if not code or not verifier:
        logger.warning("Sign-in callback without code or verifier")
        return _abandon_sign_in()

    try:
        session = await identity.exchange_code_for_session(code, verifier)
    except IdentityError as e:
        logger.warning("Code exchange failed: %s", e)
        return _abandon_sign_in()

    logger.info("User %s signed in", session.user.id)
    response = _redirect(BOARD_PATH)
    response.set_cookie(
        settings.session_cookie_name,
        session.access_token,
        max_age=session.expires_in,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
    )
    response.delete_cookie(settings.verifier_cookie_name)
    return response
