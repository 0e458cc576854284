"""
Shared request dependencies.

Resolves the caller's access token and builds the backend clients bound
to it. Tests override these through ``app.dependency_overrides``.
"""

from typing import Annotated

import httpx
from fastapi import Depends, Request

from pctracker.config import settings
from pctracker.db.rest import RestClient, get_http_client
from pctracker.services.identity import IdentityClient

HttpClient = Annotated[httpx.AsyncClient, Depends(get_http_client)]


def get_access_token(request: Request) -> str | None:
    """
    Read the caller's access token.

    An ``Authorization: Bearer`` header takes precedence over the session
    cookie.
    """
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(settings.session_cookie_name) or None


AccessToken = Annotated[str | None, Depends(get_access_token)]


def get_identity_client(http: HttpClient) -> IdentityClient:
    return IdentityClient(http)


def get_rest_client(http: HttpClient, access_token: AccessToken) -> RestClient:
    return RestClient(http, access_token=access_token)
