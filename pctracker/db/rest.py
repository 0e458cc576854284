"""
PostgREST client.

Thin wrapper over a shared ``httpx.AsyncClient`` that talks to the
Supabase data API (``/rest/v1``). Requests carry the project API key and,
when available, the signed-in user's access token so row-level security
applies to every query.
"""

from typing import Any

import httpx
from fastapi import Request

from pctracker.config import settings


class DataStoreError(Exception):
    """Raised when a data API request fails."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_message(response: httpx.Response) -> str:
    """Extract PostgREST's error message, falling back to the raw body."""
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict):
        return str(body.get("message") or body)
    return str(body)


class RestClient:
    """Table-level access to the data API for one caller."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str | None = None,
        api_key: str | None = None,
        access_token: str | None = None,
    ) -> None:
        self.http = http
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_anon_key
        self.access_token = access_token

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        bearer = self.access_token or self.api_key
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {bearer}",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        """
        Send a request against a table.

        Returns:
            Rows from the response body, or an empty list when the server
            returns no content.

        Raises:
            DataStoreError: If the request fails or the server rejects it
        """
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = await self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise DataStoreError(
                f"{method} {table} failed: HTTP {e.response.status_code}: "
                f"{_error_message(e.response)}",
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise DataStoreError(f"{method} {table} failed: {e}") from e

        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise DataStoreError(
                f"{method} {table} failed: response is not JSON",
                status_code=response.status_code,
            ) from e
        return data if isinstance(data, list) else [data]


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """
    Dependency that provides the application's shared HTTP client.

    The client is opened by the app lifespan and stored on ``app.state``.
    """
    client: httpx.AsyncClient = request.app.state.http
    return client
