from collections.abc import AsyncGenerator, Iterator
from typing import Any

import httpx
import pytest
import respx
from httpx import ASGITransport, AsyncClient

from pctracker.config import settings
from pctracker.db.rest import RestClient, get_http_client
from pctracker.main import app
from pctracker.services.identity import IdentityClient, Session, User

SUPABASE_URL = settings.supabase_url.rstrip("/")
ANON_KEY = "test-anon-key"
ACCESS_TOKEN = "user-access-token"
USER_ID = "user-123"


@pytest.fixture
async def http() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Plain HTTP client; requests are intercepted by the ``supabase`` mock."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture
def supabase() -> Iterator[respx.MockRouter]:
    """Mock of the Supabase auth and data APIs."""
    with respx.mock(base_url=SUPABASE_URL, assert_all_called=False) as mock:
        yield mock


@pytest.fixture
async def client(http: httpx.AsyncClient) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async test client wired to the mocked backend."""
    app.dependency_overrides[get_http_client] = lambda: http

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def rest(http: httpx.AsyncClient) -> RestClient:
    return RestClient(http, base_url=SUPABASE_URL, api_key=ANON_KEY, access_token=ACCESS_TOKEN)


@pytest.fixture
def identity(http: httpx.AsyncClient) -> IdentityClient:
    return IdentityClient(http, base_url=SUPABASE_URL, api_key=ANON_KEY)


@pytest.fixture
def session() -> Session:
    return Session(access_token=ACCESS_TOKEN, user=User(id=USER_ID, email="fan@example.com"))


@pytest.fixture
def catalog_rows() -> list[dict[str, Any]]:
    """Sample ``photocards`` rows, already in display order."""
    return [
        {
            "id": 1,
            "member": "Leo",
            "era": "Euphoria",
            "type": "Album",
            "image_url": "https://cdn.example.com/leo-1.jpg",
            "pc_name": "Leo Euphoria A",
            "order": 1,
        },
        {
            "id": 2,
            "member": "Arno",
            "era": "Euphoria",
            "type": "POB",
            "image_url": None,
            "pc_name": None,
            "order": 2,
        },
        {
            "id": 3,
            "member": "Leo",
            "era": "b2p",
            "type": "Merch",
            "image_url": None,
            "pc_name": "Leo B2P Merch",
            "order": 3,
        },
        {
            "id": 4,
            "member": "Units",
            "era": None,
            "type": None,
            "image_url": None,
            "pc_name": None,
            "order": 4,
        },
    ]
