"""
Regression tests for issues found during code review.

1. Patch dates must be parsed with the same MM-YYYY parser as create
   (the update path once used a different, broken layout)
2. A record that cannot be read back after create must surface as 500,
   not be reported as a missing resource
3. Storage failures return 500 and are not retried
4. A stalled storage call is cut off by the request deadline (504)
5. CORS must not set allow_credentials=true with allow_origins=*
6. X-Query-Count must reflect statements run inside SQLAlchemy's greenlet
   bridge, where a ContextVar.set from the engine listener is not seen
"""
import asyncio
import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient
from sqlalchemy import text

from subtracker.config import settings
from subtracker.dependencies import get_subscription_repository
from subtracker.exceptions import StorageError
from subtracker.main import app
from subtracker.middleware import QueryCounter, current_query_count, query_counter_var
from subtracker.repositories.base import SubscriptionRepository

BASE = "/api/v1/subscriptions"


@pytest.fixture
def mock_repository():
    """Route every request to an AsyncMock repository for the test's duration."""
    repo = AsyncMock(spec=SubscriptionRepository)
    app.dependency_overrides[get_subscription_repository] = lambda: repo
    yield repo
    app.dependency_overrides.pop(get_subscription_repository, None)


def _payload(**overrides) -> dict:
    payload = {
        "service_name": "Yandex Plus",
        "price": 400,
        "user_id": str(uuid.uuid4()),
        "start_date": "07-2025",
    }
    payload.update(overrides)
    return payload


# ---------------------------------------------------------------------------
# 1. One date parser on every path
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_accepts_month_year_tokens(async_client: AsyncClient):
    created = (await async_client.post(BASE, json=_payload(end_date="12-2025"))).json()
    resp = await async_client.put(f"{BASE}/{created['id']}", json={
        "start_date": "09-2025",
        "end_date": "11-2025",
    })
    assert resp.status_code == 200
    assert resp.json()["start_date"] == "09-2025"
    assert resp.json()["end_date"] == "11-2025"


@pytest.mark.asyncio
async def test_update_rejects_literal_layout_token(async_client: AsyncClient):
    created = (await async_client.post(BASE, json=_payload())).json()
    resp = await async_client.put(f"{BASE}/{created['id']}", json={"start_date": "01-YYYY"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "start_date"


# ---------------------------------------------------------------------------
# 2. Create re-read miss
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_reread_miss_is_server_error(async_client: AsyncClient, mock_repository):
    mock_repository.get.return_value = None
    resp = await async_client.post(BASE, json=_payload())
    assert resp.status_code == 500
    assert resp.json() == {"error": "subscription could not be read back after create"}
    mock_repository.create.assert_awaited_once()


# ---------------------------------------------------------------------------
# 3. Storage failures
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_storage_error_returns_500(async_client: AsyncClient, mock_repository):
    mock_repository.list.side_effect = StorageError("list failed: OperationalError")
    resp = await async_client.get(BASE)
    assert resp.status_code == 500
    assert resp.json() == {"error": "internal storage error"}
    assert mock_repository.list.await_count == 1


# ---------------------------------------------------------------------------
# 4. Request deadline
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_stalled_storage_hits_deadline(async_client: AsyncClient, mock_repository, monkeypatch):
    async def stall(query):
        await asyncio.sleep(3600)

    mock_repository.summarize.side_effect = stall
    monkeypatch.setattr(settings, "REQUEST_TIMEOUT_SECONDS", 0.05)

    resp = await async_client.post(f"{BASE}/summary", json={
        "start_date": "01-2025",
        "end_date": "12-2025",
    })
    assert resp.status_code == 504


# ---------------------------------------------------------------------------
# 5. CORS headers
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_cors_no_credentials_with_wildcard_origin(async_client: AsyncClient):
    """
    When allow_origins=["*"], the response must NOT include
    Access-Control-Allow-Credentials: true; browsers reject that combination.
    """
    resp = await async_client.options(
        BASE,
        headers={
            "Origin": "https://example.com",
            "Access-Control-Request-Method": "GET",
        },
    )
    cred_header = resp.headers.get("access-control-allow-credentials", "").lower()
    assert cred_header != "true", (
        "CORS must not combine allow_origins=* with allow_credentials=true"
    )


# ---------------------------------------------------------------------------
# 6. Query counter
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_query_count_header_counts_statements(async_client: AsyncClient):
    await async_client.post(BASE, json=_payload())
    resp = await async_client.get(BASE)
    assert resp.status_code == 200
    assert int(resp.headers["x-query-count"]) >= 1


@pytest.mark.asyncio
async def test_query_count_header_zero_without_database(async_client: AsyncClient):
    resp = await async_client.get("/health")
    assert resp.headers["x-query-count"] == "0"


@pytest.mark.asyncio
async def test_engine_listener_increments_request_counter(db_session):
    token = query_counter_var.set(QueryCounter())
    try:
        await db_session.execute(text("SELECT 1"))
        await db_session.execute(text("SELECT 1"))
        assert current_query_count() == 2
    finally:
        query_counter_var.reset(token)
