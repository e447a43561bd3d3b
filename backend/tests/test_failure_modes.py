"""
Failure Injection Tests.

Validates retry, request deadlines and the error envelope for unexpected
failures.
"""

import asyncio

import pytest
from unittest.mock import AsyncMock
from fastapi import FastAPI
from httpx import AsyncClient, ASGITransport
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from backend.app.main import app
from backend.app.core.config import Settings
from backend.app.core.reliability import run_with_retry, TimeoutMiddleware


def _integrity_error():
    return IntegrityError("INSERT INTO shipments", {}, Exception("UNIQUE constraint failed"))


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failure(mocker):
    sleep = mocker.patch("backend.app.core.reliability.asyncio.sleep", new=AsyncMock())
    operation = AsyncMock(side_effect=[_integrity_error(), "ok"])
    rollback = AsyncMock()

    result = await run_with_retry(operation, rollback=rollback, attempts=3, backoff_base=0.1)

    assert result == "ok"
    assert operation.await_count == 2
    assert rollback.await_count == 1
    sleep.assert_awaited_once_with(0.1)


@pytest.mark.asyncio
async def test_retry_backoff_doubles_and_reraises(mocker):
    sleep = mocker.patch("backend.app.core.reliability.asyncio.sleep", new=AsyncMock())
    operation = AsyncMock(side_effect=_integrity_error())
    rollback = AsyncMock()

    with pytest.raises(IntegrityError):
        await run_with_retry(operation, rollback=rollback, attempts=3, backoff_base=0.1)

    assert operation.await_count == 3
    assert rollback.await_count == 3
    assert [c.args[0] for c in sleep.await_args_list] == [0.1, 0.2]


@pytest.mark.asyncio
async def test_retry_ignores_other_errors():
    operation = AsyncMock(side_effect=ValueError("bad input"))

    with pytest.raises(ValueError):
        await run_with_retry(operation, attempts=3)

    assert operation.await_count == 1


@pytest.mark.asyncio
async def test_retry_stops_when_filter_rejects(mocker):
    sleep = mocker.patch("backend.app.core.reliability.asyncio.sleep", new=AsyncMock())
    operation = AsyncMock(side_effect=_integrity_error())
    rollback = AsyncMock()

    with pytest.raises(IntegrityError):
        await run_with_retry(operation, rollback=rollback, attempts=3, should_retry=lambda exc: False)

    assert operation.await_count == 1
    assert rollback.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("attempts", [0, -1])
async def test_retry_requires_at_least_one_attempt(attempts):
    operation = AsyncMock(return_value="ok")

    with pytest.raises(ValueError):
        await run_with_retry(operation, attempts=attempts)

    operation.assert_not_awaited()


@pytest.mark.parametrize("overrides", [
    {"reference_retry_attempts": 0},
    {"reference_retry_backoff_seconds": -0.5},
])
def test_settings_reject_invalid_retry_budget(overrides):
    with pytest.raises(ValidationError):
        Settings(**overrides)


@pytest.mark.asyncio
async def test_timeout_middleware_returns_retryable_503():
    slow_app = FastAPI()
    slow_app.add_middleware(TimeoutMiddleware, timeout_seconds=0.05)

    @slow_app.get("/slow")
    async def slow():
        await asyncio.sleep(1)
        return {"done": True}

    @slow_app.get("/fast")
    async def fast():
        return {"done": True}

    async with AsyncClient(transport=ASGITransport(app=slow_app), base_url="http://test") as ac:
        slow_response = await ac.get("/slow")
        fast_response = await ac.get("/fast")

    assert slow_response.status_code == 503
    assert slow_response.headers["Retry-After"] == "1"
    assert slow_response.json()["error_code"] == "ERR_TIMEOUT"
    assert fast_response.status_code == 200


@pytest.mark.asyncio
async def test_unexpected_error_uses_standard_envelope(operator_headers, mocker):
    mocker.patch(
        "backend.app.services.shipments.list_shipments",
        new=AsyncMock(side_effect=RuntimeError("database exploded"))
    )

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/api/shipments", headers=operator_headers)

    assert response.status_code == 500
    assert response.json() == {
        "error_code": "ERR_INTERNAL_SERVER",
        "message": "An internal server error occurred",
        "details": {},
    }
    assert "database exploded" not in response.text


@pytest.mark.asyncio
async def test_responses_carry_correlation_id(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "abc-123"})
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
    assert response.headers["X-Correlation-ID"] == "abc-123"
    assert "X-Process-Time" in response.headers
