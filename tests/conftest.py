"""
Pytest fixtures for the fake target service, the HTTP client and run configs.

The harness talks to an in-memory FastAPI ticket service through
httpx.ASGITransport, so no network or real backend is involved.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
import structlog
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from ticket_harness.core.config import Settings
from ticket_harness.services.run_config import RunConfig, build_run_config
from tests.fake_service import create_ticket_app


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep structlog's default printer out of test output."""
    structlog.reset_defaults()
    structlog.configure(
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )
    yield
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def ticket_app(request) -> FastAPI:
    """Fake ticket service; parametrize indirectly with create_ticket_app kwargs."""
    options = getattr(request, "param", {})
    return create_ticket_app(**options)


@pytest_asyncio.fixture
async def client(ticket_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=ticket_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_settings():
    """Settings isolated from the .env file."""

    def _make(**overrides) -> Settings:
        return Settings(_env_file=None, **{"BASE_URL": "http://test", **overrides})

    return _make


@pytest.fixture
def make_config(make_settings):
    def _make(**overrides) -> RunConfig:
        return build_run_config(make_settings(**overrides))

    return _make
