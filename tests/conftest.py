"""Pytest configuration and fixtures."""

import pytest
import pytest_asyncio

from fakes import FakeBackend, make_client


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def client(backend):
    """Client with the session list loaded and s1 active."""
    c = make_client(backend)
    await c.refresh_sessions()
    await c.switch_session("s1")
    yield c
    await c.close()
