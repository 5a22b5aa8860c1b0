"""Shared fixtures for API tests."""

from __future__ import annotations

import httpx
import pytest

from rut.api.app import app
from rut.services.navigation_store import NavigationStore
from tests.factories import make_sample_document


@pytest.fixture
def store():
    """Live store seeded with the sample document, first route active."""
    document = make_sample_document()
    return NavigationStore(document, active_route_id=document.routes[0].id)


@pytest.fixture
def test_app(store):
    """FastAPI app with a fresh store on app.state (lifespan is not run)."""
    app.state.store = store
    yield app


@pytest.fixture
async def client(test_app):
    """httpx AsyncClient wired to the test app."""
    transport = httpx.ASGITransport(app=test_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
