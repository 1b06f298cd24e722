"""Integration-test fixtures.

All integration tests share a single event loop so that the module-level
SQLAlchemy async engine pool (created at import time) stays valid across the
whole session. Tokens are minted locally with the shared JWT_SECRET in place
of the external identity service.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.mp_gateway.auth.jwt_handler import create_access_token


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user_id: str | None = None) -> dict[str, str]:
    user_id = user_id or f"user_{uuid.uuid4().hex[:8]}"
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
