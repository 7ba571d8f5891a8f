"""
Test configuration and shared fixtures.
Every test gets its own snapshot file and upload directory under tmp_path.
"""
from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from fakes import FakeWebSocket
from kanban_sync.core.config import Settings
from kanban_sync.main import create_application


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        SNAPSHOT_PATH=tmp_path / "data" / "tasks.json",
        UPLOAD_DIR=tmp_path / "uploads",
        SEED_EXAMPLE_TASKS=False,
        WS_HEARTBEAT_INTERVAL=3600,
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    return create_application(settings)


@pytest_asyncio.fixture
async def running_app(app: FastAPI) -> AsyncGenerator[FastAPI, None]:
    """The application with its lifespan entered (repository loaded, hub running)."""
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(running_app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP test client bound to the running application."""
    async with AsyncClient(
        transport=ASGITransport(app=running_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def peer(running_app: FastAPI) -> FakeWebSocket:
    """A simulated connected peer registered directly on the hub."""
    ws = FakeWebSocket()
    await running_app.state.hub.connect(ws)
    return ws
