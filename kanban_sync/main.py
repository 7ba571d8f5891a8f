"""
Kanban Sync FastAPI application entrypoint.
Configures lifespan, CORS, rate limiting, exception handlers, and routers.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from kanban_sync.api import attachments, uploads, websocket
from kanban_sync.api.router import api_router
from kanban_sync.core.config import Settings, settings as default_settings
from kanban_sync.core.exceptions import register_exception_handlers
from kanban_sync.core.logging_setup import configure_logging
from kanban_sync.crud.task import TaskRepository
from kanban_sync.db.snapshot import SnapshotStore
from kanban_sync.services.attachment_service import AttachmentManager
from kanban_sync.services.task_service import TaskService
from kanban_sync.services.websocket_service import BroadcastHub

logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the synchronization engine on startup, tear it down on shutdown.
    The repository is loaded from its snapshot before the first request.
    """
    settings: Settings = app.state.settings
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)

    attachment_manager = AttachmentManager(
        settings.UPLOAD_DIR,
        url_prefix=settings.UPLOAD_URL_PREFIX,
        max_size_bytes=settings.max_file_size_bytes,
        allowed_types=settings.ALLOWED_MIME_TYPES,
    )
    repository = TaskRepository(
        SnapshotStore(settings.SNAPSHOT_PATH),
        remove_file=attachment_manager.remove,
        seed_examples=settings.SEED_EXAMPLE_TASKS,
    )
    repository.load()
    # The upload limiter is shared by every app built in this process.
    app.state.limiter.reset()
    hub = BroadcastHub(queue_size=settings.WS_SEND_QUEUE_SIZE)

    app.state.attachments = attachment_manager
    app.state.repository = repository
    app.state.hub = hub
    app.state.task_service = TaskService(repository, hub, attachment_manager)

    yield

    logger.info("Shutting down %s", settings.APP_NAME)
    await hub.close()


# ── Application factory ───────────────────────────────────────────────────────
def create_application(settings: Settings | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description=(
            "Shared Kanban board API with live WebSocket synchronisation "
            "and task attachments."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── CORS ──────────────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Rate limiting middleware ───────────────────────────────────────────────
    app.state.limiter = attachments.limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # ── Custom exception handlers ─────────────────────────────────────────────
    register_exception_handlers(app)

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(api_router, prefix=settings.API_PREFIX)
    app.include_router(uploads.router, prefix=settings.UPLOAD_URL_PREFIX)
    app.include_router(websocket.router)

    # ── Health check ──────────────────────────────────────────────────────────
    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check() -> dict[str, str]:
        return {"status": "ok", "service": settings.APP_NAME}

    return app


app = create_application()
