"""
Aggregates the HTTP API routers into a single APIRouter.
"""
from __future__ import annotations

from fastapi import APIRouter

from kanban_sync.api import attachments, tasks

api_router = APIRouter()

api_router.include_router(tasks.router)
api_router.include_router(attachments.router)
