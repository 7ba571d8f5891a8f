"""
Public retrieval of stored attachment files.
"""
from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import FileResponse

from kanban_sync.core.dependencies import Attachments
from kanban_sync.core.exceptions import NotFoundException

router = APIRouter(tags=["Uploads"])


@router.get("/{filename}", summary="Download a stored attachment")
async def get_upload(filename: str, attachments: Attachments) -> FileResponse:
    file_path = attachments.resolve(filename)
    if file_path is None:
        raise NotFoundException("File", filename)
    return FileResponse(file_path)
