"""
Attachment routes nested under tasks.
/tasks/{task_id}/attachments
Supports multipart/form-data file upload (field name "attachment").

No postponed annotations here: the rate-limit decorator wraps the endpoint
and FastAPI must see real types.

The limiter and its RATE_LIMIT_UPLOAD value are bound when this module is
imported, so they come from the process settings (environment or .env), not
from a Settings object passed to create_application. Each application
lifespan clears the counters on startup.
"""
from fastapi import APIRouter, File, Request, UploadFile, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from kanban_sync.core.config import settings
from kanban_sync.core.dependencies import Service
from kanban_sync.core.exceptions import BadRequestException
from kanban_sync.schemas.attachment import AttachmentUploadResponse
from kanban_sync.schemas.task import TaskMessageResponse

router = APIRouter(tags=["Attachments"])

limiter = Limiter(key_func=get_remote_address)


@router.post(
    "/tasks/{task_id}/attachments",
    response_model=AttachmentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file attachment to a task",
)
@limiter.limit(settings.RATE_LIMIT_UPLOAD)
async def upload_attachment(
    request: Request,
    task_id: str,
    service: Service,
    attachment: UploadFile | None = File(default=None),
) -> AttachmentUploadResponse:
    if attachment is None:
        raise BadRequestException("No file uploaded")
    stored, task = await service.add_attachment(task_id, attachment)
    return AttachmentUploadResponse(attachment=stored, task=task)


@router.delete(
    "/tasks/{task_id}/attachments/{attachment_id}",
    response_model=TaskMessageResponse,
    summary="Delete an attachment and its file",
)
async def delete_attachment(
    task_id: str,
    attachment_id: str,
    service: Service,
) -> TaskMessageResponse:
    task = await service.remove_attachment(task_id, attachment_id)
    return TaskMessageResponse(message="Attachment removed successfully", task=task)
