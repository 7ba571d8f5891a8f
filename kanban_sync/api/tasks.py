"""
Task routes.
CRUD plus the lane move. Every mutation is broadcast by TaskService.
"""
from __future__ import annotations

from fastapi import APIRouter, status

from kanban_sync.core.dependencies import Service
from kanban_sync.models.task import Task
from kanban_sync.schemas.task import MessageResponse, TaskCreate, TaskMove, TaskUpdate

router = APIRouter(prefix="/tasks", tags=["Tasks"])


@router.get(
    "",
    response_model=list[Task],
    summary="List all tasks",
)
async def list_tasks(service: Service) -> list[Task]:
    return service.list_tasks()


@router.post(
    "",
    response_model=Task,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new task",
)
async def create_task(task_in: TaskCreate, service: Service) -> Task:
    return await service.create_task(task_in)


@router.get(
    "/{task_id}",
    response_model=Task,
    summary="Get a task by ID",
)
async def get_task(task_id: str, service: Service) -> Task:
    return service.get_task(task_id)


@router.put(
    "/{task_id}",
    response_model=Task,
    summary="Update a task",
)
async def update_task(task_id: str, task_in: TaskUpdate, service: Service) -> Task:
    return await service.update_task(task_id, task_in)


@router.delete(
    "/{task_id}",
    response_model=MessageResponse,
    summary="Delete a task and its attachment files",
)
async def delete_task(task_id: str, service: Service) -> MessageResponse:
    await service.delete_task(task_id)
    return MessageResponse(message="Task deleted successfully")


@router.put(
    "/{task_id}/move",
    response_model=Task,
    summary="Move a task to another lane",
)
async def move_task(task_id: str, body: TaskMove, service: Service) -> Task:
    return await service.move_task(task_id, body.status)
