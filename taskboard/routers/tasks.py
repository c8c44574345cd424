"""Task API router."""

from fastapi import APIRouter, Depends, Request, status

from ..models import TaskCreate, TaskResponse, TaskUpdate
from ..services import TaskService

router = APIRouter(prefix="/tasks", tags=["tasks"])


def get_task_service(request: Request) -> TaskService:
    """Build a service around the store owned by the application."""
    return TaskService(request.app.state.task_store)


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    status: str | None = None,
    priority: str | None = None,
    service: TaskService = Depends(get_task_service),
):
    """Get all tasks, optionally filtered by status and/or priority.

    Blank filter values (`?status=`) are treated as absent.
    """
    tasks = service.list_tasks(status=status or None, priority=priority or None)
    return [TaskResponse.model_validate(task) for task in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task_id: str, service: TaskService = Depends(get_task_service)):
    """Get a task by ID."""
    return TaskResponse.model_validate(service.get_task(task_id))


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task_endpoint(
    task_data: TaskCreate, service: TaskService = Depends(get_task_service)
):
    """Create a new task."""
    task = service.create_task(
        task_data.title, task_data.description, task_data.priority
    )
    return TaskResponse.model_validate(task)


@router.api_route(
    "/{task_id}", methods=["PATCH", "PUT"], response_model=TaskResponse
)
def update_task_endpoint(
    task_id: str,
    task_data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    """Update any subset of title, description, priority and status."""
    fields = task_data.model_dump(exclude_unset=True)
    return TaskResponse.model_validate(service.update_task(task_id, fields))


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_task_endpoint(task_id: str, service: TaskService = Depends(get_task_service)):
    """Delete a task."""
    service.delete_task(task_id)
