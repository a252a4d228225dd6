from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....application.use_cases.tasks import TaskService
from ....config import settings
from ....domain.entities import User
from ....infrastructure.db import get_db
from ....infrastructure.metrics import task_operations_total
from ....infrastructure.repositories import TaskRepository
from ..authz import get_current_user
from ..schemas import MessageResp, TaskCreate, TaskResp, TaskUpdate

router = APIRouter(prefix=f"{settings.API_PREFIX}/tasks", tags=["tasks"])


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(repo=TaskRepository(db))


@router.get("", response_model=list[TaskResp])
def list_tasks(user: User = Depends(get_current_user),
               service: TaskService = Depends(get_task_service)):
    return service.list(user)


@router.post("", response_model=TaskResp, status_code=status.HTTP_201_CREATED)
def create_task(payload: TaskCreate,
                user: User = Depends(get_current_user),
                service: TaskService = Depends(get_task_service)):
    task = service.create(user, payload.model_dump())
    task_operations_total.labels(operation="create").inc()
    return task


@router.get("/{task_id}", response_model=TaskResp)
def get_task(task_id: str,
             user: User = Depends(get_current_user),
             service: TaskService = Depends(get_task_service)):
    return service.get(task_id, user)


@router.put("/{task_id}", response_model=TaskResp)
def update_task(task_id: str, payload: TaskUpdate,
                user: User = Depends(get_current_user),
                service: TaskService = Depends(get_task_service)):
    # только явно переданные поля
    task = service.update(task_id, user, payload.model_dump(exclude_unset=True))
    task_operations_total.labels(operation="update").inc()
    return task


@router.delete("/{task_id}", response_model=MessageResp)
def delete_task(task_id: str,
                user: User = Depends(get_current_user),
                service: TaskService = Depends(get_task_service)):
    service.delete(task_id, user)
    task_operations_total.labels(operation="delete").inc()
    return MessageResp(message="Deleted successfully")
