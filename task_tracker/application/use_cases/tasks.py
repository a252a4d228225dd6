from collections.abc import Mapping
from typing import Any

import structlog

from ...domain.entities import Task, TaskPriority, TaskStatus, User
from ...domain.errors import NotFound, ValidationError
from ...domain.policy import Action, ensure_allowed, task_list_scope
from ..ports import ITaskRepository

logger = structlog.get_logger(__name__)

# owner/id из входных данных никогда не читаются
EDITABLE_FIELDS = ("title", "description", "status", "priority")


def _clean_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Title is required", field="title")
    return value.strip()


def _clean_description(value: Any) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ValidationError("Description must be a string", field="description")
    return value


def _clean_enum(enum_cls, value: Any, field: str) -> str:
    try:
        return enum_cls(value).value
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}", field=field)


_CLEANERS = {
    "title": _clean_title,
    "description": _clean_description,
    "status": lambda v: _clean_enum(TaskStatus, v, "status"),
    "priority": lambda v: _clean_enum(TaskPriority, v, "priority"),
}


class TaskService:
    def __init__(self, repo: ITaskRepository):
        self.repo = repo

    def _load(self, task_id: str) -> Task:
        task = self.repo.get(task_id)
        if not task:
            raise NotFound("Task not found")
        return task

    def create(self, requester: User, fields: Mapping[str, Any]) -> Task:
        status = fields.get("status")
        priority = fields.get("priority")
        task = self.repo.create(
            owner_id=requester.id,
            title=_clean_title(fields.get("title")),
            description=_clean_description(fields.get("description")),
            status=TaskStatus.TODO.value if status is None else _CLEANERS["status"](status),
            priority=TaskPriority.MEDIUM.value if priority is None else _CLEANERS["priority"](priority),
        )
        logger.info("task_created", task_id=task.id, owner_id=requester.id)
        return task

    def list(self, requester: User) -> list[Task]:
        ensure_allowed(requester, Action.LIST_TASKS)
        return self.repo.list(owner_id=task_list_scope(requester))

    def get(self, task_id: str, requester: User) -> Task:
        task = self._load(task_id)
        ensure_allowed(requester, Action.READ_TASK, task.owner.id)
        return task

    def update(self, task_id: str, requester: User, partial_fields: Mapping[str, Any]) -> Task:
        """Меняет только ключи, присутствующие в partial_fields.

        Admin получает Forbidden, как и любой другой не-владелец.
        """
        task = self._load(task_id)
        ensure_allowed(requester, Action.UPDATE_TASK, task.owner.id)
        changes = {k: _CLEANERS[k](partial_fields[k]) for k in EDITABLE_FIELDS if k in partial_fields}
        if "status" in changes:
            ensure_allowed(requester, Action.CHANGE_TASK_STATUS, task.owner.id)
        if not changes:
            return task
        updated = self.repo.update(task_id, changes)
        logger.info("task_updated", task_id=task_id, fields=sorted(changes))
        return updated

    def delete(self, task_id: str, requester: User) -> None:
        task = self._load(task_id)
        ensure_allowed(requester, Action.DELETE_TASK, task.owner.id)
        self.repo.delete(task_id)
        logger.info("task_deleted", task_id=task_id, owner_id=task.owner.id)
