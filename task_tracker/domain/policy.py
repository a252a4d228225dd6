"""Правила доступа к задачам и к управлению пользователями.

Всё здесь чистые функции от requester (id + роль) и id владельца ресурса.
Admin видит все задачи, но менять может только свои; роль admin даёт права
только над учётными записями пользователей.
"""
from enum import Enum

from .entities import User
from .errors import Forbidden


class Action(str, Enum):
    READ_TASK = "read_task"
    LIST_TASKS = "list_tasks"
    UPDATE_TASK = "update_task"
    DELETE_TASK = "delete_task"
    CHANGE_TASK_STATUS = "change_task_status"
    MANAGE_USERS = "manage_users"


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"


# действия, которые разрешены только владельцу задачи (admin не исключение)
_OWNER_ONLY = frozenset({Action.UPDATE_TASK, Action.DELETE_TASK, Action.CHANGE_TASK_STATUS})

_DENY_MESSAGES = {
    Action.READ_TASK: "You don't have permission to view this task",
    Action.UPDATE_TASK: "You don't have permission to update this task",
    Action.DELETE_TASK: "You don't have permission to delete this task",
    Action.CHANGE_TASK_STATUS: "Only the task owner can change its status",
    Action.MANAGE_USERS: "Admin access required",
}


def is_owner(requester: User, owner_id: str | None) -> bool:
    return owner_id is not None and str(requester.id) == str(owner_id)


def decide(requester: User, action: Action, owner_id: str | None = None) -> Decision:
    if action == Action.LIST_TASKS:
        # сам список ограничивается через task_list_scope
        return Decision.ALLOW
    if action == Action.MANAGE_USERS:
        return Decision.ALLOW if requester.is_admin else Decision.DENY
    if action == Action.READ_TASK:
        if is_owner(requester, owner_id) or requester.is_admin:
            return Decision.ALLOW
        return Decision.DENY
    if action in _OWNER_ONLY:
        return Decision.ALLOW if is_owner(requester, owner_id) else Decision.DENY
    return Decision.DENY


def ensure_allowed(requester: User, action: Action, owner_id: str | None = None) -> None:
    """Бросает Forbidden, если decide() не разрешает действие."""
    if decide(requester, action, owner_id) is Decision.DENY:
        raise Forbidden(_DENY_MESSAGES.get(action))


def task_list_scope(requester: User) -> str | None:
    """id владельца для фильтрации списка задач или None, если видны все."""
    return None if requester.is_admin else requester.id
