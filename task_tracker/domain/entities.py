from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class TaskStatus(str, Enum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"


class TaskPriority(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: Role = Role.USER
    created_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


@dataclass(frozen=True)
class OwnerRef:
    """Нормализованная ссылка на владельца задачи: id + имя."""
    id: str
    name: str


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    owner: OwnerRef
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Credentials:
    user: User
    password_hash: str = field(repr=False)
