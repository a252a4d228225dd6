from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from ...domain.entities import Role, TaskPriority, TaskStatus


class RegisterReq(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.USER


class LoginReq(BaseModel):
    email: EmailStr
    password: str


class TaskCreate(BaseModel):
    # лишние поля (owner, id, ...) молча отбрасываются
    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM


class TaskUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None


class _Out(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class UserResp(_Out):
    id: str
    name: str
    email: str
    role: Role
    created_at: datetime | None = None


class OwnerResp(_Out):
    id: str
    name: str


class TaskResp(_Out):
    id: str
    title: str
    description: str | None = None
    status: TaskStatus
    priority: TaskPriority
    owner: OwnerResp
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthResp(_Out):
    token: str
    user: UserResp


class StatsResp(_Out):
    total_users: int
    admin_users: int
    regular_users: int


class MessageResp(BaseModel):
    message: str
