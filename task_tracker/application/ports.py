from typing import Any

from ..domain.entities import Credentials, Task, User


class IUserRepository:
    def get_by_id(self, user_id: str) -> User | None: ...
    def get_by_email(self, email: str) -> User | None: ...
    def get_credentials(self, email: str) -> Credentials | None: ...
    def create(self, name: str, email: str, password_hash: str, role: str = "user") -> User: ...
    def list_all(self) -> list[User]: ...
    def count(self, role: str | None = None) -> int: ...
    def delete(self, user_id: str) -> int: ...


class ITaskRepository:
    def get(self, task_id: str) -> Task | None: ...
    def list(self, owner_id: str | None = None) -> list[Task]: ...
    def create(self, owner_id: str, title: str, description: str | None,
               status: str, priority: str) -> Task: ...
    def update(self, task_id: str, changes: dict[str, Any]) -> Task: ...
    def delete(self, task_id: str) -> None: ...


class IPasswordHasher:
    def hash(self, plain: str) -> str: ...
    def verify(self, plain: str, hashed: str) -> bool: ...


class ITokenService:
    def issue(self, user_id: str) -> str: ...
    def subject(self, token: str) -> str: ...
