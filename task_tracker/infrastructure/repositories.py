from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .models import TaskORM, UserORM, utcnow
from ..application.ports import ITaskRepository, IUserRepository
from ..domain.entities import Credentials, OwnerRef, Role, Task, TaskPriority, TaskStatus, User
from ..domain.errors import DuplicateEmail, InternalError, NotFound

logger = structlog.get_logger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    # SQLite теряет смещение даже у DateTime(timezone=True): все значения пишутся в UTC
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_domain(u: UserORM) -> User:
    return User(id=u.id, name=u.name, email=u.email, role=Role(u.role), created_at=as_utc(u.created_at))


def task_to_domain(t: TaskORM) -> Task:
    return Task(
        id=t.id,
        title=t.title,
        description=t.description,
        status=TaskStatus(t.status),
        priority=TaskPriority(t.priority),
        owner=OwnerRef(id=t.owner.id, name=t.owner.name),
        created_at=as_utc(t.created_at),
        updated_at=as_utc(t.updated_at),
    )


@contextmanager
def store_errors(db: Session, operation: str):
    """Переводит ошибки SQLAlchemy в InternalError (текст ошибки наружу не уходит)."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("store_error", operation=operation, error=str(e))
        raise InternalError() from e


class UserRepository(IUserRepository):
    def __init__(self, db: Session): self.db = db

    def get_by_id(self, user_id: str) -> User | None:
        with store_errors(self.db, "user.get_by_id"):
            row = self.db.get(UserORM, str(user_id))
        return to_domain(row) if row else None

    def get_by_email(self, email: str) -> User | None:
        with store_errors(self.db, "user.get_by_email"):
            row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return to_domain(row) if row else None

    def get_credentials(self, email: str) -> Credentials | None:
        with store_errors(self.db, "user.get_credentials"):
            row = self.db.query(UserORM).filter(UserORM.email == email).first()
        return Credentials(user=to_domain(row), password_hash=row.password_hash) if row else None

    def create(self, name: str, email: str, password_hash: str, role: str = "user") -> User:
        row = UserORM(name=name, email=email, password_hash=password_hash, role=Role(role))
        try:
            self.db.add(row); self.db.commit(); self.db.refresh(row)
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateEmail() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("store_error", operation="user.create", error=str(e))
            raise InternalError() from e
        return to_domain(row)

    def list_all(self) -> list[User]:
        with store_errors(self.db, "user.list_all"):
            rows = self.db.query(UserORM).order_by(UserORM.created_at).all()
        return [to_domain(r) for r in rows]

    def count(self, role: str | None = None) -> int:
        with store_errors(self.db, "user.count"):
            q = self.db.query(func.count(UserORM.id))
            if role is not None:
                q = q.filter(UserORM.role == Role(role))
            return q.scalar() or 0

    def delete(self, user_id: str) -> int:
        """Удаляет пользователя и все его задачи в одной транзакции."""
        with store_errors(self.db, "user.delete"):
            row = self.db.get(UserORM, str(user_id))
            if not row:
                raise NotFound("User not found")
            removed = (
                self.db.query(TaskORM)
                .filter(TaskORM.owner_id == row.id)
                .delete(synchronize_session=False)
            )
            self.db.delete(row); self.db.commit()
        return removed


class TaskRepository(ITaskRepository):
    def __init__(self, db: Session): self.db = db

    def _query(self):
        return self.db.query(TaskORM).options(joinedload(TaskORM.owner))

    def _row(self, task_id: str) -> TaskORM | None:
        return self._query().filter(TaskORM.id == str(task_id)).first()

    def get(self, task_id: str) -> Task | None:
        with store_errors(self.db, "task.get"):
            row = self._row(task_id)
        return task_to_domain(row) if row else None

    def list(self, owner_id: str | None = None) -> list[Task]:
        with store_errors(self.db, "task.list"):
            q = self._query()
            if owner_id is not None:
                q = q.filter(TaskORM.owner_id == owner_id)
            rows = q.order_by(TaskORM.created_at.desc()).all()
        return [task_to_domain(r) for r in rows]

    def create(self, owner_id: str, title: str, description: str | None,
               status: str, priority: str) -> Task:
        with store_errors(self.db, "task.create"):
            row = TaskORM(
                owner_id=owner_id,
                title=title,
                description=description,
                status=TaskStatus(status),
                priority=TaskPriority(priority),
            )
            self.db.add(row); self.db.commit()
            row = self._row(row.id)
        return task_to_domain(row)

    def update(self, task_id: str, changes: dict[str, Any]) -> Task:
        with store_errors(self.db, "task.update"):
            row = self._row(task_id)
            if not row:
                raise NotFound("Task not found")
            for key, value in changes.items():
                if key == "status":
                    value = TaskStatus(value)
                elif key == "priority":
                    value = TaskPriority(value)
                setattr(row, key, value)
            row.updated_at = utcnow()
            self.db.commit(); self.db.refresh(row)
        return task_to_domain(row)

    def delete(self, task_id: str) -> None:
        with store_errors(self.db, "task.delete"):
            row = self.db.get(TaskORM, str(task_id))
            if not row:
                raise NotFound("Task not found")
            self.db.delete(row); self.db.commit()
