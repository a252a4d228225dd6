import structlog

from ...domain.entities import Role, User
from ...domain.errors import Forbidden, NotFound
from ...domain.policy import Action, ensure_allowed
from ..dto import UserStats
from ..ports import IUserRepository

logger = structlog.get_logger(__name__)


class AdminService:
    def __init__(self, users: IUserRepository):
        self.users = users

    def list_users(self, requester: User) -> list[User]:
        ensure_allowed(requester, Action.MANAGE_USERS)
        return self.users.list_all()

    def stats(self, requester: User) -> UserStats:
        ensure_allowed(requester, Action.MANAGE_USERS)
        total = self.users.count()
        admins = self.users.count(role=Role.ADMIN.value)
        return UserStats(total_users=total, admin_users=admins, regular_users=total - admins)

    def delete_user(self, requester: User, target_id: str) -> int:
        """Удаляет учётную запись вместе со всеми её задачами.

        Возвращает количество удалённых задач.
        """
        ensure_allowed(requester, Action.MANAGE_USERS)
        if str(target_id) == str(requester.id):
            raise Forbidden("You cannot delete your own account")
        if not self.users.get_by_id(target_id):
            raise NotFound("User not found")
        removed_tasks = self.users.delete(target_id)
        logger.info("user_deleted", user_id=target_id, by=requester.id, removed_tasks=removed_tasks)
        return removed_tasks
