import re

import structlog

from ...domain.entities import Role, User
from ...domain.errors import (
    DuplicateEmail,
    Forbidden,
    InvalidCredentials,
    InvalidInput,
    Unauthenticated,
)
from ..dto import AuthResult, RegisterUserInput
from ..ports import IPasswordHasher, ITokenService, IUserRepository

logger = structlog.get_logger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6


def normalize_email(email: str) -> str:
    return email.strip().lower()


class RegisterUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher, tokens: ITokenService,
                 allow_admin: bool = False):
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens
        self.allow_admin = allow_admin

    def _validate(self, data: RegisterUserInput) -> tuple[str, str, Role]:
        name = (data.name or "").strip()
        if not name:
            raise InvalidInput("Name required", field="name")
        email = normalize_email(data.email or "")
        if not EMAIL_RE.match(email):
            raise InvalidInput("Valid email required", field="email")
        if len(data.password or "") < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password min {MIN_PASSWORD_LENGTH} chars", field="password")
        try:
            role = Role(data.role or Role.USER)
        except ValueError:
            raise InvalidInput("Role must be one of: user, admin", field="role")
        if role == Role.ADMIN and not self.allow_admin:
            raise Forbidden("Admin registration is disabled")
        return name, email, role

    def execute(self, data: RegisterUserInput) -> AuthResult:
        name, email, role = self._validate(data)
        if self.repo.get_by_email(email):
            logger.info("registration_rejected", reason="duplicate_email")
            raise DuplicateEmail()
        # create() тоже бросает DuplicateEmail, если сработал unique-индекс
        user = self.repo.create(name, email, self.hasher.hash(data.password), role.value)
        logger.info("user_registered", user_id=user.id, role=user.role.value)
        return AuthResult(token=self.tokens.issue(user.id), user=user)


class LoginUser:
    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher, tokens: ITokenService):
        self.repo = repo
        self.hasher = hasher
        self.tokens = tokens

    def execute(self, email: str, password: str) -> AuthResult:
        creds = self.repo.get_credentials(normalize_email(email or ""))
        # одинаковая ошибка для неизвестного email и неверного пароля
        if not creds or not self.hasher.verify(password or "", creds.password_hash):
            logger.info("login_failed")
            raise InvalidCredentials()
        logger.info("login_succeeded", user_id=creds.user.id)
        return AuthResult(token=self.tokens.issue(creds.user.id), user=creds.user)


class VerifyToken:
    """Находит живого пользователя по bearer-токену.

    Токены без состояния: отозвать токен можно только удалив пользователя,
    поэтому sub каждый раз ищется в БД заново.
    """

    def __init__(self, repo: IUserRepository, tokens: ITokenService):
        self.repo = repo
        self.tokens = tokens

    def execute(self, token: str | None) -> User:
        if not token:
            raise Unauthenticated("Not authorized, token missing")
        user_id = self.tokens.subject(token)
        user = self.repo.get_by_id(user_id)
        if not user:
            raise Unauthenticated("User no longer exists")
        return user


class EnsureAdmin:
    """Создаёт первого администратора, если его ещё нет (идемпотентно)."""

    def __init__(self, repo: IUserRepository, hasher: IPasswordHasher):
        self.repo = repo
        self.hasher = hasher

    def execute(self, name: str, email: str, password: str) -> User:
        email = normalize_email(email)
        existing = self.repo.get_by_email(email)
        if existing:
            if not existing.is_admin:
                logger.warning("initial_admin_email_taken", user_id=existing.id)
            return existing
        if not EMAIL_RE.match(email) or len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput("Initial admin credentials are invalid")
        user = self.repo.create(name, email, self.hasher.hash(password), Role.ADMIN.value)
        logger.info("initial_admin_created", user_id=user.id)
        return user
