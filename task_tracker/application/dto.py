from dataclasses import dataclass

from ..domain.entities import User


@dataclass
class RegisterUserInput:
    name: str
    email: str
    password: str
    role: str = "user"


@dataclass(frozen=True)
class AuthResult:
    token: str
    user: User


@dataclass(frozen=True)
class UserStats:
    total_users: int
    admin_users: int
    regular_users: int
