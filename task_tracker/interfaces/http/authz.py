from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ...application.use_cases.credentials import VerifyToken
from ...domain.entities import User
from ...domain.policy import Action, ensure_allowed
from ...infrastructure.db import get_db
from ...infrastructure.repositories import UserRepository
from ...infrastructure.security import TokenService

# auto_error=False: отсутствие заголовка должно давать 401, а не 403
bearer = HTTPBearer(auto_error=False)


def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    token = creds.credentials if creds else None
    return VerifyToken(repo=UserRepository(db), tokens=TokenService()).execute(token)


def require_admin(user: User = Depends(get_current_user)) -> User:
    ensure_allowed(user, Action.MANAGE_USERS)
    return user
