from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ....application.dto import AuthResult, RegisterUserInput
from ....application.use_cases.credentials import LoginUser, RegisterUser
from ....config import settings
from ....domain.entities import User
from ....domain.errors import InvalidCredentials
from ....infrastructure.cache import STATS_CACHE_KEY, delete_cache
from ....infrastructure.db import get_db
from ....infrastructure.metrics import auth_events_total
from ....infrastructure.rate_limit import limiter, login_limit, register_limit
from ....infrastructure.repositories import UserRepository
from ....infrastructure.security import PasswordHasher, TokenService
from ..authz import get_current_user
from ..schemas import AuthResp, LoginReq, RegisterReq, UserResp

router = APIRouter(prefix=f"{settings.API_PREFIX}/auth", tags=["auth"])


def to_auth_resp(result: AuthResult) -> AuthResp:
    return AuthResp(token=result.token, user=UserResp.model_validate(result.user))


@router.post("/register", response_model=AuthResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(register_limit)
def register(request: Request, payload: RegisterReq, db: Session = Depends(get_db)):
    uc = RegisterUser(
        repo=UserRepository(db),
        hasher=PasswordHasher(),
        tokens=TokenService(),
        allow_admin=settings.ALLOW_ADMIN_REGISTRATION,
    )
    result = uc.execute(RegisterUserInput(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role.value,
    ))
    auth_events_total.labels(event="register").inc()
    # статистика пользователей изменилась
    delete_cache(STATS_CACHE_KEY)
    return to_auth_resp(result)


@router.post("/login", response_model=AuthResp)
@limiter.limit(login_limit)
def login(request: Request, payload: LoginReq, db: Session = Depends(get_db)):
    uc = LoginUser(repo=UserRepository(db), hasher=PasswordHasher(), tokens=TokenService())
    try:
        result = uc.execute(payload.email, payload.password)
    except InvalidCredentials:
        auth_events_total.labels(event="login_failed").inc()
        raise
    auth_events_total.labels(event="login").inc()
    return to_auth_resp(result)


@router.get("/me", response_model=UserResp)
def me(user: User = Depends(get_current_user)):
    return user
