from dataclasses import asdict

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....application.dto import UserStats
from ....application.use_cases.admin import AdminService
from ....config import settings
from ....domain.entities import User
from ....infrastructure.cache import STATS_CACHE_KEY, delete_cache, get_cache, set_cache
from ....infrastructure.db import get_db
from ....infrastructure.metrics import cache_hits_total, cache_misses_total
from ....infrastructure.repositories import UserRepository
from ..authz import require_admin
from ..schemas import MessageResp, StatsResp, UserResp

router = APIRouter(prefix=f"{settings.API_PREFIX}/admin", tags=["admin"])


def get_admin_service(db: Session = Depends(get_db)) -> AdminService:
    return AdminService(users=UserRepository(db))


@router.get("/users", response_model=list[UserResp])
def list_users(admin: User = Depends(require_admin),
               service: AdminService = Depends(get_admin_service)):
    return service.list_users(admin)


@router.get("/stats", response_model=StatsResp)
def user_stats(admin: User = Depends(require_admin),
               service: AdminService = Depends(get_admin_service)):
    cached = get_cache(STATS_CACHE_KEY)
    if cached:
        cache_hits_total.inc()
        return UserStats(**cached)

    cache_misses_total.inc()
    stats = service.stats(admin)
    set_cache(STATS_CACHE_KEY, asdict(stats))
    return stats


@router.delete("/users/{user_id}", response_model=MessageResp)
def delete_user(user_id: str,
                admin: User = Depends(require_admin),
                service: AdminService = Depends(get_admin_service)):
    service.delete_user(admin, user_id)
    delete_cache(STATS_CACHE_KEY)
    return MessageResp(message="User deleted")
