from slowapi import Limiter
from slowapi.util import get_remote_address

from ..config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.RATE_LIMIT_ENABLED,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
)

register_limit = f"{settings.RATE_LIMIT_PER_MINUTE}/minute"
# Более строгий лимит для логина (защита от брутфорса)
login_limit = f"{settings.LOGIN_RATE_LIMIT_PER_MINUTE}/minute"
