import time
import logging
import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .application.use_cases.credentials import EnsureAdmin
from .config import settings
from .infrastructure.cache import STATS_CACHE_KEY, delete_cache
from .infrastructure.db import engine, SessionLocal
from .infrastructure.models import Base
from .infrastructure.metrics import (
    metrics_endpoint,
    http_requests_total,
    http_request_duration_seconds
)
from .infrastructure.rate_limit import limiter
from .infrastructure.repositories import UserRepository
from .infrastructure.security import PasswordHasher
from .interfaces.http.errors import register_exception_handlers
from .interfaces.http.routers import admin as admin_router
from .interfaces.http.routers import auth as auth_router
from .interfaces.http.routers import tasks as tasks_router

VERSION = "0.1.0"

# Настройка структурированного логирования
log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.make_filtering_bound_logger(log_level),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

app = FastAPI(title="Task Tracker", version=VERSION)
app.state.limiter = limiter
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Добавляем middleware для правильной кодировки и метрик
@app.middleware("http")
async def observe_request(request: Request, call_next):
    start_time = time.time()
    method = request.method

    response = await call_next(request)

    if response.headers.get("content-type", "").startswith("application/json"):
        response.headers["content-type"] = "application/json; charset=utf-8"

    # шаблон маршрута вместо сырого пути, чтобы id не раздували метки
    route = request.scope.get("route")
    path = getattr(route, "path", request.url.path)

    duration = time.time() - start_time
    status_code = response.status_code
    http_requests_total.labels(method=method, endpoint=path, status=status_code).inc()
    http_request_duration_seconds.labels(method=method, endpoint=path).observe(duration)

    logger.info(
        "http_request",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=round(duration * 1000, 2)
    )

    return response


def seed_initial_admin():
    if not (settings.INITIAL_ADMIN_EMAIL and settings.INITIAL_ADMIN_PASSWORD):
        return
    with SessionLocal() as db:
        user = EnsureAdmin(repo=UserRepository(db), hasher=PasswordHasher()).execute(
            settings.INITIAL_ADMIN_NAME,
            settings.INITIAL_ADMIN_EMAIL,
            settings.INITIAL_ADMIN_PASSWORD,
        )
    # сид мог добавить администратора: счётчики в кэше устарели
    delete_cache(STATS_CACHE_KEY)
    logger.info("Initial admin ready", user_id=user.id)


@app.on_event("startup")
def on_startup():
    logger.info("Starting task tracker", version=VERSION)
    Base.metadata.create_all(bind=engine)

    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    logger.info("Database connection established")
    seed_initial_admin()


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint"""
    return metrics_endpoint()


app.include_router(auth_router.router)
app.include_router(tasks_router.router)
app.include_router(admin_router.router)
