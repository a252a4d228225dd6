import os
import sys

import pytest

CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.dirname(CURRENT_DIR)
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Настройки читаются при импорте task_tracker.config, поэтому задаём их до импорта app
os.environ.setdefault("DATABASE_URL", "sqlite:///./test_task_tracker.db")
os.environ.setdefault("SECRET_KEY", "test-secret")
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["CACHE_ENABLED"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALLOW_ADMIN_REGISTRATION"] = "false"

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from task_tracker.config import settings
from task_tracker.infrastructure.db import enable_sqlite_foreign_keys, get_db
from task_tracker.infrastructure.models import Base
from task_tracker.infrastructure.repositories import UserRepository
from task_tracker.infrastructure.security import PasswordHasher, create_access_token
from task_tracker.main import app

# Тестовая БД в памяти, одно соединение на все потоки
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
enable_sqlite_foreign_keys(test_engine)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

API = settings.API_PREFIX


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    """Тестовый клиент с чистой БД"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.pop(get_db, None)
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session(client):
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(db_session):
    """Создаёт пользователя напрямую в БД и возвращает (user, headers)"""
    hasher = PasswordHasher()
    counter = {"n": 0}

    def _make(name: str = None, role: str = "user", password: str = "password123", email: str = None):
        counter["n"] += 1
        name = name or f"User {counter['n']}"
        email = email or f"user{counter['n']}@example.com"
        user = UserRepository(db_session).create(name, email, hasher.hash(password), role)
        token = create_access_token(user.id)
        return user, {"Authorization": f"Bearer {token}"}

    return _make
