from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from ..config import settings

engine_kwargs = {"pool_pre_ping": True, "echo": False}
connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    # сессии открываются в потоках threadpool FastAPI
    connect_args = {"check_same_thread": False}
else:
    engine_kwargs.update(pool_size=10, max_overflow=20, pool_recycle=3600)
    if settings.DATABASE_URL.startswith("postgresql"):
        connect_args = {"client_encoding": "utf8"}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, **engine_kwargs)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)


def enable_sqlite_foreign_keys(target_engine):
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def _set_pragma(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
