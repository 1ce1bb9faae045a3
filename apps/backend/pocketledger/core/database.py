from __future__ import annotations

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, declared_attr, sessionmaker

from .config import settings


class Base(DeclarativeBase):
    """Declarative base; table names are the lower-cased class names (``user``, ``budget``)."""

    @declared_attr.directive
    def __tablename__(cls) -> str:  # type: ignore[override]
        return cls.__name__.lower()


def _set_sqlite_pragma(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    # ondelete CASCADE / SET NULL 이 동작하려면 FK 강제 필요
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.close()


def configure_sqlite(bind: Engine) -> Engine:
    """Enable foreign keys and WAL on every new SQLite connection of ``bind``.

    Non-SQLite engines are returned untouched. Used by the app engine and the test engine alike.
    """
    if bind.dialect.name == "sqlite" and not event.contains(bind, "connect", _set_sqlite_pragma):
        event.listen(bind, "connect", _set_sqlite_pragma)
    return bind


def make_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return configure_sqlite(create_engine(url, connect_args=connect_args))


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
