# cajachica/models/base.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from cajachica.config import settings as app_settings
from cajachica.services.errors import StorageUnavailable

logger = logging.getLogger(__name__)

Base = declarative_base()

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def build_engine(url: str) -> Optional[Engine]:
    """
    Baut die Engine fuer die konfigurierte URL. Ohne URL gibt es keine
    Engine, die API antwortet dann mit 503.
    """
    if not url:
        return None

    # In-Memory-SQLite: eine Verbindung fuer alle Sessions teilen
    if url in _MEMORY_URLS:
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            future=True,
        )

    # SQLite: Pfad absolut machen und Ordner sicherstellen
    if url.startswith("sqlite:///"):
        rel = url[len("sqlite:///"):]  # z. B. ./db/cajachica.db
        db_file = Path(rel)
        if not db_file.is_absolute():
            db_file = Path.cwd() / db_file
        db_file.parent.mkdir(parents=True, exist_ok=True)
        abs_url = f"sqlite:///{db_file.as_posix()}"
        return create_engine(
            abs_url,
            connect_args={"check_same_thread": False},  # nur für SQLite
            future=True,
            pool_pre_ping=True,
        )

    # Andere DBs (Postgres/MySQL)
    return create_engine(url, future=True, pool_pre_ping=True)


engine = build_engine(app_settings.DATABASE_URL)
SessionLocal = (
    sessionmaker(bind=engine, autocommit=False, autoflush=False, future=True)
    if engine is not None
    else None
)


def get_db() -> Iterator[Session]:
    if SessionLocal is None:
        raise StorageUnavailable()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
