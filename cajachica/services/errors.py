# cajachica/services/errors.py
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class ValidationError(ValueError):
    """Fehlende oder ungueltige Eingaben (HTTP 400)."""

    status_code = 400


class InvalidPeriod(ValidationError):
    """Monat/Jahr fehlen oder ergeben keinen gueltigen Kalendermonat."""


class StorageUnavailable(RuntimeError):
    """Keine Datenbank konfiguriert (HTTP 503)."""

    status_code = 503

    def __init__(self, message: str = "Storage not configured"):
        super().__init__(message)


class StorageError(RuntimeError):
    """Die Datenbank hat einen Fehler gemeldet (HTTP 500)."""

    status_code = 500


def _driver_message(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    return str(orig) if orig is not None else str(exc)


@contextmanager
def storage_guard(db: Session) -> Iterator[Session]:
    """
    Fuehrt DB-Zugriffe aus; SQLAlchemy-Fehler werden nach einem Rollback
    als StorageError mit der Original-Meldung weitergereicht.
    """
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage-Fehler: %s", _driver_message(exc), exc_info=True)
        raise StorageError(_driver_message(exc)) from exc
