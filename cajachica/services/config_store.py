# cajachica/services/config_store.py
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from cajachica.models.entities import Setting
from cajachica.services.errors import ValidationError, storage_guard
from cajachica.services.validation import require_object

logger = logging.getLogger(__name__)

LOGO_KEY = "logo"


def get_setting(db: Session, key: str) -> Optional[str]:
    """Wert zum Key oder None, wenn der Key nie gesetzt wurde."""
    key = key.strip()
    with storage_guard(db):
        row = db.get(Setting, key)
    return row.value if row is not None else None


def save_setting(db: Session, key: str, value: Optional[str]) -> None:
    """Upsert per Key, letzter Schreibzugriff gewinnt. Keys ohne Randleerzeichen."""
    key = key.strip()
    with storage_guard(db):
        row = db.get(Setting, key)
        if row is None:
            row = Setting(key=key, value=value)
        else:
            row.value = value
        db.add(row)
        db.commit()
    logger.info("Einstellung '%s' gespeichert (%d Zeichen)", key, len(value or ""))


def save_setting_payload(db: Session, payload: Any) -> None:
    data = require_object(payload)
    key = data.get("key")
    value = data.get("value")
    if not isinstance(key, str) or not key.strip():
        raise ValidationError("Field 'key' is required")
    if value is not None and not isinstance(value, str):
        raise ValidationError("Field 'value' must be text or null")
    save_setting(db, key, value)
