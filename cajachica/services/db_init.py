# cajachica/services/db_init.py
from __future__ import annotations

import logging

from cajachica.models import base as db_base
# Alle Modelle registrieren (Side-Effect-Import)
import cajachica.models.entities  # noqa: F401

logger = logging.getLogger(__name__)


def init_db() -> bool:
    """
    Initialisiert die DB-Struktur. Wird beim App-Startup von main.py aufgerufen.
    Liefert False, wenn keine Datenbank konfiguriert ist.
    """
    if db_base.engine is None:
        logger.warning("DATABASE_URL fehlt - Storage nicht konfiguriert, API antwortet mit 503")
        return False
    db_base.Base.metadata.create_all(bind=db_base.engine)
    logger.info("Storage initialisiert (%s)", db_base.engine.url.render_as_string(hide_password=True))
    return True
