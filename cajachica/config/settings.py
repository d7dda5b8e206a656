# cajachica/config/settings.py
import os

from dotenv import load_dotenv

# .env darf echte Umgebungsvariablen nicht ueberschreiben
load_dotenv(override=False)

APP_NAME: str = "Caja Chica"
APP_ENV: str = os.getenv("APP_ENV", "development")

# DB-URL (sqlite Datei liegt unter ./db/). Leerer Wert = keine Datenbank konfiguriert.
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./db/cajachica.db").strip()

HOST: str = os.getenv("HOST", "0.0.0.0")
PORT: int = int(os.getenv("PORT", "3000"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "info").lower()

# Limite fuer JSON-Bodies (Logo kommt base64-kodiert)
MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(5 * 1024 * 1024)))

# Texte fuer die PDF-Berichte
ORG_NAME: str = os.getenv("ORG_NAME", "SANAVI INTERNATIONAL")
ORG_SUBTITLE: str = os.getenv("ORG_SUBTITLE", "DIRECTOR GENERAL PARA LATINOAMÉRICA")
INVENTORY_PRODUCT: str = os.getenv("INVENTORY_PRODUCT", "PRIME X")
