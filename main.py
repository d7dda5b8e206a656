from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, Depends, Path
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from sqlalchemy.orm import Session

from cajachica.config import settings as app_settings
from cajachica.models import base as db_base
from cajachica.models.base import get_db
from cajachica.reports import router as reports_router
from cajachica.services import config_store, inventory, ledger
from cajachica.services.db_init import init_db
from cajachica.services.errors import StorageError, StorageUnavailable, ValidationError
from cajachica.services.periods import resolve_period

logger = logging.getLogger("cajachica")

# IDs muessen in SQLite INTEGER (64 Bit) passen
MAX_ID = 2**63 - 1

# ------------------------------------------------------------------------------
# App / Middleware
# ------------------------------------------------------------------------------
APP_VERSION = "0.1.0"
app = FastAPI(title=app_settings.APP_NAME, version=APP_VERSION)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        length = request.headers.get("content-length")
        if length and length.isdigit() and int(length) > app_settings.MAX_BODY_BYTES:
            return JSONResponse({"error": "Request body too large"}, status_code=413)
        return await call_next(request)


app.add_middleware(BodySizeLimitMiddleware)
app.include_router(reports_router)


# ------------------------------------------------------------------------------
# Fehler -> {"error": ...}
# ------------------------------------------------------------------------------
@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError):
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


@app.exception_handler(StorageUnavailable)
async def _storage_unavailable(request: Request, exc: StorageUnavailable):
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


@app.exception_handler(StorageError)
async def _storage_error(request: Request, exc: StorageError):
    return JSONResponse({"error": str(exc)}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def _request_validation_error(request: Request, exc: RequestValidationError):
    errs = exc.errors()
    if errs:
        loc = ".".join(str(p) for p in errs[0].get("loc", ()) if p not in ("path", "query", "body"))
        msg = f"Invalid '{loc}': {errs[0].get('msg')}" if loc else str(errs[0].get("msg"))
    else:
        msg = "Invalid request"
    return JSONResponse({"error": msg}, status_code=400)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": str(exc.detail)}, status_code=exc.status_code)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")


# ------------------------------------------------------------------------------
# Startup
# ------------------------------------------------------------------------------
@app.on_event("startup")
def _startup():
    init_db()
    logger.info("%s %s gestartet (env=%s, storage=%s)", app_settings.APP_NAME, APP_VERSION,
                app_settings.APP_ENV, "ja" if db_base.engine is not None else "nein")


# ------------------------------------------------------------------------------
# Health / Einstellungen
# ------------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {
        "status": "ok",
        "storageConfigured": db_base.engine is not None,
        "env": app_settings.APP_ENV,
    }


@app.get("/api/settings/{key}")
def settings_get(key: str, db: Session = Depends(get_db)):
    return {"value": config_store.get_setting(db, key)}


@app.post("/api/settings")
async def settings_save(request: Request, db: Session = Depends(get_db)):
    payload = await _read_json(request)
    config_store.save_setting_payload(db, payload)
    return {"success": True}


# ------------------------------------------------------------------------------
# Inventario
# ------------------------------------------------------------------------------
@app.get("/api/inventory")
def inventory_month(month: Optional[str] = None, year: Optional[str] = None, db: Session = Depends(get_db)):
    period = resolve_period(month, year)
    data = inventory.aggregate_period(db, period)
    return {
        "initialStock": data.initial_stock,
        "movements": [inventory.movement_to_dict(m) for m in data.movements],
    }


@app.post("/api/inventory")
async def inventory_create(request: Request, db: Session = Depends(get_db)):
    payload = await _read_json(request)
    m = inventory.create_movement(db, payload)
    return inventory.movement_to_dict(m)


@app.delete("/api/inventory/{movement_id}", status_code=204)
def inventory_delete(movement_id: int = Path(..., ge=1, le=MAX_ID), db: Session = Depends(get_db)):
    inventory.delete_movement(db, movement_id)
    return Response(status_code=204)


# ------------------------------------------------------------------------------
# Caja Chica
# ------------------------------------------------------------------------------
@app.get("/api/transactions")
def transactions_month(month: Optional[str] = None, year: Optional[str] = None, db: Session = Depends(get_db)):
    period = resolve_period(month, year)
    return [ledger.transaction_to_dict(t) for t in ledger.aggregate_period(db, period)]


@app.post("/api/transactions")
async def transactions_create(request: Request, db: Session = Depends(get_db)):
    payload = await _read_json(request)
    t = ledger.create_transaction(db, payload)
    return ledger.transaction_to_dict(t)


@app.delete("/api/transactions/{transaction_id}", status_code=204)
def transactions_delete(transaction_id: int = Path(..., ge=1, le=MAX_ID), db: Session = Depends(get_db)):
    ledger.delete_transaction(db, transaction_id)
    return Response(status_code=204)


# ------------------------------------------------------------------------------
# Dev-Server
# ------------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="127.0.0.1", port=app_settings.PORT, reload=True)
