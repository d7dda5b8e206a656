# cajachica/services/inventory.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Iterable, List

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from cajachica.models.entities import (
    InventoryMovement, MOVEMENT_TYPES, MOVEMENT_SUBTYPES,
    MOVE_IN, MOVE_OUT, SUBTYPE_VENTA, SUBTYPE_REGALIA,
)
from cajachica.services.errors import ValidationError, storage_guard
from cajachica.services.periods import Period
from cajachica.services.validation import (
    optional_text, parse_choice, parse_date, parse_text, parse_units, require_object,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InventoryPeriod:
    initial_stock: int
    movements: List[InventoryMovement]


@dataclass(frozen=True)
class StockSummary:
    initial_stock: int
    total_in: int
    total_out: int
    total_ventas: int
    total_regalias: int
    current_stock: int


def movement_to_dict(m: InventoryMovement) -> Dict[str, Any]:
    return {
        "id": m.id,
        "type": m.type,
        "subtype": m.subtype,
        "units": m.units,
        "description": m.description,
        "invoice_number": m.invoice_number,
        "date": m.date.isoformat(),
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }


# --- Abfragen -----------------------------------------------------------

def carry_over(db: Session, first_day: date) -> int:
    """
    Bestand aus der gesamten Historie vor first_day (exklusiv):
    +units fuer Eingaenge, -units fuer Ausgaenge, Subtyp egal.
    """
    signed = case((InventoryMovement.type == MOVE_IN, InventoryMovement.units), else_=-InventoryMovement.units)
    with storage_guard(db):
        total = (
            db.query(func.coalesce(func.sum(signed), 0))
            .filter(InventoryMovement.date < first_day)
            .scalar()
        )
    return int(total or 0)


def list_movements(db: Session, period: Period) -> List[InventoryMovement]:
    with storage_guard(db):
        return (
            db.query(InventoryMovement)
            .filter(InventoryMovement.date >= period.first_day, InventoryMovement.date <= period.last_day)
            .order_by(InventoryMovement.date.desc(), InventoryMovement.id.desc())
            .all()
        )


def aggregate_period(db: Session, period: Period) -> InventoryPeriod:
    """
    Anfangsbestand + Bewegungen des Monats. Schlaegt der Vortrag fehl,
    wird die Monatsabfrage gar nicht erst ausgefuehrt.

    Beide Abfragen laufen nacheinander ohne gemeinsamen Snapshot.
    """
    initial = carry_over(db, period.first_day)
    movements = list_movements(db, period)
    return InventoryPeriod(initial_stock=initial, movements=movements)


def summarize(initial_stock: int, movements: Iterable[InventoryMovement]) -> StockSummary:
    total_in = total_out = ventas = regalias = 0
    for m in movements:
        if m.type == MOVE_IN:
            total_in += m.units
        elif m.type == MOVE_OUT:
            total_out += m.units
            if m.subtype == SUBTYPE_VENTA:
                ventas += m.units
            elif m.subtype == SUBTYPE_REGALIA:
                regalias += m.units
    return StockSummary(
        initial_stock=initial_stock,
        total_in=total_in,
        total_out=total_out,
        total_ventas=ventas,
        total_regalias=regalias,
        current_stock=initial_stock + total_in - total_out,
    )


# --- Mutationen ---------------------------------------------------------

def create_movement(db: Session, payload: Any) -> InventoryMovement:
    """
    Validiert und speichert eine Lagerbewegung.
    Eingaenge haben nie einen Subtyp, Regalias nie eine Rechnungsnummer.
    """
    data = require_object(payload)
    typ = parse_choice(data.get("type"), MOVEMENT_TYPES, "type")
    units = parse_units(data.get("units"))
    description = parse_text(data.get("description"), "description")
    datum = parse_date(data.get("date"))

    subtype = None
    if typ == MOVE_OUT:
        if data.get("subtype") in (None, ""):
            raise ValidationError("Field 'subtype' is required for outgoing movements (venta or regalia)")
        subtype = parse_choice(data.get("subtype"), MOVEMENT_SUBTYPES, "subtype")

    invoice_number = optional_text(data.get("invoice_number"))
    if subtype == SUBTYPE_REGALIA:
        invoice_number = None

    m = InventoryMovement(
        type=typ,
        subtype=subtype,
        units=units,
        description=description,
        invoice_number=invoice_number,
        date=datum,
    )
    with storage_guard(db):
        db.add(m)
        db.commit()
        db.refresh(m)
    logger.info("Lagerbewegung %s angelegt (%s/%s %d Stk. am %s)", m.id, m.type, m.subtype, m.units, m.date)
    return m


def delete_movement(db: Session, movement_id: int) -> int:
    with storage_guard(db):
        deleted = db.query(InventoryMovement).filter(InventoryMovement.id == movement_id).delete()
        db.commit()
    logger.info("Lagerbewegung %s geloescht (%d Zeilen)", movement_id, deleted)
    return deleted
