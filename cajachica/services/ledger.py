# cajachica/services/ledger.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from cajachica.models.entities import Transaction, TRANSACTION_TYPES, TYPE_INCOME, TYPE_EXPENSE
from cajachica.services.errors import storage_guard
from cajachica.services.periods import Period
from cajachica.services.validation import (
    parse_amount, parse_choice, parse_date, parse_text, require_object,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CashSummary:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal


def transaction_to_dict(t: Transaction) -> Dict[str, Any]:
    return {
        "id": t.id,
        "type": t.type,
        "description": t.description,
        "amount": float(t.amount),
        "date": t.date.isoformat(),
        "created_at": t.created_at.isoformat() if t.created_at else None,
    }


# --- Abfragen -----------------------------------------------------------

def aggregate_period(db: Session, period: Period) -> List[Transaction]:
    """Alle Buchungen im Monat, neueste zuerst."""
    with storage_guard(db):
        return (
            db.query(Transaction)
            .filter(Transaction.date >= period.first_day, Transaction.date <= period.last_day)
            .order_by(Transaction.date.desc(), Transaction.id.desc())
            .all()
        )


def summarize(transactions: Iterable[Transaction]) -> CashSummary:
    income = Decimal("0")
    expenses = Decimal("0")
    for t in transactions:
        if t.type == TYPE_INCOME:
            income += Decimal(t.amount)
        elif t.type == TYPE_EXPENSE:
            expenses += Decimal(t.amount)
    return CashSummary(total_income=income, total_expenses=expenses, balance=income - expenses)


# --- Mutationen ---------------------------------------------------------

def create_transaction(db: Session, payload: Any) -> Transaction:
    """
    Validiert {type, description, amount, date} und legt die Buchung an.
    Ungueltige Eingaben -> ValidationError, es wird nichts gespeichert.
    """
    data = require_object(payload)
    t = Transaction(
        type=parse_choice(data.get("type"), TRANSACTION_TYPES, "type"),
        description=parse_text(data.get("description"), "description"),
        amount=parse_amount(data.get("amount")),
        date=parse_date(data.get("date")),
    )
    with storage_guard(db):
        db.add(t)
        db.commit()
        db.refresh(t)
    logger.info("Buchung %s angelegt (%s %s am %s)", t.id, t.type, t.amount, t.date)
    return t


def delete_transaction(db: Session, transaction_id: int) -> int:
    """Loescht per ID. Unbekannte IDs sind kein Fehler; liefert Anzahl geloeschter Zeilen."""
    with storage_guard(db):
        deleted = db.query(Transaction).filter(Transaction.id == transaction_id).delete()
        db.commit()
    logger.info("Buchung %s geloescht (%d Zeilen)", transaction_id, deleted)
    return deleted
