from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Date, Numeric, CheckConstraint, Index
)

from .base import Base

# Wertebereiche (Strings, konsistent mit API und Validierung)
TYPE_INCOME = "income"
TYPE_EXPENSE = "expense"
TRANSACTION_TYPES = (TYPE_INCOME, TYPE_EXPENSE)

MOVE_IN = "in"
MOVE_OUT = "out"
MOVEMENT_TYPES = (MOVE_IN, MOVE_OUT)

SUBTYPE_VENTA = "venta"
SUBTYPE_REGALIA = "regalia"
MOVEMENT_SUBTYPES = (SUBTYPE_VENTA, SUBTYPE_REGALIA)


# ---------- Caja Chica ----------

class Transaction(Base):
    __tablename__ = "transactions"
    __table_args__ = (
        CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
        CheckConstraint("amount > 0", name="ck_transactions_amount"),
    )

    id = Column(Integer, primary_key=True)
    type = Column(String(10), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


# ---------- Inventario ----------

class InventoryMovement(Base):
    __tablename__ = "inventory"
    __table_args__ = (
        CheckConstraint("type IN ('in', 'out')", name="ck_inventory_type"),
        CheckConstraint("units > 0", name="ck_inventory_units"),
        # Subtyp nur bei Ausgaengen, dort Pflicht
        CheckConstraint(
            "(type = 'in' AND subtype IS NULL) OR "
            "(type = 'out' AND subtype IN ('venta', 'regalia'))",
            name="ck_inventory_subtype",
        ),
    )

    id = Column(Integer, primary_key=True)
    type = Column(String(10), nullable=False)
    subtype = Column(String(10), nullable=True)
    units = Column(Integer, nullable=False)
    description = Column(Text, nullable=False)
    invoice_number = Column(String(100), nullable=True)
    date = Column(Date, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


Index("ix_inventory_date_type", InventoryMovement.date, InventoryMovement.type)


# ---------- Einstellungen ----------

class Setting(Base):
    __tablename__ = "settings"
    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=True)
