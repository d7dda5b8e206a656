import os

# Vor dem App-Import: In-Memory-DB fuer die ganze Session
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

from cajachica.models import base as db_base
from cajachica.models.entities import InventoryMovement, Transaction
from main import app


@pytest.fixture(autouse=True)
def fresh_schema():
    db_base.Base.metadata.drop_all(db_base.engine)
    db_base.Base.metadata.create_all(db_base.engine)
    yield


@pytest.fixture
def db():
    session = db_base.SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def add_tx(db):
    def _add(type_, amount, day, description="movimiento"):
        t = Transaction(type=type_, amount=amount, date=day, description=description)
        db.add(t)
        db.commit()
        return t
    return _add


@pytest.fixture
def add_move(db):
    def _add(type_, units, day, subtype=None, description="producto", invoice_number=None):
        if type_ == "out" and subtype is None:
            subtype = "venta"
        m = InventoryMovement(type=type_, subtype=subtype, units=units, date=day,
                              description=description, invoice_number=invoice_number)
        db.add(m)
        db.commit()
        return m
    return _add
