# cajachica/services/periods.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any

from cajachica.services.errors import InvalidPeriod

MESES = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)


@dataclass(frozen=True)
class Period:
    month: int
    year: int
    first_day: date
    last_day: date

    @property
    def label(self) -> str:
        """z. B. 'MARZO 2024' fuer Berichtskoepfe."""
        return f"{MESES[self.month - 1]} {self.year}".upper()


def _to_int(val: Any, field: str) -> int:
    if isinstance(val, bool):
        raise InvalidPeriod(f"Invalid {field}")
    if isinstance(val, int):
        return val
    try:
        return int(str(val).strip())
    except ValueError:
        raise InvalidPeriod(f"Invalid {field}")


def resolve_period(month: Any, year: Any) -> Period:
    """
    Liefert ersten und letzten Kalendertag des Monats (beide inklusive).
    Letzter Tag = Tag vor dem Ersten des Folgemonats, im Dezember der 31.12.
    Schaltjahre ergeben sich daraus von selbst.
    """
    if month is None or year is None or str(month).strip() == "" or str(year).strip() == "":
        raise InvalidPeriod("Month and year are required")

    m = _to_int(month, "month")
    y = _to_int(year, "year")
    if not 1 <= m <= 12:
        raise InvalidPeriod("Invalid month (1-12)")

    try:
        first_day = date(y, m, 1)
    except (ValueError, OverflowError):
        raise InvalidPeriod("Invalid year")
    if m == 12:
        # date(y + 1, 1, 1) gibt es fuer 9999 nicht mehr
        last_day = date(y, 12, 31)
    else:
        last_day = date(y, m + 1, 1) - timedelta(days=1)
    return Period(month=m, year=y, first_day=first_day, last_day=last_day)
