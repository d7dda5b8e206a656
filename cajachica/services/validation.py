# cajachica/services/validation.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from cajachica.services.errors import ValidationError

Q2 = Decimal("0.01")
# Numeric(10, 2)
MAX_AMOUNT = Decimal("99999999.99")
MAX_UNITS = 2**31 - 1

DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")


def round2(x: Decimal) -> Decimal:
    return x.quantize(Q2, rounding=ROUND_HALF_UP)


def require_object(payload: Any) -> Dict[str, Any]:
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    return payload


def _blank(val: Any) -> bool:
    return val is None or (isinstance(val, str) and not val.strip())


def parse_choice(val: Any, choices: tuple, field: str) -> str:
    if _blank(val):
        raise ValidationError(f"Field '{field}' is required")
    s = str(val).strip().lower()
    if s not in choices:
        raise ValidationError(f"Field '{field}' must be one of: {', '.join(choices)}")
    return s


def parse_text(val: Any, field: str) -> str:
    if _blank(val):
        raise ValidationError(f"Field '{field}' is required")
    if not isinstance(val, str):
        raise ValidationError(f"Field '{field}' must be text")
    return val.strip()


def optional_text(val: Any) -> Optional[str]:
    if _blank(val):
        return None
    return str(val).strip()


def parse_amount(val: Any, field: str = "amount") -> Decimal:
    """Betrag > 0, auf Rappen/Centavos gerundet. Komma als Dezimaltrenner erlaubt."""
    if _blank(val):
        raise ValidationError(f"Field '{field}' is required")
    if isinstance(val, bool):
        raise ValidationError(f"Field '{field}' must be a number")
    if isinstance(val, (int, float, Decimal)):
        s = str(val)
    else:
        s = str(val).strip().replace(",", ".")
    try:
        d = Decimal(s)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Field '{field}' must be a number")
    if not d.is_finite():
        raise ValidationError(f"Field '{field}' must be a number")
    # Grenzen vor dem Runden pruefen, quantize verkraftet keine Riesenexponenten
    if d <= 0:
        raise ValidationError(f"Field '{field}' must be greater than zero")
    if d > MAX_AMOUNT:
        raise ValidationError(f"Field '{field}' is too large")
    d = round2(d)
    if d <= 0:
        raise ValidationError(f"Field '{field}' must be greater than zero")
    if d > MAX_AMOUNT:
        raise ValidationError(f"Field '{field}' is too large")
    return d


def parse_units(val: Any, field: str = "units") -> int:
    """Ganze Stueckzahl > 0; 3, 3.0 und "3" sind ok, 2.5 nicht."""
    if _blank(val):
        raise ValidationError(f"Field '{field}' is required")
    if isinstance(val, bool):
        raise ValidationError(f"Field '{field}' must be a whole number")
    try:
        d = Decimal(str(val).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Field '{field}' must be a whole number")
    if not d.is_finite():
        raise ValidationError(f"Field '{field}' must be a whole number")
    # Bereich auf dem Decimal pruefen, int() auf 1e3000000 dauert ewig
    if d <= 0:
        raise ValidationError(f"Field '{field}' must be greater than zero")
    if d > MAX_UNITS:
        raise ValidationError(f"Field '{field}' is too large")
    if d != d.to_integral_value():
        raise ValidationError(f"Field '{field}' must be a whole number")
    return int(d)


def parse_date(val: Any, field: str = "date") -> date:
    if _blank(val):
        raise ValidationError(f"Field '{field}' is required")
    s = str(val).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            pass
    raise ValidationError(f"Field '{field}' must be a date (YYYY-MM-DD)")
