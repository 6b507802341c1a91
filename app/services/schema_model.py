"""
Column typing rules for user-defined tables.

Every column type has exactly one coercer. A coercer turns a raw payload value
into the form stored in a row, or raises ``ValueError``/``TypeError`` when the
value cannot represent that type. ``validate`` wraps the coercers so callers
always get a ``(value, ok)`` pair back.
"""

import json
import math
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, Tuple, get_args

from app.models.schemas import Column, ColumnType

INTEGER_RANGES = {
    "int": (-(2**31), 2**31 - 1),
    "bigint": (-(2**63), 2**63 - 1),
}

TRUE_STRINGS = {"true", "t", "yes", "y", "on", "1"}
FALSE_STRINGS = {"false", "f", "no", "n", "off", "0"}


def is_absent(value: Any) -> bool:
    """Missing values are ``None`` and the empty string."""
    return value is None or (isinstance(value, str) and value == "")


def _to_decimal(raw: Any) -> Decimal:
    if isinstance(raw, bool):
        raise TypeError("booleans are not numbers")
    if isinstance(raw, (int, float, Decimal)):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        value = Decimal(raw.strip())
    else:
        raise TypeError(f"cannot read a number from {type(raw).__name__}")
    if not value.is_finite():
        raise ValueError("number must be finite")
    return value


def _coerce_text(column: Column, raw: Any) -> str:
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float, Decimal)):
        raise TypeError(f"expected text, got {type(raw).__name__}")
    value = raw if isinstance(raw, str) else str(raw)
    if column.type == "varchar" and column.length is not None and len(value) > column.length:
        raise ValueError(f"longer than {column.length} characters")
    return value


def _coerce_integer(column: Column, raw: Any) -> int:
    if isinstance(raw, int) and not isinstance(raw, bool):
        value = raw
    else:
        number = _to_decimal(raw)
        if number != number.to_integral_value():
            raise ValueError("not a whole number")
        value = int(number)
    low, high = INTEGER_RANGES[column.type]
    if not low <= value <= high:
        raise ValueError(f"outside the {column.type} range")
    return value


def _coerce_decimal(column: Column, raw: Any) -> float:
    number = _to_decimal(raw)
    if column.precision is not None:
        number = number.quantize(Decimal(1).scaleb(-column.precision))
    value = float(number)
    if math.isinf(value):
        raise ValueError("outside the decimal range")
    return value


def _coerce_boolean(column: Column, raw: Any) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, int) and raw in (0, 1):
        return bool(raw)
    if isinstance(raw, str):
        lowered = raw.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ValueError(f"{raw!r} is not a boolean")


def _coerce_datetime(column: Column, raw: Any) -> str:
    if isinstance(raw, datetime):
        return raw.isoformat()
    if isinstance(raw, date):
        return datetime(raw.year, raw.month, raw.day, tzinfo=timezone.utc).isoformat()
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).isoformat()
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        return datetime.fromtimestamp(raw, tz=timezone.utc).isoformat()
    raise TypeError(f"cannot read a timestamp from {type(raw).__name__}")


def _coerce_json(column: Column, raw: Any) -> Any:
    value = json.loads(raw) if isinstance(raw, str) else raw
    return json.loads(json.dumps(value, allow_nan=False))


def _coerce_uuid(column: Column, raw: Any) -> str:
    if isinstance(raw, uuid.UUID):
        return str(raw)
    if not isinstance(raw, str):
        raise TypeError(f"cannot read a uuid from {type(raw).__name__}")
    return str(uuid.UUID(raw.strip()))


COERCERS: Dict[str, Callable[[Column, Any], Any]] = {
    "varchar": _coerce_text,
    "text": _coerce_text,
    "int": _coerce_integer,
    "bigint": _coerce_integer,
    "decimal": _coerce_decimal,
    "boolean": _coerce_boolean,
    "datetime": _coerce_datetime,
    "json": _coerce_json,
    "uuid": _coerce_uuid,
}

if set(COERCERS) != set(get_args(ColumnType)):
    raise RuntimeError("Every column type needs exactly one coercer")


def validate(column: Column, raw_value: Any) -> Tuple[Any, bool]:
    """
    Coerce a raw value to the column's stored form.

    Absent values fall back to the column default, and to ``None`` when there
    is no default.

    Args:
        column: Column definition the value is written to
        raw_value: Value as supplied by the caller

    Returns:
        ``(coerced_value, True)`` on success, ``(None, False)`` when the value
        cannot be coerced to the column type
    """
    if is_absent(raw_value):
        if is_absent(column.default_value):
            return None, True
        raw_value = column.default_value

    coercer = COERCERS[column.type]
    try:
        return coercer(column, raw_value), True
    except (TypeError, ValueError, ArithmeticError, OSError, RecursionError):
        return None, False


def is_complete(column: Column, coerced_value: Any) -> bool:
    """False only for a required, non-generated column without a value."""
    if not column.required or column.is_generated:
        return True
    return not is_absent(coerced_value)
