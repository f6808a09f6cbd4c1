"""Cell-level coercion between raw spreadsheet cells and typed values."""

# Module responsibilities:
# - decode(): convert one RawCell into a value of the requested SemanticType.
# - encode(): convert one typed value into the RawCell the workbook stores.
# - Keep both directions pure; position context is attached by callers.

from __future__ import annotations

import math
import numbers
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Optional

from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.datetime import from_excel, to_excel

from .errors import TypeMismatchError
from .types import CellKind, RawCell, SemanticType, integral_bounds

_SERIAL_EPOCH = date(1899, 12, 30)
_TRUE_TOKENS = {"true"}
_FALSE_TOKENS = {"false"}
MAX_CELL_TEXT = 32767


def format_number(value: float) -> str:
    """Render a numeric cell as text; integral values drop the trailing ``.0``."""

    if math.isfinite(value) and value.is_integer():
        return str(int(value))
    return repr(value)


def _integral(raw: RawCell, number: float | Decimal, target: SemanticType) -> int:
    finite = number.is_finite() if isinstance(number, Decimal) else math.isfinite(number)
    if not finite:
        raise TypeMismatchError(raw, target, "not a finite number")
    if number != int(number):
        raise TypeMismatchError(raw, target, "value has a fractional part")
    value = int(number)
    low, high = integral_bounds(target)
    if not low <= value <= high:
        raise TypeMismatchError(raw, target, f"value outside [{low}, {high}]")
    return value


def _serial_to_datetime(raw: RawCell, serial: float, target: SemanticType) -> datetime:
    try:
        converted = from_excel(serial)
    except (ValueError, OverflowError) as exc:
        raise TypeMismatchError(raw, target, f"invalid date serial ({exc})") from exc
    if isinstance(converted, time):
        return datetime.combine(_SERIAL_EPOCH, converted)
    return converted


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def _naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _from_numeric(raw: RawCell, target: SemanticType) -> Any:
    number = float(raw.value)
    if target.is_integral:
        return _integral(raw, number, target)
    if target is SemanticType.DOUBLE:
        return number
    if target is SemanticType.DECIMAL:
        if not math.isfinite(number):
            raise TypeMismatchError(raw, target, "not a finite number")
        return Decimal(repr(number))
    if target is SemanticType.STRING:
        return format_number(number)
    if target is SemanticType.TIMESTAMP:
        return _serial_to_datetime(raw, number, target)
    if target is SemanticType.DATE:
        return _serial_to_datetime(raw, number, target).date()
    raise TypeMismatchError(raw, target, "numeric cell cannot be read as boolean")


def _from_boolean(raw: RawCell, target: SemanticType) -> Any:
    if target is SemanticType.BOOLEAN:
        return bool(raw.value)
    if target is SemanticType.STRING:
        return "TRUE" if raw.value else "FALSE"
    raise TypeMismatchError(raw, target, "boolean cell")


def _from_calendar(raw: RawCell, target: SemanticType) -> Any:
    value = raw.value
    if target is SemanticType.TIMESTAMP:
        return _as_datetime(value)
    if target is SemanticType.DATE:
        return value.date() if isinstance(value, datetime) else value
    if target is SemanticType.STRING:
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        return value.isoformat()
    if target.is_numeric:
        serial = to_excel(value)
        return _from_numeric(RawCell.numeric(serial), target)
    raise TypeMismatchError(raw, target, "date cell")


def _from_string(raw: RawCell, target: SemanticType) -> Any:
    text = str(raw.value)
    if target is SemanticType.STRING:
        return text
    token = text.strip()
    if target is SemanticType.BOOLEAN:
        lowered = token.lower()
        if lowered in _TRUE_TOKENS:
            return True
        if lowered in _FALSE_TOKENS:
            return False
        raise TypeMismatchError(raw, target, "expected 'true' or 'false'")
    if target is SemanticType.DOUBLE:
        try:
            return float(token)
        except ValueError as exc:
            raise TypeMismatchError(raw, target, "not a number") from exc
    if target is SemanticType.DECIMAL or target.is_integral:
        try:
            number = Decimal(token)
        except InvalidOperation as exc:
            raise TypeMismatchError(raw, target, "not a number") from exc
        if target is SemanticType.DECIMAL:
            return number
        return _integral(raw, number, target)
    if target is SemanticType.TIMESTAMP:
        try:
            return datetime.fromisoformat(token)
        except ValueError as exc:
            raise TypeMismatchError(raw, target, "not an ISO timestamp") from exc
    if target is SemanticType.DATE:
        try:
            return date.fromisoformat(token)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(token).date()
        except ValueError as exc:
            raise TypeMismatchError(raw, target, "not an ISO date") from exc
    raise TypeMismatchError(raw, target, "unsupported target")


_DECODERS: Dict[CellKind, Callable[[RawCell, SemanticType], Any]] = {
    CellKind.NUMERIC: _from_numeric,
    CellKind.BOOLEAN: _from_boolean,
    CellKind.DATE: _from_calendar,
    CellKind.STRING: _from_string,
}


def _decode_empty(raw: RawCell, target: SemanticType, nullable: bool, empty_as_null: bool) -> Any:
    if target is SemanticType.STRING:
        return None if (nullable and empty_as_null) else ""
    if nullable:
        return None
    raise TypeMismatchError(raw, target, "empty cell in a non-nullable column")


def decode(
    raw: RawCell,
    target: SemanticType,
    *,
    nullable: bool = True,
    empty_as_null: bool = True,
) -> Any:
    """Decode a raw cell into a value of ``target``.

    Args:
        raw: Cell as produced by the sheet source.
        target: Declared type of the column.
        nullable: Whether the column admits nulls.
        empty_as_null: For STRING columns, decode empty cells (and empty strings) to ``None``
            instead of ``""``.

    Returns:
        The typed value, or ``None``.

    Raises:
        TypeMismatchError: When the cell cannot represent a ``target`` value.
    """

    if raw.kind is CellKind.EMPTY:
        return _decode_empty(raw, target, nullable, empty_as_null)
    if raw.kind is CellKind.STRING:
        # Blank text defers to the empty-cell policy, except that STRING keeps whitespace.
        if raw.value == "" or (target is not SemanticType.STRING and raw.is_blank):
            return _decode_empty(raw, target, nullable, empty_as_null)
    return _DECODERS[raw.kind](raw, target)


def _natural(value: Any) -> RawCell:
    if isinstance(value, bool):
        return RawCell.boolean(value)
    if isinstance(value, (numbers.Real, Decimal)):
        return _numeric_cell(value, SemanticType.DOUBLE)
    if isinstance(value, datetime):
        return RawCell.calendar(_naive_utc(value))
    if isinstance(value, date):
        return RawCell.calendar(value)
    return _text_cell(value)


def _text_cell(value: Any) -> RawCell:
    text = value if isinstance(value, str) else str(value)
    if text == "":
        return RawCell.empty()
    if len(text) > MAX_CELL_TEXT:
        raise TypeMismatchError(value, SemanticType.STRING, f"text longer than {MAX_CELL_TEXT} characters")
    if ILLEGAL_CHARACTERS_RE.search(text):
        raise TypeMismatchError(value, SemanticType.STRING, "text contains control characters")
    return RawCell.string(text)


def _numeric_cell(value: Any, target: SemanticType) -> RawCell:
    number = float(value)
    if not math.isfinite(number):
        raise TypeMismatchError(value, target, "spreadsheet cells cannot hold non-finite numbers")
    return RawCell.numeric(number)


def encode(value: Any, target: Optional[SemanticType] = None) -> RawCell:
    """Encode a typed value as the raw cell to be written.

    ``None`` and ``""`` both map to the empty cell; readers recover ``None`` with the
    empty-as-null policy. Without a ``target`` the value's natural representation is used.

    Raises:
        TypeMismatchError: When ``value`` does not belong to ``target``.
    """

    if value is None:
        return RawCell.empty()
    if target is None:
        return _natural(value)
    if target is SemanticType.STRING:
        return _text_cell(value)
    if target is SemanticType.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeMismatchError(value, target, "expected bool")
        return RawCell.boolean(value)
    if target.is_integral:
        if isinstance(value, bool) or not isinstance(value, numbers.Integral):
            raise TypeMismatchError(value, target, "expected int")
        low, high = integral_bounds(target)
        if not low <= int(value) <= high:
            raise TypeMismatchError(value, target, f"value outside [{low}, {high}]")
        return _numeric_cell(value, target)
    if target is SemanticType.DOUBLE or target is SemanticType.DECIMAL:
        if isinstance(value, bool) or not isinstance(value, (numbers.Real, Decimal)):
            raise TypeMismatchError(value, target, "expected a number")
        return _numeric_cell(value, target)
    if target is SemanticType.TIMESTAMP:
        if not isinstance(value, date):
            raise TypeMismatchError(value, target, "expected datetime")
        return RawCell.calendar(_naive_utc(_as_datetime(value)))
    if target is SemanticType.DATE:
        if not isinstance(value, date):
            raise TypeMismatchError(value, target, "expected date")
        return RawCell.calendar(value.date() if isinstance(value, datetime) else value)
    raise TypeMismatchError(value, target, "unsupported target")


__all__ = ["decode", "encode", "format_number"]
