"""pandas adapter: DataFrames in and out of spreadsheets."""

# Module responsibilities:
# - Derive a Schema from DataFrame dtypes so frames can be written without declarations.
# - Honour save modes before handing rows to TableWriter.
# - Build DataFrames from cursor output with dtypes that keep nulls distinct from "".

from __future__ import annotations

import os
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .cursor import read_rows
from .options import ReadOptions, WriteOptions
from .types import Field, Schema, SemanticType
from .utils.log import get_logger
from .writer import TableWriter

logger = get_logger("frames")

_INTEGER_DTYPES: Dict[str, SemanticType] = {
    "int8": SemanticType.INT8,
    "int16": SemanticType.INT16,
    "int32": SemanticType.INT32,
    "int64": SemanticType.INT64,
    "uint8": SemanticType.INT16,
    "uint16": SemanticType.INT32,
    "uint32": SemanticType.INT64,
}

_NULLABLE_DTYPES: Dict[SemanticType, str] = {
    SemanticType.BOOLEAN: "boolean",
    SemanticType.INT8: "Int8",
    SemanticType.INT16: "Int16",
    SemanticType.INT32: "Int32",
    SemanticType.INT64: "Int64",
}

_STRICT_DTYPES: Dict[SemanticType, str] = {
    SemanticType.BOOLEAN: "bool",
    SemanticType.INT8: "int8",
    SemanticType.INT16: "int16",
    SemanticType.INT32: "int32",
    SemanticType.INT64: "int64",
}


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _object_type(series: pd.Series) -> SemanticType:
    values = [value for value in series if not _is_missing(value)]
    if not values:
        return SemanticType.STRING
    if all(isinstance(value, bool) for value in values):
        return SemanticType.BOOLEAN
    if all(isinstance(value, Decimal) for value in values):
        return SemanticType.DECIMAL
    if all(isinstance(value, datetime) for value in values):
        return SemanticType.TIMESTAMP
    if all(isinstance(value, date) for value in values):
        return SemanticType.DATE
    if all(isinstance(value, int) and not isinstance(value, bool) for value in values):
        return SemanticType.INT64
    if all(isinstance(value, (int, float)) and not isinstance(value, bool) for value in values):
        return SemanticType.DOUBLE
    return SemanticType.STRING


def _series_field(name: str, series: pd.Series) -> Field:
    dtype = series.dtype
    extension = pd.api.types.is_extension_array_dtype(dtype)
    if pd.api.types.is_bool_dtype(dtype):
        return Field(name, SemanticType.BOOLEAN, nullable=extension)
    if pd.api.types.is_integer_dtype(dtype):
        kind = _INTEGER_DTYPES.get(str(dtype).lower(), SemanticType.DECIMAL)
        return Field(name, kind, nullable=extension)
    if pd.api.types.is_float_dtype(dtype):
        return Field(name, SemanticType.DOUBLE)
    if pd.api.types.is_datetime64_any_dtype(dtype):
        return Field(name, SemanticType.TIMESTAMP)
    return Field(name, _object_type(series))


def schema_from_frame(frame: pd.DataFrame) -> Schema:
    """Map DataFrame columns and dtypes to a Schema."""

    return Schema(tuple(_series_field(str(name), frame[name]) for name in frame.columns))


def _cell_value(value: Any) -> Any:
    if _is_missing(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes, Decimal, date)):
        # numpy scalar
        return value.item()
    return value


def write_frame(
    frame: pd.DataFrame,
    target: str | os.PathLike[str],
    options: Optional[WriteOptions] = None,
    schema: Optional[Schema] = None,
) -> Optional[Path]:
    """Write ``frame`` to a workbook.

    Args:
        frame: Source data; NaN/NaT/NA values are written as empty cells.
        target: Workbook path, or a directory when ``options.write_to_file`` is set.
        options: Write options, including the save mode.
        schema: Optional explicit schema; derived from dtypes when omitted.

    Returns:
        Path of the written workbook, or ``None`` when the ignore mode skipped the write.

    Raises:
        ResourceError: When the target exists and the mode is ``error``.
    """

    options = options or WriteOptions()
    schema = schema or schema_from_frame(frame)
    with TableWriter.open(target, schema, options) as writer:
        if writer.skipped:
            return None
        for row in frame.itertuples(index=False, name=None):
            writer.write_row([_cell_value(value) for value in row])
    return writer.path


def _column(values: List[Any], field: Field) -> pd.Series:
    if field.type in _NULLABLE_DTYPES:
        dtypes = _NULLABLE_DTYPES if field.nullable else _STRICT_DTYPES
        return pd.Series(values, dtype=dtypes[field.type])
    if field.type is SemanticType.DOUBLE:
        return pd.Series([float("nan") if value is None else value for value in values], dtype="float64")
    if field.type is SemanticType.TIMESTAMP:
        return pd.Series(values, dtype="datetime64[ns]")
    return pd.Series(values, dtype="object")


def read_frame(
    target: str | os.PathLike[str],
    options: Optional[ReadOptions] = None,
    schema: Optional[Schema] = None,
) -> pd.DataFrame:
    """Read a workbook into a DataFrame typed by the explicit or resolved schema."""

    resolved, rows = read_rows(target, schema, options)
    columns = {
        field.name: _column([row[idx] for row in rows], field)
        for idx, field in enumerate(resolved)
    }
    frame = pd.DataFrame(columns, columns=resolved.names)
    logger.info("DataFrame loaded", extra={"rows": len(frame.index), "columns": resolved.names})
    return frame


__all__ = ["read_frame", "schema_from_frame", "write_frame"]
