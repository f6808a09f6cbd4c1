"""`sheetbridge` bridges typed tables and spreadsheet workbooks."""

# Module responsibilities:
# - Re-export the codec, inferrer, cursor, writer, options, and pandas adapter so consumers
#   have a stable API surface.

from __future__ import annotations

from . import codec
from .cursor import RowCursor, read_rows
from .errors import (
    InvalidSchemaError,
    MissingSheetError,
    OptionsError,
    ResourceError,
    SchemaMismatchError,
    SheetBridgeError,
    TypeMismatchError,
    WriterClosedError,
)
from .frames import read_frame, schema_from_frame, write_frame
from .inference import SchemaInferrer, infer_cell_type, infer_schema
from .options import (
    ReadOptions,
    SaveMode,
    WriteOptions,
    read_options_from_yaml,
    write_options_from_yaml,
)
from .sheets import MemorySheet, WorkbookSheetReader, WorkbookSheetWriter
from .types import CellKind, Field, RawCell, Schema, SemanticType, widen
from .writer import TableWriter, write_rows

__all__ = [
    "codec",
    "CellKind",
    "Field",
    "RawCell",
    "Schema",
    "SemanticType",
    "widen",
    "SchemaInferrer",
    "infer_cell_type",
    "infer_schema",
    "RowCursor",
    "read_rows",
    "TableWriter",
    "write_rows",
    "ReadOptions",
    "WriteOptions",
    "SaveMode",
    "read_options_from_yaml",
    "write_options_from_yaml",
    "MemorySheet",
    "WorkbookSheetReader",
    "WorkbookSheetWriter",
    "read_frame",
    "write_frame",
    "schema_from_frame",
    "SheetBridgeError",
    "OptionsError",
    "InvalidSchemaError",
    "SchemaMismatchError",
    "TypeMismatchError",
    "MissingSheetError",
    "ResourceError",
    "WriterClosedError",
]

__version__ = "0.1.0"
