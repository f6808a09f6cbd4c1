"""Exception types raised across sheetbridge."""

from __future__ import annotations

from typing import Any


class SheetBridgeError(Exception):
    """Base error for the package."""


class OptionsError(SheetBridgeError, ValueError):
    """Raised when read/write options are invalid or contradict each other."""


class InvalidSchemaError(SheetBridgeError, ValueError):
    """Raised when a schema declaration is malformed."""


class SchemaMismatchError(SheetBridgeError):
    """Raised when a declared schema does not line up with the physical sheet."""


class TypeMismatchError(SheetBridgeError, ValueError):
    """Raised when a cell cannot be coerced to its column's declared type.

    Attributes:
        raw: The offending raw cell.
        target: Semantic type the cell was decoded against.
        row_number: 1-based physical sheet row, when known.
        column: Column name, when known.
        reason: Short description of the failed coercion.
    """

    def __init__(
        self,
        raw: Any,
        target: Any,
        reason: str,
        *,
        row_number: int | None = None,
        column: str | None = None,
    ) -> None:
        self.raw = raw
        self.target = target
        self.reason = reason
        self.row_number = row_number
        self.column = column
        super().__init__(self._format())

    def _format(self) -> str:
        location = []
        if self.row_number is not None:
            location.append(f"row={self.row_number}")
        if self.column is not None:
            location.append(f"column={self.column!r}")
        prefix = f"[{', '.join(location)}] " if location else ""
        target = getattr(self.target, "value", self.target)
        return f"{prefix}cannot decode {self.raw!r} as {target}: {self.reason}"

    def at(self, *, row_number: int, column: str) -> "TypeMismatchError":
        """Return a copy of this error pinned to a sheet position."""

        return TypeMismatchError(
            self.raw,
            self.target,
            self.reason,
            row_number=row_number,
            column=column,
        )


class MissingSheetError(SheetBridgeError, KeyError):
    """Raised when the requested sheet is absent from the workbook."""

    def __init__(self, sheet_name: str, available: list[str]) -> None:
        self.sheet_name = sheet_name
        self.available = available
        super().__init__(f"Sheet '{sheet_name}' not found; available sheets: {', '.join(available)}")

    def __str__(self) -> str:
        return str(self.args[0])


class ResourceError(SheetBridgeError, OSError):
    """Raised when the underlying workbook cannot be located, opened, or written."""


class WriterClosedError(SheetBridgeError):
    """Raised when rows are written after the writer was finalized."""
