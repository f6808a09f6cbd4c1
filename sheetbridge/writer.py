"""Typed row output into a spreadsheet."""

# Module responsibilities:
# - Emit the optional disclaimer row and header row ahead of the data rows.
# - Encode every typed row through the cell codec, preserving row order.
# - Finalize the workbook (atomic save) and drop the completion marker in directory mode.

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from .codec import encode
from .errors import ResourceError, SchemaMismatchError, TypeMismatchError, WriterClosedError
from .options import SaveMode, WriteOptions
from .sheets import MemorySheet, SheetSink, WorkbookSheetWriter
from .types import RawCell, Schema, SemanticType
from .utils.log import get_logger
from .utils.paths import resolve_write_path, write_success_marker

logger = get_logger("writer")


def skip_existing(path: Path, mode: SaveMode) -> bool:
    """Apply ``mode`` to an existing workbook at ``path``; True means leave it untouched.

    Raises:
        ResourceError: When ``path`` exists and the mode is ``error``.
    """

    if not path.exists():
        return False
    if mode is SaveMode.ERROR:
        raise ResourceError(f"Workbook already exists: {path}")
    if mode is SaveMode.IGNORE:
        logger.info("Workbook exists; write skipped", extra={"path": str(path)})
        return True
    return False


class TableWriter:
    """Writes typed rows to one sheet, then finalizes the output once.

    Used as a context manager, a clean exit finalizes the workbook and an exception
    discards it, so partially written files are never published.
    """

    def __init__(
        self,
        sink: SheetSink,
        schema: Optional[Schema] = None,
        options: Optional[WriteOptions] = None,
        *,
        marker_dir: Optional[Path] = None,
        path: Optional[Path] = None,
        skipped: bool = False,
    ) -> None:
        self.options = options or WriteOptions()
        self.schema = schema
        self.path = path
        self.skipped = skipped
        self.rows_written = 0
        self._sink = sink
        self._marker_dir = marker_dir
        self._physical_rows = 0
        self._finalized = False
        self._emit_preamble()

    @classmethod
    def open(
        cls,
        target: str | os.PathLike[str],
        schema: Optional[Schema] = None,
        options: Optional[WriteOptions] = None,
    ) -> "TableWriter":
        """Open a writer for ``target``.

        With ``options.write_to_file`` set, ``target`` is a directory and the workbook
        lands at ``target/write_to_file``; a ``_SUCCESS`` marker follows on finalize.
        An existing workbook is replaced under ``overwrite``. Under ``ignore`` the
        returned writer is ``skipped``: rows are validated, nothing is written, and
        ``finalize()`` returns ``None``.

        Raises:
            ResourceError: When the workbook exists and the mode is ``error``.
        """

        options = options or WriteOptions()
        resolved = resolve_write_path(target, options.write_to_file)
        if skip_existing(resolved.path, options.mode):
            return cls(MemorySheet(), schema, options, skipped=True)
        logger.info(
            "Opening workbook for writing",
            extra={"path": str(resolved.path), "sheet": options.sheet_name},
        )
        sink = WorkbookSheetWriter(resolved.path, options.sheet_name)
        return cls(sink, schema, options, marker_dir=resolved.marker_dir, path=resolved.path)

    def _append(self, cells: Sequence[RawCell]) -> None:
        self._sink.append(cells)
        self._physical_rows += 1

    def _emit_preamble(self) -> None:
        if self.options.legal_disclaimer:
            self._append([encode(self.options.legal_disclaimer, SemanticType.STRING)])
        if self.options.use_header and self.schema is not None:
            self._append([encode(name, SemanticType.STRING) for name in self.schema.names])

    def _encode_row(self, row: Sequence[Any]) -> List[RawCell]:
        row_number = self._physical_rows + 1
        if self.schema is None:
            return [encode(value) for value in row]
        if len(row) != len(self.schema):
            raise SchemaMismatchError(
                f"Row {row_number} has {len(row)} values but the schema declares {len(self.schema)}"
            )
        cells = []
        for value, field in zip(row, self.schema):
            if value is None and not field.nullable:
                raise TypeMismatchError(
                    value, field.type, "null in a non-nullable column",
                    row_number=row_number, column=field.name,
                )
            try:
                cells.append(encode(value, field.type))
            except TypeMismatchError as exc:
                raise exc.at(row_number=row_number, column=field.name) from exc
        return cells

    def write_row(self, row: Sequence[Any]) -> None:
        """Append one typed row.

        Raises:
            WriterClosedError: After ``finalize()``.
            SchemaMismatchError: When the row width differs from the schema.
            TypeMismatchError: When a value does not belong to its column type.
        """

        if self._finalized:
            raise WriterClosedError("write_row() called after finalize()")
        self._append(self._encode_row(row))
        self.rows_written += 1

    def write_rows(self, rows: Iterable[Sequence[Any]]) -> int:
        count = 0
        for row in rows:
            self.write_row(row)
            count += 1
        return count

    @property
    def finalized(self) -> bool:
        return self._finalized

    def finalize(self) -> Optional[Path]:
        """Flush and close the output; safe to call more than once."""

        if self._finalized:
            return self.path
        self._finalized = True
        if self.skipped:
            return None
        self._sink.save()
        if self._marker_dir is not None:
            write_success_marker(self._marker_dir)
        logger.info(
            "Workbook written",
            extra={"path": str(self.path) if self.path else None, "rows": self.rows_written},
        )
        return self.path

    def abort(self) -> None:
        """Drop the output without publishing it."""

        if self._finalized:
            return
        self._finalized = True
        self._sink.discard()
        logger.warning("Workbook write aborted", extra={"path": str(self.path) if self.path else None})

    def __enter__(self) -> "TableWriter":
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        if exc_type is None:
            self.finalize()
        else:
            self.abort()


def write_rows(
    target: str | os.PathLike[str],
    rows: Iterable[Sequence[Any]],
    schema: Optional[Schema] = None,
    options: Optional[WriteOptions] = None,
) -> Optional[Path]:
    """Write ``rows`` to a new workbook at ``target`` and return its path.

    Returns ``None`` when the ``ignore`` mode left an existing workbook in place.
    """

    with TableWriter.open(target, schema, options) as writer:
        if not writer.skipped:
            writer.write_rows(rows)
    return writer.path


__all__ = ["TableWriter", "skip_existing", "write_rows"]
