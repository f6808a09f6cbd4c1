"""Forward-only typed row cursor over a spreadsheet."""

# Module responsibilities:
# - Interpret the physical sheet layout (skipped rows, header row, data rows).
# - Resolve the schema once: explicit, inferred by a separate pass, or all-string.
# - Deliver typed rows through a bounded buffer refilled on demand.

from __future__ import annotations

import os
from collections import deque
from itertools import chain, islice
from typing import Deque, Iterator, List, Optional, Sequence, Tuple

from .codec import decode
from .errors import OptionsError, SchemaMismatchError, TypeMismatchError
from .inference import SchemaInferrer
from .options import ReadOptions
from .sheets import SheetSource, WorkbookSheetReader
from .types import RawCell, Schema, SemanticType, TypedRow
from .utils.log import get_logger
from .utils.paths import resolve_read_path

logger = get_logger("cursor")

NumberedRow = Tuple[int, List[RawCell]]


def _trim_trailing_empty(row: Sequence[RawCell]) -> List[RawCell]:
    end = len(row)
    while end and row[end - 1].is_empty:
        end -= 1
    return list(row[:end])


def header_names(header: Sequence[RawCell]) -> List[str]:
    """Turn a header row into unique column names.

    Blank header cells are named ``C<position>``; repeated names get their position appended.
    """

    names: List[str] = []
    seen: set[str] = set()
    for idx, cell in enumerate(_trim_trailing_empty(header)):
        text = decode(cell, SemanticType.STRING)
        name = text.strip() if text else ""
        if not name:
            name = f"C{idx}"
        while name in seen:
            name = f"{name}_{idx}"
        seen.add(name)
        names.append(name)
    return names


def _close_iterator(rows: Optional[Iterator[object]]) -> None:
    close = getattr(rows, "close", None)
    if close is not None:
        close()


class RowCursor:
    """Iterates a sheet's data rows as tuples typed by the resolved schema.

    The schema is resolved when the cursor is created. Without an explicit schema and
    with ``infer_schema`` enabled, one full pass over the raw rows (or the first
    ``infer_sample_rows`` data rows) feeds the inferrer before the source is restarted.

    With ``max_rows_in_memory`` set, at most that many decoded rows are held at once;
    otherwise the remainder of the sheet is decoded on the first pull.
    """

    def __init__(
        self,
        source: SheetSource,
        schema: Optional[Schema] = None,
        options: Optional[ReadOptions] = None,
    ) -> None:
        self.options = options or ReadOptions()
        if schema is not None and self.options.infer_schema:
            raise OptionsError("infer_schema cannot be combined with an explicit schema")
        declared = schema if schema is not None else self.options.schema

        self._source = source
        self._raw: Optional[Iterator[List[RawCell]]] = None
        self._rows: Optional[Iterator[NumberedRow]] = None
        self._buffer: Deque[TypedRow] = deque()
        self._pending_error: Optional[Exception] = None
        self._exhausted = False
        self._closed = False
        self._explicit = declared is not None
        self.inferred = False
        self.peak_buffered = 0
        self.rows_delivered = 0

        try:
            self.schema = self._resolve_schema(declared)
        except BaseException:
            self.close()
            raise
        logger.info(
            "Row cursor opened",
            extra={
                "columns": self.schema.names,
                "inferred": self.inferred,
                "max_rows_in_memory": self.options.max_rows_in_memory,
            },
        )

    @classmethod
    def open(
        cls,
        target: str | os.PathLike[str],
        schema: Optional[Schema] = None,
        options: Optional[ReadOptions] = None,
    ) -> "RowCursor":
        """Open a cursor over the workbook at ``target`` (a file, or a directory).

        Raises:
            ResourceError: When the workbook cannot be located or opened.
            MissingSheetError: When ``options.sheet_name`` is absent.
        """

        options = options or ReadOptions()
        path = resolve_read_path(target, options.read_from_file)
        logger.info("Opening workbook for reading", extra={"path": str(path), "sheet": options.sheet_name})
        return cls(WorkbookSheetReader(path, options.sheet_name), schema, options)

    # Layout -----------------------------------------------------------------------

    def _start(self) -> Iterator[NumberedRow]:
        self._raw = self._source.iter_rows()
        return enumerate(self._raw, start=1)

    def _consume_preamble(self, rows: Iterator[NumberedRow]) -> Optional[List[RawCell]]:
        for _ in range(self.options.skip_first_rows):
            if next(rows, None) is None:
                return None
        if not self.options.use_header:
            return None
        pulled = next(rows, None)
        return None if pulled is None else pulled[1]

    def _check_header(self, header: Sequence[RawCell], schema: Schema) -> None:
        names = header_names(header)
        if len(names) != len(schema):
            raise SchemaMismatchError(
                f"Header has {len(names)} columns but the schema declares {len(schema)}: {names}"
            )
        if names != schema.names and sorted(names) == sorted(schema.names):
            raise SchemaMismatchError(
                f"Header column order {names} does not match schema order {schema.names}"
            )

    def _resolve_schema(self, declared: Optional[Schema]) -> Schema:
        rows = self._start()
        header = self._consume_preamble(rows)
        if declared is not None:
            if header is not None:
                self._check_header(header, declared)
            self._rows = rows
            return declared

        first: Optional[NumberedRow] = None
        if header is not None:
            names = header_names(header)
        else:
            first = next(rows, None)
            names = [f"C{idx}" for idx in range(len(_trim_trailing_empty(first[1])))] if first else []
        data_rows: Iterator[NumberedRow] = chain([first], rows) if first is not None else rows

        if not self.options.infer_schema:
            self._rows = data_rows
            return Schema.strings(names)

        sample = self.options.infer_sample_rows
        inferrer = SchemaInferrer(
            names,
            full_scan=sample is None,
            strict_nullability=self.options.strict_nullability,
        )
        scan = data_rows if sample is None else islice(data_rows, sample)
        inferrer.observe_all(row for _, row in scan)
        _close_iterator(self._raw)
        schema = inferrer.schema()
        self.inferred = True
        logger.info(
            "Schema inferred",
            extra={"rows_scanned": inferrer.rows_seen, "types": [field.type.value for field in schema]},
        )

        restarted = self._start()
        self._consume_preamble(restarted)
        self._rows = restarted
        return schema

    # Decoding ---------------------------------------------------------------------

    def _decode_row(self, number: int, raw: Sequence[RawCell]) -> TypedRow:
        width = len(self.schema)
        if len(raw) > width:
            if self._explicit and any(not cell.is_empty for cell in raw[width:]):
                raise SchemaMismatchError(
                    f"Row {number} has {len(_trim_trailing_empty(raw))} cells but the schema declares {width}"
                )
            raw = raw[:width]
        values = []
        empty_as_null = self.options.treat_empty_values_as_nulls
        for idx, field in enumerate(self.schema):
            cell = raw[idx] if idx < len(raw) else RawCell.empty()
            try:
                values.append(
                    decode(cell, field.type, nullable=field.nullable, empty_as_null=empty_as_null)
                )
            except TypeMismatchError as exc:
                raise exc.at(row_number=number, column=field.name) from exc
        return tuple(values)

    def _fill(self) -> None:
        limit = self.options.max_rows_in_memory
        while not self._exhausted and (limit is None or len(self._buffer) < limit):
            pulled = next(self._rows, None) if self._rows is not None else None
            if pulled is None:
                self._exhausted = True
                self._release()
                return
            number, raw = pulled
            try:
                row = self._decode_row(number, raw)
            except (TypeMismatchError, SchemaMismatchError) as exc:
                # Rows decoded ahead of the failure are delivered first.
                self._pending_error = exc
                return
            self._buffer.append(row)
            if len(self._buffer) > self.peak_buffered:
                self.peak_buffered = len(self._buffer)

    # Iteration --------------------------------------------------------------------

    def __iter__(self) -> "RowCursor":
        return self

    def __next__(self) -> TypedRow:
        if self._closed:
            raise StopIteration
        if not self._buffer and self._pending_error is None:
            self._fill()
        if self._buffer:
            self.rows_delivered += 1
            return self._buffer.popleft()
        if self._pending_error is not None:
            error, self._pending_error = self._pending_error, None
            raise error
        raise StopIteration

    def next_row(self) -> Optional[TypedRow]:
        """Return the next typed row, or ``None`` at the end of the sheet."""

        try:
            return next(self)
        except StopIteration:
            return None

    @property
    def buffered(self) -> int:
        """Number of decoded rows currently held."""

        return len(self._buffer)

    # Resources --------------------------------------------------------------------

    def _release(self) -> None:
        _close_iterator(self._raw)
        self._raw = None
        self._rows = None

    def close(self) -> None:
        """Release the underlying workbook; further pulls report the end of the sheet."""

        if self._closed:
            return
        self._closed = True
        self._buffer.clear()
        self._release()
        logger.debug(
            "Row cursor closed",
            extra={"rows": self.rows_delivered, "peak_buffered": self.peak_buffered},
        )

    def __enter__(self) -> "RowCursor":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def read_rows(
    target: str | os.PathLike[str],
    schema: Optional[Schema] = None,
    options: Optional[ReadOptions] = None,
) -> Tuple[Schema, List[TypedRow]]:
    """Read every data row of a workbook; returns the resolved schema and the rows."""

    with RowCursor.open(target, schema, options) as cursor:
        return cursor.schema, list(cursor)


__all__ = ["RowCursor", "header_names", "read_rows"]
