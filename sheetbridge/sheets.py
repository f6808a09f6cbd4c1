"""
RESPONSIBILITIES
- Wrap openpyxl as the sheet source/sink the cursor and writer consume.
- Translate between openpyxl cell values and RawCell in one place.
- Offer an in-memory sheet with the same surface for callers that skip the file layer.
PROCESS OVERVIEW
1. WorkbookSheetReader.iter_rows() opens the workbook read-only, selects the sheet,
   yields one list of RawCell per physical row, and closes the workbook when the
   generator finishes or is closed.
2. WorkbookSheetWriter.append() streams rows into a write-only workbook.
3. WorkbookSheetWriter.save() writes a temporary file and swaps it into place.
"""

from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Iterator, List, Optional, Protocol, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.utils.exceptions import InvalidFileException

from .errors import MissingSheetError, OptionsError, ResourceError
from .types import CellKind, RawCell

DEFAULT_SHEET_NAME = "Sheet1"


class SheetSource(Protocol):
    """Anything that can (re)start iteration over raw rows."""

    def iter_rows(self) -> Iterator[List[RawCell]]:
        """Return a fresh iterator positioned on the first physical row."""


class SheetSink(Protocol):
    """Row-at-a-time destination for raw cells."""

    def append(self, cells: Sequence[RawCell]) -> None:
        """Append one physical row."""

    def save(self) -> None:
        """Flush and close the destination."""

    def discard(self) -> None:
        """Release resources without publishing output."""


class MemorySheet:
    """List-backed sheet usable both as a source and as a sink."""

    def __init__(self, rows: Optional[Sequence[Sequence[RawCell]]] = None) -> None:
        self.rows: List[List[RawCell]] = [list(row) for row in rows or ()]
        self.saved = False
        self.discarded = False
        self.open_iterators = 0

    @classmethod
    def from_values(cls, rows: Sequence[Sequence[object]]) -> "MemorySheet":
        """Build a sheet from native cell values (as openpyxl would return them)."""

        return cls([[RawCell.from_native(value) for value in row] for row in rows])

    def iter_rows(self) -> Iterator[List[RawCell]]:
        self.open_iterators += 1
        try:
            for row in self.rows:
                yield list(row)
        finally:
            self.open_iterators -= 1

    def append(self, cells: Sequence[RawCell]) -> None:
        self.rows.append(list(cells))

    def save(self) -> None:
        self.saved = True

    def discard(self) -> None:
        self.discarded = True

    def values(self) -> List[List[object]]:
        """Return rows as native values, convenient for assertions."""

        return [[cell.to_native() for cell in row] for row in self.rows]


def _select_sheet(workbook: Workbook, sheet_name: Optional[str]):
    if sheet_name is None:
        return workbook.worksheets[0]
    if sheet_name not in workbook.sheetnames:
        raise MissingSheetError(sheet_name, list(workbook.sheetnames))
    return workbook[sheet_name]


def _open_workbook(path: Path) -> Workbook:
    try:
        return load_workbook(path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile) as exc:
        raise ResourceError(f"Cannot open workbook {path}: {exc}") from exc


class WorkbookSheetReader:
    """Sheet source reading one worksheet of an ``.xlsx`` file."""

    def __init__(self, path: Path, sheet_name: Optional[str] = None) -> None:
        self.path = Path(path)
        self.sheet_name = sheet_name

    def iter_rows(self) -> Iterator[List[RawCell]]:
        workbook = _open_workbook(self.path)
        try:
            worksheet = _select_sheet(workbook, self.sheet_name)
            # Stored dimensions can be stale; rows come back ragged instead.
            worksheet.reset_dimensions()
            for values in worksheet.iter_rows(values_only=True):
                yield [RawCell.from_native(value) for value in values]
        finally:
            workbook.close()


def _tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def _atomic_save(workbook: Workbook, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = _tmp_path(path)
    try:
        workbook.save(tmp_path)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path.exists():
            tmp_path.unlink()
        raise ResourceError(f"Cannot write workbook {path}: {exc}") from exc


class WorkbookSheetWriter:
    """Sheet sink streaming rows into a new single-sheet ``.xlsx`` file."""

    def __init__(self, path: Path, sheet_name: str = DEFAULT_SHEET_NAME) -> None:
        self.path = Path(path)
        self.sheet_name = sheet_name
        self._workbook: Optional[Workbook] = Workbook(write_only=True)
        try:
            self._worksheet = self._workbook.create_sheet(title=sheet_name)
        except ValueError as exc:
            raise OptionsError(f"Invalid sheet name {sheet_name!r}: {exc}") from exc

    def _native(self, cell: RawCell):
        if cell.kind is not CellKind.STRING:
            return cell.to_native()
        # Text starting with "=" would otherwise be stored as a formula.
        text = WriteOnlyCell(self._worksheet, value=cell.value)
        text.data_type = "s"
        return text

    def append(self, cells: Sequence[RawCell]) -> None:
        self._worksheet.append([self._native(cell) for cell in cells])

    def save(self) -> None:
        if self._workbook is None:
            return
        workbook, self._workbook = self._workbook, None
        _atomic_save(workbook, self.path)

    def discard(self) -> None:
        self._workbook = None


__all__ = [
    "DEFAULT_SHEET_NAME",
    "MemorySheet",
    "SheetSink",
    "SheetSource",
    "WorkbookSheetReader",
    "WorkbookSheetWriter",
]
