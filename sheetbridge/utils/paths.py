"""
RESPONSIBILITIES
- Resolve the workbook a read or write targets, honouring explicit filename overrides.
- Write the completion marker that signals a finished directory write.
PROCESS OVERVIEW
1. resolve_read_path() maps a file or directory target to one existing workbook.
2. resolve_write_path() maps a file or directory target to the workbook to create,
   and reports whether the target is a directory that needs a marker.
3. write_success_marker() drops ``_SUCCESS`` into the directory after finalize.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..errors import ResourceError

SUCCESS_MARKER = "_SUCCESS"
DEFAULT_PART_NAME = "part-00000.xlsx"
WORKBOOK_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm")


@dataclass(frozen=True)
class WriteTarget:
    """Where a writer places its workbook and whether a marker is due."""

    path: Path
    marker_dir: Optional[Path] = None


def _as_path(target: str | os.PathLike[str]) -> Path:
    return Path(target).expanduser()


def resolve_read_path(target: str | os.PathLike[str], read_from_file: Optional[str] = None) -> Path:
    """Return the workbook to read for ``target``.

    Args:
        target: Workbook path, or a directory holding the workbook.
        read_from_file: File name inside ``target`` when it is a directory.

    Raises:
        ResourceError: When no single workbook can be located.
    """

    base = _as_path(target)
    if read_from_file:
        candidate = base / read_from_file
        if not candidate.is_file():
            raise ResourceError(f"Workbook not found: {candidate}")
        return candidate
    if base.is_file():
        return base
    if base.is_dir():
        workbooks = sorted(
            p for p in base.iterdir() if p.is_file() and p.suffix.lower() in WORKBOOK_SUFFIXES
        )
        if len(workbooks) == 1:
            return workbooks[0]
        if not workbooks:
            raise ResourceError(f"No workbook found in directory: {base}")
        names = ", ".join(p.name for p in workbooks)
        raise ResourceError(f"Several workbooks in {base} ({names}); set read_from_file")
    raise ResourceError(f"Workbook not found: {base}")


def resolve_write_path(target: str | os.PathLike[str], write_to_file: Optional[str] = None) -> WriteTarget:
    """Return the workbook path to create for ``target``.

    A ``write_to_file`` override always treats ``target`` as a directory. Without it,
    an existing directory (or a suffix-less path) receives a generated part name.
    """

    base = _as_path(target)
    if write_to_file:
        return WriteTarget(path=base / write_to_file, marker_dir=base)
    if base.is_dir() or (not base.exists() and base.suffix.lower() not in WORKBOOK_SUFFIXES):
        return WriteTarget(path=base / DEFAULT_PART_NAME, marker_dir=base)
    return WriteTarget(path=base)


def write_success_marker(directory: Path) -> Path:
    """Create the empty completion marker inside ``directory``."""

    marker = directory / SUCCESS_MARKER
    try:
        directory.mkdir(parents=True, exist_ok=True)
        marker.touch()
    except OSError as exc:
        raise ResourceError(f"Cannot write completion marker in {directory}: {exc}") from exc
    return marker
