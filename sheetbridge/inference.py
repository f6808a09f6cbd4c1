"""Schema inference over raw spreadsheet rows."""

# Module responsibilities:
# - Map each raw cell to the narrowest semantic type that represents it.
# - Fold observed types per column through the widening lattice.
# - Decide nullability conservatively unless a full strict scan was requested.

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .types import CellKind, Field, RawCell, Schema, SemanticType, widen
from .utils.log import get_logger

logger = get_logger("inference")

_CELL_TYPES = {
    CellKind.BOOLEAN: SemanticType.BOOLEAN,
    CellKind.NUMERIC: SemanticType.DOUBLE,
    CellKind.DATE: SemanticType.TIMESTAMP,
    CellKind.STRING: SemanticType.STRING,
}


def infer_cell_type(raw: RawCell) -> Optional[SemanticType]:
    """Return the narrowest type for one cell, or ``None`` for blank cells."""

    if raw.is_blank:
        return None
    return _CELL_TYPES[raw.kind]


class SchemaInferrer:
    """Accumulates per-column types from a stream of raw rows.

    Rows are observed one at a time and never retained, so a full pass costs memory
    proportional to the column count only.
    """

    def __init__(
        self,
        names: Sequence[str],
        *,
        full_scan: bool = True,
        strict_nullability: bool = False,
    ) -> None:
        self.names = list(names)
        self.full_scan = full_scan
        self.strict_nullability = strict_nullability
        self.rows_seen = 0
        self._types: List[Optional[SemanticType]] = [None] * len(self.names)
        self._saw_empty: List[bool] = [False] * len(self.names)

    def observe(self, row: Sequence[RawCell]) -> None:
        """Fold one row into the running column types; extra cells are ignored."""

        self.rows_seen += 1
        for idx in range(len(self.names)):
            cell = row[idx] if idx < len(row) else RawCell.empty()
            observed = infer_cell_type(cell)
            if observed is None:
                self._saw_empty[idx] = True
                continue
            self._types[idx] = widen(self._types[idx], observed)

    def observe_all(self, rows: Iterable[Sequence[RawCell]]) -> "SchemaInferrer":
        for row in rows:
            self.observe(row)
        return self

    def schema(self) -> Schema:
        """Return the inferred schema for everything observed so far."""

        strict = self.strict_nullability and self.full_scan
        fields = []
        for name, kind, saw_empty in zip(self.names, self._types, self._saw_empty):
            fields.append(
                Field(
                    name=name,
                    type=kind or SemanticType.STRING,
                    nullable=saw_empty if strict else True,
                )
            )
        schema = Schema(tuple(fields))
        logger.debug(
            "Schema inferred",
            extra={
                "rows": self.rows_seen,
                "full_scan": self.full_scan,
                "types": [field.type.value for field in schema],
            },
        )
        return schema


def infer_schema(
    rows: Iterable[Sequence[RawCell]],
    names: Sequence[str],
    *,
    full_scan: bool = True,
    strict_nullability: bool = False,
) -> Schema:
    """Infer a schema from ``rows`` (row-major, positionally aligned with ``names``)."""

    inferrer = SchemaInferrer(names, full_scan=full_scan, strict_nullability=strict_nullability)
    return inferrer.observe_all(rows).schema()


__all__ = ["SchemaInferrer", "infer_cell_type", "infer_schema"]
