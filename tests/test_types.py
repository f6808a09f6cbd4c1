"""Unit tests for the semantic type lattice and schema containers."""

from __future__ import annotations

from datetime import date, datetime, time

import pytest

from sheetbridge.errors import InvalidSchemaError
from sheetbridge.types import CellKind, Field, RawCell, Schema, SemanticType, widen

ALL_TYPES = list(SemanticType)


@pytest.mark.parametrize(
    "left, right, expected",
    [
        (SemanticType.INT8, SemanticType.INT32, SemanticType.INT32),
        (SemanticType.INT64, SemanticType.DOUBLE, SemanticType.DOUBLE),
        (SemanticType.INT16, SemanticType.DECIMAL, SemanticType.DECIMAL),
        (SemanticType.DECIMAL, SemanticType.DOUBLE, SemanticType.DOUBLE),
        (SemanticType.DATE, SemanticType.TIMESTAMP, SemanticType.TIMESTAMP),
        (SemanticType.BOOLEAN, SemanticType.DOUBLE, SemanticType.STRING),
        (SemanticType.DATE, SemanticType.INT32, SemanticType.STRING),
        (SemanticType.STRING, SemanticType.BOOLEAN, SemanticType.STRING),
        (None, SemanticType.DATE, SemanticType.DATE),
        (SemanticType.BOOLEAN, None, SemanticType.BOOLEAN),
    ],
)
def test_widen_follows_lattice(left, right, expected) -> None:
    assert widen(left, right) is expected


def test_widen_is_commutative_and_associative() -> None:
    for a in ALL_TYPES:
        for b in ALL_TYPES:
            assert widen(a, b) is widen(b, a)
            for c in ALL_TYPES:
                assert widen(widen(a, b), c) is widen(a, widen(b, c))


def test_semantic_type_parse_accepts_aliases() -> None:
    assert SemanticType.parse("long") is SemanticType.INT64
    assert SemanticType.parse(" Integer ") is SemanticType.INT32
    assert SemanticType.parse("datetime") is SemanticType.TIMESTAMP
    assert SemanticType.parse(SemanticType.DATE) is SemanticType.DATE
    with pytest.raises(InvalidSchemaError):
        SemanticType.parse("money")


def test_schema_rejects_duplicate_names() -> None:
    with pytest.raises(InvalidSchemaError):
        Schema.of(("id", SemanticType.INT32), ("id", SemanticType.STRING))


def test_schema_from_mapping_and_lookup() -> None:
    schema = Schema.from_mapping(
        {
            "fields": [
                {"name": "id", "type": "int", "nullable": "false"},
                {"name": "label", "type": "string"},
            ]
        }
    )
    assert schema.names == ["id", "label"]
    assert schema.types == [SemanticType.INT32, SemanticType.STRING]
    assert schema["id"] == Field("id", SemanticType.INT32, nullable=False)
    assert schema[1].nullable is True
    assert len(schema) == 2

    with pytest.raises(InvalidSchemaError):
        Schema.from_mapping([{"name": "missing_type"}])


def test_raw_cell_from_native_covers_parser_values() -> None:
    assert RawCell.from_native(None).is_empty
    assert RawCell.from_native(True) == RawCell(CellKind.BOOLEAN, True)
    assert RawCell.from_native(3) == RawCell(CellKind.NUMERIC, 3.0)
    assert RawCell.from_native("x") == RawCell(CellKind.STRING, "x")
    stamp = datetime(2024, 5, 10, 8, 30)
    assert RawCell.from_native(stamp) == RawCell(CellKind.DATE, stamp)
    assert RawCell.from_native(date(2024, 5, 10)).kind is CellKind.DATE
    assert RawCell.from_native(time(8, 30)) == RawCell(CellKind.STRING, "08:30:00")


def test_raw_cell_blank_detection() -> None:
    assert RawCell.string("   ").is_blank
    assert not RawCell.string("   ").is_empty
    assert not RawCell.numeric(0).is_blank
    assert RawCell.empty().to_native() is None
