from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pandas as pd
import pytest

from sheetbridge.errors import ResourceError
from sheetbridge.frames import read_frame, schema_from_frame, write_frame
from sheetbridge.options import ReadOptions, SaveMode, WriteOptions
from sheetbridge.types import SemanticType


def _frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "id": pd.Series([1, 2, 3], dtype="int32"),
            "qty": pd.Series([10, None, 30], dtype="Int64"),
            "price": [1.5, float("nan"), 3.25],
            "active": [True, False, True],
            "label": ["a", None, "c"],
            "seen": pd.to_datetime(["2024-01-01 08:00:00", None, "2024-03-01 00:00:00"]),
            "day": [date(2024, 1, 1), date(2024, 2, 1), None],
            "cost": [Decimal("1.10"), None, Decimal("3.30")],
        }
    )


def test_schema_from_frame_maps_dtypes() -> None:
    schema = schema_from_frame(_frame())
    assert schema.types == [
        SemanticType.INT32,
        SemanticType.INT64,
        SemanticType.DOUBLE,
        SemanticType.BOOLEAN,
        SemanticType.STRING,
        SemanticType.TIMESTAMP,
        SemanticType.DATE,
        SemanticType.DECIMAL,
    ]
    assert schema["id"].nullable is False
    assert schema["qty"].nullable is True
    assert schema["active"].nullable is False


def test_frame_round_trip_keeps_types_and_nulls(tmp_path) -> None:
    path = tmp_path / "frame.xlsx"
    frame = _frame()
    assert write_frame(frame, path) == path

    loaded = read_frame(path, schema=schema_from_frame(frame))

    assert list(loaded.columns) == list(frame.columns)
    assert str(loaded["id"].dtype) == "int32"
    assert str(loaded["qty"].dtype) == "Int64"
    assert loaded["qty"].isna().tolist() == [False, True, False]
    assert loaded["price"].tolist()[0] == pytest.approx(1.5)
    assert pd.isna(loaded["price"].iloc[1])
    assert loaded["active"].tolist() == [True, False, True]
    assert loaded["label"].tolist() == ["a", None, "c"]
    assert loaded["seen"].iloc[0] == pd.Timestamp("2024-01-01 08:00:00")
    assert pd.isna(loaded["seen"].iloc[1])
    assert loaded["day"].tolist() == [date(2024, 1, 1), date(2024, 2, 1), None]
    assert loaded["cost"].tolist() == [Decimal("1.1"), None, Decimal("3.3")]


def test_read_frame_infers_when_asked(tmp_path) -> None:
    path = tmp_path / "infer.xlsx"
    write_frame(pd.DataFrame({"n": [1, 2], "s": ["x", "y"], "t": [datetime(2024, 1, 1), datetime(2024, 1, 2)]}), path)

    loaded = read_frame(path, ReadOptions(infer_schema=True))
    assert str(loaded["n"].dtype) == "float64"
    assert loaded["s"].tolist() == ["x", "y"]
    assert str(loaded["t"].dtype) == "datetime64[ns]"


def test_save_modes_guard_existing_targets(tmp_path) -> None:
    path = tmp_path / "modes.xlsx"
    write_frame(pd.DataFrame({"a": ["first"]}), path)

    with pytest.raises(ResourceError):
        write_frame(pd.DataFrame({"a": ["second"]}), path, WriteOptions(mode=SaveMode.ERROR))

    assert write_frame(pd.DataFrame({"a": ["second"]}), path, WriteOptions(mode="ignore")) is None
    assert read_frame(path)["a"].tolist() == ["first"]

    write_frame(pd.DataFrame({"a": ["third"]}), path, WriteOptions(mode="overwrite"))
    assert read_frame(path)["a"].tolist() == ["third"]


def test_frame_written_into_directory_with_marker(tmp_path) -> None:
    options = WriteOptions(write_to_file="frame.xlsx", legal_disclaimer="All rights reserved")
    written = write_frame(pd.DataFrame({"a": ["x"]}), tmp_path / "out", options)

    assert written == tmp_path / "out" / "frame.xlsx"
    assert (tmp_path / "out" / "_SUCCESS").exists()
    loaded = read_frame(tmp_path / "out", ReadOptions(read_from_file="frame.xlsx", skip_first_rows=1))
    assert loaded["a"].tolist() == ["x"]
