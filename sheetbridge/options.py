"""Read/write option containers and their loaders."""

# Module responsibilities:
# - Provide frozen, validated option objects for readers and writers.
# - Accept engine-style camelCase keys and string values ("true", "20") as well as snake_case.
# - Load option sets from YAML files.

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from .errors import InvalidSchemaError, OptionsError
from .sheets import DEFAULT_SHEET_NAME
from .types import Schema

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "no", "n", "off"}


class SaveMode(str, Enum):
    """What a write does when its target already exists."""

    OVERWRITE = "overwrite"
    ERROR = "error"
    IGNORE = "ignore"

    @classmethod
    def parse(cls, value: Any) -> "SaveMode":
        if isinstance(value, SaveMode):
            return value
        token = str(value).strip().lower()
        if token in {"errorifexists", "error_if_exists", "default"}:
            return cls.ERROR
        if token == "append":
            raise OptionsError("append mode is not supported for spreadsheet targets")
        try:
            return cls(token)
        except ValueError as exc:
            raise OptionsError(f"Unknown save mode: {value!r}") from exc


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower()
    if token in _TRUE_VALUES:
        return True
    if token in _FALSE_VALUES:
        return False
    raise OptionsError(f"Option {key} must be a boolean, got {value!r}")


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise OptionsError(f"Option {key} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise OptionsError(f"Option {key} must be an integer, got {value!r}") from exc


def _as_optional_int(key: str, value: Any) -> Optional[int]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _as_int(key, value)


def _as_optional_str(key: str, value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None


def _as_schema(key: str, value: Any) -> Optional[Schema]:
    if value is None or isinstance(value, Schema):
        return value
    try:
        return Schema.from_mapping(value)
    except InvalidSchemaError as exc:
        raise OptionsError(f"Option {key} is not a valid schema: {exc}") from exc


def _normalize_key(key: str) -> str:
    return str(key).replace("_", "").replace("-", "").lower()


def _coerce_mapping(
    data: Mapping[str, Any],
    coercers: Dict[str, Callable[[str, Any], Any]],
    owner: str,
) -> Dict[str, Any]:
    by_normalized = {_normalize_key(name): name for name in coercers}
    resolved: Dict[str, Any] = {}
    for raw_key, value in data.items():
        name = by_normalized.get(_normalize_key(raw_key))
        if name is None:
            raise OptionsError(f"Unknown {owner} option: {raw_key}")
        resolved[name] = coercers[name](str(raw_key), value)
    return resolved


def _load_yaml_section(path: Path, section: str) -> Mapping[str, Any]:
    if not path.exists():
        raise OptionsError(f"Options file not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        payload = yaml.safe_load(handle) or {}
    if not isinstance(payload, Mapping):
        raise OptionsError("Options YAML must be a mapping")
    node = payload.get(section, payload)
    if not isinstance(node, Mapping):
        raise OptionsError(f"Options YAML section '{section}' must be a mapping")
    return node


@dataclass(frozen=True)
class ReadOptions:
    """Options recognised when reading a sheet into typed rows."""

    sheet_name: Optional[str] = None
    use_header: bool = True
    treat_empty_values_as_nulls: bool = True
    infer_schema: bool = False
    max_rows_in_memory: Optional[int] = None
    skip_first_rows: int = 0
    read_from_file: Optional[str] = None
    add_color_columns: bool = False
    infer_sample_rows: Optional[int] = None
    strict_nullability: bool = False
    schema: Optional[Schema] = None

    def __post_init__(self) -> None:
        if self.max_rows_in_memory is not None and self.max_rows_in_memory <= 0:
            raise OptionsError("max_rows_in_memory must be a positive integer")
        if self.skip_first_rows < 0:
            raise OptionsError("skip_first_rows must be non-negative")
        if self.infer_sample_rows is not None and self.infer_sample_rows <= 0:
            raise OptionsError("infer_sample_rows must be a positive integer")
        if self.infer_schema and self.schema is not None:
            raise OptionsError("infer_schema cannot be combined with an explicit schema")
        if self.add_color_columns:
            raise OptionsError("add_color_columns requires cell styling support, which is not provided")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ReadOptions":
        """Create options from a mapping of camelCase or snake_case keys."""

        return cls(**_coerce_mapping(data, _READ_COERCERS, "read"))

    @classmethod
    def from_yaml(cls, path: Path) -> "ReadOptions":
        """Load options from YAML, either top-level or under a ``read`` section."""

        return cls.from_mapping(_load_yaml_section(Path(path), "read"))

    def with_schema(self, schema: Optional[Schema]) -> "ReadOptions":
        values = {item.name: getattr(self, item.name) for item in fields(self)}
        values["schema"] = schema
        return ReadOptions(**values)


_READ_COERCERS: Dict[str, Callable[[str, Any], Any]] = {
    "sheet_name": _as_optional_str,
    "use_header": _as_bool,
    "treat_empty_values_as_nulls": _as_bool,
    "infer_schema": _as_bool,
    "max_rows_in_memory": _as_optional_int,
    "skip_first_rows": _as_int,
    "read_from_file": _as_optional_str,
    "add_color_columns": _as_bool,
    "infer_sample_rows": _as_optional_int,
    "strict_nullability": _as_bool,
    "schema": _as_schema,
}


@dataclass(frozen=True)
class WriteOptions:
    """Options recognised when writing typed rows to a sheet."""

    sheet_name: str = DEFAULT_SHEET_NAME
    use_header: bool = True
    legal_disclaimer: Optional[str] = None
    write_to_file: Optional[str] = None
    mode: SaveMode = SaveMode.OVERWRITE

    def __post_init__(self) -> None:
        if not self.sheet_name or not str(self.sheet_name).strip():
            raise OptionsError("sheet_name must not be empty")
        object.__setattr__(self, "mode", SaveMode.parse(self.mode))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "WriteOptions":
        """Create options from a mapping of camelCase or snake_case keys."""

        return cls(**_coerce_mapping(data, _WRITE_COERCERS, "write"))

    @classmethod
    def from_yaml(cls, path: Path) -> "WriteOptions":
        """Load options from YAML, either top-level or under a ``write`` section."""

        return cls.from_mapping(_load_yaml_section(Path(path), "write"))


_WRITE_COERCERS: Dict[str, Callable[[str, Any], Any]] = {
    "sheet_name": lambda key, value: str(value),
    "use_header": _as_bool,
    "legal_disclaimer": _as_optional_str,
    "write_to_file": _as_optional_str,
    "mode": lambda key, value: SaveMode.parse(value),
}


def read_options_from_yaml(path: str | Path) -> ReadOptions:
    return ReadOptions.from_yaml(Path(path))


def write_options_from_yaml(path: str | Path) -> WriteOptions:
    return WriteOptions.from_yaml(Path(path))


__all__ = [
    "ReadOptions",
    "SaveMode",
    "WriteOptions",
    "read_options_from_yaml",
    "write_options_from_yaml",
]
