"""Typed model shared by the codec, inferrer, cursor, and writer."""

# Module responsibilities:
# - Define the closed set of semantic column types and their widening lattice.
# - Model the weakly typed spreadsheet cell as a small closed variant (RawCell).
# - Provide immutable Field/Schema containers with mapping-based construction.

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping, Optional, Sequence, Tuple, Union

from .errors import InvalidSchemaError


class SemanticType(str, Enum):
    """Strongly typed column types understood by the bridge."""

    BOOLEAN = "boolean"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    DOUBLE = "double"
    DECIMAL = "decimal"
    STRING = "string"
    TIMESTAMP = "timestamp"
    DATE = "date"

    @property
    def is_integral(self) -> bool:
        return self in _INTEGRAL_BOUNDS

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_CHAIN

    @property
    def is_temporal(self) -> bool:
        return self in _TEMPORAL_CHAIN

    @classmethod
    def parse(cls, value: Union[str, "SemanticType"]) -> "SemanticType":
        """Resolve a type from its name or one of the common aliases."""

        if isinstance(value, SemanticType):
            return value
        token = str(value).strip().lower()
        resolved = _TYPE_ALIASES.get(token, token)
        try:
            return cls(resolved)
        except ValueError as exc:
            raise InvalidSchemaError(f"Unknown semantic type: {value!r}") from exc


_INTEGRAL_BOUNDS = {
    SemanticType.INT8: (-(2**7), 2**7 - 1),
    SemanticType.INT16: (-(2**15), 2**15 - 1),
    SemanticType.INT32: (-(2**31), 2**31 - 1),
    SemanticType.INT64: (-(2**63), 2**63 - 1),
}

# Lossless widening order within each family; joins across families fall back to STRING.
_NUMERIC_CHAIN: Tuple[SemanticType, ...] = (
    SemanticType.INT8,
    SemanticType.INT16,
    SemanticType.INT32,
    SemanticType.INT64,
    SemanticType.DECIMAL,
    SemanticType.DOUBLE,
)
_TEMPORAL_CHAIN: Tuple[SemanticType, ...] = (SemanticType.DATE, SemanticType.TIMESTAMP)

_TYPE_ALIASES = {
    "bool": "boolean",
    "byte": "int8",
    "tinyint": "int8",
    "short": "int16",
    "smallint": "int16",
    "int": "int32",
    "integer": "int32",
    "long": "int64",
    "bigint": "int64",
    "float": "double",
    "float64": "double",
    "str": "string",
    "datetime": "timestamp",
}


def integral_bounds(kind: SemanticType) -> Tuple[int, int]:
    """Return the inclusive value range for an integral type."""

    return _INTEGRAL_BOUNDS[kind]


def widen(left: Optional[SemanticType], right: Optional[SemanticType]) -> Optional[SemanticType]:
    """Return the least upper bound of two observed types.

    ``None`` is the unconstrained element: joining it with any type yields that type.
    """

    if left is None:
        return right
    if right is None or left == right:
        return left
    for chain in (_NUMERIC_CHAIN, _TEMPORAL_CHAIN):
        if left in chain and right in chain:
            return max(left, right, key=chain.index)
    return SemanticType.STRING


class CellKind(str, Enum):
    """The only value kinds a spreadsheet cell physically stores."""

    EMPTY = "empty"
    BOOLEAN = "boolean"
    NUMERIC = "numeric"
    STRING = "string"
    DATE = "date"


CellValue = Union[None, bool, float, str, date, datetime]


@dataclass(frozen=True, slots=True)
class RawCell:
    """Weakly typed cell value: a kind tag plus its payload."""

    kind: CellKind
    value: CellValue = None

    @classmethod
    def empty(cls) -> "RawCell":
        return _EMPTY

    @classmethod
    def boolean(cls, value: bool) -> "RawCell":
        return cls(CellKind.BOOLEAN, bool(value))

    @classmethod
    def numeric(cls, value: float) -> "RawCell":
        return cls(CellKind.NUMERIC, float(value))

    @classmethod
    def string(cls, value: str) -> "RawCell":
        return cls(CellKind.STRING, value)

    @classmethod
    def calendar(cls, value: date) -> "RawCell":
        return cls(CellKind.DATE, value)

    @classmethod
    def from_native(cls, value: Any) -> "RawCell":
        """Wrap a value as returned by the workbook parser."""

        if value is None:
            return _EMPTY
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, (int, float)):
            return cls.numeric(value)
        if isinstance(value, (datetime, date)):
            return cls.calendar(value)
        if isinstance(value, time):
            return cls.string(value.isoformat())
        if isinstance(value, timedelta):
            return cls.numeric(value.total_seconds() / 86400.0)
        return cls.string(str(value))

    def to_native(self) -> CellValue:
        """Return the payload in the form the workbook writer accepts."""

        return None if self.kind is CellKind.EMPTY else self.value

    @property
    def is_empty(self) -> bool:
        return self.kind is CellKind.EMPTY

    @property
    def is_blank(self) -> bool:
        """True for empty cells and for strings holding only whitespace."""

        if self.kind is CellKind.EMPTY:
            return True
        return self.kind is CellKind.STRING and not str(self.value).strip()


_EMPTY = RawCell(CellKind.EMPTY)

RawRow = Sequence[RawCell]
TypedRow = Tuple[Any, ...]


@dataclass(frozen=True, slots=True)
class Field:
    """One named, typed column."""

    name: str
    type: SemanticType
    nullable: bool = True

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Field":
        if "name" not in data or "type" not in data:
            raise InvalidSchemaError(f"Schema field requires 'name' and 'type': {dict(data)!r}")
        nullable = data.get("nullable", True)
        if isinstance(nullable, str):
            nullable = nullable.strip().lower() in {"1", "true", "yes", "y"}
        return cls(
            name=str(data["name"]),
            type=SemanticType.parse(data["type"]),
            nullable=bool(nullable),
        )


@dataclass(frozen=True)
class Schema:
    """Ordered column declarations; names are unique."""

    fields: Tuple[Field, ...]

    def __post_init__(self) -> None:
        fields = tuple(self.fields)
        object.__setattr__(self, "fields", fields)
        seen: set[str] = set()
        for item in fields:
            if not isinstance(item, Field):
                raise InvalidSchemaError(f"Schema entries must be Field instances, got {item!r}")
            if item.name in seen:
                raise InvalidSchemaError(f"Duplicate column name in schema: {item.name!r}")
            seen.add(item.name)

    @classmethod
    def of(cls, *columns: Tuple[str, SemanticType] | Field) -> "Schema":
        """Build a schema from ``Field`` objects or ``(name, type)`` pairs."""

        fields = []
        for column in columns:
            if isinstance(column, Field):
                fields.append(column)
            else:
                name, kind = column
                fields.append(Field(name, SemanticType.parse(kind)))
        return cls(tuple(fields))

    @classmethod
    def strings(cls, names: Iterable[str]) -> "Schema":
        """Schema of nullable STRING columns, used when nothing else is known."""

        return cls(tuple(Field(name, SemanticType.STRING) for name in names))

    @classmethod
    def from_mapping(cls, data: Iterable[Mapping[str, Any]] | Mapping[str, Any]) -> "Schema":
        """Load a schema from ``[{name, type, nullable}, ...]`` or ``{fields: [...]}``."""

        if isinstance(data, Mapping):
            data = data.get("fields", [])
        if isinstance(data, (str, bytes)):
            raise InvalidSchemaError("Schema must be a list of field mappings")
        fields = []
        for entry in data:
            if not isinstance(entry, Mapping):
                raise InvalidSchemaError(f"Schema field must be a mapping, got {entry!r}")
            fields.append(Field.from_mapping(entry))
        return cls(tuple(fields))

    @property
    def names(self) -> list[str]:
        return [item.name for item in self.fields]

    @property
    def types(self) -> list[SemanticType]:
        return [item.type for item in self.fields]

    def index_of(self, name: str) -> int:
        for idx, item in enumerate(self.fields):
            if item.name == name:
                return idx
        raise KeyError(name)

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self) -> Iterator[Field]:
        return iter(self.fields)

    def __getitem__(self, key: int | str) -> Field:
        if isinstance(key, str):
            return self.fields[self.index_of(key)]
        return self.fields[key]


__all__ = [
    "CellKind",
    "CellValue",
    "Field",
    "RawCell",
    "RawRow",
    "Schema",
    "SemanticType",
    "TypedRow",
    "integral_bounds",
    "widen",
]
