"""
Positional parameter binding.

Every argument is classified into a ParamKind, the first kind in canonical
priority order whose predicate matches, and converted by re-parsing its string
form with that kind's parser. `None` arguments are skipped, leaving the slot
unbound; drivers see an unbound slot as SQL NULL.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sqlshift.exceptions import BindingError

INT32_MIN, INT32_MAX = -(2**31), 2**31 - 1
INT64_MIN, INT64_MAX = -(2**63), 2**63 - 1
BYTE_MIN, BYTE_MAX = -128, 127


class ParamKind(enum.Enum):
    """Binding categories, declared in priority order."""

    STRING = "string"
    INTEGER = "integer"
    LONG = "long"
    DOUBLE = "double"
    FLOAT = "float"
    BOOLEAN = "boolean"
    BYTE = "byte"
    DATE = "date"
    TIME = "time"
    TIMESTAMP = "timestamp"
    ARRAY = "array"
    BYTES = "bytes"
    OBJECT = "object"


@dataclass(frozen=True)
class Param:
    """
    A value tagged with the category it must be bound as.

    Plain arguments are classified automatically; wrap a value in Param to
    pick a category that has no native Python type (FLOAT, BYTE) or to force
    parsing, e.g. ``Param(ParamKind.DATE, "2024-01-31")``.
    """

    kind: ParamKind
    value: Any

    @classmethod
    def float_(cls, value: Any) -> "Param":
        return cls(ParamKind.FLOAT, value)

    @classmethod
    def byte(cls, value: Any) -> "Param":
        return cls(ParamKind.BYTE, value)

    @classmethod
    def long(cls, value: Any) -> "Param":
        return cls(ParamKind.LONG, value)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


# First match wins. bool is not an int here and datetime is not a date:
# each value matches the category of its declared type.
_CLASSIFIERS: Tuple[Tuple[ParamKind, Callable[[Any], bool]], ...] = (
    (ParamKind.STRING, lambda v: isinstance(v, str)),
    (ParamKind.INTEGER, lambda v: _is_int(v) and INT32_MIN <= v <= INT32_MAX),
    (ParamKind.LONG, lambda v: _is_int(v) and INT64_MIN <= v <= INT64_MAX),
    (ParamKind.DOUBLE, lambda v: isinstance(v, float)),
    (ParamKind.BOOLEAN, lambda v: isinstance(v, bool)),
    (ParamKind.DATE, lambda v: isinstance(v, date) and not isinstance(v, datetime)),
    (ParamKind.TIME, lambda v: isinstance(v, time)),
    (ParamKind.TIMESTAMP, lambda v: isinstance(v, datetime)),
    (ParamKind.ARRAY, lambda v: isinstance(v, (list, tuple))),
    (ParamKind.BYTES, lambda v: isinstance(v, (bytes, bytearray, memoryview))),
)


def classify(value: Any) -> ParamKind:
    """Return the binding category for `value`."""
    if isinstance(value, Param):
        return value.kind
    for kind, matches in _CLASSIFIERS:
        if matches(value):
            return kind
    return ParamKind.OBJECT


def _ranged_int(low: int, high: int) -> Callable[[Any], int]:
    def convert(value: Any) -> int:
        number = int(str(value))
        if not low <= number <= high:
            raise OverflowError(f"{number} outside [{low}, {high}]")
        return number

    return convert


def _parse_bool(value: Any) -> bool:
    return str(value).strip().lower() == "true"


def _parse_array(value: Any) -> List[Any]:
    if isinstance(value, (str, bytes)):
        raise TypeError("strings are not arrays")
    return list(value)


def _parse_bytes(value: Any) -> bytes:
    if isinstance(value, str):
        raise TypeError("text must be encoded before binding as bytes")
    return bytes(value)


_CONVERTERS: Dict[ParamKind, Callable[[Any], Any]] = {
    ParamKind.STRING: str,
    ParamKind.INTEGER: _ranged_int(INT32_MIN, INT32_MAX),
    ParamKind.LONG: _ranged_int(INT64_MIN, INT64_MAX),
    ParamKind.DOUBLE: lambda v: float(str(v)),
    ParamKind.FLOAT: lambda v: float(str(v)),
    ParamKind.BOOLEAN: _parse_bool,
    ParamKind.BYTE: _ranged_int(BYTE_MIN, BYTE_MAX),
    ParamKind.DATE: lambda v: date.fromisoformat(str(v)),
    ParamKind.TIME: lambda v: time.fromisoformat(str(v)),
    ParamKind.TIMESTAMP: lambda v: datetime.fromisoformat(str(v)),
    ParamKind.ARRAY: _parse_array,
    ParamKind.BYTES: _parse_bytes,
    ParamKind.OBJECT: lambda v: v,
}


@dataclass(frozen=True)
class BoundValue:
    kind: ParamKind
    value: Any


class PreparedStatement:
    """
    Statement text plus its positional parameter slots (1-based).
    """

    def __init__(self, sql: str, size: int) -> None:
        self.sql = sql
        self.size = size
        self._slots: Dict[int, BoundValue] = {}

    def bind(self, index: int, kind: ParamKind, value: Any) -> None:
        if not 1 <= index <= self.size:
            raise IndexError(f"parameter index {index} out of range 1..{self.size}")
        self._slots[index] = BoundValue(kind, value)

    @property
    def bound(self) -> Dict[int, BoundValue]:
        return dict(self._slots)

    def parameters(self) -> List[Any]:
        """Driver-ready parameter list; unbound slots are None."""
        return [
            self._slots[i].value if i in self._slots else None
            for i in range(1, self.size + 1)
        ]


def convert(index: int, value: Any) -> Optional[BoundValue]:
    """
    Classify and convert one argument. Returns None for a None argument.

    Raises
    ------
    BindingError
        If the value cannot be parsed for its category.
    """
    raw = value.value if isinstance(value, Param) else value
    if raw is None:
        return None
    kind = classify(value)
    try:
        return BoundValue(kind, _CONVERTERS[kind](raw))
    except (TypeError, ValueError, OverflowError) as exc:
        raise BindingError(index, kind, raw, str(exc)) from exc


def bind_parameters(statement: PreparedStatement, arguments: Sequence[Any]) -> PreparedStatement:
    """
    Bind `arguments` onto `statement` at positions 1..len(arguments).
    """
    for index, argument in enumerate(arguments, start=1):
        bound = convert(index, argument)
        if bound is not None:
            statement.bind(index, bound.kind, bound.value)
    return statement


def prepare(sql: str, arguments: Sequence[Any]) -> PreparedStatement:
    """Create a statement sized for `arguments` and bind them."""
    return bind_parameters(PreparedStatement(sql, len(arguments)), arguments)


__all__ = [
    "BoundValue",
    "Param",
    "ParamKind",
    "PreparedStatement",
    "bind_parameters",
    "classify",
    "convert",
    "prepare",
]
