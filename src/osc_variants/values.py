"""Typed attribute values: literal, parameter reference, or expression.

Every leaf attribute of a scenario document is one of:

    speed="13.9"        -> Literal(13.9)
    speed="$EgoSpeed"   -> Parameter("EgoSpeed")
    speed="${a * 2}"    -> Expression("${a * 2}")

A value is parsed once against the attribute's OSType and carries its tag
through resolution. Parsing never fails: text that is not a valid literal of
the attribute's type is kept as an Expression, since substitution may still
make it valid later.
"""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Generic, TypeVar, Union

from .errors import TypeMismatchError, UnevaluatedExpressionError

if TYPE_CHECKING:
    from .parameters.scope import ParameterScope


T = TypeVar("T")

# Pluggable expression evaluation: (expression text, scope) -> literal text
ExpressionEvaluator = Callable[[str, "ParameterScope"], str]

PARAMETER_PATTERN = re.compile(r"^\$([A-Za-z_][A-Za-z0-9_]*)$")
BRACED_PARAMETER_PATTERN = re.compile(r"^\$\{\s*([A-Za-z_][A-Za-z0-9_]*)\s*\}$")
NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_DOUBLE_PATTERN = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")


@dataclass(frozen=True)
class OSType(Generic[T]):
    """A primitive attribute type with its textual grammar."""

    name: str
    parse: Callable[[str], T]  # raises ValueError on bad text
    format: Callable[[T], str]

    def accepts(self, text: str) -> bool:
        try:
            self.parse(text)
        except ValueError:
            return False
        return True

    def __repr__(self) -> str:
        return f"OSType({self.name})"


def _parse_string(text: str) -> str:
    return text


def _parse_double(text: str) -> float:
    if text in ("INF", "+INF"):
        return math.inf
    if text == "-INF":
        return -math.inf
    if text == "NaN":
        return math.nan
    if not _DOUBLE_PATTERN.match(text):
        raise ValueError(f"not a double: {text!r}")
    return float(text)


def _format_double(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "INF" if value > 0 else "-INF"
    return repr(float(value))


def _integer_parser(low: int, high: int) -> Callable[[str], int]:
    def parse(text: str) -> int:
        if not _INTEGER_PATTERN.match(text):
            raise ValueError(f"not an integer: {text!r}")
        value = int(text)
        if not low <= value <= high:
            raise ValueError(f"{value} out of range [{low}, {high}]")
        return value

    return parse


def _parse_boolean(text: str) -> bool:
    if text in ("true", "1"):
        return True
    if text in ("false", "0"):
        return False
    raise ValueError(f"not a boolean: {text!r}")


def _format_boolean(value: bool) -> str:
    return "true" if value else "false"


def _parse_date_time(text: str) -> datetime:
    # fromisoformat only accepts a "Z" designator from Python 3.11 on
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


STRING: OSType[str] = OSType("string", _parse_string, str)
DOUBLE: OSType[float] = OSType("double", _parse_double, _format_double)
INT: OSType[int] = OSType("int", _integer_parser(-(2**31), 2**31 - 1), str)
UNSIGNED_INT: OSType[int] = OSType("unsignedInt", _integer_parser(0, 2**32 - 1), str)
UNSIGNED_SHORT: OSType[int] = OSType("unsignedShort", _integer_parser(0, 2**16 - 1), str)
BOOLEAN: OSType[bool] = OSType("boolean", _parse_boolean, _format_boolean)
DATE_TIME: OSType[datetime] = OSType("dateTime", _parse_date_time, datetime.isoformat)

# Keyed by the parameterType names used in ParameterDeclaration
OS_TYPES: dict[str, OSType] = {
    "string": STRING,
    "double": DOUBLE,
    "int": INT,
    "integer": INT,
    "unsignedInt": UNSIGNED_INT,
    "unsignedShort": UNSIGNED_SHORT,
    "boolean": BOOLEAN,
    "dateTime": DATE_TIME,
}


@dataclass(frozen=True)
class Literal(Generic[T]):
    """A concrete value, already typed."""

    value: T
    ostype: OSType[T] = STRING
    text: str | None = field(default=None, compare=False)  # source text, kept for round trips

    def resolve(self, scope: "ParameterScope", evaluator: ExpressionEvaluator | None = None) -> T:
        return resolve_value(self, scope, evaluator)

    def __str__(self) -> str:
        return serialize_value(self)


@dataclass(frozen=True)
class Parameter(Generic[T]):
    """A `$name` reference, parsed as T after lookup."""

    name: str
    ostype: OSType[T] = STRING

    def resolve(self, scope: "ParameterScope", evaluator: ExpressionEvaluator | None = None) -> T:
        return resolve_value(self, scope, evaluator)

    def __str__(self) -> str:
        return serialize_value(self)


@dataclass(frozen=True)
class Expression(Generic[T]):
    """An opaque formula; only bare `${name}` references are resolved here."""

    text: str
    ostype: OSType[T] = STRING

    def resolve(self, scope: "ParameterScope", evaluator: ExpressionEvaluator | None = None) -> T:
        return resolve_value(self, scope, evaluator)

    def __str__(self) -> str:
        return serialize_value(self)


ValueExpr = Union[Literal[T], Parameter[T], Expression[T]]


def is_valid_parameter_name(name: str) -> bool:
    """Parameter names are identifiers: letters, digits and '_', no leading digit."""
    return bool(NAME_PATTERN.match(name))


def parse_value(raw: str, ostype: OSType[T] = STRING) -> ValueExpr[T]:
    """Parse attribute text into a tagged value. Never raises."""
    reference = PARAMETER_PATTERN.match(raw)
    if reference:
        return Parameter(reference.group(1), ostype)

    # Anything else starting with '$' is formula syntax, even for strings
    if raw.startswith("$"):
        return Expression(raw, ostype)

    try:
        value = ostype.parse(raw)
    except ValueError:
        return Expression(raw, ostype)
    return Literal(value, ostype, text=raw)


def serialize_value(expr: ValueExpr) -> str:
    """Inverse of parse_value."""
    match expr:
        case Literal(value=value, ostype=ostype, text=text):
            return text if text is not None else ostype.format(value)
        case Parameter(name=name):
            return f"${name}"
        case Expression(text=text):
            return text
        case _:
            raise TypeError(f"not a value expression: {expr!r}")


def format_literal(value: T, ostype: OSType[T]) -> str:
    """Canonical text of a resolved value."""
    return ostype.format(value)


def parse_typed(name: str, raw: str, ostype: OSType[T]) -> T:
    """Parse a looked-up parameter string as T, naming the parameter on failure."""
    try:
        return ostype.parse(raw)
    except ValueError:
        raise TypeMismatchError(name, ostype.name, raw) from None


def _resolve_raw(
    expr: ValueExpr[T],
    scope: "ParameterScope",
    evaluator: ExpressionEvaluator | None,
) -> tuple[str, T]:
    match expr:
        case Literal(value=value):
            return serialize_value(expr), value

        case Parameter(name=name, ostype=ostype):
            raw = scope.require(name)
            return raw, parse_typed(name, raw, ostype)

        case Expression(text=text, ostype=ostype):
            braced = BRACED_PARAMETER_PATTERN.match(text)
            if braced:
                name = braced.group(1)
                raw = scope.require(name)
                return raw, parse_typed(name, raw, ostype)
            if evaluator is None:
                raise UnevaluatedExpressionError(text)
            raw = evaluator(text, scope)
            return raw, parse_typed(text, raw, ostype)

        case _:
            raise TypeError(f"not a value expression: {expr!r}")


def resolve_value(
    expr: ValueExpr[T],
    scope: "ParameterScope",
    evaluator: ExpressionEvaluator | None = None,
) -> T:
    """Resolve a value against a parameter scope.

    Args:
        expr: Parsed value
        scope: Parameter scope to look names up in
        evaluator: Optional expression evaluator for non-trivial expressions

    Returns:
        The typed value

    Raises:
        ParameterNotFoundError: If a referenced parameter is not in scope
        TypeMismatchError: If the parameter's text does not parse as T
        UnevaluatedExpressionError: If an expression needs an evaluator
    """
    if isinstance(expr, Literal):
        return expr.value
    return _resolve_raw(expr, scope, evaluator)[1]


def resolve_text(
    expr: ValueExpr,
    scope: "ParameterScope",
    evaluator: ExpressionEvaluator | None = None,
) -> str:
    """Resolve a value and return its literal text.

    The text is the parameter's own string once it has been checked against
    the attribute type, so "30" stays "30" in a double attribute.
    """
    return _resolve_raw(expr, scope, evaluator)[0]
