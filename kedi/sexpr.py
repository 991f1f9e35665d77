"""S-expression terms, conversion of Python values into them, and printing."""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Union

_I64_MIN = -(2**63)
_I64_MAX = 2**63 - 1
_WIDTH = 80


@dataclass(frozen=True)
class Symbol:
    """A bare symbol such as ``span`` or ``true``."""

    name: str

    def to_sexpr(self) -> Symbol:
        return self


@dataclass(frozen=True)
class String:
    """A quoted string literal."""

    value: str

    def to_sexpr(self) -> String:
        return self


@dataclass(frozen=True)
class Number:
    """A signed 64-bit integer."""

    value: int

    def to_sexpr(self) -> Number:
        return self


@dataclass(frozen=True)
class SList:
    """A parenthesised list of terms."""

    items: tuple[Term, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))

    def to_sexpr(self) -> SList:
        return self


Term = Union[Symbol, String, Number, SList]


def symbol(x: str) -> Symbol:
    return Symbol(x)


def string(x: str) -> String:
    return String(x)


def number(x: int) -> Number:
    """Build a number term; the value must fit in a signed 64-bit integer."""
    if isinstance(x, bool) or not isinstance(x, int):
        raise TypeError(f"expected an integer, got {type(x).__name__}")
    if not _I64_MIN <= x <= _I64_MAX:
        raise ValueError(f"{x} does not fit in a signed 64-bit integer")
    return Number(x)


def call(name: str, args: Iterable[Any]) -> SList:
    """Build ``(name arg...)``, converting every argument."""
    return SList((Symbol(name), *(to_sexpr(arg) for arg in args)))


def sexpr_list(args: Iterable[Any]) -> SList:
    """Build ``(arg...)``, converting every argument."""
    return SList(tuple(to_sexpr(arg) for arg in args))


def to_sexpr(value: Any) -> Term:
    """Convert a value to a term.

    Objects with a ``to_sexpr`` method use it. Dataclasses render as
    ``(Name (field value) ...)``, or ``(Name value ...)`` when the class sets
    ``_sexpr_positional``; a dataclass without fields renders as its name.
    Enum members render as their name, ``None`` as the symbol ``None``.
    """
    if isinstance(value, (Symbol, String, Number, SList)):
        return value
    method = getattr(value, "to_sexpr", None)
    if callable(method) and not isinstance(value, type):
        return method()
    if isinstance(value, bool):
        return Symbol("true" if value else "false")
    if isinstance(value, int):
        return number(value)
    if isinstance(value, str):
        return String(value)
    if value is None:
        return Symbol("None")
    if isinstance(value, enum.Enum):
        return Symbol(value.name)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _dataclass_sexpr(value)
    if isinstance(value, Mapping):
        return SList(
            tuple(SList((to_sexpr(k), to_sexpr(v))) for k, v in value.items())
        )
    if isinstance(value, (list, tuple)):
        return sexpr_list(value)
    raise TypeError(f"cannot convert {type(value).__name__} to an s-expression")


def _dataclass_sexpr(value: Any) -> Term:
    cls = type(value)
    fields = dataclasses.fields(value)
    if not fields:
        return Symbol(cls.__name__)
    if getattr(cls, "_sexpr_positional", False):
        parts = [to_sexpr(getattr(value, f.name)) for f in fields]
    else:
        parts = [
            SList((Symbol(f.name), to_sexpr(getattr(value, f.name)))) for f in fields
        ]
    return SList((Symbol(cls.__name__), *parts))


def _escape(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )


def _flat(term: Term) -> str:
    if isinstance(term, Symbol):
        return term.name
    if isinstance(term, String):
        return f'"{_escape(term.value)}"'
    if isinstance(term, Number):
        return str(term.value)
    return "(" + " ".join(_flat(item) for item in term.items) + ")"


def _render(term: Term, indent: int) -> str:
    flat = _flat(term)
    if not isinstance(term, SList) or not term.items or indent + len(flat) <= _WIDTH:
        return flat
    head, *rest = term.items
    pad = " " * (indent + 2)
    parts = ["(" + _render(head, indent + 1)]
    parts.extend("\n" + pad + _render(item, indent + 2) for item in rest)
    return "".join(parts) + ")"


def pretty(term: Any) -> str:
    """Render a term (or convertible value), breaking long lists over lines."""
    return _render(to_sexpr(term), 0)