"""The surface syntax tree, with a location attached to its parts."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from kedi.ax import Ax

I32_MIN = -(2**31)
I32_MAX = 2**31 - 1


@dataclass(frozen=True)
class Ident:
    """An identifier as written in the source."""

    name: str

    _sexpr_positional = True


@dataclass(frozen=True)
class LitNum:
    """A 32-bit signed integer literal."""

    value: int

    _sexpr_positional = True

    def __post_init__(self) -> None:
        if not I32_MIN <= self.value <= I32_MAX:
            raise ValueError(f"{self.value} does not fit in a 32-bit integer")


@dataclass(frozen=True)
class LitStr:
    """A string literal."""

    value: str

    _sexpr_positional = True


@dataclass(frozen=True)
class FunCall:
    name: Ax[Any, Ident]
    args: Ax[Any, tuple[Expr, ...]]


@dataclass(frozen=True)
class FunDef:
    name: Ax[Any, Ident]
    params: Ax[Any, tuple[Ax[Any, Ident], ...]]
    preds: Ax[Any, tuple[Expr, ...]]
    body: Ax[Any, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class Return:
    value: Expr

    _sexpr_positional = True


@dataclass(frozen=True)
class Inv:
    value: Ax[Any, Expr]


@dataclass(frozen=True)
class LetDecl:
    name: Ax[Any, Ident]
    value: Expr


@dataclass(frozen=True)
class While:
    condition: Expr
    body: Ax[Any, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class Assignment:
    name: Ax[Any, Ident]
    value: Expr


@dataclass(frozen=True)
class If:
    condition: Expr
    then: Ax[Any, tuple[FunStmt, ...]]
    else_: Ax[Any, tuple[FunStmt, ...]] | None = None


@dataclass(frozen=True)
class Module:
    statements: Ax[Any, tuple[Ax[Any, FunDef], ...]]


Expr = Union[Ax[Any, LitNum], Ax[Any, LitStr], Ax[Any, Ident], FunCall]

FunStmt = Union[
    Ax[Any, Return],
    Ax[Any, Inv],
    Ax[Any, LetDecl],
    Ax[Any, While],
    Ax[Any, Assignment],
    Ax[Any, If],
]