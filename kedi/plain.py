"""The program after renaming: every identifier is a numbered local or global."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from kedi import syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.syntax import LitNum, LitStr

__all__ = [
    "LocalIdent",
    "GlobalIdent",
    "LitNum",
    "LitStr",
    "FunDef",
    "FunImpl",
    "FunCall",
    "Return",
    "Inv",
    "LetDecl",
    "While",
    "Assignment",
    "If",
    "Module",
]


@dataclass(frozen=True)
class LocalIdent:
    """A parameter or local variable, numbered within its function."""

    id: int


@dataclass(frozen=True)
class GlobalIdent:
    """A name not bound in the function, numbered within its function."""

    id: int


@dataclass(frozen=True)
class FunImpl:
    params: Ax[Any, tuple[Ax[Any, LocalIdent], ...]]
    preds: Ax[Any, tuple[Expr, ...]]
    body: Ax[Any, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class FunDef:
    name: Ax[Any, syntax.Ident]
    implementation: FunImpl
    refs: Bimap[GlobalIdent, syntax.Ident] = field(default_factory=Bimap)


@dataclass(frozen=True)
class FunCall:
    name: Ax[Any, GlobalIdent]
    args: Ax[Any, tuple[Expr, ...]]


@dataclass(frozen=True)
class Return:
    value: Expr

    _sexpr_positional = True


@dataclass(frozen=True)
class Inv:
    value: Ax[Any, Expr]


@dataclass(frozen=True)
class LetDecl:
    name: Ax[Any, LocalIdent]
    value: Expr


@dataclass(frozen=True)
class While:
    condition: Expr
    body: Ax[Any, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class Assignment:
    id: Ax[Any, LocalIdent]
    value: Expr


@dataclass(frozen=True)
class If:
    condition: Expr
    then: Ax[Any, tuple[FunStmt, ...]]
    else_: Ax[Any, tuple[FunStmt, ...]] | None = None


@dataclass(frozen=True)
class Module:
    statements: tuple[Ax[Any, FunDef], ...] = ()


Ident = Union[Ax[Any, LocalIdent], Ax[Any, GlobalIdent]]

Expr = Union[Ax[Any, LitNum], Ax[Any, LitStr], Ident, FunCall]

FunStmt = Union[
    Ax[Any, Return],
    Ax[Any, Inv],
    Ax[Any, LetDecl],
    Ax[Any, While],
    Ax[Any, Assignment],
    Ax[Any, If],
]