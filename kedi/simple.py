"""The simplified program: flat assignments to local and single-use names."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from kedi import syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.loc import SrcLoc, Tag, TagMap
from kedi.plain import GlobalIdent, LocalIdent
from kedi.syntax import LitNum

__all__ = [
    "SingleUseIdent",
    "Ident",
    "Call",
    "AssignmentValue",
    "Assignment",
    "If",
    "Loop",
    "Break",
    "Return",
    "Nop",
    "FunStmt",
    "FunImpl",
    "FunDecl",
    "Module",
]


@dataclass(frozen=True)
class SingleUseIdent:
    """A temporary introduced by the simplifier, numbered within its function."""

    id: int


Ident = Union[Ax[Tag, LocalIdent], Ax[Tag, SingleUseIdent]]


@dataclass(frozen=True)
class Call:
    """A call of a global function with already evaluated arguments."""

    fun_name: Ax[Tag, GlobalIdent]
    arguments: Ax[Tag, tuple[Ident, ...]]


AssignmentValue = Union[Ax[Tag, Call], Ident, Ax[Tag, LitNum]]


@dataclass(frozen=True)
class Assignment:
    target: Ident
    value: AssignmentValue


@dataclass(frozen=True)
class If:
    condition: Ident
    then: Ax[Tag, tuple[FunStmt, ...]]
    else_: Ax[Tag, tuple[FunStmt, ...]] | None = None


@dataclass(frozen=True)
class Loop:
    """Repeats its body until a ``Break`` or a ``Return``."""

    body: Ax[Tag, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class Break:
    """Leaves the innermost loop."""


@dataclass(frozen=True)
class Return:
    value: Ident

    _sexpr_positional = True


@dataclass(frozen=True)
class Nop:
    """A statement that does nothing; left behind by optimizations."""


FunStmt = Union[Ax[Tag, Loop], Ax[Tag, Assignment], Break, Return, If, Nop]


@dataclass(frozen=True)
class FunImpl:
    parameters: Ax[Tag, tuple[Ax[Tag, LocalIdent], ...]]
    body: Ax[Tag, tuple[FunStmt, ...]]


@dataclass(frozen=True)
class FunDecl:
    name: Ax[SrcLoc, syntax.Ident]
    implementation: Ax[SrcLoc, FunImpl]
    tag_map: TagMap = field(default_factory=TagMap, compare=False)
    refs: Bimap[GlobalIdent, syntax.Ident] = field(default_factory=Bimap)


@dataclass(frozen=True)
class Module:
    statements: tuple[Ax[SrcLoc, FunDecl], ...] = ()