"""Compiled functions whose calls still name globals and await linking."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from kedi import syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.loc import SrcLoc
from kedi.plain import GlobalIdent
from kedi.rts import Instruction, ValType
from kedi.sexpr import SList, Symbol, Term, call, number, symbol, to_sexpr


@dataclass(frozen=True)
class Call:
    """A call of the global ``fun`` with ``arity`` arguments on the stack."""

    fun: GlobalIdent
    arity: int

    def to_sexpr(self) -> Term:
        return call("call", [number(self.fun.id), Symbol(f"[{self.arity}]")])


Instr = Union[Call, Instruction]


def _instr_sexpr(instr: Any) -> Term:
    if isinstance(instr, Instruction):
        return symbol(str(instr))
    return to_sexpr(instr)


@dataclass(frozen=True)
class FunImpl:
    """Parameter types and the instruction body of a function."""

    params: tuple[ValType, ...] = ()
    body: tuple[Any, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", tuple(self.params))
        object.__setattr__(self, "body", tuple(self.body))

    def to_sexpr(self) -> Term:
        return SList(
            (
                call("params", [symbol(str(p)) for p in self.params]),
                call("body", [_instr_sexpr(i) for i in self.body]),
            )
        )


@dataclass(frozen=True)
class FunDecl:
    """A compiled function and the names its calls refer to."""

    name: Ax[SrcLoc, syntax.Ident]
    export: bool
    implementation: Ax[SrcLoc, FunImpl]
    refs: Bimap[GlobalIdent, syntax.Ident] = field(default_factory=Bimap)

    def to_sexpr(self) -> Term:
        refs = [call("ref", [left, right]) for left, right in self.refs]
        return SList(
            (
                Symbol("fun"),
                to_sexpr(self.name),
                call("export", [self.export]),
                to_sexpr(self.implementation),
                call("refs", refs),
            )
        )


@dataclass(frozen=True)
class Module:
    statements: tuple[Ax[SrcLoc, FunDecl], ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "statements", tuple(self.statements))

    def add(self, other: Module) -> Module:
        """A module with this module's functions followed by ``other``'s."""
        return Module(self.statements + other.statements)

    def to_sexpr(self) -> Term:
        return SList(tuple(to_sexpr(stmt) for stmt in self.statements))