"""Functions after linking: every call refers to a function index."""

from __future__ import annotations

from dataclasses import dataclass

from kedi import syntax
from kedi.ax import Ax
from kedi.fragment import FunImpl
from kedi.loc import SrcLoc
from kedi.rts import Instruction
from kedi.sexpr import Term, SList, call, to_sexpr

__all__ = ["FunImpl", "Instr", "FunDecl", "Module"]

Instr = Instruction


@dataclass(frozen=True)
class FunDecl:
    """A linked function, ready to be emitted."""

    name: Ax[SrcLoc, syntax.Ident]
    export: bool
    implementation: Ax[SrcLoc, FunImpl]

    def to_sexpr(self) -> Term:
        return call(
            "fun",
            [self.name, call("export", [self.export]), self.implementation],
        )


@dataclass(frozen=True)
class Module:
    statements: tuple[FunDecl, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "statements", tuple(self.statements))

    def add(self, other: Module) -> Module:
        """A module with this module's functions followed by ``other``'s."""
        return Module(self.statements + other.statements)

    def to_sexpr(self) -> Term:
        return SList(tuple(to_sexpr(stmt) for stmt in self.statements))