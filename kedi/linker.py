"""Resolve fragment calls into function indices, keeping only reachable code."""

from __future__ import annotations

from kedi import fragment, linked, syntax
from kedi.errors import KediError
from kedi.prims import prims
from kedi.rts import Instruction, Op


def link(module: fragment.Module) -> linked.Module:
    """Link the exported functions of ``module`` with everything they call.

    A function's callees come before it in the result; the position of a
    function is the index its callers use. Raises KediError for a call that
    names no available function, or for recursion, which cannot be linked.
    """
    env = _Linker()
    for stmt in (*prims().statements, *module.statements):
        env.available[stmt.v.name.v] = stmt.v
    for stmt in module.statements:
        if stmt.v.export:
            env.resolve(stmt.v.name.v)
    return linked.Module(tuple(env.funs))


class _Linker:
    """Available fragments and the functions linked so far."""

    def __init__(self) -> None:
        self.available: dict[syntax.Ident, fragment.FunDecl] = {}
        self.funs: list[linked.FunDecl] = []
        self.indices: dict[syntax.Ident, int] = {}
        self._in_progress: set[syntax.Ident] = set()

    def resolve(self, name: syntax.Ident) -> int:
        index = self.indices.get(name)
        if index is not None:
            return index
        fun = self.available.get(name)
        if fun is None:
            raise KediError(f"No available fragment found for {name.name}")
        if name in self._in_progress:
            raise KediError(f"Cannot link recursive function {name.name}")
        self._in_progress.add(name)
        try:
            result = self._link_function(fun)
        finally:
            self._in_progress.discard(name)
        index = len(self.funs)
        self.indices[name] = index
        self.funs.append(result)
        return index

    def _link_function(self, fun: fragment.FunDecl) -> linked.FunDecl:
        out: list[Instruction] = []
        for instr in fun.implementation.v.body:
            if isinstance(instr, fragment.Call):
                target = fun.refs.get_by_left(instr.fun)
                if target is None:
                    raise KediError(f"No reference found for {instr.fun!r}")
                out.append(Instruction(Op.CALL, (self.resolve(target),)))
            else:
                out.append(instr)
        body = tuple(out)
        return linked.FunDecl(
            name=fun.name,
            export=fun.export,
            implementation=fun.implementation.map(
                lambda impl: fragment.FunImpl(params=impl.params, body=body)
            ),
        )