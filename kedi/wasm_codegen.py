"""Compile simplified functions into instruction fragments awaiting linking."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from kedi import fragment, plain, simple, syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.errors import KediError
from kedi.rts import Instruction, Op, object_val_type

PACK_I32 = syntax.Ident("__prim_pack_i32")


def generate(module: simple.Module) -> fragment.Module:
    """Compile every function of ``module``; all of them are exported."""
    return fragment.Module(
        tuple(stmt.map(_codegen_function) for stmt in module.statements)
    )


def _codegen_function(decl: simple.FunDecl) -> fragment.FunDecl:
    state = _CodegenState(decl.refs)
    impl = decl.implementation.v
    parameters = impl.parameters.v
    for param in parameters:
        state.register_param(param.v)

    instrs: list[Any] = []
    for stmt in impl.body.v:
        state.statement(instrs, stmt)

    body = tuple(instrs)
    params = tuple(object_val_type() for _ in parameters)
    return fragment.FunDecl(
        name=decl.name,
        export=True,
        implementation=decl.implementation.map(
            lambda _: fragment.FunImpl(params=params, body=body)
        ),
        refs=state.refs,
    )


def _op(op: Op, *immediates: int) -> Instruction:
    return Instruction(op, immediates)


class _CodegenState:
    """Local slots, loop nesting and call references of one function."""

    def __init__(self, refs: Bimap[plain.GlobalIdent, syntax.Ident]) -> None:
        self.params: dict[plain.LocalIdent, int] = {}
        self.locals: dict[plain.LocalIdent, int] = {}
        self.single_uses: dict[simple.SingleUseIdent, int] = {}
        self.depth_to_loop: list[int] = []
        self.refs: Bimap[plain.GlobalIdent, syntax.Ident] = Bimap(refs)

    def _slot_count(self) -> int:
        return len(self.params) + len(self.locals) + len(self.single_uses)

    def register_param(self, param: plain.LocalIdent) -> None:
        if self.locals or self.single_uses:
            raise RuntimeError("parameters must be registered before any local")
        self.params[param] = len(self.params)

    def resolve(self, ident: simple.Ident) -> int:
        value = ident.v
        if isinstance(value, plain.LocalIdent):
            if value in self.params:
                return self.params[value]
            table: dict[Any, int] = self.locals
        elif isinstance(value, simple.SingleUseIdent):
            table = self.single_uses
        else:
            raise TypeError(f"not a local identifier: {value!r}")
        if value not in table:
            table[value] = self._slot_count()
        return table[value]

    def register_call(self, name: syntax.Ident) -> plain.GlobalIdent:
        existing = self.refs.get_by_right(name)
        if existing is not None:
            return existing
        gid = plain.GlobalIdent(len(self.refs))
        self.refs.insert(gid, name)
        return gid

    @contextmanager
    def break_target(self) -> Iterator[None]:
        self.depth_to_loop.append(0)
        try:
            yield
        finally:
            self.depth_to_loop.pop()

    @contextmanager
    def nested_block(self) -> Iterator[None]:
        if self.depth_to_loop:
            self.depth_to_loop[-1] += 1
        try:
            yield
        finally:
            if self.depth_to_loop:
                self.depth_to_loop[-1] -= 1

    def block(self, instrs: list[Any], stmts: tuple[simple.FunStmt, ...]) -> None:
        for stmt in stmts:
            self.statement(instrs, stmt)

    def statement(self, instrs: list[Any], stmt: simple.FunStmt) -> None:
        match stmt:
            case Ax(v=simple.Assignment(target=target, value=value)):
                self._assignment_value(instrs, value)
                instrs.append(_op(Op.LOCAL_SET, self.resolve(target)))
            case simple.Return(value=ident):
                instrs.append(_op(Op.LOCAL_GET, self.resolve(ident)))
                instrs.append(_op(Op.RETURN))
            case simple.Nop():
                pass
            case simple.If(condition=condition, then=then, else_=else_):
                instrs.append(_op(Op.LOCAL_GET, self.resolve(condition)))
                instrs.append(_op(Op.IF))
                with self.nested_block():
                    self.block(instrs, then.v)
                if else_ is not None:
                    instrs.append(_op(Op.ELSE))
                    with self.nested_block():
                        self.block(instrs, else_.v)
                instrs.append(_op(Op.END))
            case Ax(v=simple.Loop(body=body)):
                with self.break_target():
                    instrs.append(_op(Op.BLOCK))
                    with self.nested_block():
                        instrs.append(_op(Op.LOOP))
                        with self.break_target():
                            self.block(instrs, body.v)
                        instrs.append(_op(Op.BR, 0))
                        instrs.append(_op(Op.END))
                    instrs.append(_op(Op.END))
            case simple.Break():
                if not self.depth_to_loop:
                    raise KediError("break outside of a loop")
                instrs.append(_op(Op.BR, self.depth_to_loop[-1] + 1))
            case _:
                raise TypeError(f"unsupported statement: {stmt!r}")

    def _assignment_value(
        self, instrs: list[Any], value: simple.AssignmentValue
    ) -> None:
        match value.v:
            case syntax.LitNum(value=number):
                instrs.append(_op(Op.I32_CONST, number))
                instrs.append(fragment.Call(self.register_call(PACK_I32), 1))
            case simple.Call(fun_name=fun_name, arguments=arguments):
                for arg in arguments.v:
                    instrs.append(_op(Op.LOCAL_GET, self.resolve(arg)))
                instrs.append(fragment.Call(fun_name.v, len(arguments.v)))
            case plain.LocalIdent() | simple.SingleUseIdent():
                instrs.append(_op(Op.LOCAL_GET, self.resolve(value)))
            case _:
                raise TypeError(f"unsupported assignment value: {value!r}")