"""A tree-walking interpreter for simplified programs, metered by fuel."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

from kedi import plain, simple, syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.errors import KediError


@dataclass(frozen=True)
class KediValue:
    """A runtime value; every value is an arbitrary-precision integer."""

    value: int

    def is_truthy(self) -> bool:
        return self.value != 0


@dataclass(frozen=True)
class InterpretSuccess:
    """The value a function returned and the fuel spent computing it."""

    value: KediValue
    fuel_used: int


class InterpretError(KediError):
    """The program could not be run to completion."""


class OutOfFuel(KediError):
    """More statements were executed than the fuel limit allows."""

    def __init__(self, fuel_limit: int) -> None:
        super().__init__(f"ran out of fuel after {fuel_limit} statements")
        self.fuel_limit = fuel_limit


def interpret(
    module: simple.Module,
    fun_name: str,
    args: Iterable[Union[KediValue, int]] = (),
    fuel_limit: int | None = None,
) -> InterpretSuccess:
    """Call ``fun_name`` of ``module`` with ``args``.

    Every executed statement costs one unit of fuel, across all calls.
    Raises OutOfFuel when ``fuel_limit`` is exceeded and InterpretError when
    the program fails, for instance by calling an unknown function.
    """
    values = [a if isinstance(a, KediValue) else KediValue(a) for a in args]
    interpreter = _Interpreter(module, fuel_limit)
    result = interpreter.call(syntax.Ident(fun_name), values)
    return InterpretSuccess(result, interpreter.fuel_used)


class _Return(Exception):
    def __init__(self, value: KediValue) -> None:
        super().__init__()
        self.value = value


class _Break(Exception):
    pass


class _Interpreter:
    """Functions of the module and the fuel spent so far."""

    def __init__(self, module: simple.Module, fuel_limit: int | None) -> None:
        self.functions: dict[syntax.Ident, simple.FunDecl] = {
            stmt.v.name.v: stmt.v for stmt in module.statements
        }
        self.fuel_used = 0
        self.fuel_limit = fuel_limit

    def burn(self) -> None:
        self.fuel_used += 1
        if self.fuel_limit is not None and self.fuel_used > self.fuel_limit:
            raise OutOfFuel(self.fuel_limit)

    def call(self, name: syntax.Ident, args: list[KediValue]) -> KediValue:
        decl = self.functions.get(name)
        if decl is None:
            raise InterpretError(f"Function {name.name} not found")
        impl = decl.implementation.v
        params = impl.parameters.v
        if len(args) != len(params):
            raise TypeError(
                f"{name.name} takes {len(params)} arguments, {len(args)} given"
            )
        frame = _Frame(self, decl.refs, {p.v: a for p, a in zip(params, args)})
        try:
            frame.block(impl.body.v)
        except _Return as ret:
            return ret.value
        except _Break:
            raise InterpretError(f"break outside of a loop in {name.name}") from None
        raise InterpretError(f"Function {name.name} finished without returning")


class _Frame:
    """Variables of one function invocation."""

    def __init__(
        self,
        interpreter: _Interpreter,
        refs: Bimap[plain.GlobalIdent, syntax.Ident],
        variables: dict[Any, KediValue],
    ) -> None:
        self.interpreter = interpreter
        self.refs = refs
        self.variables = variables

    def resolve(self, ident: simple.Ident) -> KediValue:
        try:
            return self.variables[ident.v]
        except KeyError:
            raise InterpretError(f"unbound variable {ident.v!r}") from None

    def block(self, stmts: Iterable[simple.FunStmt]) -> None:
        for stmt in stmts:
            self.statement(stmt)

    def statement(self, stmt: simple.FunStmt) -> None:
        self.interpreter.burn()
        match stmt:
            case simple.Return(value=ident):
                raise _Return(self.resolve(ident))
            case simple.If(condition=condition, then=then, else_=else_):
                if self.resolve(condition).is_truthy():
                    self.block(then.v)
                elif else_ is not None:
                    self.block(else_.v)
            case simple.Break():
                raise _Break()
            case simple.Nop():
                pass
            case Ax(v=simple.Loop(body=body)):
                try:
                    while True:
                        self.block(body.v)
                except _Break:
                    pass
            case Ax(v=simple.Assignment(target=target, value=value)):
                self.variables[target.v] = self.evaluate(value)
            case _:
                raise TypeError(f"unsupported statement: {stmt!r}")

    def evaluate(self, value: simple.AssignmentValue) -> KediValue:
        match value.v:
            case syntax.LitNum(value=number):
                return KediValue(number)
            case simple.Call(fun_name=fun_name, arguments=arguments):
                name = self.refs.get_by_left(fun_name.v)
                if name is None:
                    raise InterpretError(f"no reference for {fun_name.v!r}")
                args = [self.resolve(arg) for arg in arguments.v]
                return self.interpreter.call(name, args)
            case plain.LocalIdent() | simple.SingleUseIdent():
                return self.resolve(value)
        raise TypeError(f"unsupported assignment value: {value!r}")