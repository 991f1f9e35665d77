"""Resolve identifiers to numbered locals and globals, function by function."""

from __future__ import annotations

from typing import Any

from kedi import plain, syntax
from kedi.ax import Ax
from kedi.bimap import Bimap
from kedi.errors import DuplicateIdentifierError, IdentifierNotFoundError


def rename(module: syntax.Module) -> plain.Module:
    """Rename every function in ``module``.

    Raises DuplicateIdentifierError when a name is declared twice in a
    function, and IdentifierNotFoundError when an assignment targets an
    undeclared name.
    """
    return plain.Module(tuple(_rename_top_level(stmt) for stmt in module.statements.v))


def _rename_top_level(stmt: Ax[Any, syntax.FunDef]) -> Ax[Any, plain.FunDef]:
    if not isinstance(stmt.v, syntax.FunDef):
        raise TypeError(f"unsupported top-level statement: {stmt.v!r}")
    return Ax(stmt.a, _rename_function(stmt.v))


def _rename_function(fun: syntax.FunDef) -> plain.FunDef:
    env = _RenamerEnv()
    params = fun.params.map(lambda ps: tuple(env.new_local(p) for p in ps))
    body = fun.body.map(lambda stmts: _rename_block(env, stmts))
    return plain.FunDef(
        name=fun.name,
        implementation=plain.FunImpl(
            params=params,
            preds=Ax(fun.preds.a, ()),
            body=body,
        ),
        refs=Bimap((gid, name) for name, gid in env.globals.items()),
    )


def _rename_block(env: _RenamerEnv, stmts: tuple[syntax.FunStmt, ...]) -> tuple:
    return tuple(_rename_statement(env, stmt) for stmt in stmts)


def _rename_statement(env: _RenamerEnv, stmt: syntax.FunStmt) -> plain.FunStmt:
    match stmt.v:
        case syntax.LetDecl(name=name, value=value):
            local = env.new_local(name)
            return Ax(stmt.a, plain.LetDecl(local, _rename_expr(env, value)))
        case syntax.Return(value=value):
            return Ax(stmt.a, plain.Return(_rename_expr(env, value)))
        case syntax.Inv(value=value):
            return Ax(stmt.a, plain.Inv(value.map(lambda e: _rename_expr(env, e))))
        case syntax.While(condition=condition, body=body):
            cond = _rename_expr(env, condition)
            new_body = body.map(lambda stmts: _rename_block(env, stmts))
            return Ax(stmt.a, plain.While(cond, new_body))
        case syntax.Assignment(name=name, value=value):
            local = env.resolve_local(name.v)
            if local is None:
                raise IdentifierNotFoundError(name)
            target = Ax(name.a, local)
            return Ax(stmt.a, plain.Assignment(target, _rename_expr(env, value)))
        case syntax.If(condition=condition, then=then, else_=else_):
            cond = _rename_expr(env, condition)
            new_then = then.map(lambda stmts: _rename_block(env, stmts))
            new_else = (
                None
                if else_ is None
                else else_.map(lambda stmts: _rename_block(env, stmts))
            )
            return Ax(stmt.a, plain.If(cond, new_then, new_else))
    raise TypeError(f"unsupported statement: {stmt.v!r}")


def _rename_expr(env: _RenamerEnv, expr: syntax.Expr) -> plain.Expr:
    match expr:
        case syntax.FunCall(name=name, args=args):
            new_name = name.map(env.global_ident)
            new_args = args.map(lambda xs: tuple(_rename_expr(env, x) for x in xs))
            return plain.FunCall(new_name, new_args)
        case Ax(v=syntax.Ident()):
            return env.resolve(expr)
        case Ax(v=syntax.LitNum() | syntax.LitStr()):
            return expr
    raise TypeError(f"unsupported expression: {expr!r}")


class _RenamerEnv:
    """Name bindings of the function being renamed."""

    def __init__(self) -> None:
        self.locals: dict[syntax.Ident, plain.LocalIdent] = {}
        self.local_locs: dict[syntax.Ident, Any] = {}
        self.globals: dict[syntax.Ident, plain.GlobalIdent] = {}

    def new_local(self, name: Ax[Any, syntax.Ident]) -> Ax[Any, plain.LocalIdent]:
        if name.v in self.locals:
            raise DuplicateIdentifierError(name, self.local_locs[name.v])
        local = plain.LocalIdent(len(self.locals))
        self.locals[name.v] = local
        self.local_locs[name.v] = name.a
        return Ax(name.a, local)

    def global_ident(self, name: syntax.Ident) -> plain.GlobalIdent:
        existing = self.globals.get(name)
        if existing is not None:
            return existing
        gid = plain.GlobalIdent(len(self.globals))
        self.globals[name] = gid
        return gid

    def resolve_local(self, name: syntax.Ident) -> plain.LocalIdent | None:
        return self.locals.get(name)

    def resolve(self, name: Ax[Any, syntax.Ident]) -> plain.Ident:
        local = self.resolve_local(name.v)
        if local is not None:
            return Ax(name.a, local)
        return Ax(name.a, self.global_ident(name.v))