"""Lower renamed functions into flat statements over single-use temporaries."""

from __future__ import annotations

from typing import Any

from kedi import plain, simple, syntax
from kedi.ax import Ax
from kedi.errors import KediError
from kedi.loc import SrcLoc, TagMap, to_tagged
from kedi.optimizations import optimize


def simplify(module: plain.Module) -> simple.Module:
    """Simplify every function of ``module`` and optimize the result."""
    decls = tuple(
        Ax(stmt.a, _simplify_fun_decl(stmt.a, stmt.v)) for stmt in module.statements
    )
    return optimize(simple.Module(decls))


def _simplify_fun_decl(location: Any, fun: plain.FunDef) -> simple.FunDecl:
    impl, tag_map = simplify_fun_impl(fun.implementation)
    return simple.FunDecl(
        name=fun.name,
        implementation=Ax(location, impl),
        tag_map=tag_map,
        refs=fun.refs,
    )


def simplify_fun_impl(fun_impl: plain.FunImpl) -> tuple[simple.FunImpl, TagMap]:
    """Simplify one function body, returning it with the tags it handed out."""
    state = _FunImplSimplifier()
    instrs = state.block(fun_impl.body.v)
    params = fun_impl.params.map(
        lambda ps: tuple(to_tagged(p, state.tag_map) for p in ps)
    )
    parameters = to_tagged(params, state.tag_map)
    body = to_tagged(Ax(fun_impl.body.a, tuple(instrs)), state.tag_map)
    return simple.FunImpl(parameters, body), state.tag_map


def _location(expr: plain.Expr) -> Any:
    if isinstance(expr, plain.FunCall):
        return SrcLoc.all_enclosing([expr.name.a, expr.args.a])
    return expr.a


class _FunImplSimplifier:
    """Fresh names and tags for the function being simplified."""

    def __init__(self) -> None:
        self._next_single_use = 1
        self.tag_map = TagMap()

    def _fresh(self) -> simple.SingleUseIdent:
        ident = simple.SingleUseIdent(self._next_single_use)
        self._next_single_use += 1
        return ident

    def block(self, stmts: tuple[plain.FunStmt, ...]) -> list[simple.FunStmt]:
        instrs: list[simple.FunStmt] = []
        for stmt in stmts:
            self._statement(instrs, stmt)
        return instrs

    def _statement(self, instrs: list[simple.FunStmt], stmt: plain.FunStmt) -> None:
        match stmt.v:
            case plain.Return(value=value):
                instrs.append(simple.Return(self._expr(instrs, value)))
            case plain.LetDecl(name=name, value=value):
                tag = self.tag_map.get_tag(stmt.a)
                body = self._expr(instrs, value)
                target = to_tagged(name, self.tag_map)
                instrs.append(tag.attach(simple.Assignment(target, body)))
            case plain.While(condition=condition, body=body):
                tag = self.tag_map.get_tag(stmt.a)
                loop_instrs: list[simple.FunStmt] = []
                cond = self._expr(loop_instrs, condition)
                loop_instrs.append(
                    simple.If(
                        cond,
                        cond.a.attach(()),
                        cond.a.attach((simple.Break(),)),
                    )
                )
                loop_instrs.extend(self.block(body.v))
                loop = simple.Loop(tag.attach(tuple(loop_instrs)))
                instrs.append(tag.attach(loop))
            case plain.Assignment(id=target_id, value=value):
                tag = self.tag_map.get_tag(stmt.a)
                body = self._expr(instrs, value)
                target = to_tagged(target_id, self.tag_map)
                instrs.append(tag.attach(simple.Assignment(target, body)))
            case plain.If(condition=condition, then=then, else_=else_):
                cond = self._expr(instrs, condition)
                then_instrs = self.block(then.v)
                else_instrs = self.block(else_.v) if else_ is not None else []
                then_part = self.tag_map.get_tag(_location(condition)).attach(
                    tuple(then_instrs)
                )
                else_part = (
                    None
                    if else_ is None
                    else self.tag_map.get_tag(else_.a).attach(tuple(else_instrs))
                )
                instrs.append(simple.If(cond, then_part, else_part))
            case plain.Inv():
                raise KediError("invariants are not supported by the simplifier")
            case _:
                raise TypeError(f"unsupported statement: {stmt.v!r}")

    def _expr(self, instrs: list[simple.FunStmt], expr: plain.Expr) -> simple.Ident:
        match expr:
            case plain.FunCall(name=name, args=args):
                tag = self.tag_map.get_tag(_location(expr))
                arguments = tuple(self._expr(instrs, arg) for arg in args.v)
                target = tag.attach(self._fresh())
                call = simple.Call(to_tagged(name, self.tag_map), tag.attach(arguments))
                instrs.append(tag.attach(simple.Assignment(target, tag.attach(call))))
                return target
            case Ax(v=syntax.LitNum()):
                tag = self.tag_map.get_tag(expr.a)
                target = tag.attach(self._fresh())
                instrs.append(
                    tag.attach(simple.Assignment(target, tag.attach(expr.v)))
                )
                return target
            case Ax(v=plain.LocalIdent()):
                return to_tagged(expr, self.tag_map)
            case Ax(v=plain.GlobalIdent()):
                raise KediError("global identifiers cannot be used as values yet")
            case Ax(v=syntax.LitStr()):
                raise KediError("string literals are not supported by the simplifier")
        raise TypeError(f"unsupported expression: {expr!r}")