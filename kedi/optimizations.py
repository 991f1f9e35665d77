"""Clean-ups run on simplified function bodies."""

from __future__ import annotations

from dataclasses import replace

from kedi import simple
from kedi.ax import Ax


def optimize(module: simple.Module) -> simple.Module:
    """Prune single-use temporaries and drop no-ops in every function."""
    return simple.Module(tuple(stmt.map(_optimize_decl) for stmt in module.statements))


def _optimize_decl(decl: simple.FunDecl) -> simple.FunDecl:
    implementation = decl.implementation.map(
        lambda impl: remove_nops(prune_single_use(impl))
    )
    return replace(decl, implementation=implementation)


def _is_assignment(stmt: simple.FunStmt) -> bool:
    return isinstance(stmt, Ax) and isinstance(stmt.v, simple.Assignment)


def _merge(current: simple.FunStmt, following: simple.FunStmt) -> simple.FunStmt | None:
    """Fold ``t := v; x := t`` into ``x := v`` when ``t`` is single-use."""
    if not (_is_assignment(current) and _is_assignment(following)):
        return None
    target = current.v.target
    value = following.v.value
    if (
        isinstance(target.v, simple.SingleUseIdent)
        and isinstance(value.v, simple.SingleUseIdent)
        and target.v == value.v
    ):
        return Ax(following.a, simple.Assignment(following.v.target, current.v.value))
    return None


def prune_single_use(fun_impl: simple.FunImpl) -> simple.FunImpl:
    """Fold temporaries read by the very next assignment, leaving a Nop behind.

    Only the top level of the body is examined.
    """
    out: list[simple.FunStmt] = []
    for stmt in fun_impl.body.v:
        if out:
            merged = _merge(out[-1], stmt)
            if merged is not None:
                out[-1] = simple.Nop()
                stmt = merged
        out.append(stmt)
    return replace(fun_impl, body=Ax(fun_impl.body.a, tuple(out)))


def remove_nops(fun_impl: simple.FunImpl) -> simple.FunImpl:
    """Drop the top-level Nop statements of the body."""
    body = tuple(s for s in fun_impl.body.v if not isinstance(s, simple.Nop))
    return replace(fun_impl, body=Ax(fun_impl.body.a, body))