import pytest

from kedi import plain, simple, syntax
from kedi.ax import Ax
from kedi.errors import KediError
from kedi.loc import Span, SrcLoc
from kedi.plain import GlobalIdent, LocalIdent
from kedi.renamer import rename
from kedi.simplifier import simplify, simplify_fun_impl
from kedi.syntax import LitNum, LitStr


def at(start, value, length=1):
    return Ax(SrcLoc(Span(start, length)), value)


def impl_with(*body, params=1):
    return plain.FunImpl(
        params=at(0, tuple(at(1 + i, LocalIdent(i)) for i in range(params))),
        preds=at(0, ()),
        body=at(2, tuple(body)),
    )


def test_identity_function():
    impl = impl_with(at(12, plain.Return(at(19, LocalIdent(0)))))
    result, tags = simplify_fun_impl(impl)
    [stmt] = result.body.v
    assert isinstance(stmt, simple.Return)
    assert stmt.value.v == LocalIdent(0)
    assert tags.resolve_tag(stmt.value.a) == SrcLoc(Span(19, 1))
    assert [p.v for p in result.parameters.v] == [LocalIdent(0)]
    assert tags.resolve_tag(result.parameters.v[0].a) == SrcLoc(Span(1, 1))
    assert tags.resolve_tag(result.body.a) == SrcLoc(Span(2, 1))


def test_let_introduces_single_use_temporary():
    impl = impl_with(
        at(3, plain.LetDecl(at(4, LocalIdent(1)), at(5, LitNum(42)))),
        at(6, plain.Return(at(7, LocalIdent(1)))),
    )
    result, tags = simplify_fun_impl(impl)
    lit, let, ret = result.body.v
    assert lit.v.target.v == simple.SingleUseIdent(1)
    assert lit.v.value.v == LitNum(42)
    assert let.v.target.v == LocalIdent(1)
    assert let.v.value == lit.v.target
    assert tags.resolve_tag(let.a) == SrcLoc(Span(3, 1))
    assert ret.value.v == LocalIdent(1)


def test_while_becomes_loop_with_guard():
    impl = impl_with(
        at(
            3,
            plain.While(
                at(4, LocalIdent(0)),
                at(5, (at(6, plain.Assignment(at(7, LocalIdent(0)), at(8, LitNum(0)))),)),
            ),
        ),
        at(9, plain.Return(at(10, LocalIdent(0)))),
    )
    result, tags = simplify_fun_impl(impl)
    loop_stmt, ret = result.body.v
    assert isinstance(loop_stmt.v, simple.Loop)
    assert tags.resolve_tag(loop_stmt.a) == SrcLoc(Span(3, 1))
    guard, *rest = loop_stmt.v.body.v
    assert isinstance(guard, simple.If)
    assert guard.condition.v == LocalIdent(0)
    assert guard.then.v == ()
    assert guard.else_.v == (simple.Break(),)
    assert guard.then.a == guard.condition.a
    assert len(rest) == 2
    assert rest[1].v.target.v == LocalIdent(0)
    assert isinstance(ret, simple.Return)


def test_if_with_else_tags_branches_by_location():
    impl = impl_with(
        at(
            3,
            plain.If(
                at(4, LocalIdent(0)),
                at(5, (at(6, plain.Return(at(7, LocalIdent(0)))),)),
                at(8, (at(9, plain.Return(at(10, LocalIdent(0)))),)),
            ),
        )
    )
    result, tags = simplify_fun_impl(impl)
    [branch] = result.body.v
    assert isinstance(branch, simple.If)
    assert tags.resolve_tag(branch.then.a) == SrcLoc(Span(4, 1))
    assert tags.resolve_tag(branch.else_.a) == SrcLoc(Span(8, 1))
    assert isinstance(branch.then.v[0], simple.Return)
    assert isinstance(branch.else_.v[0], simple.Return)


def test_if_without_else():
    impl = impl_with(
        at(3, plain.If(at(4, LocalIdent(0)), at(5, ()), None))
    )
    result, _ = simplify_fun_impl(impl)
    [branch] = result.body.v
    assert branch.else_ is None
    assert branch.then.v == ()


def test_function_call_evaluates_arguments_first():
    call = plain.FunCall(
        at(20, GlobalIdent(0), 3),
        at(24, (at(25, LocalIdent(0)), at(28, LitNum(1))), 5),
    )
    impl = impl_with(at(12, plain.Return(call)))
    result, tags = simplify_fun_impl(impl)
    lit, call_assign, ret = result.body.v
    value = call_assign.v.value.v
    assert isinstance(value, simple.Call)
    assert value.fun_name.v == GlobalIdent(0)
    first, second = value.arguments.v
    assert first.v == LocalIdent(0)
    assert second == lit.v.target
    assert ret.value == call_assign.v.target
    assert lit.v.target.v != call_assign.v.target.v
    expected = SrcLoc(Span(20, 3)).enclosing(SrcLoc(Span(24, 5)))
    assert tags.resolve_tag(call_assign.a) == expected


def test_global_as_value_is_rejected():
    impl = impl_with(at(3, plain.Return(at(4, GlobalIdent(0)))))
    with pytest.raises(KediError):
        simplify_fun_impl(impl)


def test_string_literal_is_rejected():
    impl = impl_with(at(3, plain.Return(at(4, LitStr("hi")))))
    with pytest.raises(KediError):
        simplify_fun_impl(impl)


def test_invariant_is_rejected():
    impl = impl_with(at(3, plain.Inv(at(4, at(4, LocalIdent(0))))))
    with pytest.raises(KediError):
        simplify_fun_impl(impl)


def test_simplify_from_syntax_prunes_temporaries():
    fundef = syntax.FunDef(
        name=at(0, syntax.Ident("f")),
        params=at(1, (at(2, syntax.Ident("x")),)),
        preds=at(3, ()),
        body=at(
            4,
            (
                at(5, syntax.LetDecl(at(6, syntax.Ident("y")), at(7, LitNum(42)))),
                at(8, syntax.Return(at(9, syntax.Ident("y")))),
            ),
        ),
    )
    module = syntax.Module(at(0, (at(0, fundef),)))
    result = simplify(rename(module))
    [decl] = result.statements
    assert decl.v.name.v == syntax.Ident("f")
    assign, ret = decl.v.implementation.v.body.v
    assert assign.v.target.v == LocalIdent(1)
    assert assign.v.value.v == LitNum(42)
    assert ret.value.v == LocalIdent(1)
    assert len(decl.v.refs) == 0