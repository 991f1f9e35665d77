import pytest

from kedi import plain, syntax
from kedi.ax import Ax
from kedi.errors import DuplicateIdentifierError, IdentifierNotFoundError
from kedi.loc import Span, SrcLoc
from kedi.renamer import rename


def at(start, length=1):
    return SrcLoc(Span(start, length))


def name(text, start):
    return Ax(at(start, len(text)), syntax.Ident(text))


def num(value, start=90):
    return Ax(at(start), syntax.LitNum(value))


def block(stmts, start=50):
    return Ax(at(start, 40), tuple(stmts))


def fundef(fname, params, body):
    return Ax(
        at(0, 100),
        syntax.FunDef(
            name=name(fname, 0),
            params=Ax(at(10, 10), tuple(name(p, 10 + 2 * i) for i, p in enumerate(params))),
            preds=Ax(at(20, 5), (num(1, 20),)),
            body=block(body),
        ),
    )


def module(*funs):
    return syntax.Module(statements=Ax(at(0, 100), tuple(funs)))


def ret(expr, start=60):
    return Ax(at(start), syntax.Return(expr))


def only_fun(m):
    (stmt,) = m.statements
    return stmt.v


def test_identity_function():
    x = name("x", 62)
    fun = only_fun(rename(module(fundef("id", ["x"], [ret(x)]))))
    (param,) = fun.implementation.params.v
    assert param.v == plain.LocalIdent(0)
    (stmt,) = fun.implementation.body.v
    assert stmt.v.value == Ax(x.a, param.v)
    assert fun.name == name("id", 0)
    assert len(fun.refs) == 0


def test_locations_preserved():
    m = rename(module(fundef("f", ["x"], [ret(name("x", 62))])))
    (stmt,) = m.statements
    assert stmt.a == at(0, 100)
    impl = stmt.v.implementation
    assert impl.params.a == at(10, 10)
    assert impl.params.v[0].a == at(10)
    assert impl.body.a == at(50, 40)
    assert impl.body.v[0].a == at(60)


def test_preds_are_dropped():
    fun = only_fun(rename(module(fundef("f", [], []))))
    assert fun.implementation.preds == Ax(at(20, 5), ())


def test_unknown_identifier_becomes_global():
    y = name("y", 62)
    fun = only_fun(rename(module(fundef("f", [], [ret(y)]))))
    ref = fun.implementation.body.v[0].v.value
    assert isinstance(ref.v, plain.GlobalIdent)
    assert fun.refs.get_by_left(ref.v) == syntax.Ident("y")
    assert ref.a == y.a


def test_call_names_are_globals_shared_across_uses():
    inner_call = syntax.FunCall(name=name("g", 60), args=Ax(at(62), (name("x", 62),)))
    outer_call = syntax.FunCall(name=name("g", 70), args=Ax(at(72), (inner_call,)))
    fun = only_fun(rename(module(fundef("f", ["x"], [ret(outer_call)]))))
    outer = fun.implementation.body.v[0].v.value
    inner = outer.args.v[0]
    assert outer.name.v == inner.name.v
    assert fun.refs.get_by_left(outer.name.v) == syntax.Ident("g")
    assert inner.args.v[0].v == fun.implementation.params.v[0].v
    assert len(fun.refs) == 1


def test_call_name_is_global_even_when_local_has_same_name():
    call = syntax.FunCall(name=name("g", 60), args=Ax(at(62), (name("g", 62),)))
    fun = only_fun(rename(module(fundef("f", ["g"], [ret(call)]))))
    renamed = fun.implementation.body.v[0].v.value
    assert isinstance(renamed.name.v, plain.GlobalIdent)
    assert renamed.args.v[0].v == fun.implementation.params.v[0].v


def test_literals_pass_through():
    lit = num(7, 61)
    text = Ax(at(64), syntax.LitStr("hi"))
    call = syntax.FunCall(name=name("h", 60), args=Ax(at(61, 5), (lit, text)))
    fun = only_fun(rename(module(fundef("f", [], [ret(call)]))))
    assert fun.implementation.body.v[0].v.value.args.v == (lit, text)


def test_let_and_assignment_share_local():
    body = [
        Ax(at(50), syntax.LetDecl(name=name("a", 51), value=num(1, 53))),
        Ax(at(55), syntax.Assignment(name=name("a", 56), value=num(2, 58))),
        ret(name("a", 60)),
    ]
    fun = only_fun(rename(module(fundef("f", [], body))))
    let, assign, r = fun.implementation.body.v
    assert assign.v.id == Ax(at(56), let.v.name.v)
    assert r.v.value.v == let.v.name.v
    assert assign.v.value == num(2, 58)


def test_let_after_params_gets_fresh_id():
    body = [Ax(at(50), syntax.LetDecl(name=name("y", 51), value=name("x", 53)))]
    fun = only_fun(rename(module(fundef("f", ["x"], body))))
    (param,) = fun.implementation.params.v
    (let,) = fun.implementation.body.v
    assert let.v.name.v != param.v
    assert let.v.value.v == param.v


def test_let_value_sees_new_binding():
    body = [Ax(at(50), syntax.LetDecl(name=name("z", 51), value=name("z", 53)))]
    fun = only_fun(rename(module(fundef("f", [], body))))
    (let,) = fun.implementation.body.v
    assert let.v.value.v == let.v.name.v
    assert len(fun.refs) == 0


def test_duplicate_param_raises():
    with pytest.raises(DuplicateIdentifierError) as info:
        rename(module(fundef("f", ["x", "x"], [])))
    assert info.value.error == name("x", 12)
    assert info.value.original_loc == at(10)


def test_let_redeclaring_param_raises():
    body = [Ax(at(50), syntax.LetDecl(name=name("x", 51), value=num(1, 53)))]
    with pytest.raises(DuplicateIdentifierError) as info:
        rename(module(fundef("f", ["x"], body)))
    assert info.value.error == name("x", 51)
    assert info.value.original_loc == at(10)


def test_assignment_to_undeclared_raises():
    target = name("q", 56)
    body = [Ax(at(55), syntax.Assignment(name=target, value=num(2, 58)))]
    with pytest.raises(IdentifierNotFoundError) as info:
        rename(module(fundef("f", [], body)))
    assert info.value.identifier == target


def test_undeclared_assignment_inside_while_raises():
    target = name("q", 56)
    inner = Ax(at(55), syntax.Assignment(name=target, value=num(2, 58)))
    loop = Ax(at(50), syntax.While(condition=num(1, 51), body=block([inner], 55)))
    with pytest.raises(IdentifierNotFoundError) as info:
        rename(module(fundef("f", [], [loop])))
    assert info.value.identifier == target


def test_while_and_if():
    cond = name("x", 52)
    inner = Ax(at(56), syntax.Assignment(name=name("x", 57), value=num(0, 59)))
    loop = Ax(at(50), syntax.While(condition=cond, body=block([inner], 55)))
    branch = Ax(
        at(70),
        syntax.If(condition=name("x", 71), then=block([ret(name("x", 73))], 72)),
    )
    fun = only_fun(rename(module(fundef("f", ["x"], [loop, branch]))))
    (param,) = fun.implementation.params.v
    w, i = fun.implementation.body.v
    assert w.v.condition == Ax(cond.a, param.v)
    assert w.v.body.v[0].v.id.v == param.v
    assert w.v.body.a == at(55, 40)
    assert i.v.else_ is None
    assert i.v.then.v[0].v.value.v == param.v


def test_if_with_else():
    branch = Ax(
        at(70),
        syntax.If(
            condition=name("c", 71),
            then=block([ret(name("c", 73))], 72),
            else_=block([ret(name("d", 81))], 80),
        ),
    )
    fun = only_fun(rename(module(fundef("f", ["c"], [branch]))))
    (i,) = fun.implementation.body.v
    assert i.v.else_.a == at(80, 40)
    other = i.v.else_.v[0].v.value.v
    assert fun.refs.get_by_left(other) == syntax.Ident("d")


def test_inv_is_renamed():
    stmt = Ax(at(50, 5), syntax.Inv(value=Ax(at(50, 5), name("x", 51))))
    fun = only_fun(rename(module(fundef("f", ["x"], [stmt]))))
    (inv,) = fun.implementation.body.v
    (param,) = fun.implementation.params.v
    assert inv == Ax(at(50, 5), plain.Inv(Ax(at(50, 5), Ax(at(51), param.v))))


def test_each_function_has_own_locals_and_refs():
    m = rename(
        module(
            fundef("f", ["x"], [ret(name("a", 62))]),
            fundef("g", ["y"], [ret(name("b", 62))]),
        )
    )
    f, g = (stmt.v for stmt in m.statements)
    assert f.implementation.params.v[0].v == g.implementation.params.v[0].v
    ref_f = f.implementation.body.v[0].v.value.v
    ref_g = g.implementation.body.v[0].v.value.v
    assert ref_f == ref_g
    assert f.refs.get_by_left(ref_f) == syntax.Ident("a")
    assert g.refs.get_by_left(ref_g) == syntax.Ident("b")
    assert [stmt.v.name.v for stmt in m.statements] == [
        syntax.Ident("f"),
        syntax.Ident("g"),
    ]