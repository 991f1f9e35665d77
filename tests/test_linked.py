from kedi.fragment import FunImpl
from kedi.linked import FunDecl, Module
from kedi.loc import unknown
from kedi.rts import Instruction, NumType, Op
from kedi.sexpr import SList, Symbol, to_sexpr
from kedi.syntax import Ident


def make_decl(name="add", export=False):
    impl = FunImpl(
        (NumType.I32, NumType.I32),
        (
            Instruction(Op.LOCAL_GET, (0,)),
            Instruction(Op.CALL, (7,)),
            Instruction(Op.LOCAL_GET, (1,)),
            Instruction(Op.I32_ADD),
        ),
    )
    return FunDecl(unknown(Ident(name)), export, unknown(impl))


def test_fun_decl_sexpr():
    decl = make_decl()
    term = decl.to_sexpr()
    assert term.items[0] == Symbol("fun")
    assert term.items[1] == to_sexpr(Ident("add"))
    assert term.items[2] == SList((Symbol("export"), Symbol("false")))
    assert term.items[3] == decl.implementation.v.to_sexpr()
    assert len(term.items) == 4


def test_body_instructions_render_as_symbols():
    decl = make_decl()
    body = decl.implementation.v.to_sexpr().items[1]
    assert body.items[1:] == tuple(
        Symbol(str(instr)) for instr in decl.implementation.v.body
    )


def test_params_render_their_types():
    params = make_decl().implementation.v.to_sexpr().items[0]
    assert params.items[1:] == (Symbol(str(NumType.I32)), Symbol(str(NumType.I32)))


def test_module_add_keeps_order():
    first = Module((make_decl("a"),))
    second = Module((make_decl("b"),))
    assert [d.name.v.name for d in first.add(second).statements] == ["a", "b"]
    assert [d.name.v.name for d in second.add(first).statements] == ["b", "a"]


def test_module_sexpr():
    module = Module((make_decl("a", True), make_decl("b")))
    assert module.to_sexpr().items == (
        make_decl("a", True).to_sexpr(),
        make_decl("b").to_sexpr(),
    )


def test_empty_module_sexpr():
    assert Module().to_sexpr() == SList(())