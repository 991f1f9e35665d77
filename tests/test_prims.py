import pytest

from kedi import fragment, syntax
from kedi.loc import UNKNOWN
from kedi.plain import GlobalIdent
from kedi.prims import prims
from kedi.rts import (
    OBJECT_TAG_I32,
    OBJECT_TYPE_ID,
    Instruction,
    NumType,
    Op,
    object_val_type,
)


def _by_name():
    return {stmt.v.name.v.name: stmt.v for stmt in prims().statements}


def test_prim_names():
    assert set(_by_name()) == {
        "__prim_gt?",
        "__prim_gte?",
        "__prim_lt?",
        "__prim_lte?",
        "__prim_eq?",
        "__prim_add",
        "__prim_pack_i32",
        "__prim_unpack_i32",
    }


def test_prims_are_not_exported_and_have_no_location():
    for stmt in prims().statements:
        assert stmt.v.export is False
        assert stmt.a == UNKNOWN
        assert stmt.v.name.a == UNKNOWN


def test_prims_order():
    names = [stmt.v.name.v.name for stmt in prims().statements]
    assert names == [
        "__prim_gt?",
        "__prim_gte?",
        "__prim_lt?",
        "__prim_lte?",
        "__prim_eq?",
        "__prim_add",
        "__prim_pack_i32",
        "__prim_unpack_i32",
    ]


@pytest.mark.parametrize(
    "name, op",
    [
        ("__prim_gt?", Op.I32_GT_U),
        ("__prim_gte?", Op.I32_GE_U),
        ("__prim_lt?", Op.I32_LT_U),
        ("__prim_lte?", Op.I32_LE_U),
        ("__prim_eq?", Op.I32_EQ),
        ("__prim_add", Op.I32_ADD),
    ],
)
def test_binops(name, op):
    decl = _by_name()[name]
    impl = decl.implementation.v
    assert impl.params == (NumType.I32, NumType.I32)
    assert impl.body[0] == Instruction(Op.LOCAL_GET, (0,))
    assert impl.body[1] == fragment.Call(GlobalIdent(0), 1)
    assert impl.body[-1] == Instruction(op)
    assert decl.refs.get_by_left(GlobalIdent(0)) == syntax.Ident("__prim_unpack_i32")


def test_pack_i32():
    impl = _by_name()["__prim_pack_i32"].implementation.v
    assert impl.params == (NumType.I32,)
    assert impl.body[0] == Instruction(Op.I32_CONST, (OBJECT_TAG_I32,))
    assert impl.body[-1] == Instruction(Op.STRUCT_NEW, (OBJECT_TYPE_ID,))


def test_unpack_i32():
    decl = _by_name()["__prim_unpack_i32"]
    impl = decl.implementation.v
    assert impl.params == (object_val_type(),)
    assert len(decl.refs) == 0
    assert Instruction(Op.UNREACHABLE) in impl.body
    assert Instruction(Op.STRUCT_GET, (OBJECT_TYPE_ID, 0)) in impl.body
    assert Instruction(Op.STRUCT_GET, (OBJECT_TYPE_ID, 1)) in impl.body
    opens = sum(1 for i in impl.body if i.op in (Op.BLOCK, Op.LOOP, Op.IF))
    ends = sum(1 for i in impl.body if i.op is Op.END)
    assert opens == ends


def test_every_call_has_a_reference():
    names = set(_by_name())
    for stmt in prims().statements:
        decl = stmt.v
        for instr in decl.implementation.v.body:
            if isinstance(instr, fragment.Call):
                target = decl.refs.get_by_left(instr.fun)
                assert target is not None
                assert target.name in names