"""Primitive functions every program can call."""

from __future__ import annotations

from kedi import fragment, syntax
from kedi.bimap import Bimap
from kedi.loc import unknown
from kedi.plain import GlobalIdent
from kedi.rts import (
    OBJECT_TAG_I32,
    OBJECT_TYPE_ID,
    Instruction,
    NumType,
    Op,
    ValType,
    object_val_type,
)


def prims() -> fragment.Module:
    """The primitive fragments, none of them exported."""
    return fragment.Module(
        (
            _i32_binop("gt?", Op.I32_GT_U),
            _i32_binop("gte?", Op.I32_GE_U),
            _i32_binop("lt?", Op.I32_LT_U),
            _i32_binop("lte?", Op.I32_LE_U),
            _i32_binop("eq?", Op.I32_EQ),
            _i32_binop("add", Op.I32_ADD),
            _pack_i32(),
            _unpack_i32(),
        )
    )


def _prim(name, params: tuple[ValType, ...], body, refs: Bimap | None = None):
    return unknown(
        fragment.FunDecl(
            name=unknown(syntax.Ident(f"__prim_{name}")),
            export=False,
            implementation=unknown(fragment.FunImpl(params=params, body=tuple(body))),
            refs=refs if refs is not None else Bimap(),
        )
    )


def _i32_binop(name: str, op: Op):
    unpack = GlobalIdent(0)
    return _prim(
        name,
        (NumType.I32, NumType.I32),
        [
            Instruction(Op.LOCAL_GET, (0,)),
            fragment.Call(unpack, 1),
            Instruction(Op.LOCAL_GET, (1,)),
            Instruction(op),
        ],
        Bimap([(unpack, syntax.Ident("__prim_unpack_i32"))]),
    )


def _pack_i32():
    return _prim(
        "pack_i32",
        (NumType.I32,),
        [
            Instruction(Op.I32_CONST, (OBJECT_TAG_I32,)),
            Instruction(Op.LOCAL_GET, (0,)),
            Instruction(Op.STRUCT_NEW, (OBJECT_TYPE_ID,)),
        ],
    )


def _unpack_i32():
    return _prim(
        "unpack_i32",
        (object_val_type(),),
        [
            Instruction(Op.LOCAL_GET, (0,)),
            Instruction(Op.STRUCT_GET, (OBJECT_TYPE_ID, 0)),
            Instruction(Op.I32_CONST, (OBJECT_TAG_I32,)),
            Instruction(Op.I32_EQ),
            # Unwrap the value when the tag matches, trap otherwise.
            Instruction(Op.IF),
            Instruction(Op.LOCAL_GET, (0,)),
            Instruction(Op.STRUCT_GET, (OBJECT_TYPE_ID, 1)),
            Instruction(Op.ELSE),
            Instruction(Op.I32_CONST, (0,)),
            Instruction(Op.UNREACHABLE),
            Instruction(Op.END),
        ],
    )