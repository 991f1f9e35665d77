"""Emit a binary WebAssembly module from linked functions."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

from kedi import linked
from kedi.rts import (
    OBJECT_TYPE_ID,
    FieldType,
    Instruction,
    NumType,
    Op,
    RefType,
    encode_u32,
    object_val_type,
)

ValType = Union[NumType, RefType]

_MAGIC = b"\x00asm"
_VERSION = b"\x01\x00\x00\x00"
_FUNC_FORM = b"\x60"
_STRUCT_FORM = b"\x5f"
_EXPORT_KIND_FUNC = b"\x00"


class SectionId(enum.IntEnum):
    """Ids of the sections a module is built from."""

    TYPE = 1
    FUNCTION = 3
    EXPORT = 7
    CODE = 10


@dataclass(frozen=True)
class WasmBytes:
    """The bytes of an encoded WebAssembly module."""

    bytes: bytes

    def sections(self) -> list[tuple[int, bytes]]:
        """Split the module into ``(section id, payload)`` pairs.

        Raises ValueError when the header is wrong or a section is cut short.
        """
        data = self.bytes
        header = _MAGIC + _VERSION
        if data[: len(header)] != header:
            raise ValueError("not a WebAssembly module: bad magic or version")
        pos = len(header)
        out: list[tuple[int, bytes]] = []
        while pos < len(data):
            section_id = data[pos]
            size, pos = _read_u32(data, pos + 1)
            end = pos + size
            if end > len(data):
                raise ValueError(f"section {section_id} is truncated")
            out.append((section_id, data[pos:end]))
            pos = end
        return out


def _read_u32(data: bytes, pos: int) -> tuple[int, int]:
    result = 0
    shift = 0
    while True:
        if pos >= len(data):
            raise ValueError("unexpected end of data in a LEB128 number")
        byte = data[pos]
        pos += 1
        result |= (byte & 0x7F) << shift
        if not byte & 0x80:
            return result, pos
        shift += 7
        if shift > 28:
            raise ValueError("LEB128 number too long for 32 bits")


def _vec(items: list[bytes]) -> bytes:
    return encode_u32(len(items)) + b"".join(items)


def _name(text: str) -> bytes:
    raw = text.encode("utf-8")
    return encode_u32(len(raw)) + raw


def _section(section_id: SectionId, payload: bytes) -> bytes:
    return bytes([section_id]) + encode_u32(len(payload)) + payload


@dataclass(frozen=True)
class _FuncType:
    params: tuple[ValType, ...]
    results: tuple[ValType, ...]

    def encode(self) -> bytes:
        return (
            _FUNC_FORM
            + _vec([p.encode() for p in self.params])
            + _vec([r.encode() for r in self.results])
        )


@dataclass(frozen=True)
class _StructType:
    fields: tuple[FieldType, ...]

    def encode(self) -> bytes:
        return _STRUCT_FORM + _vec([f.encode() for f in self.fields])


class _ModuleBuilder:
    """Types, functions and code bodies collected so far."""

    def __init__(self) -> None:
        self._type_map: dict[Union[_FuncType, _StructType], int] = {}
        self.types: list[bytes] = []
        self.functions: list[int] = []
        self.bodies: list[bytes] = []

    def type_index(self, ty: Union[_FuncType, _StructType]) -> int:
        existing = self._type_map.get(ty)
        if existing is not None:
            return existing
        self.types.append(ty.encode())
        index = len(self.types) - 1
        self._type_map[ty] = index
        return index

    def add_func(
        self, type_ix: int, locals_: list[ValType], body: tuple[Instruction, ...]
    ) -> int:
        code = (
            _vec([encode_u32(1) + t.encode() for t in locals_])
            + b"".join(instr.encode() for instr in body)
            + Instruction(Op.END).encode()
        )
        self.functions.append(type_ix)
        self.bodies.append(encode_u32(len(code)) + code)
        return len(self.functions) - 1


def _locals(body: tuple[Instruction, ...]) -> list[ValType]:
    targets = [instr.immediates[0] for instr in body if instr.op is Op.LOCAL_SET]
    return [object_val_type()] * (max(targets, default=0) + 1)


def mk_wasm(module: linked.Module) -> WasmBytes:
    """Encode ``module``; the object struct is always type 0."""
    builder = _ModuleBuilder()
    obj_type = builder.type_index(
        _StructType((FieldType(NumType.I32), FieldType(NumType.I32)))
    )
    if obj_type != OBJECT_TYPE_ID:
        raise RuntimeError("the object struct must be the first type")

    exports: list[bytes] = []
    for fun in module.statements:
        impl = fun.implementation.v
        type_ix = builder.type_index(
            _FuncType(tuple(impl.params), (object_val_type(),))
        )
        fun_ix = builder.add_func(type_ix, _locals(impl.body), impl.body)
        if fun.export:
            exports.append(
                _name(fun.name.v.name) + _EXPORT_KIND_FUNC + encode_u32(fun_ix)
            )

    data = b"".join(
        [
            _MAGIC,
            _VERSION,
            _section(SectionId.TYPE, _vec(builder.types)),
            _section(
                SectionId.FUNCTION, _vec([encode_u32(t) for t in builder.functions])
            ),
            _section(SectionId.EXPORT, _vec(exports)),
            _section(SectionId.CODE, _vec(builder.bodies)),
        ]
    )
    return WasmBytes(data)