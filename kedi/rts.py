"""Runtime layout of objects and the binary encoding of WebAssembly pieces."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Union

OBJECT_TYPE_ID = 0
OBJECT_TAG_I32 = 1

_EMPTY_BLOCK_TYPE = b"\x40"


def encode_u32(n: int) -> bytes:
    """Unsigned LEB128 encoding of a 32-bit value."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"expected an integer, got {type(n).__name__}")
    if not 0 <= n < 2**32:
        raise ValueError(f"{n} does not fit in an unsigned 32-bit integer")
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if n:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def _encode_sleb(n: int) -> bytes:
    out = bytearray()
    while True:
        byte = n & 0x7F
        n >>= 7
        if (n == 0 and not byte & 0x40) or (n == -1 and byte & 0x40):
            out.append(byte)
            return bytes(out)
        out.append(byte | 0x80)


def encode_i32(n: int) -> bytes:
    """Signed LEB128 encoding of a 32-bit value."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError(f"expected an integer, got {type(n).__name__}")
    if not -(2**31) <= n < 2**31:
        raise ValueError(f"{n} does not fit in a signed 32-bit integer")
    return _encode_sleb(n)


class NumType(enum.Enum):
    """Numeric value types."""

    I32 = 0x7F
    I64 = 0x7E
    F32 = 0x7D
    F64 = 0x7C

    def encode(self) -> bytes:
        return bytes([self.value])

    def __str__(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class RefType:
    """A reference to the concrete type with index ``heap_type``."""

    nullable: bool
    heap_type: int

    def __post_init__(self) -> None:
        if self.heap_type < 0:
            raise ValueError("type indices are not negative")

    def encode(self) -> bytes:
        prefix = b"\x63" if self.nullable else b"\x64"
        return prefix + _encode_sleb(self.heap_type)

    def __str__(self) -> str:
        null = "null " if self.nullable else ""
        return f"(ref {null}{self.heap_type})"


ValType = Union[NumType, RefType]


@dataclass(frozen=True)
class FieldType:
    """A struct field: its storage type and whether it may be written."""

    element_type: ValType
    mutable: bool = False

    def encode(self) -> bytes:
        return self.element_type.encode() + (b"\x01" if self.mutable else b"\x00")


class Op(enum.Enum):
    """Instructions the code generator emits: mnemonic, opcode, immediates."""

    UNREACHABLE = ("unreachable", b"\x00", 0)
    BLOCK = ("block", b"\x02", 0)
    LOOP = ("loop", b"\x03", 0)
    IF = ("if", b"\x04", 0)
    ELSE = ("else", b"\x05", 0)
    END = ("end", b"\x0b", 0)
    BR = ("br", b"\x0c", 1)
    RETURN = ("return", b"\x0f", 0)
    CALL = ("call", b"\x10", 1)
    LOCAL_GET = ("local.get", b"\x20", 1)
    LOCAL_SET = ("local.set", b"\x21", 1)
    I32_CONST = ("i32.const", b"\x41", 1)
    I32_EQ = ("i32.eq", b"\x46", 0)
    I32_LT_U = ("i32.lt_u", b"\x49", 0)
    I32_GT_U = ("i32.gt_u", b"\x4b", 0)
    I32_LE_U = ("i32.le_u", b"\x4d", 0)
    I32_GE_U = ("i32.ge_u", b"\x4f", 0)
    I32_ADD = ("i32.add", b"\x6a", 0)
    STRUCT_NEW = ("struct.new", b"\xfb\x00", 1)
    STRUCT_GET = ("struct.get", b"\xfb\x02", 2)

    def __init__(self, mnemonic: str, opcode: bytes, arity: int) -> None:
        self.mnemonic = mnemonic
        self.opcode = opcode
        self.arity = arity

    @property
    def opens_block(self) -> bool:
        """Block, loop and if carry an (always empty) block type."""
        return self.name in ("BLOCK", "LOOP", "IF")


@dataclass(frozen=True)
class Instruction:
    """An instruction with its immediate operands."""

    op: Op
    immediates: tuple[int, ...] = ()

    def __post_init__(self) -> None:
        immediates = tuple(self.immediates)
        object.__setattr__(self, "immediates", immediates)
        if len(immediates) != self.op.arity:
            raise ValueError(
                f"{self.op.mnemonic} takes {self.op.arity} immediates, "
                f"{len(immediates)} given"
            )

    def encode(self) -> bytes:
        parts = [self.op.opcode]
        if self.op.opens_block:
            parts.append(_EMPTY_BLOCK_TYPE)
        encoder = encode_i32 if self.op is Op.I32_CONST else encode_u32
        parts.extend(encoder(value) for value in self.immediates)
        return b"".join(parts)

    def __str__(self) -> str:
        return " ".join([self.op.mnemonic, *map(str, self.immediates)])


def object_val_type() -> RefType:
    """The type of every runtime object: a non-null reference to the object struct."""
    return RefType(nullable=False, heap_type=OBJECT_TYPE_ID)


def object_field_type() -> FieldType:
    return FieldType(object_val_type(), mutable=False)