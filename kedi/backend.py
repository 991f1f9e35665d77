"""Choose a code generation target and run the stages that produce its output."""

from __future__ import annotations

import enum
from typing import Union

from kedi import simple
from kedi.linker import link
from kedi.mk_wasm import mk_wasm
from kedi.wasm_codegen import generate


class CodegenTarget(enum.Enum):
    """Output formats code can be generated for."""

    WASM = "wasm"
    JS = "js"


def run_codegen(
    module: simple.Module, target: Union[CodegenTarget, str] = CodegenTarget.WASM
) -> bytes:
    """Compile ``module`` for ``target`` and return the output bytes.

    Only WebAssembly output is available; asking for JavaScript, or for an
    unknown target, raises ValueError.
    """
    target = CodegenTarget(target)
    if target is CodegenTarget.WASM:
        fragments = generate(module)
        linked_module = link(fragments)
        return mk_wasm(linked_module).bytes
    raise ValueError(f"{target.value} code generation is not available")