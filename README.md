# kedi

Compiler stages for the Kedi language, used as a library. You build a syntax
tree from `kedi.syntax` and pass it through these stages:

1. **Renaming** (`kedi.renamer.rename`). Each identifier becomes a numbered
   `LocalIdent` or `GlobalIdent` from `kedi.plain`. If a function declares a
   name twice, it raises `DuplicateIdentifierError`. If an assignment targets a
   name that was never declared, it raises `IdentifierNotFoundError`. Both
   errors are in `kedi.errors`.
2. **Simplification** (`kedi.simplifier.simplify`). Expressions are flattened
   into assignments to single-use temporaries, and `while` becomes a `Loop`
   with a `Break`. The result uses the forms in `kedi.simple`. Then
   `kedi.optimizations.optimize` folds temporaries that are read by the next
   assignment (`prune_single_use`) and drops `Nop` statements (`remove_nops`).
3. **Interpretation** (`kedi.interpreter.interpret`). Calls a function of a
   simplified module. Each executed statement costs one unit of fuel. On
   success it returns an `InterpretSuccess` that holds the returned
   `KediValue` and the fuel used. It raises `OutOfFuel` when `fuel_limit` is
   exceeded, and `InterpretError` when the program fails, for example by
   calling an unknown function.
4. **WebAssembly output**:
   - `kedi.wasm_codegen.generate` turns a simplified module into
     `kedi.fragment` functions. Their calls still name globals.
   - `kedi.linker.link` resolves those calls. It uses the module's own
     functions and the primitives in `kedi.prims`: `__prim_add`, `__prim_eq?`,
     `__prim_gt?`, `__prim_gte?`, `__prim_lt?`, `__prim_lte?`,
     `__prim_pack_i32` and `__prim_unpack_i32`. Only functions reachable from
     exported ones are kept. A recursive function raises `KediError`.
   - `kedi.mk_wasm.mk_wasm` encodes the linked module as `WasmBytes`. Its
     `sections()` method splits the bytes into `(section id, payload)` pairs.
   - `kedi.backend.run_codegen(module, target)` runs these three steps in one
     call. Only `CodegenTarget.WASM` is available; other targets raise
     `ValueError`.

Every intermediate form can be turned into an S-expression with
`kedi.sexpr.to_sexpr` and printed with `kedi.sexpr.pretty`.
`kedi.diagnostics.annotate_error(error, source)` turns a parse or renamer
error into a `Diagnostic`. Its `render()` method shows the message with the
labelled source lines. `kedi.phase` has small phase objects
(`TransformPhase`, `ProcessPhase`, `TransformMapPhase`) and a `Compiler` that
threads a value through them with `run_phase`.

## What it does not do

- There is no parser for Kedi source text. Programs are built as `kedi.syntax`
  trees.
- There is no command-line tool.
- Nothing here runs the generated WebAssembly.
- The simplifier rejects string literals, invariants and globals used as
  values. It raises `KediError` for them.

## Install

```
pip install .
```

## Example

```python
from kedi import syntax
from kedi.loc import unknown
from kedi.renamer import rename
from kedi.simplifier import simplify
from kedi.interpreter import interpret

x = unknown(syntax.Ident("x"))
fun = syntax.FunDef(
    name=unknown(syntax.Ident("id")),
    params=unknown((x,)),
    preds=unknown(()),
    body=unknown((unknown(syntax.Return(x)),)),
)
module = syntax.Module(unknown((unknown(fun),)))

simple = simplify(rename(module))
result = interpret(simple, "id", [42], fuel_limit=10000)
print(result.value)      # KediValue(value=42)
```

## Tests

```
pip install .[test]
pytest
```