[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kedi"
version = "0.1.0"
description = "Compiler stages for the Kedi language: renaming, simplification, a fuel-metered interpreter and WebAssembly output"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "webassembly", "wasm", "interpreter", "s-expression"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["kedi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
