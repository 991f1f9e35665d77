"""Kedi compiler stages: renaming, simplification, a fuel-metered interpreter and WebAssembly output."""

__version__ = "0.1.0"