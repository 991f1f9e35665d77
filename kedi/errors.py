"""Errors the compiler reports for faulty programs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kedi.ax import Ax
    from kedi.loc import Span
    from kedi.syntax import Ident


class KediError(Exception):
    """Base of every error raised for a faulty program."""


class ParseError(KediError):
    """The source text could not be parsed."""

    def __init__(self, msg: str, span: Span) -> None:
        super().__init__(msg)
        self.msg = msg
        self.span = span


class RenamerError(KediError):
    """Names in the program could not be resolved."""


class IdentifierNotFoundError(RenamerError):
    """An assignment targets a name that was never declared."""

    def __init__(self, identifier: Ax[Any, Ident]) -> None:
        super().__init__("Identifier not found")
        self.identifier = identifier


class DuplicateIdentifierError(RenamerError):
    """A name is declared twice in the same function."""

    def __init__(self, error: Ax[Any, Ident], original_loc: Any) -> None:
        super().__init__("Duplicate identifier")
        self.error = error
        self.original_loc = original_loc