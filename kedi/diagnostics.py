"""Turn compiler errors into labelled diagnostics over the source text."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from kedi.errors import DuplicateIdentifierError, IdentifierNotFoundError, ParseError
from kedi.loc import Span, SrcLoc


@dataclass(frozen=True)
class Label:
    """A marked span of the source, with an optional note."""

    span: Span
    message: str | None = None
    primary: bool = False


@dataclass(frozen=True)
class Diagnostic:
    """An error message with the spans of source it points at."""

    message: str
    labels: tuple[Label, ...]
    source: str
    severity: str = "Error"

    def render(self) -> str:
        """Show the message, then each label under its source line."""
        out = [f"{self.severity}: {self.message}"]
        for label in self.labels:
            line_no, col, text = _position(self.source, label.span.start)
            gutter = " " * len(str(line_no))
            width = max(1, min(label.span.length, len(text) - col))
            underline = " " * col + ("^" if label.primary else "-") * width
            if label.message:
                underline += " " + label.message
            out.append(f"{gutter} --> {line_no}:{col + 1}")
            out.append(f"{line_no} | {text}")
            out.append(f"{gutter} | {underline}")
        return "\n".join(out)


def _position(source: str, offset: int) -> tuple[int, int, str]:
    offset = min(max(offset, 0), len(source))
    line_start = source.rfind("\n", 0, offset) + 1
    line_end = source.find("\n", offset)
    if line_end == -1:
        line_end = len(source)
    line_no = source.count("\n", 0, offset) + 1
    return line_no, offset - line_start, source[line_start:line_end]


def _span(location: Any) -> Span:
    if isinstance(location, Span):
        return location
    if isinstance(location, SrcLoc):
        return location.span if location.span is not None else Span(0, 0)
    raise TypeError(f"cannot turn {location!r} into a source span")


def annotate_error(error: Exception, source: str) -> Diagnostic:
    """Describe a parse or renamer error against the source it came from."""
    match error:
        case ParseError():
            return Diagnostic(error.msg, (Label(_span(error.span), None, True),), source)
        case IdentifierNotFoundError():
            label = Label(_span(error.identifier.a), "Defined here.", True)
            return Diagnostic("Identifier not found", (label,), source)
        case DuplicateIdentifierError():
            labels = (
                Label(_span(error.error.a), "[ERR] Duplicate identifier.", True),
                Label(_span(error.original_loc), "Previously defined at.", False),
            )
            return Diagnostic("Duplicate identifier", labels, source)
    raise TypeError(f"no diagnostic for {type(error).__name__}")