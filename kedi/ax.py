"""A value paired with an attachment such as a source location or a tag."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from kedi.sexpr import Term, to_sexpr

A = TypeVar("A")
V = TypeVar("V")
B = TypeVar("B")
W = TypeVar("W")


@dataclass(frozen=True)
class Ax(Generic[A, V]):
    """Value ``v`` carrying attachment ``a``."""

    a: A
    v: V

    def map(self, f: Callable[[V], W]) -> Ax[A, W]:
        """Transform the value, keeping the attachment."""
        return Ax(self.a, f(self.v))

    def map_a(self, f: Callable[[A], B]) -> Ax[B, V]:
        """Transform the attachment, keeping the value."""
        return Ax(f(self.a), self.v)

    def to_sexpr(self) -> Term:
        """Only the value is rendered; the attachment is left out."""
        return to_sexpr(self.v)


def ax(a: A, v: V) -> Ax[A, V]:
    return Ax(a, v)