"""A one-to-one mapping that can be looked up from either side."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Generic, TypeVar

from kedi.sexpr import SList, Term, sexpr_list

L = TypeVar("L")
R = TypeVar("R")

_MISSING = object()


class Bimap(Generic[L, R]):
    """Pairs of left and right values, each side unique.

    Inserting a pair drops any existing pair that shares its left or its
    right value.
    """

    __slots__ = ("_by_left", "_by_right")

    def __init__(self, pairs: Iterable[tuple[L, R]] = ()) -> None:
        self._by_left: dict[L, R] = {}
        self._by_right: dict[R, L] = {}
        for left, right in pairs:
            self.insert(left, right)

    def insert(self, left: L, right: R) -> None:
        old_right = self._by_left.pop(left, _MISSING)
        if old_right is not _MISSING:
            del self._by_right[old_right]
        old_left = self._by_right.pop(right, _MISSING)
        if old_left is not _MISSING:
            del self._by_left[old_left]
        self._by_left[left] = right
        self._by_right[right] = left

    def get_by_left(self, left: L) -> R | None:
        return self._by_left.get(left)

    def get_by_right(self, right: R) -> L | None:
        return self._by_right.get(right)

    def __iter__(self) -> Iterator[tuple[L, R]]:
        return iter(self._by_left.items())

    def __len__(self) -> int:
        return len(self._by_left)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bimap):
            return NotImplemented
        return self._by_left == other._by_left

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bimap({list(self)!r})"

    def to_sexpr(self) -> Term:
        """Render as a list of ``(left right)`` pairs."""
        return SList(tuple(sexpr_list([left, right]) for left, right in self))