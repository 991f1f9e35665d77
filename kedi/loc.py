"""Source locations, spans and the tags that stand in for them."""

from __future__ import annotations

from dataclasses import dataclass
from functools import reduce
from typing import Iterable, TypeVar

from kedi.ax import Ax
from kedi.sexpr import Number, SList, Symbol, Term, call

T = TypeVar("T")


@dataclass(frozen=True)
class Span:
    """A byte range given by its start offset and length."""

    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def enclose(self, other: Span) -> Span:
        """The smallest span covering both spans."""
        start = min(self.start, other.start)
        end = max(self.end, other.end)
        return Span(start, end - start)

    @classmethod
    def from_offsets(cls, start: int, end: int) -> Span:
        return cls(start, max(end - start, 0))

    @classmethod
    def from_offset_len(cls, start: int, length: int) -> Span:
        return cls(start, length)

    def to_sexpr(self) -> Term:
        return call(
            "span", [SList((Symbol("Offset"), Number(self.start))), self.length]
        )


@dataclass(frozen=True)
class SrcLoc:
    """A location in the source; ``span`` is None when it is unknown."""

    span: Span | None = None

    @property
    def is_known(self) -> bool:
        return self.span is not None

    def enclosing(self, other: SrcLoc) -> SrcLoc:
        if self.span is not None and other.span is not None:
            return SrcLoc(self.span.enclose(other.span))
        if self.span is not None:
            return self
        if other.span is not None:
            return other
        return UNKNOWN

    @classmethod
    def all_enclosing(cls, locs: Iterable[SrcLoc]) -> SrcLoc:
        return reduce(lambda acc, loc: acc.enclosing(loc), locs, cls())

    def attach(self, value: T) -> Ax[SrcLoc, T]:
        return Ax(self, value)

    def to_tag(self, tag_map: TagMap) -> Tag:
        return tag_map.get_tag(self)

    def to_sexpr(self) -> Term:
        if self.span is None:
            return Symbol("Unknown")
        return SList((Symbol("Known"), self.span.to_sexpr()))


UNKNOWN = SrcLoc()


@dataclass(frozen=True)
class Tag:
    """A numeric stand-in for a source location."""

    value: int

    def attach(self, value: T) -> Ax[Tag, T]:
        return Ax(self, value)

    def to_sexpr(self) -> Term:
        return call("tag", [self.value])


class TagMap:
    """Hands out fresh tags and remembers the location behind each."""

    def __init__(self) -> None:
        self._next_tag = 0
        self._map: dict[Tag, SrcLoc] = {}

    def get_tag(self, loc: SrcLoc) -> Tag:
        tag = Tag(self._next_tag)
        self._next_tag += 1
        self._map[tag] = loc
        return tag

    def resolve_tag(self, tag: Tag) -> SrcLoc:
        return self._map.get(tag, UNKNOWN)

    def __len__(self) -> int:
        return len(self._map)

    def to_sexpr(self) -> Term:
        return call("tag-map", [self._map])

    def __repr__(self) -> str:
        return f"TagMap({self._map!r})"


def known(value: T, span: Span) -> Ax[SrcLoc, T]:
    return Ax(SrcLoc(span), value)


def unknown(value: T) -> Ax[SrcLoc, T]:
    return Ax(UNKNOWN, value)


def to_tagged(located: Ax[SrcLoc, T], tag_map: TagMap) -> Ax[Tag, T]:
    """Replace a value's location with a fresh tag recorded in ``tag_map``."""
    return Ax(tag_map.get_tag(located.a), located.v)