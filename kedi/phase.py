"""Compiler phases and a driver that threads a value through them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Generic, Hashable, Protocol, TypeVar

In = TypeVar("In")
Out = TypeVar("Out")
In_contra = TypeVar("In_contra", contravariant=True)
Out_co = TypeVar("Out_co", covariant=True)
T = TypeVar("T")
K = TypeVar("K", bound=Hashable)


class Phase(Protocol[In_contra, Out_co]):
    """Anything with a name that turns one compiler stage into the next."""

    name: str

    def run(self, value: In_contra) -> Out_co: ...


@dataclass
class Namespace(Generic[K, T]):
    """Named values, each handled on its own by a map phase."""

    values: dict[K, T] = field(default_factory=dict)


@dataclass(frozen=True)
class TransformPhase(Generic[In, Out]):
    """A phase that turns a value into a value of another kind."""

    name: str
    fn: Callable[[In], Out]

    def run(self, value: In) -> Out:
        return self.fn(value)


@dataclass(frozen=True)
class ProcessPhase(Generic[T]):
    """A phase that rewrites a value into one of the same kind."""

    name: str
    fn: Callable[[T], T]

    def run(self, value: T) -> T:
        return self.fn(value)


@dataclass(frozen=True)
class TransformMapPhase(Generic[In, Out]):
    """A phase applied to every value of a namespace; the first error stops it."""

    name: str
    fn: Callable[[In], Out]

    def run(self, namespace: Namespace[Any, In]) -> Namespace[Any, Out]:
        return Namespace({key: self.fn(value) for key, value in namespace.values.items()})


@dataclass(frozen=True)
class Compiler(Generic[T]):
    """The value at the current stage of compilation."""

    current: T

    def run_phase(self, phase: Phase[T, Out]) -> Compiler[Out]:
        """Run ``phase`` on the current value; its errors propagate."""
        return Compiler(phase.run(self.current))