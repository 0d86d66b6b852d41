"""Key descriptors and the dominance relation.

A descriptor summarises the shape of work a key can handle: a fixed-arity
tuple of ordinal capacity dimensions plus a discriminant (the circuit kind).
Descriptors of different kinds live in disjoint sub-universes and are never
compared against each other.

Example:
    >>> small = Descriptor.sized(2, 2, kind=CircuitKind.TRANSFER)
    >>> large = Descriptor.sized(3, 3, kind=CircuitKind.TRANSFER)
    >>> dominates(large, small)
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, runtime_checkable

from keyset.errors import InvalidDescriptorError

# Wire limits (see keyset.codec)
MAX_DIMENSION = 2**64 - 1
MAX_KIND = 2**16 - 1


class CircuitKind(IntEnum):
    """Standard discriminants for transaction circuit families.

    Any integer in ``[0, MAX_KIND]`` is a valid discriminant; these are the
    circuit kinds the proving system ships with.
    """

    UNSPECIFIED = 0
    TRANSFER = 1
    MINT = 2
    FREEZE = 3


@dataclass(frozen=True, slots=True)
class Descriptor:
    """Ordinal capacity dimensions of a key, tagged with its circuit kind."""

    dims: tuple[int, ...]
    kind: int = CircuitKind.UNSPECIFIED

    def __post_init__(self) -> None:
        object.__setattr__(self, "dims", tuple(self.dims))
        if not self.dims:
            raise InvalidDescriptorError("Descriptor needs at least one dimension")
        for value in self.dims:
            if isinstance(value, bool) or not isinstance(value, int):
                raise InvalidDescriptorError(
                    f"Descriptor dimensions must be integers, got {value!r}"
                )
            if not 0 <= value <= MAX_DIMENSION:
                raise InvalidDescriptorError(
                    f"Descriptor dimension {value} outside [0, {MAX_DIMENSION}]"
                )
        if isinstance(self.kind, bool) or not isinstance(self.kind, int):
            raise InvalidDescriptorError(f"Descriptor kind must be an integer, got {self.kind!r}")
        if not 0 <= self.kind <= MAX_KIND:
            raise InvalidDescriptorError(f"Descriptor kind {self.kind} outside [0, {MAX_KIND}]")

    @classmethod
    def sized(
        cls,
        num_inputs: int,
        num_outputs: int,
        kind: int = CircuitKind.UNSPECIFIED,
    ) -> "Descriptor":
        return cls((num_inputs, num_outputs), kind)

    @property
    def arity(self) -> int:
        return len(self.dims)

    @property
    def num_inputs(self) -> int:
        return self.dims[0]

    @property
    def num_outputs(self) -> int:
        if len(self.dims) < 2:
            raise InvalidDescriptorError(f"Descriptor {self} has no output dimension")
        return self.dims[1]

    def __str__(self) -> str:
        try:
            kind_name = CircuitKind(self.kind).name.lower()
        except ValueError:
            kind_name = f"kind{self.kind}"
        return f"{kind_name}{self.dims}"


def dominates(candidate: Descriptor, request: Descriptor) -> bool:
    """Return True if ``candidate`` can serve everything ``request`` needs.

    Dominance is only defined within a discriminant; descriptors of different
    kinds or arities never dominate each other.
    """
    if candidate.kind != request.kind or candidate.arity != request.arity:
        return False
    return all(have >= need for have, need in zip(candidate.dims, request.dims))


@runtime_checkable
class SizedKey(Protocol):
    """Contract for keys whose capacity is a number of inputs and outputs.

    Key material is otherwise opaque: it is never ordered or compared except
    through its descriptor, and is persisted via ``to_bytes``.
    """

    @property
    def num_inputs(self) -> int: ...

    @property
    def num_outputs(self) -> int: ...

    @property
    def circuit_kind(self) -> int: ...

    def to_bytes(self) -> bytes: ...


def sized_descriptor(key: SizedKey) -> Descriptor:
    """Default descriptor extraction for ``SizedKey`` implementations."""
    return Descriptor.sized(key.num_inputs, key.num_outputs, kind=key.circuit_kind)


__all__ = [
    "CircuitKind",
    "Descriptor",
    "MAX_DIMENSION",
    "MAX_KIND",
    "SizedKey",
    "dominates",
    "sized_descriptor",
]
