"""Ordering policies for key sets.

A policy decides which dimension matters most when picking the "smallest"
key among several that dominate a request. Ordering primarily by inputs
prefers a (2, 4) key over a (3, 3) key for a (2, 2) request; ordering by
outputs prefers the (3, 3) key.

Every policy must be consistent with dominance: if ``a`` dominates ``b`` then
``a`` must not sort strictly before ``b``. Lexicographic policies satisfy this
by construction. Custom policies can be checked with ``is_consistent`` or by
building with ``verify_policy=True``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from keyset.descriptors import Descriptor, dominates, sized_descriptor

SortKey = tuple[Any, ...]
OrderKey = tuple[int, SortKey]


@dataclass(frozen=True, slots=True)
class OrderingPolicy:
    """Descriptor extraction plus a total order over descriptor dimensions.

    Attributes:
        name: Stable identifier, persisted alongside encoded key sets
        arity: Number of ordinal dimensions every descriptor must carry
        sort_key: Maps a descriptor's dims to a comparable value
        descriptor_of: Derives a key's descriptor
    """

    name: str
    arity: int
    sort_key: Callable[[tuple[int, ...]], SortKey]
    descriptor_of: Callable[[Any], Descriptor] = sized_descriptor

    def order_key(self, descriptor: Descriptor) -> OrderKey:
        """Total-order key: discriminant first, then the policy's sort key."""
        return (int(descriptor.kind), self.sort_key(descriptor.dims))

    def compare(self, left: Descriptor, right: Descriptor) -> int:
        """Return -1, 0 or 1 as ``left`` sorts before, equal to or after ``right``."""
        left_key = self.order_key(left)
        right_key = self.order_key(right)
        if left_key < right_key:
            return -1
        if left_key > right_key:
            return 1
        return 0

    def is_consistent(self, left: Descriptor, right: Descriptor) -> bool:
        """False if one descriptor dominates the other yet sorts strictly before it."""
        if dominates(left, right) and self.compare(left, right) < 0:
            return False
        if dominates(right, left) and self.compare(right, left) < 0:
            return False
        return True


def lexicographic(
    name: str,
    priority: Sequence[int],
    *,
    descriptor_of: Callable[[Any], Descriptor] = sized_descriptor,
) -> OrderingPolicy:
    """Build a policy ordering dims lexicographically in ``priority`` order.

    Args:
        name: Policy identifier
        priority: Permutation of dimension indices, most significant first
        descriptor_of: Descriptor extraction for keys

    Raises:
        ValueError: If ``priority`` is not a permutation of ``range(len(priority))``
    """
    order = tuple(priority)
    if sorted(order) != list(range(len(order))):
        raise ValueError(f"Priority {order} is not a permutation of dimension indices")

    def sort_key(dims: tuple[int, ...]) -> SortKey:
        return tuple(dims[index] for index in order)

    return OrderingPolicy(
        name=name,
        arity=len(order),
        sort_key=sort_key,
        descriptor_of=descriptor_of,
    )


ORDER_BY_INPUTS = lexicographic("by_inputs", (0, 1))
ORDER_BY_OUTPUTS = lexicographic("by_outputs", (1, 0))

_BUILTIN_POLICIES: dict[str, OrderingPolicy] = {
    ORDER_BY_INPUTS.name: ORDER_BY_INPUTS,
    ORDER_BY_OUTPUTS.name: ORDER_BY_OUTPUTS,
}


def policy_by_name(name: str) -> OrderingPolicy:
    """Resolve a built-in policy by name.

    Raises:
        KeyError: If the name is not a built-in policy
    """
    try:
        return _BUILTIN_POLICIES[name]
    except KeyError:
        known = ", ".join(sorted(_BUILTIN_POLICIES))
        raise KeyError(f"Unknown ordering policy '{name}' (known: {known})") from None


__all__ = [
    "OrderingPolicy",
    "ORDER_BY_INPUTS",
    "ORDER_BY_OUTPUTS",
    "lexicographic",
    "policy_by_name",
]
