"""Best-fit search over a policy-sorted index.

The index is a list of order keys ``(kind, sort_key)`` in strictly ascending
order, parallel to the list of descriptors. Because the policy is consistent
with dominance, nothing before the request's insertion point can dominate it,
so the first dominating entry at or after that point is the order-minimal one.
"""

from __future__ import annotations

from bisect import bisect_left, bisect_right
from typing import Sequence

from keyset.descriptors import Descriptor, dominates
from keyset.errors import InvalidDescriptorError
from keyset.policy import OrderingPolicy, OrderKey


def check_arity(policy: OrderingPolicy, request: Descriptor) -> None:
    """Reject a request whose dimension count differs from the policy's.

    Raises:
        InvalidDescriptorError: ``request.arity`` is not ``policy.arity``
    """
    if request.arity != policy.arity:
        raise InvalidDescriptorError(
            f"Request {request} has arity {request.arity}; "
            f"policy '{policy.name}' expects {policy.arity}"
        )


def exact_index(
    order_keys: Sequence[OrderKey],
    policy: OrderingPolicy,
    request: Descriptor,
) -> int | None:
    """Position of the entry whose descriptor equals ``request``, if any."""
    check_arity(policy, request)
    target = policy.order_key(request)
    position = bisect_left(order_keys, target)
    if position < len(order_keys) and order_keys[position] == target:
        return position
    return None


def best_fit_index(
    order_keys: Sequence[OrderKey],
    descriptors: Sequence[Descriptor],
    policy: OrderingPolicy,
    request: Descriptor,
) -> int | None:
    """Position of the order-minimal entry dominating ``request``, if any.

    Entries of other discriminants are never scanned. The forward scan tests
    true dominance: under an inputs-first order (3, 1) sorts after (2, 2) but
    does not dominate it.
    """
    check_arity(policy, request)
    start = bisect_left(order_keys, policy.order_key(request))
    stop = kind_bounds(order_keys, request.kind)[1]
    for position in range(start, stop):
        if dominates(descriptors[position], request):
            return position
    return None


def kind_bounds(order_keys: Sequence[OrderKey], kind: int) -> tuple[int, int]:
    """Half-open ``[start, stop)`` slice holding the entries of ``kind``."""
    start = bisect_left(order_keys, int(kind), key=_kind_of)
    stop = bisect_right(order_keys, int(kind), key=_kind_of)
    return start, stop


def _kind_of(order_key: OrderKey) -> int:
    return order_key[0]


__all__ = ["best_fit_index", "check_arity", "exact_index", "kind_bounds"]
