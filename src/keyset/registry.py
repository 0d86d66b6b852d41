"""Ordered, immutable registry of keys indexed by descriptor.

Built once from a finite list of keys, then read-only. Instances hold no
shared state and may be handed to any number of concurrent readers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import groupby
from typing import Any, Generic, Iterable, Iterator, TypeVar

from keyset.descriptors import Descriptor, dominates
from keyset.errors import (
    DescriptorNotFoundError,
    DuplicateDescriptorError,
    InvalidDescriptorError,
    InvalidOrderError,
    NoKeysError,
)
from keyset.policy import ORDER_BY_INPUTS, OrderingPolicy, OrderKey
from keyset.query import best_fit_index, exact_index, kind_bounds

K = TypeVar("K")

_logger = logging.getLogger(__name__)

_MISSING: Any = object()


@dataclass(frozen=True, slots=True)
class KeyEntry(Generic[K]):
    """A key paired with the descriptor it was indexed under."""

    descriptor: Descriptor
    key: K


class KeySet(Generic[K]):
    """Keys sorted ascending by an ordering policy, unique by descriptor."""

    __slots__ = ("_policy", "_entries", "_order_keys", "_descriptors")

    def __init__(self, policy: OrderingPolicy, entries: Iterable[KeyEntry[K]]) -> None:
        """Wrap entries already sorted and deduplicated under ``policy``.

        Use ``build`` for untrusted input; this constructor does not validate.
        """
        self._policy = policy
        self._entries: tuple[KeyEntry[K], ...] = tuple(entries)
        self._descriptors: tuple[Descriptor, ...] = tuple(
            entry.descriptor for entry in self._entries
        )
        self._order_keys: tuple[OrderKey, ...] = tuple(
            policy.order_key(descriptor) for descriptor in self._descriptors
        )

    @classmethod
    def build(
        cls,
        keys: Iterable[K],
        policy: OrderingPolicy = ORDER_BY_INPUTS,
        *,
        require_keys: bool = False,
        verify_policy: bool = False,
    ) -> "KeySet[K]":
        """Index ``keys`` under ``policy``.

        Args:
            keys: Keys to index; each must map to a distinct descriptor
            policy: Descriptor extraction and ordering
            require_keys: Reject an empty key list
            verify_policy: Check every same-kind pair for dominance consistency

        Raises:
            DuplicateDescriptorError: Two keys share a descriptor
            InvalidDescriptorError: A descriptor's arity does not match the policy
            InvalidOrderError: The policy ties distinct descriptors, or
                ``verify_policy`` found a dominance-inconsistent pair
            NoKeysError: ``require_keys`` is set and ``keys`` is empty
        """
        entries: list[KeyEntry[K]] = []
        for key in keys:
            descriptor = policy.descriptor_of(key)
            if descriptor.arity != policy.arity:
                raise InvalidDescriptorError(
                    f"Descriptor {descriptor} has arity {descriptor.arity}; "
                    f"policy '{policy.name}' expects {policy.arity}"
                )
            entries.append(KeyEntry(descriptor, key))
        if require_keys and not entries:
            raise NoKeysError("Key set requires at least one key")

        entries.sort(key=lambda entry: policy.order_key(entry.descriptor))
        for _, run in groupby(entries, key=lambda entry: policy.order_key(entry.descriptor)):
            tied = [entry.descriptor for entry in run]
            if len(tied) == 1:
                continue
            seen: set[Descriptor] = set()
            for descriptor in tied:
                if descriptor in seen:
                    raise DuplicateDescriptorError(descriptor)
                seen.add(descriptor)
            raise InvalidOrderError(
                f"Policy '{policy.name}' does not distinguish "
                f"{tied[0]} from {tied[1]}"
            )

        keyset = cls(policy, entries)
        if verify_policy:
            keyset.verify_policy()
        _logger.debug(
            "Built key set with %d entries across %d kinds (policy=%s)",
            len(keyset),
            len(keyset.kinds()),
            policy.name,
        )
        return keyset

    @classmethod
    def from_keys(
        cls, keys: Iterable[K], policy: OrderingPolicy = ORDER_BY_INPUTS
    ) -> "KeySet[K]":
        return cls.build(keys, policy)

    @property
    def policy(self) -> OrderingPolicy:
        return self._policy

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[KeyEntry[K]]:
        return iter(self._entries)

    def __contains__(self, descriptor: object) -> bool:
        if not isinstance(descriptor, Descriptor):
            return False
        if descriptor.arity != self._policy.arity:
            return False
        return exact_index(self._order_keys, self._policy, descriptor) is not None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, KeySet):
            return NotImplemented
        return self._policy.name == other._policy.name and self._entries == other._entries

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"KeySet(policy={self._policy.name!r}, entries={len(self._entries)})"

    def iter(self) -> Iterator[KeyEntry[K]]:
        """Entries in ascending order; each call starts a fresh pass."""
        return iter(self._entries)

    def is_empty(self) -> bool:
        return not self._entries

    def keys(self) -> list[K]:
        return [entry.key for entry in self._entries]

    def descriptors(self) -> tuple[Descriptor, ...]:
        return self._descriptors

    def kinds(self) -> tuple[int, ...]:
        """Discriminants present, ascending."""
        return tuple(sorted({order_key[0] for order_key in self._order_keys}))

    def get(self, descriptor: Descriptor, default: Any = None) -> K | Any:
        position = exact_index(self._order_keys, self._policy, descriptor)
        if position is None:
            return default
        return self._entries[position].key

    def get_exact(self, descriptor: Descriptor) -> K:
        """Return the key indexed under exactly ``descriptor``.

        Raises:
            DescriptorNotFoundError: No entry has that descriptor
            InvalidDescriptorError: ``descriptor`` has the wrong arity for the policy
        """
        key = self.get(descriptor, _MISSING)
        if key is _MISSING:
            raise DescriptorNotFoundError(descriptor, exact=True)
        return key

    def find_best_fit(self, request: Descriptor) -> KeyEntry[K] | None:
        """Order-minimal entry dominating ``request``, or None.

        A request of the wrong arity still raises ``InvalidDescriptorError``.
        """
        position = best_fit_index(
            self._order_keys, self._descriptors, self._policy, request
        )
        if position is None:
            return None
        return self._entries[position]

    def best_fit_entry(self, request: Descriptor) -> KeyEntry[K]:
        """Like ``best_fit`` but returns the matched descriptor too."""
        entry = self.find_best_fit(request)
        if entry is None:
            raise DescriptorNotFoundError(request, largest=self._largest_of(request.kind))
        return entry

    def best_fit(self, request: Descriptor) -> K:
        """Return the cheapest key able to serve ``request``.

        Raises:
            DescriptorNotFoundError: No entry dominates ``request``; the error's
                ``largest`` names the biggest descriptor of that kind
            InvalidDescriptorError: ``request`` has the wrong arity for the policy
        """
        return self.best_fit_entry(request).key

    def best_fit_size(self, num_inputs: int, num_outputs: int, kind: int = 0) -> K:
        return self.best_fit(Descriptor.sized(num_inputs, num_outputs, kind=kind))

    def max_descriptor(self, kind: int | None = None) -> Descriptor:
        """Order-maximal descriptor, overall or within ``kind``.

        Raises:
            DescriptorNotFoundError: There are no entries to choose from
        """
        if kind is None:
            if not self._descriptors:
                raise DescriptorNotFoundError(Descriptor((0,) * self._policy.arity))
            return self._descriptors[-1]
        largest = self._largest_of(kind)
        if largest is None:
            raise DescriptorNotFoundError(Descriptor((0,) * self._policy.arity, kind))
        return largest

    def verify_policy(self) -> None:
        """Check every same-kind pair for dominance consistency.

        Raises:
            InvalidOrderError: A dominating descriptor sorts before one it dominates
        """
        for kind in self.kinds():
            start, stop = kind_bounds(self._order_keys, kind)
            for lower in range(start, stop):
                for upper in range(lower + 1, stop):
                    # upper sorts after lower, so it must not be dominated by it
                    if dominates(self._descriptors[lower], self._descriptors[upper]):
                        raise InvalidOrderError(
                            f"Policy '{self._policy.name}' orders "
                            f"{self._descriptors[lower]} before "
                            f"{self._descriptors[upper]}, which it dominates"
                        )

    def _largest_of(self, kind: int) -> Descriptor | None:
        start, stop = kind_bounds(self._order_keys, kind)
        if start == stop:
            return None
        return self._descriptors[stop - 1]


__all__ = ["KeyEntry", "KeySet"]
