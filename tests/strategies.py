"""Hypothesis strategies for key set property-based testing.

Usage:
    from tests.strategies import key_lists, descriptors
    from hypothesis import given

    @given(key_lists())
    def test_my_property(keys):
        ...

Sizes are kept small so that duplicates, dominance ties and misses all show
up within a handful of examples.
"""

from __future__ import annotations

from hypothesis import strategies as st

from keyset import CircuitKind, Descriptor
from tests.helpers import FakeKey

MAX_SIZE = 8

KINDS = [CircuitKind.TRANSFER, CircuitKind.FREEZE, CircuitKind.MINT]


def sizes(max_value: int = MAX_SIZE) -> st.SearchStrategy[int]:
    return st.integers(min_value=0, max_value=max_value)


def kinds() -> st.SearchStrategy[int]:
    return st.sampled_from(KINDS)


@st.composite
def descriptors(draw, max_value: int = MAX_SIZE, kind: int | None = None) -> Descriptor:
    """Two-dimensional (inputs, outputs) descriptors."""
    chosen_kind = draw(kinds()) if kind is None else kind
    return Descriptor.sized(draw(sizes(max_value)), draw(sizes(max_value)), kind=chosen_kind)


@st.composite
def fake_keys(draw, max_value: int = MAX_SIZE) -> FakeKey:
    descriptor = draw(descriptors(max_value))
    material = draw(st.binary(max_size=16))
    return FakeKey(descriptor.num_inputs, descriptor.num_outputs, descriptor.kind, material)


def key_lists(
    min_size: int = 0,
    max_size: int = 12,
    max_value: int = MAX_SIZE,
) -> st.SearchStrategy[list[FakeKey]]:
    """Keys with pairwise-unique descriptors, in arbitrary order."""
    return st.lists(
        fake_keys(max_value),
        min_size=min_size,
        max_size=max_size,
        unique_by=lambda key: (key.circuit_kind, key.num_inputs, key.num_outputs),
    )


@st.composite
def key_lists_with_duplicate(draw, max_value: int = MAX_SIZE) -> list[FakeKey]:
    """Unique keys plus one extra key sharing a descriptor, shuffled."""
    keys = draw(key_lists(min_size=1, max_value=max_value))
    original = draw(st.sampled_from(keys))
    twin = FakeKey(
        original.num_inputs,
        original.num_outputs,
        original.circuit_kind,
        original.material + b"-twin",
    )
    return draw(st.permutations(keys + [twin]))
