"""Tests for descriptors and the dominance relation."""

import pytest

from keyset import CircuitKind, Descriptor, InvalidDescriptorError, dominates, sized_descriptor
from keyset.descriptors import MAX_DIMENSION, SizedKey
from tests.helpers import make_key


class TestDescriptor:
    """Tests for Descriptor construction and validation."""

    def test_sized_constructor(self):
        descriptor = Descriptor.sized(2, 3, kind=CircuitKind.FREEZE)
        assert descriptor.dims == (2, 3)
        assert descriptor.num_inputs == 2
        assert descriptor.num_outputs == 3
        assert descriptor.kind == CircuitKind.FREEZE
        assert descriptor.arity == 2

    def test_dims_coerced_to_tuple(self):
        descriptor = Descriptor([1, 2])
        assert descriptor.dims == (1, 2)
        assert hash(descriptor) == hash(Descriptor((1, 2)))

    def test_int_kind_equals_enum_kind(self):
        assert Descriptor((1, 1), 1) == Descriptor((1, 1), CircuitKind.TRANSFER)

    def test_empty_dims_rejected(self):
        with pytest.raises(InvalidDescriptorError, match="at least one dimension"):
            Descriptor(())

    def test_negative_dimension_rejected(self):
        with pytest.raises(InvalidDescriptorError, match="outside"):
            Descriptor.sized(-1, 2)

    def test_oversized_dimension_rejected(self):
        Descriptor((MAX_DIMENSION,))
        with pytest.raises(InvalidDescriptorError, match="outside"):
            Descriptor((MAX_DIMENSION + 1,))

    def test_non_integer_dimension_rejected(self):
        with pytest.raises(InvalidDescriptorError, match="integers"):
            Descriptor((1.5, 2))
        with pytest.raises(InvalidDescriptorError, match="integers"):
            Descriptor((True, 2))

    def test_kind_out_of_range_rejected(self):
        with pytest.raises(InvalidDescriptorError, match="kind"):
            Descriptor((1, 1), kind=70_000)

    def test_single_dimension_has_no_outputs(self):
        with pytest.raises(InvalidDescriptorError, match="no output"):
            Descriptor((4,)).num_outputs

    def test_str_names_kind(self):
        assert str(Descriptor.sized(2, 3, kind=CircuitKind.MINT)) == "mint(2, 3)"
        assert str(Descriptor((1,), kind=42)) == "kind42(1,)"


class TestDominates:
    """Tests for dominates()."""

    def test_componentwise(self):
        assert dominates(Descriptor.sized(3, 3), Descriptor.sized(2, 1))
        assert dominates(Descriptor.sized(2, 2), Descriptor.sized(2, 2))
        assert not dominates(Descriptor.sized(3, 1), Descriptor.sized(2, 2))
        assert not dominates(Descriptor.sized(1, 3), Descriptor.sized(2, 2))

    def test_different_kinds_never_dominate(self):
        big_freeze = Descriptor.sized(9, 9, kind=CircuitKind.FREEZE)
        small_transfer = Descriptor.sized(1, 1, kind=CircuitKind.TRANSFER)
        assert not dominates(big_freeze, small_transfer)

    def test_different_arities_never_dominate(self):
        assert not dominates(Descriptor((5, 5, 5)), Descriptor((1, 1)))


def test_sized_descriptor_reads_key_shape():
    key = make_key(4, 2, kind=CircuitKind.FREEZE)
    assert isinstance(key, SizedKey)
    assert sized_descriptor(key) == Descriptor.sized(4, 2, kind=CircuitKind.FREEZE)
