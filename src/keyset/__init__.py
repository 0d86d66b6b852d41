"""KeySet - ordered registries of proving and verifying keys.

Keys are indexed by a descriptor (input/output capacity plus circuit kind)
under an ordering policy, so a prover can pick the cheapest key whose
circuit is large enough for a transaction.

Example:
    from keyset import Descriptor, KeySet, ORDER_BY_INPUTS

    keys = KeySet.build(transfer_keys, ORDER_BY_INPUTS)
    key = keys.best_fit(Descriptor.sized(2, 1))
"""

__version__ = "0.1.0"

from keyset.codec import commitment, decode, encode, read_keyset, write_keyset
from keyset.descriptors import CircuitKind, Descriptor, SizedKey, dominates, sized_descriptor
from keyset.errors import (
    CorruptDataError,
    DescriptorNotFoundError,
    DuplicateDescriptorError,
    InvalidDescriptorError,
    InvalidOrderError,
    KeySetError,
    KeySetNotStoredError,
    NoKeysError,
    VersionMismatchError,
)
from keyset.policy import (
    ORDER_BY_INPUTS,
    ORDER_BY_OUTPUTS,
    OrderingPolicy,
    lexicographic,
    policy_by_name,
)
from keyset.registry import KeyEntry, KeySet

__all__ = [
    # Descriptors
    "CircuitKind",
    "Descriptor",
    "SizedKey",
    "dominates",
    "sized_descriptor",
    # Ordering
    "OrderingPolicy",
    "ORDER_BY_INPUTS",
    "ORDER_BY_OUTPUTS",
    "lexicographic",
    "policy_by_name",
    # Registry
    "KeyEntry",
    "KeySet",
    # Persistence
    "encode",
    "decode",
    "commitment",
    "read_keyset",
    "write_keyset",
    # Errors
    "KeySetError",
    "DuplicateDescriptorError",
    "NoKeysError",
    "InvalidDescriptorError",
    "DescriptorNotFoundError",
    "CorruptDataError",
    "VersionMismatchError",
    "InvalidOrderError",
    "KeySetNotStoredError",
]
