"""Binary persistence for key sets.

Layout (little-endian)::

    header   magic "KSET" | version u16 | arity u8 | policy name (u16 len + utf-8)
             | discriminant count u16 | entry count u32
    entry    kind u16 | dims arity x u64 | key length u32 | key bytes

Entries are written once each, in ascending policy order, so they come out
grouped by discriminant. Trusted decoding rebuilds the key set without
re-checking order or uniqueness; strict decoding re-validates both and
re-derives each descriptor from its decoded key.
"""

from __future__ import annotations

import hashlib
import logging
import os
import struct
from pathlib import Path
from typing import Any, Callable, TypeVar

from keyset.config import KeySetSettings
from keyset.descriptors import Descriptor
from keyset.errors import (
    CorruptDataError,
    InvalidDescriptorError,
    InvalidOrderError,
    VersionMismatchError,
)
from keyset.policy import OrderingPolicy
from keyset.registry import KeyEntry, KeySet

K = TypeVar("K")

MAGIC = b"KSET"
FORMAT_VERSION = 1
COMMITMENT_TAG = b"keyset.commitment.v1"

_PREFIX_STRUCT = struct.Struct("<4sH")
_ARITY_STRUCT = struct.Struct("<B")
_NAME_LENGTH_STRUCT = struct.Struct("<H")
_COUNTS_STRUCT = struct.Struct("<HI")
_KIND_STRUCT = struct.Struct("<H")
_LENGTH_STRUCT = struct.Struct("<I")

_logger = logging.getLogger(__name__)


def _key_bytes(key: Any) -> bytes:
    payload = key.to_bytes()
    if not isinstance(payload, (bytes, bytearray)):
        raise TypeError(f"{type(key).__name__}.to_bytes() returned {type(payload).__name__}")
    return bytes(payload)


def encode(keyset: KeySet[Any]) -> bytes:
    """Serialize ``keyset``; keys are written with their ``to_bytes()`` method."""
    policy = keyset.policy
    name = policy.name.encode("utf-8")
    dims_struct = struct.Struct("<" + "Q" * policy.arity)
    parts = [
        _PREFIX_STRUCT.pack(MAGIC, FORMAT_VERSION),
        _ARITY_STRUCT.pack(policy.arity),
        _NAME_LENGTH_STRUCT.pack(len(name)),
        name,
        _COUNTS_STRUCT.pack(len(keyset.kinds()), len(keyset)),
    ]
    for entry in keyset:
        payload = _key_bytes(entry.key)
        parts.append(_KIND_STRUCT.pack(entry.descriptor.kind))
        parts.append(dims_struct.pack(*entry.descriptor.dims))
        parts.append(_LENGTH_STRUCT.pack(len(payload)))
        parts.append(payload)
    data = b"".join(parts)
    _logger.debug("Encoded %d key set entries into %d bytes", len(keyset), len(data))
    return data


class _Reader:
    """Bounds-checked cursor over encoded bytes."""

    def __init__(self, data: bytes) -> None:
        self._view = memoryview(data)
        self._offset = 0

    @property
    def remaining(self) -> int:
        return len(self._view) - self._offset

    def unpack(self, layout: struct.Struct, what: str) -> tuple[Any, ...]:
        if self.remaining < layout.size:
            raise CorruptDataError(
                f"Truncated {what} at offset {self._offset}: "
                f"need {layout.size} bytes, have {self.remaining}"
            )
        values = layout.unpack_from(self._view, self._offset)
        self._offset += layout.size
        return values

    def take(self, length: int, what: str) -> bytes:
        if self.remaining < length:
            raise CorruptDataError(
                f"Truncated {what} at offset {self._offset}: "
                f"need {length} bytes, have {self.remaining}"
            )
        chunk = bytes(self._view[self._offset : self._offset + length])
        self._offset += length
        return chunk


def decode(
    data: bytes,
    policy: OrderingPolicy,
    key_decoder: Callable[[bytes], K],
    *,
    strict: bool = False,
) -> KeySet[K]:
    """Rebuild a key set from ``encode`` output.

    Args:
        data: Encoded key set
        policy: Ordering policy the key set was encoded under
        key_decoder: Turns stored key bytes back into a key
        strict: Re-validate order, uniqueness and descriptors

    Raises:
        VersionMismatchError: Unsupported format version (checked before entries)
        CorruptDataError: Bad magic, truncation, trailing bytes, or (strict)
            counts/descriptors that disagree with the decoded keys
        InvalidOrderError: Encoded under another policy, or (strict) entries
            duplicated or out of order
    """
    reader = _Reader(data)
    magic, version = reader.unpack(_PREFIX_STRUCT, "header")
    if magic != MAGIC:
        raise CorruptDataError(f"Bad key set magic {magic!r}")
    if version != FORMAT_VERSION:
        raise VersionMismatchError(version, FORMAT_VERSION)

    (arity,) = reader.unpack(_ARITY_STRUCT, "header")
    (name_length,) = reader.unpack(_NAME_LENGTH_STRUCT, "header")
    raw_name = reader.take(name_length, "policy name")
    try:
        policy_name = raw_name.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise CorruptDataError("Policy name is not valid UTF-8") from exc
    if policy_name != policy.name or arity != policy.arity:
        raise InvalidOrderError(
            f"Key set was encoded with policy '{policy_name}' (arity {arity}); "
            f"decoding with '{policy.name}' (arity {policy.arity})"
        )
    discriminant_count, entry_count = reader.unpack(_COUNTS_STRUCT, "header")

    dims_struct = struct.Struct("<" + "Q" * arity)
    entries: list[KeyEntry[K]] = []
    for index in range(entry_count):
        (kind,) = reader.unpack(_KIND_STRUCT, f"entry {index}")
        dims = reader.unpack(dims_struct, f"entry {index}")
        (key_length,) = reader.unpack(_LENGTH_STRUCT, f"entry {index}")
        payload = reader.take(key_length, f"entry {index} key")
        try:
            descriptor = Descriptor(dims, kind)
        except InvalidDescriptorError as exc:
            raise CorruptDataError(f"Entry {index} has an invalid descriptor") from exc
        try:
            key = key_decoder(payload)
        except (ValueError, TypeError, struct.error) as exc:
            raise CorruptDataError(f"Entry {index} key bytes could not be decoded") from exc
        entries.append(KeyEntry(descriptor, key))
    if reader.remaining:
        raise CorruptDataError(f"{reader.remaining} trailing bytes after {entry_count} entries")

    if strict:
        _validate(entries, policy, discriminant_count)
    keyset = KeySet(policy, entries)
    _logger.debug(
        "Decoded %d key set entries (policy=%s, strict=%s)", len(keyset), policy.name, strict
    )
    return keyset


def _validate(
    entries: list[KeyEntry[Any]],
    policy: OrderingPolicy,
    discriminant_count: int,
) -> None:
    kinds = {entry.descriptor.kind for entry in entries}
    if len(kinds) != discriminant_count:
        raise CorruptDataError(
            f"Header declares {discriminant_count} discriminants; entries carry {len(kinds)}"
        )
    for index, entry in enumerate(entries):
        derived = policy.descriptor_of(entry.key)
        if derived != entry.descriptor:
            raise CorruptDataError(
                f"Entry {index} is stored under {entry.descriptor} but its key describes {derived}"
            )
        if index and policy.compare(entries[index - 1].descriptor, entry.descriptor) >= 0:
            raise InvalidOrderError(
                f"Entry {index} ({entry.descriptor}) does not sort after "
                f"{entries[index - 1].descriptor}"
            )


def commitment(keyset: KeySet[Any]) -> str:
    """Hex SHA-256 binding the exact encoded contents of ``keyset``."""
    digest = hashlib.sha256()
    digest.update(COMMITMENT_TAG)
    digest.update(encode(keyset))
    return digest.hexdigest()


def write_keyset(path: Path, keyset: KeySet[Any]) -> None:
    """Atomically replace ``path`` with the encoded key set."""
    data = encode(keyset)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    with tmp_path.open("wb") as handle:
        handle.write(data)
        handle.flush()
        os.fsync(handle.fileno())
    tmp_path.replace(path)


def read_keyset(
    path: Path,
    key_decoder: Callable[[bytes], K],
    *,
    policy: OrderingPolicy | None = None,
    settings: KeySetSettings | None = None,
) -> KeySet[K]:
    """Load a key set written by ``write_keyset``.

    The policy, strictness and policy verification default to ``settings``.
    """
    settings = settings or KeySetSettings()
    policy = policy or settings.ordering_policy()
    keyset = decode(path.read_bytes(), policy, key_decoder, strict=settings.strict_decode)
    if settings.verify_policy:
        keyset.verify_policy()
    return keyset


__all__ = [
    "FORMAT_VERSION",
    "MAGIC",
    "commitment",
    "decode",
    "encode",
    "read_keyset",
    "write_keyset",
]
