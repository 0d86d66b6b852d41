"""KeySet errors.

Every failure is raised to the caller synchronously. Nothing here retries or
falls back; choosing a larger default key on a miss is the caller's decision.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from keyset.descriptors import Descriptor


class KeySetError(Exception):
    """Base class for all key set failures."""


class DuplicateDescriptorError(KeySetError, ValueError):
    """Raised by build when two keys map to the same descriptor."""

    def __init__(self, descriptor: "Descriptor") -> None:
        super().__init__(f"Duplicate keys for descriptor {descriptor}")
        self.descriptor = descriptor


class NoKeysError(KeySetError, ValueError):
    """Raised by build when a non-empty key set was required."""


class InvalidDescriptorError(KeySetError, ValueError):
    """Raised when a descriptor does not fit the ordering policy."""


class DescriptorNotFoundError(KeySetError, LookupError):
    """No entry matches or dominates the requested descriptor.

    ``largest`` is the order-maximal descriptor of the request's discriminant,
    i.e. the biggest shape the key set could have served, or None when the
    discriminant has no entries.
    """

    def __init__(
        self,
        request: "Descriptor",
        *,
        largest: "Descriptor | None" = None,
        exact: bool = False,
    ) -> None:
        if exact:
            message = f"No key for descriptor {request}"
        elif largest is None:
            message = f"No key dominates {request}; no keys for kind {request.kind}"
        else:
            message = f"No key dominates {request}; largest supported is {largest}"
        super().__init__(message)
        self.request = request
        self.largest = largest

    def __str__(self) -> str:
        return str(self.args[0])


class CorruptDataError(KeySetError, ValueError):
    """Raised when encoded bytes are malformed or fail integrity checks."""


class VersionMismatchError(CorruptDataError):
    """Raised when encoded bytes carry an unsupported format version."""

    def __init__(self, found: int, expected: int) -> None:
        super().__init__(
            f"Unsupported key set format version {found} (expected {expected})"
        )
        self.found = found
        self.expected = expected


class InvalidOrderError(KeySetError, ValueError):
    """Entries violate the ordering policy (policy bug or corrupt input)."""


class KeySetNotStoredError(KeySetError, LookupError):
    """Raised when an archive has no key set under the requested name."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Key set '{name}' not found in archive")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


__all__ = [
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
