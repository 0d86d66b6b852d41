"""Shared helpers for tests.

Keep this module small and dependency-light. It holds the stand-in key type
used across suites in place of real proving/verifying keys.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

from keyset import CircuitKind

_HEADER = struct.Struct("<QQH")


@dataclass(frozen=True)
class FakeKey:
    """Opaque key material with a circuit size, serializable to bytes."""

    num_inputs: int
    num_outputs: int
    circuit_kind: int = CircuitKind.TRANSFER
    material: bytes = b""

    def to_bytes(self) -> bytes:
        return _HEADER.pack(self.num_inputs, self.num_outputs, self.circuit_kind) + self.material

    @classmethod
    def from_bytes(cls, payload: bytes) -> "FakeKey":
        if len(payload) < _HEADER.size:
            raise ValueError(f"FakeKey payload too short ({len(payload)} bytes)")
        num_inputs, num_outputs, kind = _HEADER.unpack_from(payload)
        return cls(num_inputs, num_outputs, kind, payload[_HEADER.size :])


def make_key(
    num_inputs: int,
    num_outputs: int,
    *,
    kind: int = CircuitKind.TRANSFER,
) -> FakeKey:
    material = f"key-{kind}-{num_inputs}x{num_outputs}".encode()
    return FakeKey(num_inputs, num_outputs, kind, material)
