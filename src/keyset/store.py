"""SQL-backed archive of encoded key sets.

Stores each key set under a name together with a SHA-256 checksum of its
encoded bytes; loading verifies the checksum before decoding.
"""

from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import Any, Callable, TypeVar

from sqlalchemy import (
    Column,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    create_engine,
    delete,
    select,
)
from sqlalchemy.engine import Engine

from keyset.codec import decode, encode
from keyset.config import KeySetSettings
from keyset.errors import CorruptDataError, KeySetNotStoredError
from keyset.policy import OrderingPolicy
from keyset.registry import KeySet

K = TypeVar("K")

_logger = logging.getLogger(__name__)


class KeySetStore:
    """Named key set archive backed by SQLite (or any SQLAlchemy URL)."""

    def __init__(
        self,
        root: Path | None = None,
        database_url: str | None = None,
        *,
        settings: KeySetSettings | None = None,
    ) -> None:
        self._settings = settings or KeySetSettings()
        self._root = root or Path(self._settings.archive_dir)
        self._root.mkdir(parents=True, exist_ok=True)
        db_url = (
            database_url
            or self._settings.database_url
            or f"sqlite:///{(self._root / 'keysets.db').resolve()}"
        )
        self._engine: Engine = create_engine(db_url, future=True)
        self._metadata = MetaData()
        self._table = Table(
            "keysets",
            self._metadata,
            Column("name", String, primary_key=True),
            Column("policy", String, nullable=False),
            Column("entry_count", Integer, nullable=False),
            Column("checksum", String, nullable=False),
            Column("payload", LargeBinary, nullable=False),
        )
        self._metadata.create_all(self._engine)

    def save(self, name: str, keyset: KeySet[Any]) -> str:
        """Store ``keyset`` under ``name``, replacing any previous one.

        Returns the checksum of the stored payload.
        """
        payload = encode(keyset)
        checksum = hashlib.sha256(payload).hexdigest()
        with self._engine.begin() as conn:
            conn.execute(delete(self._table).where(self._table.c.name == name))
            conn.execute(
                self._table.insert().values(
                    name=name,
                    policy=keyset.policy.name,
                    entry_count=len(keyset),
                    checksum=checksum,
                    payload=payload,
                )
            )
        _logger.info(
            "Stored key set '%s' (%d entries, policy=%s, checksum=%s)",
            name,
            len(keyset),
            keyset.policy.name,
            checksum,
        )
        return checksum

    def load(
        self,
        name: str,
        key_decoder: Callable[[bytes], K],
        *,
        policy: OrderingPolicy | None = None,
        strict: bool | None = None,
    ) -> KeySet[K]:
        """Load the key set stored under ``name``.

        Raises:
            KeySetNotStoredError: Nothing is stored under ``name``
            CorruptDataError: The stored payload fails its checksum or decoding
        """
        row = self._fetch(name)
        payload = bytes(row["payload"])
        actual = hashlib.sha256(payload).hexdigest()
        if actual != row["checksum"]:
            _logger.error(
                "Checksum mismatch for key set '%s' (expected=%s actual=%s)",
                name,
                row["checksum"],
                actual,
            )
            raise CorruptDataError(f"Checksum mismatch for key set '{name}'")
        policy = policy or self._settings.ordering_policy()
        if strict is None:
            strict = self._settings.strict_decode
        keyset = decode(payload, policy, key_decoder, strict=strict)
        if self._settings.verify_policy:
            keyset.verify_policy()
        return keyset

    def checksum(self, name: str) -> str:
        return str(self._fetch(name)["checksum"])

    def names(self) -> list[str]:
        with self._engine.begin() as conn:
            rows = conn.execute(select(self._table.c.name).order_by(self._table.c.name))
            return [row[0] for row in rows]

    def delete(self, name: str) -> bool:
        with self._engine.begin() as conn:
            result = conn.execute(delete(self._table).where(self._table.c.name == name))
        removed = bool(result.rowcount)
        if removed:
            _logger.info("Deleted key set '%s'", name)
        return removed

    def _fetch(self, name: str) -> Any:
        with self._engine.begin() as conn:
            row = conn.execute(
                select(self._table).where(self._table.c.name == name)
            ).mappings().first()
        if row is None:
            raise KeySetNotStoredError(name)
        return row


__all__ = ["KeySetStore"]
