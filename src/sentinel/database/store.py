"""Credential stores: durable keyed storage for wallet records."""

from __future__ import annotations

import sqlite3
import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from .connection import DatabaseConnection
from ..core.exceptions import PersistenceConflict, WalletNotFoundError
from ..core.models import WalletRecord
from ..security.crypto import Envelope

SQLITE_TIMESTAMP = "%Y-%m-%d %H:%M:%S"


class CredentialStore(Protocol):
    """
    Keyed store of WalletRecords. The public key is the unique identity:
    saving a key that already exists is a conflict, never an overwrite.
    """

    def save(self, record: WalletRecord) -> WalletRecord: ...

    def get(self, public_key: str) -> WalletRecord: ...

    def list(self) -> List[WalletRecord]: ...


class SqliteCredentialStore:
    """CredentialStore backed by the ``wallets`` table."""

    __slots__ = ("db",)

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def _row_to_record(self, row) -> WalletRecord:
        created_at = row.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.strptime(created_at, SQLITE_TIMESTAMP).replace(tzinfo=timezone.utc)
        return WalletRecord(
            public_key=row["pubkey"],
            envelope=Envelope.from_bytes(row["encrypted_private_key"]),
            label=row.get("label"),
            created_at=created_at,
        )

    def save(self, record: WalletRecord) -> WalletRecord:
        """Insert a record; raise PersistenceConflict if the public key exists."""
        record = record.stamped()
        query = """
            INSERT INTO wallets (pubkey, encrypted_private_key, label, created_at)
            VALUES (?, ?, ?, ?)
        """
        params = (
            record.public_key,
            record.envelope.to_bytes(),
            record.label,
            record.created_at.astimezone(timezone.utc).strftime(SQLITE_TIMESTAMP),
        )
        try:
            with self.db.get_transaction_context() as cursor:
                cursor.execute(query, params)
        except sqlite3.IntegrityError as e:
            raise PersistenceConflict(f"wallet {record.public_key} already exists") from e
        return record

    def get(self, public_key: str) -> WalletRecord:
        row = self.db.fetch_one("SELECT * FROM wallets WHERE pubkey = ?", (public_key,))
        if row is None:
            raise WalletNotFoundError(f"wallet {public_key} not found")
        return self._row_to_record(row)

    def list(self) -> List[WalletRecord]:
        """All records in insertion order."""
        rows = self.db.fetch_all("SELECT * FROM wallets ORDER BY id")
        return [self._row_to_record(row) for row in rows]

    def update_label(self, public_key: str, label: Optional[str]) -> WalletRecord:
        changed = self.db.execute("UPDATE wallets SET label = ? WHERE pubkey = ?", (label, public_key))
        if not changed:
            raise WalletNotFoundError(f"wallet {public_key} not found")
        return self.get(public_key)

    def delete(self, public_key: str) -> None:
        changed = self.db.execute("DELETE FROM wallets WHERE pubkey = ?", (public_key,))
        if not changed:
            raise WalletNotFoundError(f"wallet {public_key} not found")


class InMemoryCredentialStore:
    """Process-local CredentialStore with the same contract as the SQLite one."""

    def __init__(self):
        self._records: Dict[str, WalletRecord] = {}
        self._lock = threading.Lock()

    def save(self, record: WalletRecord) -> WalletRecord:
        record = record.stamped()
        with self._lock:
            if record.public_key in self._records:
                raise PersistenceConflict(f"wallet {record.public_key} already exists")
            self._records[record.public_key] = record
        return record

    def get(self, public_key: str) -> WalletRecord:
        with self._lock:
            record = self._records.get(public_key)
        if record is None:
            raise WalletNotFoundError(f"wallet {public_key} not found")
        return record

    def list(self) -> List[WalletRecord]:
        with self._lock:
            return list(self._records.values())

    def update_label(self, public_key: str, label: Optional[str]) -> WalletRecord:
        with self._lock:
            record = self._records.get(public_key)
            if record is None:
                raise WalletNotFoundError(f"wallet {public_key} not found")
            updated = WalletRecord(record.public_key, record.envelope, label, record.created_at)
            self._records[public_key] = updated
        return updated

    def delete(self, public_key: str) -> None:
        with self._lock:
            if self._records.pop(public_key, None) is None:
                raise WalletNotFoundError(f"wallet {public_key} not found")
