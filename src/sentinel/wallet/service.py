"""
Wallet commands: the seam between callers (CLI, request handlers) and the
custody core. Each method is one independent unit of work.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from sentinel.core.exceptions import AuthenticationError
from sentinel.core.models import WalletRecord
from sentinel.database.store import CredentialStore
from .encoding import encode_portable_key
from .keypair import Keypair
from .manager import WalletManager

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(self, manager: WalletManager, store: CredentialStore):
        self.manager = manager
        self.store = store

    def _persist(self, keypair: Keypair, label: Optional[str]) -> WalletRecord:
        envelope = self.manager.seal_for_storage(keypair)
        record = self.store.save(WalletRecord(public_key=keypair.pubkey, envelope=envelope, label=label))
        logger.info("Stored wallet %s", record.public_key)
        return record

    def create(self, label: Optional[str] = None) -> Tuple[str, str]:
        """
        Create and store a new wallet.

        Returns (public_key, portable_key). This is the one time the plaintext
        key is handed out; show it to the user for backup and drop it.
        """
        public_key, portable = self.manager.create_wallet()
        with self.manager.import_wallet(portable) as kp:
            self._persist(kp, label)
        return public_key, portable

    def import_key(self, portable_key: str, label: Optional[str] = None) -> str:
        with self.manager.import_wallet(portable_key) as kp:
            return self._persist(kp, label).public_key

    def list_wallets(self) -> List[WalletRecord]:
        return self.store.list()

    def get_wallet(self, public_key: str) -> WalletRecord:
        return self.store.get(public_key)

    @contextmanager
    def unlock_keypair(self, public_key: str) -> Iterator[Keypair]:
        """Yield the stored keypair for ``public_key``; it is wiped on exit."""
        record = self.store.get(public_key)
        kp = self.manager.open_from_storage(record.envelope)
        if kp.pubkey != record.public_key:
            kp.wipe()
            raise AuthenticationError(f"stored envelope does not belong to wallet {public_key}")
        try:
            yield kp
        finally:
            kp.wipe()

    def sign(self, public_key: str, message: bytes) -> bytes:
        with self.unlock_keypair(public_key) as kp:
            return kp.sign(message)

    def reveal(self, public_key: str, password: bytes | str) -> str:
        """
        Export the plaintext portable key of a stored wallet.

        Requires the password again, separately from the one that unlocked
        the session.
        """
        self.manager.verify_password(password)
        with self.unlock_keypair(public_key) as kp:
            portable = encode_portable_key(kp.to_bytes())
        logger.warning("Revealed plaintext key for wallet %s", public_key)
        return portable
