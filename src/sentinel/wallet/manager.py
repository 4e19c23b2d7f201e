"""
Wallet key custody.

WalletManager holds the master key for one unlocked session and is the only
place where raw private keys are turned into envelopes and back. It does no
I/O: persisting envelopes is the caller's job (see ``service.WalletService``).

Nothing in here logs key material. Public keys are the only identifiers that
reach the log.
"""

from __future__ import annotations

import hmac
import logging
from typing import Tuple

from sentinel.core.exceptions import AuthenticationError, EncodingError
from sentinel.security.crypto import AeadCipher, Envelope
from sentinel.security.kdf import DEFAULT_PARAMS, KdfParams, MasterKey, derive_master_key
from sentinel.security.vault import VaultProfile
from .encoding import decode_portable_key, encode_portable_key
from .keypair import Keypair

logger = logging.getLogger(__name__)

# Associated data bound into every wallet envelope
WALLET_AAD = b"sentinel-wallet-v1"


class WalletManager:
    """
    Generate, import, seal and open wallet keypairs under one master key.

    The master key is immutable after construction, so seal/open calls from
    concurrent request handlers need no locking.
    """

    def __init__(self, password: bytes | str, salt: bytes, params: KdfParams = DEFAULT_PARAMS):
        key = derive_master_key(password, salt, params)
        self._setup(key, salt, params)

    @classmethod
    def from_master_key(cls, key: MasterKey, salt: bytes, params: KdfParams = DEFAULT_PARAMS) -> "WalletManager":
        """Build a manager around an already derived (and verified) key."""
        manager = cls.__new__(cls)
        manager._setup(key, salt, params)
        return manager

    @classmethod
    def unlock(cls, profile: VaultProfile, password: bytes | str) -> "WalletManager":
        """Derive the key through the installation profile, rejecting a wrong password."""
        key, salt, params = profile.unlock(password)
        return cls.from_master_key(key, salt, params)

    def _setup(self, key: MasterKey, salt: bytes, params: KdfParams) -> None:
        self._key = key
        self._salt = salt
        self._params = params
        self._cipher = AeadCipher(key)

    def _require_cipher(self) -> AeadCipher:
        if self._cipher is None:
            raise RuntimeError("Wallet manager is closed")
        return self._cipher

    # ------------------------------------------------------------------
    # Keypair lifecycle
    # ------------------------------------------------------------------

    def create_wallet(self) -> Tuple[str, str]:
        """
        Generate a fresh keypair.

        Returns (public_key, portable_key). The portable key is the only
        plaintext copy handed out; nothing is persisted here.
        """
        with Keypair.generate() as kp:
            public_key = kp.pubkey
            portable = encode_portable_key(kp.to_bytes())
        logger.info("Generated wallet %s", public_key)
        return public_key, portable

    def import_wallet(self, portable_key: str) -> Keypair:
        """
        Decode a portable key string into a Keypair.

        Raises EncodingError if the string is not valid base-58, does not decode
        to exactly 64 bytes, or the public half does not match the secret half.
        """
        raw = decode_portable_key(portable_key)
        try:
            kp = Keypair.from_bytes(raw)
        except ValueError as e:
            raise EncodingError(f"portable key is not a valid keypair: {e}") from e
        logger.info("Imported wallet %s", kp.pubkey)
        return kp

    # ------------------------------------------------------------------
    # Envelopes
    # ------------------------------------------------------------------

    def seal_for_storage(self, keypair: Keypair) -> Envelope:
        raw = bytearray(keypair.to_bytes())
        try:
            return self._require_cipher().seal(raw, WALLET_AAD)
        finally:
            for i in range(len(raw)):
                raw[i] = 0

    def open_from_storage(self, envelope: Envelope) -> Keypair:
        """
        Decrypt an envelope back into a Keypair.

        A recovered blob that is not a consistent keypair is treated the same as
        a failed tag check.
        """
        raw = bytearray(self._require_cipher().open(envelope, WALLET_AAD))
        try:
            return Keypair.from_bytes(bytes(raw))
        except ValueError as e:
            raise AuthenticationError("decrypted data is not a valid keypair") from e
        finally:
            for i in range(len(raw)):
                raw[i] = 0

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------

    def verify_password(self, password: bytes | str) -> None:
        """Re-derive from ``password`` and raise AuthenticationError unless it matches."""
        self._require_cipher()
        candidate = derive_master_key(password, self._salt, self._params)
        try:
            if not hmac.compare_digest(candidate.raw, self._key.raw):
                raise AuthenticationError("password does not match the unlocked session")
        finally:
            candidate.wipe()

    def close(self) -> None:
        """Wipe the master key. The manager is unusable afterwards."""
        self._key.wipe()
        self._cipher = None

    def __enter__(self) -> "WalletManager":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self) -> str:
        return "WalletManager(<unlocked>)" if self._cipher is not None else "WalletManager(<closed>)"
