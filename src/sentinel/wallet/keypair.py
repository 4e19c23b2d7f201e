"""Ed25519 keypair in the Solana 64-byte layout (secret seed || public key)."""

from __future__ import annotations

import hmac

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from .encoding import encode_pubkey

SECRET_LEN = 32
PUBKEY_LEN = 32
KEYPAIR_LEN = SECRET_LEN + PUBKEY_LEN


class Keypair:
    """
    Public/private key pair for one wallet.

    The secret seed is kept in a bytearray so ``wipe()`` can zero it once the
    operation that needed it is done. Use the instance as a context manager to
    wipe automatically.
    """

    __slots__ = ("_seed", "_pubkey", "_signer")

    def __init__(self, seed: bytes):
        if len(seed) != SECRET_LEN:
            raise ValueError(f"secret seed must be {SECRET_LEN} bytes, got {len(seed)}")
        self._seed = bytearray(seed)
        self._signer = Ed25519PrivateKey.from_private_bytes(bytes(self._seed))
        self._pubkey = self._signer.public_key().public_bytes_raw()

    @classmethod
    def generate(cls) -> "Keypair":
        signer = Ed25519PrivateKey.generate()
        return cls(signer.private_bytes_raw())

    @classmethod
    def from_bytes(cls, raw: bytes) -> "Keypair":
        """Rebuild from 64 raw bytes; the public half must match the seed."""
        if len(raw) != KEYPAIR_LEN:
            raise ValueError(f"keypair must be {KEYPAIR_LEN} bytes, got {len(raw)}")
        kp = cls(raw[:SECRET_LEN])
        if kp.pubkey_bytes != bytes(raw[SECRET_LEN:]):
            kp.wipe()
            raise ValueError("public key does not match secret key")
        return kp

    @property
    def pubkey_bytes(self) -> bytes:
        return self._pubkey

    @property
    def pubkey(self) -> str:
        return encode_pubkey(self._pubkey)

    @property
    def wiped(self) -> bool:
        return self._signer is None

    def to_bytes(self) -> bytes:
        if self._signer is None:
            raise ValueError("keypair has been wiped")
        return bytes(self._seed) + self._pubkey

    def sign(self, message: bytes) -> bytes:
        if self._signer is None:
            raise ValueError("keypair has been wiped")
        return self._signer.sign(message)

    def wipe(self) -> None:
        for i in range(len(self._seed)):
            self._seed[i] = 0
        self._signer = None

    def __enter__(self) -> "Keypair":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.wipe()

    def __eq__(self, other):
        if not isinstance(other, Keypair):
            return NotImplemented
        return self._pubkey == other._pubkey and hmac.compare_digest(bytes(self._seed), bytes(other._seed))

    def __repr__(self) -> str:
        return f"Keypair(pubkey={self.pubkey!r})"
