"""AES-256-GCM sealing of small secrets into storable envelopes.

Envelope wire layout (a single opaque blob):
- 12 bytes: random nonce, fresh for every seal
- N bytes: ciphertext (N = plaintext length)
- 16 bytes: GCM authentication tag

Opening is fail-closed: any tag mismatch or malformed blob raises
AuthenticationError and no plaintext is returned.
"""
import os
from dataclasses import dataclass
from typing import Optional

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from sentinel.core.exceptions import AuthenticationError, DerivationError
from .kdf import MasterKey


KEY_LEN = 32
NONCE_LEN = 12
TAG_LEN = 16


@dataclass(frozen=True)
class Envelope:
    nonce: bytes
    sealed: bytes  # ciphertext || tag

    def __post_init__(self):
        if len(self.nonce) != NONCE_LEN:
            raise AuthenticationError(f"envelope nonce must be {NONCE_LEN} bytes")
        if len(self.sealed) < TAG_LEN:
            raise AuthenticationError("envelope too short to contain an authentication tag")

    def to_bytes(self) -> bytes:
        return self.nonce + self.sealed

    @classmethod
    def from_bytes(cls, blob: bytes) -> "Envelope":
        if len(blob) < NONCE_LEN + TAG_LEN:
            raise AuthenticationError("ciphertext too short to contain nonce and tag")
        return cls(nonce=bytes(blob[:NONCE_LEN]), sealed=bytes(blob[NONCE_LEN:]))

    def __repr__(self) -> str:
        return f"Envelope(nonce={self.nonce.hex()}, sealed_len={len(self.sealed)})"


class AeadCipher:
    """
    Seal/open envelopes under one master key.

    The key is fixed at construction and never changes, so a single instance
    can be shared by concurrent callers without locking. Nonces are always
    generated here; there is no way to pass one in.
    """

    __slots__ = ("_aead",)

    def __init__(self, key: MasterKey):
        if len(key) != KEY_LEN:
            raise DerivationError(f"AES-256-GCM requires a {KEY_LEN}-byte key")
        self._aead = AESGCM(key.raw)

    def seal(self, plaintext: bytes, associated_data: Optional[bytes] = None) -> Envelope:
        nonce = os.urandom(NONCE_LEN)
        sealed = self._aead.encrypt(nonce, bytes(plaintext), associated_data)
        return Envelope(nonce=nonce, sealed=sealed)

    def open(self, envelope: Envelope, associated_data: Optional[bytes] = None) -> bytes:
        try:
            return self._aead.decrypt(envelope.nonce, envelope.sealed, associated_data)
        except InvalidTag as e:
            raise AuthenticationError("envelope authentication failed (wrong key or tampered data)") from e

    def __repr__(self) -> str:
        return "AeadCipher(<keyed>)"


def seal(key: MasterKey, plaintext: bytes, associated_data: Optional[bytes] = None) -> Envelope:
    return AeadCipher(key).seal(plaintext, associated_data)


def open_envelope(key: MasterKey, envelope: Envelope, associated_data: Optional[bytes] = None) -> bytes:
    return AeadCipher(key).open(envelope, associated_data)
