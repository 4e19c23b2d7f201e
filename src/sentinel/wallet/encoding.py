"""Base-58 text encodings for public keys and portable (exported) keypairs."""

from __future__ import annotations

import base58

from sentinel.core.exceptions import EncodingError

# Must match keypair.KEYPAIR_LEN / PUBKEY_LEN (kept here to avoid an import cycle)
PORTABLE_KEY_LEN = 64
PUBKEY_LEN = 32


def _b58decode(text: str, what: str) -> bytes:
    if not isinstance(text, str):
        raise EncodingError(f"{what} must be a string")
    text = text.strip()
    if not text:
        raise EncodingError(f"{what} is empty")
    try:
        return base58.b58decode(text)
    except ValueError as e:
        # covers characters outside the base-58 alphabet, incl. non-ASCII input
        raise EncodingError(f"{what} contains invalid base-58 characters") from e


def encode_portable_key(raw: bytes) -> str:
    """Encode 64 raw keypair bytes as a base-58 string for backup display."""
    if len(raw) != PORTABLE_KEY_LEN:
        raise EncodingError(f"keypair must be {PORTABLE_KEY_LEN} bytes, got {len(raw)}")
    return base58.b58encode(bytes(raw)).decode("ascii")


def decode_portable_key(text: str) -> bytes:
    """
    Decode a portable key string back to its 64 raw bytes.

    The decoded length is checked before the bytes are handed to anything
    that builds a key from them.
    """
    raw = _b58decode(text, "portable key")
    if len(raw) != PORTABLE_KEY_LEN:
        raise EncodingError(
            f"portable key must decode to {PORTABLE_KEY_LEN} bytes, got {len(raw)}"
        )
    return raw


def encode_pubkey(raw: bytes) -> str:
    if len(raw) != PUBKEY_LEN:
        raise EncodingError(f"public key must be {PUBKEY_LEN} bytes, got {len(raw)}")
    return base58.b58encode(bytes(raw)).decode("ascii")


def decode_pubkey(text: str) -> bytes:
    raw = _b58decode(text, "public key")
    if len(raw) != PUBKEY_LEN:
        raise EncodingError(f"public key must decode to {PUBKEY_LEN} bytes, got {len(raw)}")
    return raw
