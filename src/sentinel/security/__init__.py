"""Security helpers: Argon2id key derivation and AES-GCM envelopes for Sentinel.

This package provides:
- Argon2id-based master key derivation
- Per-installation salt/parameter profile with a password sentinel
- AEAD (AES-256-GCM) sealing of small secrets into envelopes
"""

from .kdf import DEFAULT_PARAMS, KdfParams, MasterKey, generate_salt, derive_master_key
from .crypto import AeadCipher, Envelope, seal, open_envelope
from .vault import VaultProfile

__all__ = [
    "DEFAULT_PARAMS",
    "KdfParams",
    "MasterKey",
    "generate_salt",
    "derive_master_key",
    "AeadCipher",
    "Envelope",
    "seal",
    "open_envelope",
    "VaultProfile",
]
