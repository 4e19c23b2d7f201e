"""
Per-installation KDF profile.

The profile file stores the salt, the Argon2id cost parameters and a MAC
sentinel used to recognise the right password. It never contains the
password or the derived key.

Once a profile exists its salt and parameters win over whatever the current
configuration says: every envelope in the database was sealed under a key
derived with them.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import os
from pathlib import Path
from typing import Optional, Tuple

from sentinel.core.exceptions import AuthenticationError, DerivationError
from .kdf import (
    DEFAULT_PARAMS,
    LEGACY_SALT,
    KdfParams,
    MasterKey,
    derive_master_key,
    generate_salt,
    kdf_params_from_dict,
    kdf_params_to_dict,
)

logger = logging.getLogger(__name__)

SALT_MODES = ("random", "fixed")
SENTINEL_LABEL = b"sentinel-master-key"


def _sentinel_mac(key: MasterKey) -> bytes:
    return hmac.new(key.raw, SENTINEL_LABEL, hashlib.sha256).digest()


class VaultProfile:
    """
    Load or create the KDF profile at ``path`` and unlock master keys with it.
    """

    def __init__(
        self,
        path: Path | str,
        salt_mode: str = "random",
        params: KdfParams = DEFAULT_PARAMS,
    ):
        if salt_mode not in SALT_MODES:
            raise DerivationError(f"unknown salt mode {salt_mode!r}; expected one of {SALT_MODES}")
        self.path = Path(path)
        self.salt_mode = salt_mode
        self.params = params

    @property
    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Tuple[bytes, KdfParams, Optional[bytes]]:
        """Return (salt, params, sentinel) from disk."""
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                meta = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise DerivationError(f"cannot read kdf profile {self.path}: {e}") from e

        if not isinstance(meta, dict):
            raise DerivationError(f"kdf profile {self.path} is not a JSON object")

        salt, params = kdf_params_from_dict(meta)
        sentinel_hex = meta.get("sentinel")
        try:
            sentinel = bytes.fromhex(sentinel_hex) if sentinel_hex else None
        except ValueError as e:
            raise DerivationError(f"invalid sentinel in kdf profile: {e}") from e
        return salt, params, sentinel

    def unlock(self, password: bytes | str) -> Tuple[MasterKey, bytes, KdfParams]:
        """
        Derive the master key for ``password``.

        First call on a fresh installation:
        - pick the salt (random 16 bytes, or the legacy constant in "fixed" mode)
        - derive the key and write salt, parameters and MAC sentinel

        Later calls:
        - reload salt and parameters; a profile without a sentinel is corrupt
          and raises DerivationError
        - re-derive and verify the sentinel; raise AuthenticationError if the
          password does not match
        """
        if self.exists:
            salt, params, sentinel = self.load()
            if sentinel is None:
                raise DerivationError(f"kdf profile {self.path} has no password sentinel")
            key = derive_master_key(password, salt, params)
            if not hmac.compare_digest(_sentinel_mac(key), sentinel):
                key.wipe()
                raise AuthenticationError("invalid master password for existing key material")
            logger.debug("Unlocked kdf profile %s", self.path)
            return key, salt, params

        salt = generate_salt() if self.salt_mode == "random" else LEGACY_SALT
        key = derive_master_key(password, salt, self.params)

        meta = kdf_params_to_dict(salt, self.params)
        meta["sentinel"] = _sentinel_mac(key).hex()

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(meta, f)
        os.replace(tmp_path, self.path)

        logger.info(
            "Created kdf profile %s (salt_mode=%s, time=%d, memory=%d KiB, parallelism=%d)",
            self.path,
            self.salt_mode,
            self.params.time_cost,
            self.params.memory_cost,
            self.params.parallelism,
        )
        return key, salt, self.params
