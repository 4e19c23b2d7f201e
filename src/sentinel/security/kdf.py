import os
from dataclasses import dataclass
from typing import Dict, Tuple

from argon2.exceptions import HashingError
from argon2.low_level import Type, hash_secret_raw

from sentinel.core.exceptions import DerivationError

# Compiled-in salt of the first Sentinel release. Only used with salt_mode="fixed".
LEGACY_SALT = b"sentinel_salt_v1"

MIN_SALT_LEN = 8


@dataclass(frozen=True)
class KdfParams:
    """Argon2id cost parameters. memory_cost is in KiB."""

    time_cost: int = 3
    memory_cost: int = 65536
    parallelism: int = 1
    key_len: int = 32

    def validate(self) -> None:
        if self.time_cost < 1:
            raise DerivationError(f"time_cost must be >= 1, got {self.time_cost}")
        if self.parallelism < 1:
            raise DerivationError(f"parallelism must be >= 1, got {self.parallelism}")
        # argon2 requires at least 8 KiB per lane
        if self.memory_cost < 8 * self.parallelism:
            raise DerivationError(
                f"memory_cost must be >= {8 * self.parallelism} KiB, got {self.memory_cost}"
            )
        if self.key_len != 32:
            raise DerivationError(f"key_len must be 32 for AES-256, got {self.key_len}")


DEFAULT_PARAMS = KdfParams()


class MasterKey:
    """Derived symmetric key held in process memory only.

    The raw bytes are never rendered by repr/str and the object refuses to be
    pickled. ``wipe()`` zeroes the internal buffer (best-effort: copies made
    by the cipher backend are outside our control).
    """

    __slots__ = ("_buf", "_wiped")

    def __init__(self, raw: bytes):
        self._buf = bytearray(raw)
        self._wiped = False

    @property
    def raw(self) -> bytes:
        if self._wiped:
            raise DerivationError("master key has been wiped")
        return bytes(self._buf)

    def wipe(self) -> None:
        for i in range(len(self._buf)):
            self._buf[i] = 0
        self._wiped = True

    def __len__(self) -> int:
        return len(self._buf)

    def __repr__(self) -> str:
        return "MasterKey(<redacted>)"

    __str__ = __repr__

    def __reduce__(self):
        raise TypeError("MasterKey cannot be serialized")


def generate_salt(length: int = 16) -> bytes:
    """Return a cryptographically secure random salt."""
    return os.urandom(length)


def derive_master_key(
    password: bytes | str,
    salt: bytes,
    params: KdfParams = DEFAULT_PARAMS,
) -> MasterKey:
    """
    Derive a master key from a password using Argon2id.
    Same password + salt + params always yields the same key.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    params.validate()
    if len(salt) < MIN_SALT_LEN:
        raise DerivationError(f"salt must be at least {MIN_SALT_LEN} bytes")

    try:
        raw = hash_secret_raw(
            secret=password,
            salt=salt,
            time_cost=params.time_cost,
            memory_cost=params.memory_cost,
            parallelism=params.parallelism,
            hash_len=params.key_len,
            type=Type.ID,
        )
    except HashingError as e:
        raise DerivationError(f"argon2 derivation failed: {e}") from e

    return MasterKey(raw)


def kdf_params_to_dict(salt: bytes, params: KdfParams) -> Dict:
    return {
        "algo": "argon2id",
        "salt": salt.hex(),
        "time": params.time_cost,
        "memory": params.memory_cost,
        "parallelism": params.parallelism,
    }


def kdf_params_from_dict(meta: Dict) -> Tuple[bytes, KdfParams]:
    """Inverse of :func:`kdf_params_to_dict`; raises DerivationError on bad input."""
    try:
        if meta.get("algo", "argon2id") != "argon2id":
            raise DerivationError(f"unsupported kdf algorithm: {meta['algo']}")
        salt = bytes.fromhex(meta["salt"])
        params = KdfParams(
            time_cost=int(meta["time"]),
            memory_cost=int(meta["memory"]),
            parallelism=int(meta["parallelism"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise DerivationError(f"invalid kdf parameters: {e}") from e

    params.validate()
    return salt, params
