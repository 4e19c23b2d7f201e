"""Unit tests for the Key Derivation Function (KDF) module."""

import pickle

import pytest
from unittest.mock import patch
from argon2.exceptions import HashingError

from sentinel.core.exceptions import DerivationError
from sentinel.security.kdf import (
    DEFAULT_PARAMS,
    KdfParams,
    MasterKey,
    derive_master_key,
    generate_salt,
    kdf_params_from_dict,
    kdf_params_to_dict,
)

FAST = KdfParams(time_cost=1, memory_cost=8, parallelism=1)


def test_generate_salt_defaults():
    """Ensure salt generation returns bytes of the default length (16)."""
    salt = generate_salt()
    assert isinstance(salt, bytes)
    assert len(salt) == 16


def test_generate_salt_custom_length():
    salt = generate_salt(length=32)
    assert len(salt) == 32


def test_default_params_are_documented_values():
    assert DEFAULT_PARAMS == KdfParams(time_cost=3, memory_cost=65536, parallelism=1, key_len=32)


def test_derive_master_key_with_default_params():
    """The shipped cost parameters must be accepted by argon2."""
    key = derive_master_key(b"correct horse battery staple", generate_salt())
    assert isinstance(key, MasterKey)
    assert len(key) == 32


def test_derive_master_key_is_deterministic():
    salt = generate_salt()
    k1 = derive_master_key(b"password123", salt, FAST)
    k2 = derive_master_key(b"password123", salt, FAST)
    assert k1.raw == k2.raw


def test_derive_master_key_string_and_bytes_agree():
    """Ensure passing the same password as string or bytes yields the same key."""
    salt = generate_salt()
    assert derive_master_key("pässword", salt, FAST).raw == derive_master_key("pässword".encode("utf-8"), salt, FAST).raw


def test_different_salt_or_password_changes_key():
    salt = generate_salt()
    base = derive_master_key(b"pw", salt, FAST).raw
    assert derive_master_key(b"pw2", salt, FAST).raw != base
    assert derive_master_key(b"pw", generate_salt(), FAST).raw != base


def test_derive_master_key_changes_with_params():
    salt = generate_salt()
    a = derive_master_key(b"pw", salt, FAST).raw
    b = derive_master_key(b"pw", salt, KdfParams(time_cost=2, memory_cost=8, parallelism=1)).raw
    assert a != b


# ==============================================================================
# Tests: Misconfiguration -> DerivationError
# ==============================================================================

@pytest.mark.parametrize(
    "params",
    [
        KdfParams(time_cost=0, memory_cost=8, parallelism=1),
        KdfParams(time_cost=1, memory_cost=8, parallelism=0),
        KdfParams(time_cost=1, memory_cost=4, parallelism=1),
        KdfParams(time_cost=1, memory_cost=8, parallelism=2),
        KdfParams(time_cost=1, memory_cost=8, parallelism=1, key_len=16),
    ],
)
def test_invalid_params_raise_derivation_error(params):
    with pytest.raises(DerivationError):
        derive_master_key(b"pw", generate_salt(), params)


def test_short_salt_raises_derivation_error():
    with pytest.raises(DerivationError, match="salt"):
        derive_master_key(b"pw", b"short", FAST)


def test_argon2_failure_is_wrapped():
    with patch("sentinel.security.kdf.hash_secret_raw", side_effect=HashingError("boom")):
        with pytest.raises(DerivationError, match="argon2 derivation failed"):
            derive_master_key(b"pw", generate_salt(), FAST)


# ==============================================================================
# Tests: MasterKey handling
# ==============================================================================

def test_master_key_repr_hides_bytes():
    key = derive_master_key(b"pw", generate_salt(), FAST)
    assert repr(key) == "MasterKey(<redacted>)"
    assert str(key) == "MasterKey(<redacted>)"
    assert key.raw.hex() not in repr(key)


def test_master_key_cannot_be_pickled():
    key = MasterKey(b"\x01" * 32)
    with pytest.raises(TypeError):
        pickle.dumps(key)


def test_master_key_wipe():
    key = MasterKey(b"\x01" * 32)
    key.wipe()
    with pytest.raises(DerivationError, match="wiped"):
        key.raw


# ==============================================================================
# Tests: Parameter serialization
# ==============================================================================

def test_kdf_params_to_dict():
    salt = b"\xaa" * 16
    result = kdf_params_to_dict(salt, KdfParams(time_cost=2, memory_cost=1024, parallelism=4))
    assert result == {
        "algo": "argon2id",
        "salt": "aa" * 16,
        "time": 2,
        "memory": 1024,
        "parallelism": 4,
    }


def test_kdf_params_from_dict_roundtrip():
    salt = generate_salt()
    params = KdfParams(time_cost=2, memory_cost=1024, parallelism=4)
    assert kdf_params_from_dict(kdf_params_to_dict(salt, params)) == (salt, params)


@pytest.mark.parametrize(
    "meta",
    [
        {"algo": "scrypt", "salt": "aa" * 16, "time": 1, "memory": 8, "parallelism": 1},
        {"salt": "zz", "time": 1, "memory": 8, "parallelism": 1},
        {"salt": "aa" * 16, "time": "x", "memory": 8, "parallelism": 1},
        {"salt": "aa" * 16, "memory": 8, "parallelism": 1},
        {"salt": "aa" * 16, "time": 0, "memory": 8, "parallelism": 1},
    ],
)
def test_kdf_params_from_dict_rejects_bad_input(meta):
    with pytest.raises(DerivationError):
        kdf_params_from_dict(meta)
