"""
Exceptions for Sentinel
Every failure the wallet core can report is one of these, so callers can
tell them apart at the command boundary
"""


class SentinelError(Exception):
    # general container for errors
    pass


class DerivationError(SentinelError):
    # raised when the KDF is misconfigured or fails internally (fatal, never retried)
    pass


class EncodingError(SentinelError):
    # raised on a malformed or mis-sized portable key / public key string
    pass


class AuthenticationError(SentinelError):
    # raised on AEAD tag mismatch, wrong password, or a structurally broken key after decrypt
    pass


class StorageError(SentinelError):
    # raised if storage fails in some way
    pass


class PersistenceConflict(StorageError):
    # raised when saving a wallet whose public key already exists
    pass


class WalletNotFoundError(StorageError):
    # raised when the public key DNE in the store
    pass


class ConfigError(SentinelError):
    # raised on unreadable or invalid configuration
    pass
