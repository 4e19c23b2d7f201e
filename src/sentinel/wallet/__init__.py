"""Wallet keypairs, portable encodings and the custody manager."""

from .keypair import Keypair
from .manager import WalletManager
from .service import WalletService

__all__ = ["Keypair", "WalletManager", "WalletService"]
