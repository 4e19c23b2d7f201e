"""Sentinel: local custody of Solana wallet keys."""

__version__ = "0.1.0"
