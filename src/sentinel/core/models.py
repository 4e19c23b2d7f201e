"""
Data models for persisted wallets
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sentinel.security.crypto import Envelope


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


@dataclass(frozen=True)
class WalletRecord:
    """
    One stored wallet. The envelope is the only form of the private key
    that is ever written out.
    """

    public_key: str
    envelope: Envelope
    label: Optional[str] = None
    created_at: Optional[datetime] = None  # set by the store at insertion

    def to_dict(self) -> Dict[str, Any]:
        # metadata only; the envelope is deliberately left out
        return {
            "public_key": self.public_key,
            "label": self.label,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"WalletRecord(public_key={self.public_key!r}, label={self.label!r})"

    def stamped(self, created_at: Optional[datetime] = None) -> "WalletRecord":
        """
        Return a copy with created_at filled in (now, unless given), truncated
        to whole seconds, the resolution the stores keep.
        """
        stamp = self.created_at or created_at or utcnow()
        return replace(self, created_at=stamp.replace(microsecond=0))
