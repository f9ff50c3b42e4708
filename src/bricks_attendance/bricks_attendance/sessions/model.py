from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Session:
    """One login event. Only the SHA-256 of the token is persisted."""

    session_id: int
    account_id: int
    employee_id: str
    token_hash: str
    created_at: datetime
    expires_at: datetime
    is_active: bool = True
    remember_me: bool = False
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    revoked_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def to_dict(self, now: datetime) -> dict:
        return {
            "session_id": self.session_id,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
            "is_active": self.is_active and not self.is_expired(now),
            "remember_me": self.remember_me,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
        }


@dataclass(frozen=True)
class MaintenanceResult:
    expired_deactivated: int
    purged: int
