from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Session


class SessionRepository(Protocol):
    def create(
        self,
        *,
        account_id: int,
        employee_id: str,
        token_hash: str,
        created_at: datetime,
        expires_at: datetime,
        remember_me: bool = False,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def get_by_token_hash(self, token_hash: str) -> Optional[Session]:
        raise NotImplementedError

    def deactivate(self, session_id: int, *, now: datetime) -> bool:
        """Mark one session inactive. Returns False if it already was."""

        raise NotImplementedError

    def deactivate_for_account(self, account_id: int, *, now: datetime, keep_session_id: Optional[int] = None) -> int:
        raise NotImplementedError

    def list_for_employee(self, employee_id: str, *, limit: int = 50) -> Sequence[Session]:
        raise NotImplementedError

    def deactivate_expired(self, *, now: datetime) -> int:
        raise NotImplementedError

    def purge_expired_before(self, cutoff: datetime) -> int:
        raise NotImplementedError
