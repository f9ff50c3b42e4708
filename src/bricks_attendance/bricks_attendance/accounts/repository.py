from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from .model import Account, AccountProfile


class AccountRepository(Protocol):
    """Repository interface for accounts.

    Services depend on this protocol, not on a concrete database.
    """

    def get_by_id(self, account_id: int) -> Optional[Account]:
        raise NotImplementedError

    def get_by_username(self, username: str) -> Optional[Account]:
        raise NotImplementedError

    def get_by_employee_id(self, employee_id: str) -> Optional[Account]:
        raise NotImplementedError

    def get_profile(self, account_id: int) -> Optional[AccountProfile]:
        raise NotImplementedError

    def list_usernames_with_prefix(self, prefix: str) -> Sequence[str]:
        raise NotImplementedError

    def record_failed_login(self, account_id: int, *, attempts: int, locked_until: Optional[datetime]) -> None:
        raise NotImplementedError

    def record_successful_login(self, account_id: int, *, now: datetime) -> None:
        """Reset the failure counter, clear any lock and stamp last_login."""

        raise NotImplementedError

    def update_password(self, account_id: int, password_hash: str, *, now: datetime) -> bool:
        raise NotImplementedError
