from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import normalize_employee_id, require_non_empty, require_password
from ..core.constants import (
    DEFAULT_LOCKOUT_MINUTES,
    DEFAULT_MAX_FAILED_LOGINS,
    DEFAULT_REFRESH_WINDOW_HOURS,
    DEFAULT_REMEMBER_ME_DAYS,
    DEFAULT_TOKEN_TTL_HOURS,
    MIN_PASSWORD_LENGTH,
)
from ..core.enums import EmployeeStatus
from ..core.exceptions import (
    AccountLocked,
    InvalidCredentials,
    NotFoundError,
    TokenExpired,
    TokenInvalid,
    TokenMissing,
    TokenRevoked,
    ValidationError,
)
from ..sessions.model import Session
from ..sessions.repository import SessionRepository
from ..sessions.tokens import TokenClaims, TokenCodec, hash_token
from .model import Account, AccountProfile, LoginResult, RefreshResult
from .passwords import PasswordHasher
from .repository import AccountRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthPolicy:
    token_ttl_hours: int = DEFAULT_TOKEN_TTL_HOURS
    remember_me_days: int = DEFAULT_REMEMBER_ME_DAYS
    refresh_window_hours: int = DEFAULT_REFRESH_WINDOW_HOURS
    max_failed_logins: int = DEFAULT_MAX_FAILED_LOGINS
    lockout_minutes: int = DEFAULT_LOCKOUT_MINUTES


class AuthService:
    """Use cases: login, token verification, refresh, logout and password changes.

    A token is accepted only while its session row exists, is active and is
    not past ``expires_at``. The row, not the JWT ``exp`` claim, is
    authoritative.
    """

    def __init__(
        self,
        accounts: AccountRepository,
        sessions: SessionRepository,
        tokens: TokenCodec,
        *,
        hasher: Optional[PasswordHasher] = None,
        policy: Optional[AuthPolicy] = None,
    ):
        self._accounts = accounts
        self._sessions = sessions
        self._tokens = tokens
        self._hasher = hasher or PasswordHasher()
        self._policy = policy or AuthPolicy()

    def login(
        self,
        username: str,
        password: str,
        *,
        remember_me: bool = False,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> LoginResult:
        now = now or now_local()
        username = require_non_empty(username, "username")
        password = require_password(password)

        account = self._accounts.get_by_username(username)
        if not account:
            logger.warning("Login failed: unknown username %r", username)
            raise InvalidCredentials()

        if account.is_locked(now):
            logger.warning("Login refused: account %r locked until %s", username, account.locked_until)
            raise AccountLocked(locked_until=account.locked_until)

        if not account.is_active:
            logger.warning("Login failed: account %r is inactive", username)
            raise InvalidCredentials()

        if not self._hasher.verify(account.password_hash, password):
            self._register_failure(account, now)

        profile = self._accounts.get_profile(account.account_id)
        if not profile or profile.employee_status != EmployeeStatus.ACTIVE:
            logger.warning("Login failed: employee of account %r is not active", username)
            raise InvalidCredentials()

        token, expires_at, _ = self._open_session(
            account,
            remember_me=remember_me,
            ip_address=ip_address,
            user_agent=user_agent,
            now=now,
        )
        self._accounts.record_successful_login(account.account_id, now=now)
        logger.info("Login succeeded for %r (remember_me=%s)", username, remember_me)

        return LoginResult(
            token=token,
            profile=dataclasses.replace(profile, last_login=now),
            expires_at=expires_at,
            expires_in=int((expires_at - now).total_seconds()),
        )

    def _register_failure(self, account: Account, now: datetime) -> None:
        attempts = account.failed_login_attempts
        if account.locked_until is not None:
            # the previous lock has lapsed, start counting again
            attempts = 0
        attempts += 1

        if attempts >= self._policy.max_failed_logins:
            locked_until = now + timedelta(minutes=self._policy.lockout_minutes)
            self._accounts.record_failed_login(account.account_id, attempts=attempts, locked_until=locked_until)
            logger.warning("Account %r locked after %d failed attempts", account.username, attempts)
            raise AccountLocked(locked_until=locked_until)

        self._accounts.record_failed_login(account.account_id, attempts=attempts, locked_until=None)
        logger.warning("Login failed: wrong password for %r (%d)", account.username, attempts)
        raise InvalidCredentials()

    def _open_session(
        self,
        account: Account,
        *,
        remember_me: bool,
        ip_address: Optional[str],
        user_agent: Optional[str],
        now: datetime,
    ) -> tuple[str, datetime, int]:
        if remember_me:
            expires_at = now + timedelta(days=self._policy.remember_me_days)
        else:
            expires_at = now + timedelta(hours=self._policy.token_ttl_hours)

        token = self._tokens.issue(
            account_id=account.account_id,
            employee_id=account.employee_id,
            username=account.username,
            role=account.role,
            issued_at=now,
            expires_at=expires_at,
        )
        session_id = self._sessions.create(
            account_id=account.account_id,
            employee_id=account.employee_id,
            token_hash=hash_token(token),
            created_at=now,
            expires_at=expires_at,
            remember_me=remember_me,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        return token, expires_at, session_id

    def _resolve(self, token: Optional[str], now: datetime) -> tuple[TokenClaims, Session]:
        if not token:
            raise TokenMissing()

        claims = self._tokens.decode(token)
        session = self._sessions.get_by_token_hash(hash_token(token))
        if session is None:
            # row already purged by maintenance
            if claims.expires_at <= now:
                raise TokenExpired()
            raise TokenInvalid()

        if session.is_expired(now):
            raise TokenExpired()
        if not session.is_active:
            raise TokenRevoked()
        return claims, session

    def verify(self, token: Optional[str], *, now: Optional[datetime] = None) -> AccountProfile:
        now = now or now_local()
        _, session = self._resolve(token, now)

        profile = self._accounts.get_profile(session.account_id)
        if not profile or not profile.is_active or profile.employee_status != EmployeeStatus.ACTIVE:
            raise TokenRevoked()
        return profile

    def refresh(self, token: Optional[str], *, now: Optional[datetime] = None) -> RefreshResult:
        now = now or now_local()
        _, session = self._resolve(token, now)

        remaining = session.expires_at - now
        if remaining > timedelta(hours=self._policy.refresh_window_hours):
            return RefreshResult(
                refreshed=False,
                token=None,
                expires_at=session.expires_at,
                seconds_until_expiry=int(remaining.total_seconds()),
            )

        account = self._accounts.get_by_id(session.account_id)
        if not account or not account.is_active:
            raise TokenRevoked()

        new_token, expires_at, new_session_id = self._open_session(
            account,
            remember_me=session.remember_me,
            ip_address=session.ip_address,
            user_agent=session.user_agent,
            now=now,
        )
        if not self._sessions.deactivate(session.session_id, now=now):
            # a concurrent refresh or logout won; do not hand out a second live token
            self._sessions.deactivate(new_session_id, now=now)
            raise TokenRevoked()

        logger.info("Token refreshed for account %s", account.account_id)
        return RefreshResult(
            refreshed=True,
            token=new_token,
            expires_at=expires_at,
            seconds_until_expiry=int((expires_at - now).total_seconds()),
        )

    def logout(self, token: Optional[str], *, now: Optional[datetime] = None) -> bool:
        """Deactivate the session behind ``token``. Unknown or inactive tokens are a no-op."""
        now = now or now_local()
        if not token:
            return False
        session = self._sessions.get_by_token_hash(hash_token(token))
        if not session or not session.is_active:
            return False
        return self._sessions.deactivate(session.session_id, now=now)

    def logout_all(self, employee_id: str, *, now: Optional[datetime] = None) -> int:
        now = now or now_local()
        account = self._require_account(employee_id)
        count = self._sessions.deactivate_for_account(account.account_id, now=now)
        logger.info("Logged out %d sessions of %s", count, account.employee_id)
        return count

    def change_password(
        self,
        token: Optional[str],
        *,
        current_password: str,
        new_password: str,
        now: Optional[datetime] = None,
    ) -> int:
        """Change the caller's password. Every other session of the account is revoked."""
        now = now or now_local()
        _, session = self._resolve(token, now)

        account = self._accounts.get_by_id(session.account_id)
        if not account or not account.is_active:
            raise TokenRevoked()

        valid = isinstance(current_password, str) and self._hasher.verify(account.password_hash, current_password)
        if not valid:
            raise ValidationError("Current password is incorrect", code="INVALID_CURRENT_PASSWORD")
        require_password(new_password, "new_password", min_len=MIN_PASSWORD_LENGTH)
        if new_password == current_password:
            raise ValidationError("New password must differ from the current password")

        self._accounts.update_password(account.account_id, self._hasher.hash(new_password), now=now)
        revoked = self._sessions.deactivate_for_account(
            account.account_id,
            now=now,
            keep_session_id=session.session_id,
        )
        logger.info("Password changed for %r, %d other sessions revoked", account.username, revoked)
        return revoked

    def reset_password(self, employee_id: str, new_password: str, *, now: Optional[datetime] = None) -> int:
        """Administrative override: no current password, all sessions revoked."""
        now = now or now_local()
        require_password(new_password, "new_password", min_len=MIN_PASSWORD_LENGTH)
        account = self._require_account(employee_id)

        self._accounts.update_password(account.account_id, self._hasher.hash(new_password), now=now)
        revoked = self._sessions.deactivate_for_account(account.account_id, now=now)
        logger.info("Password reset for %r, %d sessions revoked", account.username, revoked)
        return revoked

    def list_sessions(self, employee_id: str, *, now: Optional[datetime] = None) -> list[dict]:
        now = now or now_local()
        account = self._require_account(employee_id)
        return [s.to_dict(now) for s in self._sessions.list_for_employee(account.employee_id)]

    def _require_account(self, employee_id: str) -> Account:
        account = self._accounts.get_by_employee_id(normalize_employee_id(employee_id))
        if not account:
            raise NotFoundError("Account not found")
        return account
