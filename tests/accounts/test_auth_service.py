from __future__ import annotations

from datetime import timedelta

import pytest

from src.bricks_attendance.bricks_attendance.core.enums import Role
from src.bricks_attendance.bricks_attendance.core.exceptions import (
    AccountLocked,
    InvalidCredentials,
    NotFoundError,
    TokenExpired,
    TokenInvalid,
    TokenMissing,
    TokenRevoked,
    ValidationError,
)


@pytest.fixture
def auth(container):
    return container.auth_service


@pytest.fixture
def erika(make_employee):
    return make_employee("Erika Bianca", "Api")


def test_login_then_verify_returns_profile(auth, erika, fixed_now):
    result = auth.login("erikabiancaapi", "api123", now=fixed_now)

    assert result.expires_at == fixed_now + timedelta(hours=24)
    assert result.expires_in == 24 * 3600
    assert result.profile.last_login == fixed_now

    profile = auth.verify(result.token, now=fixed_now + timedelta(minutes=5))
    assert profile.employee_id == erika.employee.employee_id
    assert profile.role == Role.EMPLOYEE
    assert "password_hash" not in profile.to_dict()


def test_remember_me_extends_lifetime(auth, erika, fixed_now):
    result = auth.login("erikabiancaapi", "api123", remember_me=True, now=fixed_now)

    assert result.expires_at == fixed_now + timedelta(days=30)


def test_login_rejects_unknown_user_and_wrong_password(auth, erika, fixed_now):
    with pytest.raises(InvalidCredentials):
        auth.login("nobody", "api123", now=fixed_now)
    with pytest.raises(InvalidCredentials):
        auth.login("erikabiancaapi", "wrong-password", now=fixed_now)


def test_login_requires_both_fields(auth, fixed_now):
    with pytest.raises(ValidationError):
        auth.login("", "x", now=fixed_now)
    with pytest.raises(ValidationError):
        auth.login("someone", "", now=fixed_now)


def test_non_string_passwords_are_validation_errors(auth, erika, fixed_now):
    with pytest.raises(ValidationError):
        auth.login("erikabiancaapi", 123456, now=fixed_now)
    # not counted as a failed attempt
    assert auth.login("erikabiancaapi", "api123", now=fixed_now).token

    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    with pytest.raises(ValidationError) as exc:
        auth.change_password(token, current_password=123, new_password="n3w-secret", now=fixed_now)
    assert exc.value.code == "INVALID_CURRENT_PASSWORD"
    with pytest.raises(ValidationError):
        auth.change_password(token, current_password="api123", new_password=12345678, now=fixed_now)
    with pytest.raises(ValidationError):
        auth.reset_password(erika.employee.employee_id, 12345678, now=fixed_now)


def test_verify_error_kinds(auth, erika, fixed_now):
    with pytest.raises(TokenMissing):
        auth.verify(None, now=fixed_now)
    with pytest.raises(TokenInvalid):
        auth.verify("not-a-jwt", now=fixed_now)

    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    with pytest.raises(TokenExpired):
        auth.verify(token, now=fixed_now + timedelta(hours=24))


def test_token_signed_with_other_secret_is_invalid(auth, erika, fixed_now):
    from src.bricks_attendance.bricks_attendance.sessions.tokens import TokenCodec

    forged = TokenCodec("another-secret").issue(
        account_id=1,
        employee_id=erika.employee.employee_id,
        username="erikabiancaapi",
        role=Role.ADMIN,
        issued_at=fixed_now,
        expires_at=fixed_now + timedelta(hours=1),
    )
    with pytest.raises(TokenInvalid):
        auth.verify(forged, now=fixed_now)


def test_logout_revokes_token_and_is_idempotent(auth, erika, fixed_now):
    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token

    assert auth.logout(token, now=fixed_now) is True
    assert auth.logout(token, now=fixed_now) is False
    with pytest.raises(TokenRevoked):
        auth.verify(token, now=fixed_now)


def test_lockout_after_repeated_failures(auth, erika, fixed_now):
    for _ in range(4):
        with pytest.raises(InvalidCredentials):
            auth.login("erikabiancaapi", "bad", now=fixed_now)

    with pytest.raises(AccountLocked) as exc:
        auth.login("erikabiancaapi", "bad", now=fixed_now)
    assert exc.value.locked_until == fixed_now + timedelta(minutes=15)

    # correct password is refused while locked
    with pytest.raises(AccountLocked):
        auth.login("erikabiancaapi", "api123", now=fixed_now + timedelta(minutes=1))

    result = auth.login("erikabiancaapi", "api123", now=fixed_now + timedelta(minutes=16))
    assert result.token


def test_successful_login_resets_failure_counter(auth, erika, container, fixed_now):
    for _ in range(3):
        with pytest.raises(InvalidCredentials):
            auth.login("erikabiancaapi", "bad", now=fixed_now)
    auth.login("erikabiancaapi", "api123", now=fixed_now)

    account = container.accounts_repo.get_by_username("erikabiancaapi")
    assert account.failed_login_attempts == 0
    assert account.locked_until is None


def test_inactive_employee_cannot_login(auth, erika, container, fixed_now):
    container.employee_service.soft_delete_employee(erika.employee.employee_id, now=fixed_now)

    with pytest.raises(InvalidCredentials):
        auth.login("erikabiancaapi", "api123", now=fixed_now)


def test_soft_delete_revokes_live_tokens(auth, erika, container, fixed_now):
    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    container.employee_service.soft_delete_employee(erika.employee.employee_id, now=fixed_now)

    with pytest.raises(TokenRevoked):
        auth.verify(token, now=fixed_now)


def test_refresh_outside_window_keeps_token(auth, erika, fixed_now):
    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token

    result = auth.refresh(token, now=fixed_now + timedelta(hours=1))

    assert result.refreshed is False
    assert result.token is None
    assert result.seconds_until_expiry == 23 * 3600
    auth.verify(token, now=fixed_now + timedelta(hours=1))


def test_refresh_inside_window_rotates_token(auth, erika, fixed_now):
    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    later = fixed_now + timedelta(hours=23)

    result = auth.refresh(token, now=later)

    assert result.refreshed is True
    assert result.token != token
    assert result.expires_at == later + timedelta(hours=24)
    with pytest.raises(TokenRevoked):
        auth.verify(token, now=later)
    assert auth.verify(result.token, now=later).username == "erikabiancaapi"


def test_change_password_keeps_current_session_only(auth, erika, fixed_now):
    current = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    other = auth.login("erikabiancaapi", "api123", now=fixed_now).token

    revoked = auth.change_password(current, current_password="api123", new_password="n3w-secret", now=fixed_now)

    assert revoked == 1
    auth.verify(current, now=fixed_now)
    with pytest.raises(TokenRevoked):
        auth.verify(other, now=fixed_now)
    with pytest.raises(InvalidCredentials):
        auth.login("erikabiancaapi", "api123", now=fixed_now)
    assert auth.login("erikabiancaapi", "n3w-secret", now=fixed_now).token


def test_change_password_validation(auth, erika, fixed_now):
    token = auth.login("erikabiancaapi", "api123", now=fixed_now).token

    with pytest.raises(ValidationError) as exc:
        auth.change_password(token, current_password="wrong", new_password="n3w-secret", now=fixed_now)
    assert exc.value.code == "INVALID_CURRENT_PASSWORD"

    with pytest.raises(ValidationError):
        auth.change_password(token, current_password="api123", new_password="short", now=fixed_now)
    with pytest.raises(ValidationError):
        auth.change_password(token, current_password="api123", new_password="api123", now=fixed_now)


def test_reset_password_revokes_every_session(auth, erika, fixed_now):
    first = auth.login("erikabiancaapi", "api123", now=fixed_now).token
    second = auth.login("erikabiancaapi", "api123", now=fixed_now).token

    revoked = auth.reset_password(erika.employee.employee_id, "fresh-start", now=fixed_now)

    assert revoked == 2
    for token in (first, second):
        with pytest.raises(TokenRevoked):
            auth.verify(token, now=fixed_now)
    assert auth.login("erikabiancaapi", "fresh-start", now=fixed_now).token


def test_logout_all_and_list_sessions(auth, erika, fixed_now):
    auth.login("erikabiancaapi", "api123", now=fixed_now)
    auth.login("erikabiancaapi", "api123", now=fixed_now)
    employee_id = erika.employee.employee_id

    assert auth.logout_all(employee_id, now=fixed_now) == 2
    sessions = auth.list_sessions(employee_id, now=fixed_now)
    assert len(sessions) == 2
    assert not any(s["is_active"] for s in sessions)

    with pytest.raises(NotFoundError):
        auth.logout_all("EMP999", now=fixed_now)
