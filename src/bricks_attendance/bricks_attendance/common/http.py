from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional

from flask import Flask, g, jsonify, request
from flask.json.provider import DefaultJSONProvider
from werkzeug.exceptions import HTTPException

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    RateLimitError,
    TokenMissing,
    ValidationError,
)
from .rate_limit import FixedWindowRateLimiter

logger = logging.getLogger(__name__)

# Single place where error kinds become HTTP status codes
STATUS_BY_ERROR: tuple[tuple[type[DomainError], int], ...] = (
    (ValidationError, 400),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConflictError, 409),
    (RateLimitError, 429),
)


def _api_default(o: Any) -> Any:
    if isinstance(o, (date, time)):
        return o.isoformat()
    if isinstance(o, Decimal):
        return str(o)
    if isinstance(o, Enum):
        return o.value
    if hasattr(o, "to_dict"):
        return o.to_dict()
    raise TypeError(f"Object of type {type(o).__name__} is not JSON serializable")


class ApiJSONProvider(DefaultJSONProvider):
    """ISO dates, exact decimals (as strings) and ``to_dict`` models."""

    default = staticmethod(_api_default)


def ok(data: Any = None, *, message: str = "", status: int = 200, **extra):
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return jsonify(body), status


def fail(message: str, *, code: str, status: int, **extra):
    body = {"success": False, "message": message, "code": code}
    body.update({k: v for k, v in extra.items() if v is not None})
    return jsonify(body), status


def json_body() -> dict:
    if not request.data:
        return {}
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def status_for(error: DomainError) -> int:
    for cls, status in STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


@dataclass(frozen=True)
class AuthGuards:
    login_required: Callable
    roles_required: Callable[..., Callable]


def make_auth_guards(verify: Callable[[Optional[str]], Any]) -> AuthGuards:
    """Build route decorators around ``verify(token) -> AccountProfile``.

    On success the profile is stored in ``g.account`` and the raw token in ``g.token``.
    """

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            token = bearer_token()
            if not token:
                raise TokenMissing()
            g.account = verify(token)
            g.token = token
            return view(*args, **kwargs)

        return wrapper

    def roles_required(*roles: Role):
        def decorator(view):
            @wraps(view)
            @login_required
            def wrapper(*args, **kwargs):
                if not g.account.has_role(*roles):
                    raise AuthorizationError("Insufficient permissions")
                return view(*args, **kwargs)

            return wrapper

        return decorator

    return AuthGuards(login_required=login_required, roles_required=roles_required)


def is_privileged() -> bool:
    return g.account.has_role(Role.ADMIN, Role.MANAGER)


def require_self_or_privileged(employee_id: str) -> None:
    if not is_privileged() and g.account.employee_id != employee_id:
        raise AuthorizationError("You can only access your own records")


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = status_for(e)
        if status >= 401:
            logger.info("%s %s -> %s %s", request.method, request.path, status, e.code)
        retry_after = getattr(e, "retry_after", None)
        resp, status = fail(
            e.message or e.code,
            code=e.code,
            status=status,
            field=getattr(e, "field", None),
            locked_until=getattr(e, "locked_until", None),
        )
        if retry_after:
            resp.headers["Retry-After"] = str(retry_after)
        return resp, status

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return fail(e.description or e.name, code=e.name.upper().replace(" ", "_"), status=e.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        # never leak driver or stack details to clients
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return fail("Internal server error", code="INTERNAL_ERROR", status=500)


def register_rate_limit(app: Flask, limiter: FixedWindowRateLimiter, *, prefix: str = "/api/") -> None:
    @app.before_request
    def _rate_limit():
        if not request.path.startswith(prefix):
            return None
        g.rate_limit = limiter.hit(request.remote_addr or "unknown")
        return None

    @app.after_request
    def _rate_limit_headers(response):
        state = g.get("rate_limit")
        if state is not None:
            response.headers["X-RateLimit-Limit"] = str(state.limit)
            response.headers["X-RateLimit-Remaining"] = str(state.remaining)
            response.headers["X-RateLimit-Reset"] = str(state.reset_in)
        return response
