from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from datetime import datetime

import jwt

from ..core.enums import Role
from ..core.exceptions import TokenInvalid

ALGORITHM = "HS256"


@dataclass(frozen=True)
class TokenClaims:
    account_id: int
    employee_id: str
    username: str
    role: Role
    issued_at: datetime
    expires_at: datetime
    jti: str


def hash_token(token: str) -> str:
    """Lookup key stored in the sessions table instead of the raw token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenCodec:
    """Signs and reads bearer tokens (HS256 JWT).

    Expiry is *not* enforced here: the session row is authoritative, and the
    ``exp`` claim is only consulted when the row has already been purged.
    """

    def __init__(self, secret: str, *, algorithm: str = ALGORITHM):
        if not secret:
            raise ValueError("JWT secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm

    def issue(
        self,
        *,
        account_id: int,
        employee_id: str,
        username: str,
        role: Role,
        issued_at: datetime,
        expires_at: datetime,
    ) -> str:
        payload = {
            "sub": str(account_id),
            "employee_id": employee_id,
            "username": username,
            "role": Role(role).value,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            # unique per issue so two logins in the same second never share a hash
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenClaims:
        try:
            data = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"verify_exp": False, "verify_iat": False, "require": ["sub", "exp", "iat", "jti"]},
            )
            return TokenClaims(
                account_id=int(data["sub"]),
                employee_id=str(data["employee_id"]),
                username=str(data["username"]),
                role=Role(data["role"]),
                issued_at=datetime.fromtimestamp(int(data["iat"])),
                expires_at=datetime.fromtimestamp(int(data["exp"])),
                jti=str(data["jti"]),
            )
        except (jwt.InvalidTokenError, KeyError, ValueError, TypeError):
            raise TokenInvalid()
