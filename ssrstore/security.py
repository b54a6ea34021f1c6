from datetime import datetime, timedelta, timezone
from typing import Annotated, Optional

import jwt
from fastapi import Depends, Header, Request
from jwt import ExpiredSignatureError, InvalidTokenError
from pwdlib import PasswordHash

from .errors import AuthError, AuthReason


class PasswordHasher:
    """Salted one-way password hashing (Argon2id via pwdlib).

    There is deliberately no way back from a stored hash to the password;
    login re-hashes the candidate and compares.
    """

    def __init__(self, context: Optional[PasswordHash] = None):
        self._context = context or PasswordHash.recommended()

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, stored: str) -> bool:
        return self._context.verify(password, stored)


class TokenService:
    """Issues and checks signed, time-limited session tokens (JWT)."""

    def __init__(self, secret: str, algorithm: str = "HS256", ttl: timedelta = timedelta(hours=1)):
        if not secret:
            raise ValueError("token secret must be configured")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl = ttl

    def issue(self, account_id: str, now: Optional[datetime] = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {"sub": account_id, "iat": issued, "exp": issued + self.ttl}
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: Optional[str]) -> str:
        if not token:
            raise AuthError(AuthReason.MISSING)
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except ExpiredSignatureError:
            raise AuthError(AuthReason.EXPIRED) from None
        except InvalidTokenError:
            raise AuthError(AuthReason.INVALID) from None
        account_id = payload.get("sub")
        if not isinstance(account_id, str) or not account_id:
            raise AuthError(AuthReason.INVALID)
        return account_id


def get_current_account_id(
    request: Request,
    auth_token: Annotated[Optional[str], Header(alias="auth-token")] = None,
) -> str:
    return request.app.state.tokens.verify(auth_token)


T_CurrentAccount = Annotated[str, Depends(get_current_account_id)]
