from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from passlib.context import CryptContext

from .errors import UnauthorizedError


class CredentialVerifier:
    """Hashes and verifies passwords, PINs and one-time codes."""

    def __init__(self, rounds: int = 12) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, plaintext: str) -> str:
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, hashed: str | None) -> bool:
        if not plaintext or not hashed:
            return False
        return self._context.verify(plaintext, hashed)


class SessionIssuer:
    """Issues and validates bearer tokens bound to an account id."""

    def __init__(self, secret: str, algorithm: str = "HS256", expire_minutes: int = 1440) -> None:
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, account_id: UUID) -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": str(account_id),
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify(self, token: str) -> UUID:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise UnauthorizedError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise UnauthorizedError("Not authorized to access this route") from exc

        subject = payload.get("sub")
        try:
            return UUID(str(subject))
        except ValueError as exc:
            raise UnauthorizedError("Not authorized to access this route") from exc
