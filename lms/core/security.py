"""
Password hashing and access-token handling.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs created
and verified with python-jose. Token claims carry the user id, the tenant
the user logged into and the user's global roles.
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import BaseModel

from lms.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


class TokenClaims(BaseModel):
    """Decoded access-token payload."""

    sub: str
    tenant_id: Optional[str] = None
    roles: List[str] = []
    exp: int
    iat: int
    jti: str


class PasswordHasher:
    """bcrypt password hashing with a configurable work factor."""

    def __init__(self, rounds: int = 12) -> None:
        self._rounds = rounds

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("Password cannot be empty")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    def verify(self, password: str, password_hash: Optional[str]) -> bool:
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError as e:
            # Malformed hash stored for the user
            logger.warning(f"Password verification failed: {e}")
            return False


class TokenManager:
    """Create and decode signed access tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60 * 24,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._expire_minutes = expire_minutes

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self._expire_minutes * 60

    def create_access_token(
        self,
        user_id: str,
        tenant_id: Optional[str],
        roles: List[str],
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "tenant_id": tenant_id,
            "roles": roles,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self._expire_minutes)).timestamp()),
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, token: str) -> TokenClaims:
        """
        Decode and validate a token.

        Raises:
            AuthenticationError: If the token is expired, tampered with or malformed
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise AuthenticationError("Session expired, please log in again")
        except JWTError as e:
            logger.info(f"Rejected access token: {e}")
            raise AuthenticationError("Invalid authentication token")
        return TokenClaims(**payload)
