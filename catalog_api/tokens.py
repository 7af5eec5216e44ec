"""
Bearer token issuing and verification.

Tokens are HS256 JWTs signed with the process-wide secret from APIConfig.
They carry the caller's user id in the ``userId`` claim plus ``iat`` and
``exp``. Verification is stateless: there is no session table, so a token
stays valid until it expires or the secret changes.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from catalog_api.errors import ExpiredTokenError, InvalidTokenError
from catalog_api.models import TokenClaims

DEFAULT_TTL = timedelta(hours=1)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bound bearer tokens."""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ):
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret_key = secret_key
        self.algorithm = algorithm
        self.ttl = ttl
        self._clock = clock

    def issue(self, user_id: str, ttl: Optional[timedelta] = None) -> str:
        """
        Issue a signed token for a user.

        Args:
            user_id: Identifier stored in the ``userId`` claim
            ttl: Token lifetime (defaults to the service lifetime)

        Returns:
            Encoded JWT
        """
        issued_at = self._clock()
        expires_at = issued_at + (ttl if ttl is not None else self.ttl)
        claims = {
            "userId": user_id,
            "iat": issued_at,
            "exp": expires_at,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """
        Verify a token's signature, then its expiry.

        Args:
            token: Encoded JWT

        Returns:
            TokenClaims for a valid token

        Raises:
            ExpiredTokenError: Signature is valid but the token has expired
            InvalidTokenError: Signature, structure or claims are invalid
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"require_exp": True, "require_iat": True},
            )
        except ExpiredSignatureError as e:
            raise ExpiredTokenError("Token has expired") from e
        except JWTError as e:
            raise InvalidTokenError("Token is invalid") from e

        user_id = payload.get("userId")
        if not isinstance(user_id, str) or not user_id:
            raise InvalidTokenError("Token has no user identity")

        return TokenClaims(
            user_id=user_id,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )
