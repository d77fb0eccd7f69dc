"""
Token issuance and validation.

- Access tokens are HS256 JWTs (PyJWT) carrying the user's identity claims.
- Refresh tokens are 64 random bytes, base64 encoded, stored by DBStorage.
"""
from __future__ import annotations

import base64
import logging
import secrets
import uuid
from datetime import timedelta
from typing import Any, Callable, Dict, Mapping

import jwt

from models.refresh_token import RefreshToken
from models.user import User
from utils.exceptions import InternalError
from utils.timeutils import utcnow

logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 64
ACCESS_TOKEN_TYPE = "access"


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())


def generate_refresh_secret() -> str:
    return base64.b64encode(secrets.token_bytes(REFRESH_TOKEN_BYTES)).decode("ascii")


class TokenService:
    """Mints access/refresh tokens and validates access tokens."""

    def __init__(self, config: Mapping[str, Any], storage, clock: Callable = utcnow):
        secret = config.get("JWT_SECRET")
        if not secret:
            raise ValueError("JWT_SECRET must be configured")
        self._secret = secret
        self._algorithm = config.get("JWT_ALGORITHM", "HS256")
        self._issuer = config.get("JWT_ISSUER", "session-auth-api")
        self._audience = config.get("JWT_AUDIENCE", "session-auth-clients")
        self._access_ttl: timedelta = config.get("ACCESS_TOKEN_EXPIRES", timedelta(hours=1))
        self._refresh_ttl: timedelta = config.get("REFRESH_TOKEN_EXPIRES", timedelta(days=7))
        self._storage = storage
        self._clock = clock

    @property
    def access_token_lifetime(self) -> timedelta:
        return self._access_ttl

    def mint_access(self, user: User) -> str:
        now = self._clock()
        payload = {
            "sub": str(user.id),
            "email": user.email,
            "jti": generate_jti(),
            "username": user.username,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": now,
            "nbf": now,
            "exp": now + self._access_ttl,
            "type": ACCESS_TOKEN_TYPE,
        }
        if user.f_name:
            payload["first_name"] = user.f_name
        if user.l_name:
            payload["last_name"] = user.l_name
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            logger.error("Error generating access token for user %s", user.id, exc_info=exc)
            raise InternalError("Could not generate authentication token") from exc

    def mint_refresh(self, user_id: str) -> RefreshToken:
        """Build an unpersisted refresh token for an existing user."""
        if self._storage.find_user_by_id(user_id) is None:
            logger.error("Refusing to generate refresh token for non-existent user %s", user_id)
            raise InternalError(f"Cannot generate refresh token for non-existent user {user_id}")
        now = self._clock()
        return RefreshToken(
            token=generate_refresh_secret(),
            user_id=str(user_id),
            created_at=now,
            expires_at=now + self._refresh_ttl,
        )

    def _decode(self, token: str) -> Dict[str, Any]:
        """
        Decode and verify signature, issuer, audience and lifetime (no leeway).
        Raises jwt.InvalidTokenError subclasses.
        """
        claims = jwt.decode(
            token,
            self._secret,
            algorithms=[self._algorithm],
            audience=self._audience,
            issuer=self._issuer,
            leeway=0,
            options={"require": ["exp", "sub"]},
        )
        if claims.get("type") != ACCESS_TOKEN_TYPE:
            raise jwt.InvalidTokenError("Wrong token type")
        return claims

    def claims_of(self, token: str, context: str = "validating token") -> Dict[str, Any] | None:
        if not token or not isinstance(token, str):
            return None
        try:
            return self._decode(token)
        except jwt.ExpiredSignatureError:
            logger.info("Token validation failed when %s: token expired", context)
        except jwt.InvalidSignatureError:
            logger.warning("Token validation failed when %s: invalid signature", context)
        except jwt.InvalidTokenError as exc:
            logger.warning("Token validation failed when %s: %s", context, exc)
        return None

    def validate(self, token: str) -> bool:
        return self.claims_of(token) is not None

    def subject_of(self, token: str) -> str | None:
        """User id from a valid token, or None if the token or the account is no longer good."""
        claims = self.claims_of(token, context="extracting user id")
        if claims is None:
            return None
        user_id = claims.get("sub")
        if not user_id:
            logger.warning("Token does not contain a subject claim")
            return None
        user = self._storage.find_user_by_id(user_id)
        if user is None or not user.is_active:
            logger.warning("Token contains id of non-existent or inactive user: %s", user_id)
            return None
        return user.id
