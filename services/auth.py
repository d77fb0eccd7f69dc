"""
AuthService: login, refresh-token rotation, revocation and registration.

Every credential failure path does the same work before failing: one argon2
verification where a password is involved, then a randomized 100-300 ms
delay, then a single generic UnauthorizedError. Delays always happen outside
any open transaction.

The service keeps no per-request state. Callers pass identity explicitly
(e.g. the user id for revoke_all) instead of the service reading it from
request globals.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from models.user import User
from services.tokens import TokenService
from utils.exceptions import (
    EntityNotFoundError,
    InvalidEntityStateError,
    UnauthorizedError,
)
from utils.security import PasswordCheck, PasswordVerifier, random_delay
from utils.timeutils import utcnow

logger = logging.getLogger(__name__)

GENERIC_AUTH_FAILURE = "Invalid credentials"

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 8


def _is_blank(value) -> bool:
    return not isinstance(value, str) or not value.strip()


@dataclass(frozen=True)
class AuthResult:
    user_id: str
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


class AuthService:
    def __init__(
        self,
        storage,
        tokens: TokenService,
        passwords: PasswordVerifier,
        failure_delay_ms: tuple[int, int] = (100, 300),
        clock: Callable = utcnow,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._storage = storage
        self._tokens = tokens
        self._passwords = passwords
        self._delay_min, self._delay_max = failure_delay_ms
        self._clock = clock
        self._sleep = sleep

    @classmethod
    def from_config(cls, config, storage, **kwargs) -> "AuthService":
        tokens = TokenService(config, storage, clock=kwargs.get("clock", utcnow))
        passwords = PasswordVerifier.from_config(config)
        delay = (
            int(config.get("AUTH_FAILURE_DELAY_MIN_MS", 100)),
            int(config.get("AUTH_FAILURE_DELAY_MAX_MS", 300)),
        )
        return cls(storage, tokens, passwords, failure_delay_ms=delay, **kwargs)

    @property
    def tokens(self) -> TokenService:
        return self._tokens

    @property
    def storage(self):
        return self._storage

    def _fail(self, reason: str) -> UnauthorizedError:
        """Delay, log the real reason, and build the generic error for the caller."""
        self._storage.end_read()
        random_delay(self._delay_min, self._delay_max, sleep=self._sleep)
        logger.info("Authentication failed: %s", reason)
        return UnauthorizedError(GENERIC_AUTH_FAILURE)

    def _issue(self, user: User) -> AuthResult:
        """Mint and persist a new token pair; caller owns the transaction."""
        access_token = self._tokens.mint_access(user)
        refresh = self._tokens.mint_refresh(user.id)
        self._storage.create_token(refresh)
        return AuthResult(
            user_id=user.id,
            access_token=access_token,
            refresh_token=refresh.token,
            expires_in=int(self._tokens.access_token_lifetime.total_seconds()),
        )

    def login(self, username_or_email: str, password: str) -> AuthResult:
        if _is_blank(username_or_email) or _is_blank(password):
            raise UnauthorizedError(GENERIC_AUTH_FAILURE)

        identifier = username_or_email.strip()
        looks_like_email = "@" in identifier

        # Both lookups run on every attempt so the query pattern does not
        # depend on the identifier type.
        by_email = self._storage.find_user_by_email(identifier.lower())
        by_username = self._storage.find_user_by_username(identifier)
        user = by_email if looks_like_email else by_username

        if user is None:
            self._passwords.verify_dummy(password)
            raise self._fail("unknown user")

        check = self._passwords.verify(password, user.password_hash)

        if not user.is_active:
            raise self._fail(f"inactive account {user.id}")

        if not check.ok:
            raise self._fail(f"wrong password for user {user.id}")

        new_hash = None
        if check is PasswordCheck.SUCCESS_REHASH_NEEDED:
            new_hash = self._passwords.hash(password)

        with self._storage.transaction():
            if new_hash is not None:
                self._storage.update_password_hash(user.id, new_hash)
            self._storage.update_last_login(user.id, self._clock())
            result = self._issue(user)

        logger.info("User %s logged in", user.id)
        return result

    def refresh(self, refresh_token: str) -> AuthResult:
        if _is_blank(refresh_token):
            raise UnauthorizedError(GENERIC_AUTH_FAILURE)

        stored = self._storage.find_token_by_secret(refresh_token)
        if stored is None or not stored.is_active_at(self._clock()):
            raise self._fail("unknown, expired or revoked refresh token")

        user = self._storage.find_user_by_id(stored.user_id)
        if user is None or not user.is_active:
            raise self._fail(f"refresh token owner {stored.user_id} missing or inactive")

        lost_race = False
        with self._storage.transaction():
            now = self._clock()
            if self._storage.revoke_token(refresh_token, now):
                result = self._issue(user)
                self._storage.update_last_login(user.id, now)
            else:
                lost_race = True

        if lost_race:
            raise self._fail(f"refresh token {stored.id} already redeemed")

        logger.info("Rotated refresh token %s for user %s", stored.id, user.id)
        return result

    def revoke(self, token: str, user_id: str | None = None) -> None:
        """
        Revoke one refresh token. A token that is unknown, already revoked, or
        (when user_id is given) owned by someone else is reported as not found.
        """
        if _is_blank(token):
            raise InvalidEntityStateError("Token", "Token cannot be empty")

        with self._storage.transaction():
            stored = self._storage.find_token_by_secret(token)
            if stored is None or stored.revoked_at is not None:
                raise EntityNotFoundError("Refresh token")
            if user_id is not None and stored.user_id != str(user_id):
                raise EntityNotFoundError("Refresh token")
            if not self._storage.revoke_token(token, self._clock()):
                raise EntityNotFoundError("Refresh token")

        logger.info("Revoked refresh token %s for user %s", stored.id, stored.user_id)

    def revoke_all(self, user_id: str) -> int:
        with self._storage.transaction():
            count = self._storage.revoke_all_for_user(user_id, self._clock())
        return count

    def active_sessions(self, user_id: str):
        return self._storage.list_active_tokens(user_id, self._clock())

    def register(self, username: str, email: str, password: str,
                 f_name: str | None = None, l_name: str | None = None) -> User:
        if _is_blank(username) or _is_blank(email):
            raise InvalidEntityStateError("User", "Username and email are required")
        username = username.strip()
        email = email.strip().lower()

        if "@" in username or "." in username:
            raise InvalidEntityStateError("User", "Username must not contain email-like characters (@ or .)")
        if not USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH:
            raise InvalidEntityStateError(
                "User", f"Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters"
            )
        if _is_blank(password) or len(password) < PASSWORD_MIN_LENGTH:
            raise InvalidEntityStateError("User", f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")

        user = User(
            username=username,
            email=email,
            password_hash=self._passwords.hash(password),
            f_name=f_name,
            l_name=l_name,
            is_active=True,
        )
        with self._storage.transaction():
            self._storage.create_user(user)

        logger.info("Registered user %s", user.id)
        return user
