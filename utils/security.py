"""
security helpers:
- Argon2 password hashing and verification via argon2-cffi
- Randomized failure delay used by the login/refresh failure paths
"""
from __future__ import annotations

import enum
import logging
import secrets
import time
from typing import Callable

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError, VerifyMismatchError

logger = logging.getLogger(__name__)

_jitter = secrets.SystemRandom()


class PasswordCheck(enum.Enum):
    FAILED = "failed"
    SUCCESS = "success"
    SUCCESS_REHASH_NEEDED = "success_rehash_needed"

    @property
    def ok(self) -> bool:
        return self is not PasswordCheck.FAILED


class PasswordVerifier:
    """
    Wraps an argon2 PasswordHasher.

    A dummy hash is computed once with the same parameters as real hashes so
    that verifying against it costs the same as verifying a real password.
    """

    def __init__(self, time_cost: int | None = None, memory_cost: int | None = None,
                 parallelism: int | None = None):
        kwargs = {}
        if time_cost is not None:
            kwargs["time_cost"] = int(time_cost)
        if memory_cost is not None:
            kwargs["memory_cost"] = int(memory_cost)
        if parallelism is not None:
            kwargs["parallelism"] = int(parallelism)
        self._hasher = PasswordHasher(**kwargs)
        self._dummy_hash = self._hasher.hash(secrets.token_urlsafe(32))

    @classmethod
    def from_config(cls, config) -> "PasswordVerifier":
        return cls(
            time_cost=config.get("ARGON2_TIME_COST"),
            memory_cost=config.get("ARGON2_MEMORY_COST"),
            parallelism=config.get("ARGON2_PARALLELISM"),
        )

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2"""
        return self._hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> PasswordCheck:
        """Verify a plaintext password against an encoded argon2 hash."""
        try:
            self._hasher.verify(password_hash, password)
        except VerifyMismatchError:
            return PasswordCheck.FAILED
        except InvalidHashError:
            logger.warning("Stored password hash could not be parsed")
            return PasswordCheck.FAILED
        except VerificationError:
            return PasswordCheck.FAILED

        if self._hasher.check_needs_rehash(password_hash):
            return PasswordCheck.SUCCESS_REHASH_NEEDED
        return PasswordCheck.SUCCESS

    def verify_dummy(self, password: str) -> PasswordCheck:
        """Burn one verification against the dummy hash; always fails."""
        self.verify(password, self._dummy_hash)
        return PasswordCheck.FAILED


def random_delay(min_ms: int = 100, max_ms: int = 300,
                 sleep: Callable[[float], None] = time.sleep) -> float:
    """Sleep for a uniformly sampled number of milliseconds; returns seconds slept."""
    seconds = _jitter.uniform(min_ms, max_ms) / 1000.0
    sleep(seconds)
    return seconds
