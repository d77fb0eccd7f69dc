"""
Environment-aware configuration.
Values come from the environment (a .env file is read if present) with
development-friendly defaults. Token lifetimes are timedeltas.
"""
import os
from dotenv import load_dotenv
from datetime import timedelta

load_dotenv()  # Read .env if present

DEV_JWT_SECRET = "dev-secret-change-me-to-at-least-32-bytes"


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///auth.db")

    # jwt configurations
    JWT_SECRET = os.getenv("JWT_SECRET", DEV_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "session-auth-api")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "session-auth-clients")
    ACCESS_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("ACCESS_TOKEN_EXPIRES_SECONDS", "3600")))
    REFRESH_TOKEN_EXPIRES = timedelta(seconds=int(os.getenv("REFRESH_TOKEN_EXPIRES_SECONDS", str(7 * 24 * 3600))))

    # failed login/refresh attempts sleep a random time in this range
    AUTH_FAILURE_DELAY_MIN_MS = int(os.getenv("AUTH_FAILURE_DELAY_MIN_MS", "100"))
    AUTH_FAILURE_DELAY_MAX_MS = int(os.getenv("AUTH_FAILURE_DELAY_MAX_MS", "300"))

    # argon2 parameters; None keeps argon2-cffi's defaults
    ARGON2_TIME_COST = int(os.environ["ARGON2_TIME_COST"]) if os.getenv("ARGON2_TIME_COST") else None
    ARGON2_MEMORY_COST = int(os.environ["ARGON2_MEMORY_COST"]) if os.getenv("ARGON2_MEMORY_COST") else None
    ARGON2_PARALLELISM = int(os.environ["ARGON2_PARALLELISM"]) if os.getenv("ARGON2_PARALLELISM") else None

    @classmethod
    def validate(cls):
        pass


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    APP_ENV = "test"
    DATABASE_URL = "sqlite://"
    JWT_SECRET = "test-secret-key-for-testing-only-0123456789"
    ARGON2_TIME_COST = 1
    ARGON2_MEMORY_COST = 1024
    ARGON2_PARALLELISM = 1


class ProductionConfig(BaseConfig):
    DEBUG = False

    @classmethod
    def validate(cls):
        if cls.JWT_SECRET == DEV_JWT_SECRET or len(cls.JWT_SECRET) < 32:
            raise RuntimeError("JWT_SECRET must be set to a strong value (32+ characters) in production")


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    if name:
        name = name.lower()
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def load_config(name: str | None = None) -> dict:
    """Selected config class as a plain dict (the same keys Flask's from_object keeps)."""
    cls = get_config(name)
    return {key: getattr(cls, key) for key in dir(cls) if key.isupper()}
