"""Credential issuance and refresh-token lifecycle services."""
from services.auth import AuthResult, AuthService, GENERIC_AUTH_FAILURE
from services.tokens import TokenService

__all__ = ["AuthResult", "AuthService", "GENERIC_AUTH_FAILURE", "TokenService"]
