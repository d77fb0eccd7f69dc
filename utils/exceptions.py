"""
Error taxonomy shared by the storage and service layers.

The core only raises these; api/errors.py decides how they look over HTTP.
"""
from __future__ import annotations


class DomainError(Exception):
    """Base class for expected, user-facing failures."""

    error_code = "DOMAIN_ERROR"
    default_message = "The request could not be processed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthorizedError(DomainError):
    error_code = "UNAUTHORIZED"
    default_message = "You are not authorized to perform this action."


class EntityNotFoundError(DomainError):
    error_code = "NOT_FOUND"

    def __init__(self, entity_name: str, message: str | None = None):
        self.entity_name = entity_name
        super().__init__(message or f"{entity_name} was not found.")


class InvalidEntityStateError(DomainError):
    error_code = "INVALID_ENTITY_STATE"

    def __init__(self, entity_name: str, message: str | None = None):
        self.entity_name = entity_name
        super().__init__(message or f"The {entity_name} is in an invalid state for this operation.")


class DuplicateEntityError(DomainError):
    error_code = "CONFLICT"

    def __init__(self, entity_name: str, property_name: str, value):
        self.entity_name = entity_name
        self.property_name = property_name
        self.value = value
        super().__init__(f"A {entity_name} with the same {property_name} '{value}' already exists.")


class InternalError(Exception):
    """Infrastructure or signing failure; never shown verbatim to clients."""

    error_code = "INTERNAL_ERROR"
