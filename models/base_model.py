#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the auth models.

- UUID primary key (String(36)) with a Python-side default
- created_at / updated_at timestamps, stored as naive UTC

Notes:
- Timestamps use Python-side defaults (utcnow) rather than func.now() so that
  expiry comparisons made by the services see the same clock as the rows.
"""

from __future__ import annotations

import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base

from utils.timeutils import utcnow

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at.
    Persistence goes through DBStorage; models never commit themselves.
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        id and created_at are filled eagerly so unpersisted records are usable.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()
        if getattr(self, "created_at", None) is None:
            self.created_at = utcnow()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"
