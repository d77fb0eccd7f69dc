"""
RefreshToken model: stores issued refresh token secrets so they can be rotated and revoked.
Fields:
- token (unique) - the opaque bearer secret
- user_id (String(36)) - FK to users.id
- created_at, expires_at
- revoked_at - set once, never cleared; rows are kept for reuse detection
"""
from sqlalchemy import Column, String, DateTime, ForeignKey

from models.base_model import BaseModel, Base
from utils.timeutils import as_naive_utc, utcnow


class RefreshToken(BaseModel, Base):
    __tablename__ = "refresh_tokens"

    token = Column(String(128), nullable=False, unique=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False)
    revoked_at = Column(DateTime, nullable=True)

    def is_expired_at(self, now) -> bool:
        return as_naive_utc(now) >= as_naive_utc(self.expires_at)

    def is_active_at(self, now) -> bool:
        return self.revoked_at is None and not self.is_expired_at(now)

    @property
    def is_expired(self) -> bool:
        return self.is_expired_at(utcnow())

    @property
    def is_active(self) -> bool:
        return self.is_active_at(utcnow())

    def __repr__(self):
        return f"<RefreshToken id={self.id} user={self.user_id}>"
