from models.base_model import Base, BaseModel
from sqlalchemy import Boolean, Column, DateTime, Index, String, func


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    f_name = Column(String(50), nullable=True)
    l_name = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login_at = Column(DateTime, nullable=True)

    __table_args__ = (
        Index("ux_users_username_lower", func.lower(username), unique=True),
    )

    def __init__(self, *args, **kwargs):
        kwargs.setdefault("is_active", True)
        super().__init__(*args, **kwargs)

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    def __repr__(self):
        return f"<User {self.username}>"
