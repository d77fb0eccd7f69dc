"""Persistence layer: SQLAlchemy models and the DBStorage credential store."""
from models.base_model import Base
from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from models.user import User

__all__ = ["Base", "DBStorage", "RefreshToken", "User"]
