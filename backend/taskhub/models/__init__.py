"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from taskhub.models.documents import StoredDocument
from taskhub.models.users import User

__all__ = [
    "StoredDocument",
    "User",
]
