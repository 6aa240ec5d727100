"""Public schema exports shared across API route modules."""

from taskhub.schemas.common import OkResponse
from taskhub.schemas.tasks import (
    TaskAttachment,
    TaskCreate,
    TaskFilters,
    TaskListResponse,
    TaskRead,
    TaskStats,
    TaskUpdate,
)
from taskhub.schemas.users import UserRead

__all__ = [
    "OkResponse",
    "TaskAttachment",
    "TaskCreate",
    "TaskFilters",
    "TaskListResponse",
    "TaskRead",
    "TaskStats",
    "TaskUpdate",
    "UserRead",
]
