"""
Audit trail models.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Roles issued by the external authorization layer."""

    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


class Actor(BaseModel):
    """
    Authenticated identity performing an operation.

    Supplied by the authentication layer and trusted as-is for attribution.
    """

    id: int = Field(..., ge=1)
    username: str = Field(..., min_length=1)
    role: Role = Role.EDITOR
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.username} ({self.role.value})"


class ActivityRecord(BaseModel):
    """Append-only audit log entry."""

    id: int
    user_id: Optional[int] = None
    action: str
    entity_type: Optional[str] = None
    entity_id: Optional[int] = None
    old_values: Optional[dict[str, Any]] = None
    new_values: Optional[dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: Optional[datetime] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class ActivityPage(BaseModel):
    """One page of activity records, newest first."""

    logs: list[ActivityRecord] = Field(default_factory=list)
    pagination: Pagination
