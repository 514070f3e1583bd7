"""Admin portal users, roles, and mechanic tasks."""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import Field

from ridersbud.schemas.base_schema import StoredModel


class PermissionLevel(str, Enum):
    NONE = "none"
    VIEW = "view"
    EDIT = "edit"


ADMIN_MODULES = (
    "dashboard", "analytics", "bookings", "catalog", "mechanics",
    "customers", "marketing", "users", "settings", "orders",
)


class Role(StoredModel):
    name: str
    is_editable: bool = True
    description: str = ""
    default_permissions: dict[str, PermissionLevel] = Field(default_factory=dict)


class AdminUser(StoredModel):
    id: str
    email: str
    password: str = ""
    role: str
    permissions: dict[str, PermissionLevel] = Field(default_factory=dict)

    def can(self, module: str, level: PermissionLevel = PermissionLevel.VIEW) -> bool:
        granted = self.permissions.get(module, PermissionLevel.NONE)
        if level == PermissionLevel.EDIT:
            return granted == PermissionLevel.EDIT
        return granted in (PermissionLevel.VIEW, PermissionLevel.EDIT)


class TaskPriority(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Task(StoredModel):
    id: str
    mechanic_id: str
    title: str
    description: Optional[str] = None
    due_date: date
    is_complete: bool = False
    priority: TaskPriority = TaskPriority.MEDIUM
