# services/roles.py
"""Who may do what.

Every Permission must be mapped for every Role; adding a Role or a
Permission without extending PERMISSIONS fails at import time.
"""

from __future__ import annotations

import enum
from typing import Dict, FrozenSet

from models.user import Role, User
from services.errors import NotAuthorized


class Permission(enum.Enum):
    REGISTER = "register"
    DROP = "drop"
    VIEW_TRANSCRIPT = "view_transcript"
    GRADE = "grade"
    MANAGE_ASSESSMENTS = "manage_assessments"
    MANAGE_SECTIONS = "manage_sections"


PERMISSIONS: Dict[Role, FrozenSet[Permission]] = {
    Role.STUDENT: frozenset({
        Permission.REGISTER,
        Permission.DROP,
        Permission.VIEW_TRANSCRIPT,
    }),
    Role.TEACHER: frozenset({
        Permission.GRADE,
        Permission.MANAGE_ASSESSMENTS,
    }),
    Role.STAFF: frozenset({
        Permission.GRADE,
        Permission.MANAGE_ASSESSMENTS,
        Permission.MANAGE_SECTIONS,
    }),
}

_unmapped = set(Role) - set(PERMISSIONS)
if _unmapped:
    raise RuntimeError(f"Roles without a permission entry: {sorted(r.value for r in _unmapped)}")

_granted = set().union(*PERMISSIONS.values())
if _granted != set(Permission):
    raise RuntimeError(f"Permissions granted to no role: {sorted(p.value for p in set(Permission) - _granted)}")


def allowed(role: Role, permission: Permission) -> bool:
    return permission in PERMISSIONS[role]


def require(user: User, permission: Permission) -> None:
    if user is None or not allowed(user.role, permission):
        raise NotAuthorized(f"Not allowed to {permission.value.replace('_', ' ')}.")


def require_section_teacher(user: User, section) -> None:
    """Grading a section: its own teacher, or staff."""
    require(user, Permission.GRADE)
    if user.role is Role.TEACHER and section.teacher_id != user.id:
        raise NotAuthorized("This section is not assigned to you.")
