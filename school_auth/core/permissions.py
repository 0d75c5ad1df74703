"""
School Auth — Roles and the static role → permission table.

The table is built once at import and exposed read-only; changing it requires a
redeploy. super_admin holds the wildcard and passes every permission check.
"""
from enum import Enum as PyEnum
from types import MappingProxyType
from typing import Iterable, Mapping


class Role(str, PyEnum):
    SUPER_ADMIN = "super_admin"
    SCHOOL_ADMIN = "school_admin"
    TEACHER = "teacher"
    STUDENT = "student"
    PARENT = "parent"


WILDCARD = "*"

ROLE_PERMISSIONS: Mapping[Role, frozenset[str]] = MappingProxyType(
    {
        Role.SUPER_ADMIN: frozenset({WILDCARD}),
        Role.SCHOOL_ADMIN: frozenset(
            {"manage_school", "manage_users", "manage_classes", "view_reports"}
        ),
        Role.TEACHER: frozenset(
            {"manage_classes", "manage_lessons", "manage_quizzes", "view_students"}
        ),
        Role.STUDENT: frozenset({"view_grades", "take_quizzes", "view_assignments"}),
        Role.PARENT: frozenset({"view_child_progress", "view_grades", "view_assignments"}),
    }
)


def permissions_for(role: Role | str) -> frozenset[str]:
    """Return the permission set of a role; unknown roles get an empty set."""
    try:
        return ROLE_PERMISSIONS[Role(role)]
    except ValueError:
        return frozenset()


def has_permission(role: Role | str, permission: str) -> bool:
    granted = permissions_for(role)
    return WILDCARD in granted or permission in granted


def normalize_roles(roles: Iterable[Role | str | Iterable[Role | str]]) -> frozenset[Role]:
    """Flatten role arguments (single roles or lists of roles) into a set of Role members."""
    flat: set[Role] = set()
    for item in roles:
        if isinstance(item, (Role, str)):
            flat.add(Role(item))
        else:
            flat.update(Role(r) for r in item)
    return frozenset(flat)


def has_role(role: Role | str, allowed: frozenset[Role]) -> bool:
    try:
        return Role(role) in allowed
    except ValueError:
        return False
