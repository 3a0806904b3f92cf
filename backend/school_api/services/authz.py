"""
Authorization policy: role levels, the permission matrix, and the single ownership evaluator
every mutating endpoint goes through.
"""
from school_api.errors import Forbidden
from school_api.schemas.common import UserRole

ROLE_LEVELS = {
    UserRole.STUDENT: 1,
    UserRole.TEACHER: 2,
    UserRole.ADMIN: 3,
    UserRole.SUPER_ADMIN: 4,
}

ADMIN_ROLES = frozenset({UserRole.ADMIN, UserRole.SUPER_ADMIN})
TEACHER_OR_ADMIN = frozenset({UserRole.TEACHER, UserRole.ADMIN, UserRole.SUPER_ADMIN})
ALL_ROLES = frozenset(UserRole)

_S, _T, _A, _SA = UserRole.STUDENT, UserRole.TEACHER, UserRole.ADMIN, UserRole.SUPER_ADMIN

PERMISSIONS: dict[str, frozenset[UserRole]] = {
    "users.create": frozenset({_A, _SA}),
    "users.read": frozenset({_S, _T, _A, _SA}),
    "users.update": frozenset({_A, _SA}),
    "users.delete": frozenset({_SA}),
    "users.list": frozenset({_T, _A, _SA}),
    "courses.create": frozenset({_T, _A, _SA}),
    "courses.read": frozenset({_S, _T, _A, _SA}),
    "courses.update": frozenset({_T, _A, _SA}),
    "courses.delete": frozenset({_A, _SA}),
    "courses.enroll": frozenset({_S, _A, _SA}),
    "courses.manage": frozenset({_T, _A, _SA}),
    "assignments.create": frozenset({_T, _A, _SA}),
    "assignments.read": frozenset({_S, _T, _A, _SA}),
    "assignments.update": frozenset({_T, _A, _SA}),
    "assignments.delete": frozenset({_T, _A, _SA}),
    "exams.create": frozenset({_T, _A, _SA}),
    "exams.read": frozenset({_S, _T, _A, _SA}),
    "exams.update": frozenset({_T, _A, _SA}),
    "exams.delete": frozenset({_T, _A, _SA}),
    "events.create": frozenset({_T, _A, _SA}),
    "events.read": frozenset({_S, _T, _A, _SA}),
    "admin.dashboard": frozenset({_A, _SA}),
    "admin.reports": frozenset({_A, _SA}),
    "admin.system": frozenset({_SA}),
}

# Lowest role that may mutate a resource it owns, keyed like the PERMISSIONS prefixes.
# Resources not listed are open to any owner. Route gates, not this table, decide admin-only actions.
OWNER_MIN_ROLE: dict[str, UserRole] = {
    "courses": UserRole.TEACHER,
    "assignments": UserRole.TEACHER,
    "exams": UserRole.TEACHER,
    "events": UserRole.TEACHER,
}


def role_level(role: UserRole | str | None) -> int:
    parsed = role if isinstance(role, UserRole) else UserRole.parse(role)
    return ROLE_LEVELS.get(parsed, 0) if parsed else 0


def has_role_level(role: UserRole | str | None, minimum: UserRole) -> bool:
    return role_level(role) >= ROLE_LEVELS[minimum]


def is_admin(role: UserRole | str | None) -> bool:
    parsed = role if isinstance(role, UserRole) else UserRole.parse(role)
    return parsed in ADMIN_ROLES


def has_permission(role: UserRole | str | None, permission: str) -> bool:
    parsed = role if isinstance(role, UserRole) else UserRole.parse(role)
    return parsed is not None and parsed in PERMISSIONS.get(permission, frozenset())


def can_mutate(role: UserRole | str | None, requester_id: str | None, owner_id: str | None, action: str) -> bool:
    """
    Allow/deny a mutation such as "blog.update" or "events.delete".
    Admins may mutate anything. Everyone else must own the resource and hold the resource's minimum role.
    """
    if is_admin(role):
        return True
    if not requester_id or not owner_id or requester_id != owner_id:
        return False
    resource = action.split(".", 1)[0]
    minimum = OWNER_MIN_ROLE.get(resource)
    return minimum is None or has_role_level(role, minimum)


def ensure_can_mutate(role, requester_id: str | None, owner_id: str | None, action: str, message: str) -> None:
    if not can_mutate(role, requester_id, owner_id, action):
        raise Forbidden(message)


def owner_id_of(record: dict | None, relation: str) -> str | None:
    """Id of the user referenced by `relation` (author, eventCreator, instructor, teacher, user)."""
    ref = (record or {}).get(relation) or {}
    return ref.get("id") if isinstance(ref, dict) else None
