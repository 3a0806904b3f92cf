"""
AppUser records in Hygraph. The Clerk subject id is stored as `uid`; `id` is Hygraph's key.
"""
from dataclasses import dataclass

from school_api.schemas.common import UserRole
from school_api.services.operations import APP_USER
from school_api.services.resource import HygraphResource, search_clause, utc_now_iso

# Initial passwords for admin-created accounts when none is supplied.
DEFAULT_PASSWORDS = {
    UserRole.STUDENT: "student123",
    UserRole.TEACHER: "teacher123",
    UserRole.ADMIN: "admin123",
    UserRole.SUPER_ADMIN: "superadmin123",
}


@dataclass
class UserFilters:
    role: UserRole | None = None
    is_active: bool | None = None
    search: str | None = None


class UserService(HygraphResource):
    model = APP_USER

    def build_where(self, filters: UserFilters) -> dict:
        where: dict = {}
        if filters.role:
            where["role"] = filters.role.value
        if filters.is_active is not None:
            where["isActive"] = filters.is_active
        clause = search_clause(filters.search, ("displayName", "email"))
        if clause:
            where["OR"] = clause
        return where

    def get_by_uid(self, uid: str) -> dict | None:
        return self.find_one({"uid": uid}) if uid else None

    def get_by_email(self, email: str) -> dict | None:
        if not email:
            return None
        return self.find_one({"email": email.strip().lower()})

    def get_by_id_or_uid(self, user_id: str) -> dict | None:
        return self.get_by_id(user_id) or self.get_by_uid(user_id)

    def create(self, uid: str, email: str, display_name: str, role: UserRole = UserRole.STUDENT) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "uid": uid,
            "email": email.strip().lower(),
            "displayName": display_name.strip(),
            "role": role.value,
            "isActive": True,
            "passwordChanged": False,
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_profile(self, user_id: str, display_name: str | None = None) -> dict:
        return self.update(user_id, {"displayName": display_name.strip() if display_name else None, "dateUpdated": utc_now_iso()})

    def update_role(self, user_id: str, role: UserRole) -> dict:
        return self.update(user_id, {"role": role.value, "dateUpdated": utc_now_iso()})

    def set_active(self, user_id: str, active: bool) -> dict:
        return self.update(user_id, {"isActive": active, "dateUpdated": utc_now_iso()})

    def get_stats(self) -> dict:
        by_role = {role.value: self.count(UserFilters(role=role)) for role in UserRole}
        return {
            "totalUsers": self.count(UserFilters()),
            "activeUsers": self.count(UserFilters(is_active=True)),
            "inactiveUsers": self.count(UserFilters(is_active=False)),
            "usersByRole": by_role,
        }
