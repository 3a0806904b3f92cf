"""
Users API: admin account creation (Clerk + Hygraph), self-service profile, lookup, role and activation management.
"""
import logging

from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    check,
    fails_with,
    get_current_user,
    get_pagination,
    get_user_service,
    require_admin,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.config import settings
from school_api.errors import BadRequest, ClerkError, Conflict, Forbidden, NotFound, ServerError
from school_api.schemas.auth import CurrentUser
from school_api.schemas.common import UserRole
from school_api.schemas.users import CreateUserRequest, ProfileRequest, UpdateRoleRequest
from school_api.services import clerk
from school_api.services.users import DEFAULT_PASSWORDS, UserFilters, UserService
from school_api.services.validation import Pagination, validate_user_registration

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/health")
def users_health():
    return send_success("User service is healthy", {
        "hygraphEndpoint": bool(settings.hygraph_endpoint),
        "hygraphToken": bool(settings.hygraph_token),
    })


@router.post("")
@fails_with("Failed to create user")
def create_user(
    data: CreateUserRequest,
    _: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    """Admin: create the Clerk account, then the Hygraph profile."""
    payload = data.model_dump()
    check(validate_user_registration(payload))
    role = UserRole.parse(data.role) or UserRole.STUDENT
    if users.get_by_email(data.email):
        raise Conflict("User with this email already exists")
    password = data.password or DEFAULT_PASSWORDS.get(role, "password123")
    try:
        uid = clerk.create_user(data.email, data.displayName.strip(), password)
    except ClerkError as e:
        logger.error("Clerk create user failed: %s", e)
        raise ServerError("Failed to create user in auth provider")
    created = users.create(uid, data.email, data.displayName, role)
    return send_created("User created successfully", created)


@router.post("/profile")
@fails_with("Failed to create or update profile")
def create_or_update_profile(
    data: ProfileRequest,
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    """Create the caller's profile on first login, or update its display name. Role is never self-assigned."""
    existing = users.get_by_uid(user.uid) or (users.get_by_email(user.email) if user.email else None)
    if existing:
        updated = users.update_profile(existing["id"], data.displayName)
        return send_success("Profile updated successfully", updated)
    created = users.create(user.uid, user.email or "", data.displayName or "New User", UserRole.STUDENT)
    return send_created("Profile created successfully", created)


@router.get("/profile")
@fails_with("Failed to get profile")
def get_profile(user: CurrentUser = Depends(get_current_user), users: UserService = Depends(get_user_service)):
    profile = users.get_by_uid(user.uid)
    if not profile:
        raise NotFound("User profile not found")
    return send_success("Profile retrieved successfully", profile)


@router.put("/profile")
@fails_with("Failed to update profile")
def update_profile(
    data: ProfileRequest,
    user: CurrentUser = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    profile = users.get_by_uid(user.uid)
    if not profile:
        raise NotFound("User profile not found")
    if data.displayName is not None and len(data.displayName.strip()) < 2:
        check(["Display name must be at least 2 characters long"])
    updated = users.update_profile(profile["id"], data.displayName)
    return send_success("Profile updated successfully", updated)


@router.get("/search")
@fails_with("Failed to search users")
def search_users(
    q: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_teacher_or_admin),
    users: UserService = Depends(get_user_service),
):
    if not (q or "").strip():
        raise BadRequest("Search term is required")
    filters = UserFilters(search=q)
    return send_paginated(
        "Users retrieved successfully",
        users.list(page.limit, page.offset, filters),
        page.page, page.limit, users.count(filters),
    )


@router.get("/teachers")
@fails_with("Failed to get teachers")
def list_teachers(
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_teacher_or_admin),
    users: UserService = Depends(get_user_service),
):
    filters = UserFilters(role=UserRole.TEACHER, is_active=True)
    return send_paginated(
        "Teachers retrieved successfully",
        users.list(page.limit, page.offset, filters),
        page.page, page.limit, users.count(filters),
    )


@router.get("/admin/stats")
@fails_with("Failed to get user statistics")
def user_stats(_: CurrentUser = Depends(require_admin), users: UserService = Depends(get_user_service)):
    return send_success("User statistics retrieved successfully", users.get_stats())


@router.get("")
@fails_with("Failed to get users")
def list_users(
    role: str | None = Query(None),
    isActive: bool | None = Query(None),
    search: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    parsed_role = UserRole.parse(role) if role else None
    if role and parsed_role is None:
        raise BadRequest("Invalid role specified")
    filters = UserFilters(role=parsed_role, is_active=isActive, search=search)
    return send_paginated(
        "Users retrieved successfully",
        users.list(page.limit, page.offset, filters),
        page.page, page.limit, users.count(filters),
    )


@router.get("/email/{email}")
@fails_with("Failed to get user")
def get_user_by_email(
    email: str,
    _: CurrentUser = Depends(require_teacher_or_admin),
    users: UserService = Depends(get_user_service),
):
    found = users.get_by_email(email)
    if not found:
        raise NotFound("User not found")
    return send_success("User retrieved successfully", found)


@router.get("/{user_id}")
@fails_with("Failed to get user")
def get_user(
    user_id: str,
    _: CurrentUser = Depends(require_teacher_or_admin),
    users: UserService = Depends(get_user_service),
):
    found = users.get_by_id_or_uid(user_id)
    if not found:
        raise NotFound("User not found")
    return send_success("User retrieved successfully", found)


@router.put("/{user_id}/role")
@fails_with("Failed to update user role")
def update_user_role(
    user_id: str,
    data: UpdateRoleRequest,
    admin: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    role = UserRole.parse(data.role)
    if role is None:
        raise BadRequest("Invalid role specified")
    if role == UserRole.SUPER_ADMIN and admin.role != UserRole.SUPER_ADMIN:
        raise Forbidden("Only a super admin can grant the SUPER_ADMIN role")
    target = users.get_by_id_or_uid(user_id)
    if not target:
        raise NotFound("User not found")
    return send_success("User role updated successfully", users.update_role(target["id"], role))


@router.put("/{user_id}/deactivate")
@fails_with("Failed to deactivate user")
def deactivate_user(
    user_id: str,
    admin: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    if admin.is_self(user_id):
        raise BadRequest("Cannot deactivate your own account")
    target = users.get_by_id_or_uid(user_id)
    if not target:
        raise NotFound("User not found")
    if admin.is_self(target.get("id")) or admin.is_self(target.get("uid")):
        raise BadRequest("Cannot deactivate your own account")
    users.set_active(target["id"], False)
    return send_success("User deactivated successfully")


@router.put("/{user_id}/activate")
@fails_with("Failed to activate user")
def activate_user(
    user_id: str,
    _: CurrentUser = Depends(require_admin),
    users: UserService = Depends(get_user_service),
):
    target = users.get_by_id_or_uid(user_id)
    if not target:
        raise NotFound("User not found")
    users.set_active(target["id"], True)
    return send_success("User activated successfully")
