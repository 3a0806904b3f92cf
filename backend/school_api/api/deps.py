"""
Shared dependencies: Hygraph client and services, get_current_user from the Clerk Bearer token,
role gates, pagination, and the per-operation failure wrapper used by every router.
Order on protected routes: authenticate -> role gate -> validate body -> ownership -> service.
"""
import functools
import logging

from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from school_api.config import settings
from school_api.errors import ApiError, BadRequest, Forbidden, ServerError, Unauthorized, ValidationFailed
from school_api.schemas.auth import CurrentUser
from school_api.schemas.common import UserRole
from school_api.services import clerk
from school_api.services.assignments import AssignmentService
from school_api.services.authz import ADMIN_ROLES, ALL_ROLES, TEACHER_OR_ADMIN, has_permission
from school_api.services.blog import BlogService
from school_api.services.courses import CourseService
from school_api.services.events import EventService
from school_api.services.exams import ExamService
from school_api.services.forum import ForumService
from school_api.services.hygraph import HygraphClient, get_hygraph_client
from school_api.services.support_tickets import SupportTicketService
from school_api.services.users import UserService
from school_api.services.validation import Pagination, missing_fields, validate_pagination

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)


def get_hygraph() -> HygraphClient:
    return get_hygraph_client()


def get_user_service(client: HygraphClient = Depends(get_hygraph)) -> UserService:
    return UserService(client)


def get_course_service(client: HygraphClient = Depends(get_hygraph)) -> CourseService:
    return CourseService(client)


def get_assignment_service(client: HygraphClient = Depends(get_hygraph)) -> AssignmentService:
    return AssignmentService(client)


def get_exam_service(client: HygraphClient = Depends(get_hygraph)) -> ExamService:
    return ExamService(client)


def get_blog_service(client: HygraphClient = Depends(get_hygraph)) -> BlogService:
    return BlogService(client)


def get_event_service(client: HygraphClient = Depends(get_hygraph)) -> EventService:
    return EventService(client)


def get_forum_service(client: HygraphClient = Depends(get_hygraph)) -> ForumService:
    return ForumService(client)


def get_support_ticket_service(client: HygraphClient = Depends(get_hygraph)) -> SupportTicketService:
    return SupportTicketService(client)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    users: UserService = Depends(get_user_service),
) -> CurrentUser:
    """Require a valid Clerk Bearer token; resolve role and Hygraph id once. 401 on missing/invalid token."""
    if settings.dev_bypass_active:
        return CurrentUser(uid=settings.clerk_dev_user_id, email=settings.clerk_dev_user_email, role=UserRole.ADMIN)
    token = (getattr(credentials, "credentials", None) or "").strip() if credentials else ""
    if not token:
        logger.debug("Auth failed: no Bearer token in request")
        raise Unauthorized("Access token is missing")
    claims = clerk.verify_token(token)
    if not claims:
        logger.debug("Auth failed: invalid or expired token")
        raise Unauthorized("Invalid or expired token")
    uid = claims["sub"]
    record = users.get_by_uid(uid)
    if not record:
        # No profile yet: treated as a student until POST /api/users/profile creates one.
        return CurrentUser(uid=uid, email=claims.get("email"), role=UserRole.STUDENT)
    if record.get("isActive") is False:
        raise Forbidden("Account is deactivated")
    return CurrentUser(
        uid=uid,
        email=claims.get("email") or record.get("email"),
        role=UserRole.parse(record.get("role")) or UserRole.STUDENT,
        hygraph_id=record.get("id"),
        display_name=record.get("displayName"),
    )


def require_roles(*roles: UserRole):
    allowed = frozenset(roles)

    def _gate(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in allowed:
            raise Forbidden("Insufficient permissions")
        return user

    return _gate


def require_permission(permission: str):
    def _gate(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not has_permission(user.role, permission):
            raise Forbidden("Insufficient permissions")
        return user

    return _gate


require_auth = require_roles(*ALL_ROLES)
require_admin = require_roles(*ADMIN_ROLES)
require_teacher_or_admin = require_roles(*TEACHER_OR_ADMIN)


def get_pagination(page: str | None = Query(None), limit: str | None = Query(None)) -> Pagination:
    """page>=1, 1<=limit<=100; defaults 1 and 10. 400 otherwise."""
    return validate_pagination(page, limit)


def check(errors: list[str]) -> None:
    """Raise the 400 validation envelope when any rule failed."""
    if errors:
        raise ValidationFailed(errors)


def require_fields(data: dict, fields: tuple[str, ...]) -> None:
    if missing_fields(data, fields):
        raise BadRequest(f"Missing required fields: {', '.join(fields)}")


def fails_with(message: str):
    """
    Route wrapper: ApiErrors pass through; anything else is logged and answered with
    500 {success: false, message}. The exception text is only exposed when DEBUG is on.
    """

    def decorator(fn):
        @functools.wraps(fn)
        def wrapper(*args, **kwargs):
            try:
                return fn(*args, **kwargs)
            except ApiError:
                raise
            except Exception as e:
                logger.exception("%s: %s", message, e)
                error = f"{type(e).__name__}: {e}" if settings.debug else None
                raise ServerError(message, error=error) from e

        return wrapper

    return decorator
