"""
Assignments API: public listing by course; teachers create and manage assignments for their own courses.
"""
from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    check,
    fails_with,
    get_assignment_service,
    get_course_service,
    get_pagination,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest
from school_api.schemas.auth import CurrentUser
from school_api.schemas.courses import AssignmentRequest
from school_api.services.assignments import AssignmentFilters, AssignmentService
from school_api.services.authz import ensure_can_mutate, owner_id_of
from school_api.services.courses import CourseService
from school_api.services.validation import Pagination, validate_assignment_creation

router = APIRouter(prefix="/api/assignments", tags=["assignments"])


def _paginated(assignments: AssignmentService, filters: AssignmentFilters, page: Pagination):
    return send_paginated(
        "Assignments retrieved successfully",
        assignments.list(page.limit, page.offset, filters),
        page.page, page.limit, assignments.count(filters),
    )


@router.get("/health")
def assignments_health():
    return send_success("Assignment service is healthy")


@router.get("")
@fails_with("Failed to get assignments")
def list_assignments(
    courseId: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    assignments: AssignmentService = Depends(get_assignment_service),
):
    return _paginated(assignments, AssignmentFilters(course_id=courseId, is_published=True), page)


@router.get("/course/{course_id}")
@fails_with("Failed to get assignments")
def course_assignments(
    course_id: str,
    page: Pagination = Depends(get_pagination),
    assignments: AssignmentService = Depends(get_assignment_service),
):
    return _paginated(assignments, AssignmentFilters(course_id=course_id, is_published=True), page)


@router.get("/my/assignments")
@fails_with("Failed to get assignments")
def my_assignments(
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(require_teacher_or_admin),
    assignments: AssignmentService = Depends(get_assignment_service),
):
    return _paginated(assignments, AssignmentFilters(teacher_id=user.id), page)


@router.post("")
@fails_with("Failed to create assignment")
def create_assignment(
    data: AssignmentRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    assignments: AssignmentService = Depends(get_assignment_service),
    courses: CourseService = Depends(get_course_service),
):
    payload = data.model_dump()
    check(validate_assignment_creation(payload))
    if not data.courseId:
        raise BadRequest("Course ID is required")
    course = courses.require(data.courseId, "Course not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(course, "instructor"), "assignments.create",
                      "You can only create assignments for your own courses")
    created = assignments.create(payload, data.courseId, user.id)
    return send_created("Assignment created successfully", created)


@router.get("/{assignment_id}")
@fails_with("Failed to get assignment")
def get_assignment(assignment_id: str, assignments: AssignmentService = Depends(get_assignment_service)):
    return send_success("Assignment retrieved successfully", assignments.require(assignment_id, "Assignment not found"))


@router.put("/{assignment_id}")
@fails_with("Failed to update assignment")
def update_assignment(
    assignment_id: str,
    data: AssignmentRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    assignments: AssignmentService = Depends(get_assignment_service),
):
    assignment = assignments.require(assignment_id, "Assignment not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(assignment, "teacher"), "assignments.update",
                      "You can only update your own assignments")
    changes = data.model_dump(exclude_none=True)
    changes.pop("courseId", None)
    check(validate_assignment_creation(changes, partial=True))
    return send_success("Assignment updated successfully", assignments.update_assignment(assignment_id, changes))


@router.delete("/{assignment_id}")
@fails_with("Failed to delete assignment")
def delete_assignment(
    assignment_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    assignments: AssignmentService = Depends(get_assignment_service),
):
    assignment = assignments.require(assignment_id, "Assignment not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(assignment, "teacher"), "assignments.delete",
                      "You can only delete your own assignments")
    assignments.delete(assignment_id)
    return send_success("Assignment deleted successfully")
