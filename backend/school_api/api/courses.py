"""
Courses API: public catalog, instructor management, enrollment and lesson progress.
"""
from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    check,
    fails_with,
    get_course_service,
    get_current_user,
    get_pagination,
    get_user_service,
    require_permission,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest, Forbidden, NotFound
from school_api.schemas.auth import CurrentUser
from school_api.schemas.courses import CourseRequest, ProgressRequest
from school_api.services.authz import ensure_can_mutate, is_admin, owner_id_of
from school_api.services.courses import CourseFilters, CourseService, EnrollmentFilters
from school_api.services.users import UserService
from school_api.services.validation import Pagination, validate_course_creation

router = APIRouter(prefix="/api/courses", tags=["courses"])


def _get_course(courses: CourseService, course_id: str) -> dict:
    return courses.require(course_id, "Course not found")


@router.get("/health")
def courses_health():
    return send_success("Course service is healthy")


@router.get("")
@fails_with("Failed to get courses")
def list_courses(
    category: str | None = Query(None),
    instructorId: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    courses: CourseService = Depends(get_course_service),
):
    filters = CourseFilters(category=category, instructor_id=instructorId, is_active=True)
    return send_paginated(
        "Courses retrieved successfully",
        courses.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.count(filters),
    )


@router.get("/search")
@fails_with("Failed to search courses")
def search_courses(
    q: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    courses: CourseService = Depends(get_course_service),
):
    if not (q or "").strip():
        raise BadRequest("Search term is required")
    filters = CourseFilters(search=q, is_active=True)
    return send_paginated(
        "Courses retrieved successfully",
        courses.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.count(filters),
    )


@router.get("/student/enrollments")
@fails_with("Failed to get enrollments")
def my_enrollments(
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(get_current_user),
    courses: CourseService = Depends(get_course_service),
):
    if not user.hygraph_id:
        return send_paginated("Enrollments retrieved successfully", [], page.page, page.limit, 0)
    filters = EnrollmentFilters(student_id=user.hygraph_id)
    return send_paginated(
        "Enrollments retrieved successfully",
        courses.enrollments.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.enrollments.count(filters),
    )


@router.get("/instructor/my-courses")
@fails_with("Failed to get instructor courses")
def my_courses(
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
):
    filters = CourseFilters(instructor_id=user.id)
    return send_paginated(
        "Instructor courses retrieved successfully",
        courses.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.count(filters),
    )


@router.get("/instructor/{instructor_id}")
@fails_with("Failed to get instructor courses")
def instructor_courses(
    instructor_id: str,
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
):
    filters = CourseFilters(instructor_id=instructor_id)
    return send_paginated(
        "Instructor courses retrieved successfully",
        courses.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.count(filters),
    )


@router.get("/admin/stats")
@fails_with("Failed to get course statistics")
def course_stats(user: CurrentUser = Depends(require_teacher_or_admin), courses: CourseService = Depends(get_course_service)):
    """Admins see platform totals; teachers see their own courses."""
    instructor_id = None if is_admin(user.role) else user.id
    return send_success("Course statistics retrieved successfully", courses.get_stats(instructor_id))


@router.put("/enrollments/{enrollment_id}/progress")
@fails_with("Failed to update progress")
def update_progress(
    enrollment_id: str,
    data: ProgressRequest,
    user: CurrentUser = Depends(get_current_user),
    courses: CourseService = Depends(get_course_service),
):
    if not (data.lessonId or "").strip():
        raise BadRequest("Lesson ID is required")
    enrollment = courses.enrollments.require(enrollment_id, "Enrollment not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(enrollment, "student"), "enrollments.update",
                      "You can only update your own enrollments")
    updated = courses.update_progress(enrollment, data.lessonId.strip())
    return send_success("Progress updated successfully", updated)


@router.post("")
@fails_with("Failed to create course")
def create_course(
    data: CourseRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
    users: UserService = Depends(get_user_service),
):
    payload = data.model_dump()
    check(validate_course_creation(payload))
    instructor_id = data.instructorId if (data.instructorId and is_admin(user.role)) else user.hygraph_id
    instructor = users.get_by_id(instructor_id) if instructor_id else None
    if not instructor:
        raise NotFound("Instructor not found")
    created = courses.create(payload, instructor)
    return send_created("Course created successfully", created)


@router.get("/{course_id}")
@fails_with("Failed to get course")
def get_course(course_id: str, courses: CourseService = Depends(get_course_service)):
    return send_success("Course retrieved successfully", _get_course(courses, course_id))


@router.post("/{course_id}/enroll")
@fails_with("Failed to enroll in course")
def enroll(
    course_id: str,
    user: CurrentUser = Depends(require_permission("courses.enroll")),
    courses: CourseService = Depends(get_course_service),
    users: UserService = Depends(get_user_service),
):
    student = users.get_by_id(user.hygraph_id) if user.hygraph_id else None
    enrollment = courses.enroll(student, course_id)
    return send_created("Successfully enrolled in course", enrollment)


@router.put("/{course_id}")
@fails_with("Failed to update course")
def update_course(
    course_id: str,
    data: CourseRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
):
    course = _get_course(courses, course_id)
    ensure_can_mutate(user.role, user.id, owner_id_of(course, "instructor"), "courses.update",
                      "You can only update your own courses")
    changes = data.model_dump(exclude_none=True)
    check(validate_course_creation({**course, **changes}))
    return send_success("Course updated successfully", courses.update_course(course_id, changes))


@router.delete("/{course_id}")
@fails_with("Failed to delete course")
def delete_course(
    course_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
):
    course = _get_course(courses, course_id)
    ensure_can_mutate(user.role, user.id, owner_id_of(course, "instructor"), "courses.delete",
                      "You can only delete your own courses")
    courses.delete(course_id)
    return send_success("Course deleted successfully")


@router.get("/{course_id}/enrollments")
@fails_with("Failed to get course enrollments")
def course_enrollments(
    course_id: str,
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(require_teacher_or_admin),
    courses: CourseService = Depends(get_course_service),
):
    course = _get_course(courses, course_id)
    if not is_admin(user.role) and owner_id_of(course, "instructor") != user.id:
        raise Forbidden("You can only view enrollments for your own courses")
    filters = EnrollmentFilters(course_id=course_id)
    return send_paginated(
        "Course enrollments retrieved successfully",
        courses.enrollments.list(page.limit, page.offset, filters),
        page.page, page.limit, courses.enrollments.count(filters),
    )
