"""
Exams API: public listing; the course instructor (or an admin) creates and manages exams.
"""
from fastapi import APIRouter, Depends

from school_api.api.deps import (
    fails_with,
    get_course_service,
    get_exam_service,
    get_pagination,
    require_fields,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.schemas.auth import CurrentUser
from school_api.schemas.courses import ExamRequest
from school_api.services.authz import ensure_can_mutate, owner_id_of
from school_api.services.courses import CourseService
from school_api.services.exams import ExamFilters, ExamService
from school_api.services.validation import Pagination

router = APIRouter(prefix="/api/exams", tags=["exams"])


def _exam_owner(exam: dict) -> str | None:
    return ((exam.get("course") or {}).get("instructor") or {}).get("id")


@router.get("/health")
def exams_health():
    return send_success("Service is healthy")


@router.get("")
@fails_with("Failed to get exams")
def list_exams(page: Pagination = Depends(get_pagination), exams: ExamService = Depends(get_exam_service)):
    filters = ExamFilters()
    return send_paginated(
        "Exams retrieved successfully",
        exams.list(page.limit, page.offset, filters),
        page.page, page.limit, exams.count(filters),
    )


@router.get("/upcoming")
@fails_with("Failed to get upcoming exams")
def upcoming_exams(page: Pagination = Depends(get_pagination), exams: ExamService = Depends(get_exam_service)):
    return send_paginated(
        "Upcoming exams retrieved successfully",
        exams.upcoming(page.limit, page.offset),
        page.page, page.limit, exams.count_upcoming(),
    )


@router.get("/course/{course_id}")
@fails_with("Failed to get exams")
def course_exams(
    course_id: str,
    page: Pagination = Depends(get_pagination),
    exams: ExamService = Depends(get_exam_service),
):
    filters = ExamFilters(course_id=course_id)
    return send_paginated(
        "Exams retrieved successfully",
        exams.list(page.limit, page.offset, filters),
        page.page, page.limit, exams.count(filters),
    )


@router.post("")
@fails_with("Failed to create exam")
def create_exam(
    data: ExamRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    exams: ExamService = Depends(get_exam_service),
    courses: CourseService = Depends(get_course_service),
):
    payload = data.model_dump()
    require_fields(payload, ("title", "date", "courseId", "questions"))
    course = courses.require(data.courseId, "Course not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(course, "instructor"), "exams.create",
                      "You can only create exams for your own courses")
    return send_created("Exam created successfully", exams.create(payload, data.courseId))


@router.get("/{exam_id}")
@fails_with("Failed to get exam")
def get_exam(exam_id: str, exams: ExamService = Depends(get_exam_service)):
    return send_success("Exam retrieved successfully", exams.require(exam_id, "Exam not found"))


@router.put("/{exam_id}")
@fails_with("Failed to update exam")
def update_exam(
    exam_id: str,
    data: ExamRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    exams: ExamService = Depends(get_exam_service),
):
    exam = exams.require(exam_id, "Exam not found")
    ensure_can_mutate(user.role, user.id, _exam_owner(exam), "exams.update", "You can only update exams for your own courses")
    return send_success("Exam updated successfully", exams.update_exam(exam_id, data.model_dump(exclude_none=True)))


@router.delete("/{exam_id}")
@fails_with("Failed to delete exam")
def delete_exam(
    exam_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    exams: ExamService = Depends(get_exam_service),
):
    exam = exams.require(exam_id, "Exam not found")
    ensure_can_mutate(user.role, user.id, _exam_owner(exam), "exams.delete", "You can only delete exams for your own courses")
    exams.delete(exam_id)
    return send_success("Exam deleted successfully")
