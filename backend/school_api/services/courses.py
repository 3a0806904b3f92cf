"""
Courses and enrollments.
A course is owned by its instructor; an enrollment links one student to one course and tracks lesson progress.
"""
from dataclasses import dataclass

from school_api.errors import BadRequest, Conflict, NotFound
from school_api.schemas.common import EnrollmentStatus
from school_api.services.hygraph import HygraphClient
from school_api.services.operations import COURSE, ENROLLMENT
from school_api.services.resource import HygraphResource, connect, search_clause, utc_now_iso

DEFAULT_DURATION_WEEKS = 8
DEFAULT_MAX_STUDENTS = 50
# Progress added per completed lesson.
PROGRESS_STEP = 10


@dataclass
class CourseFilters:
    category: str | None = None
    instructor_id: str | None = None
    is_active: bool | None = None
    search: str | None = None


@dataclass
class EnrollmentFilters:
    student_id: str | None = None
    course_id: str | None = None
    status: EnrollmentStatus | None = None
    instructor_id: str | None = None


class EnrollmentService(HygraphResource):
    model = ENROLLMENT

    def build_where(self, filters: EnrollmentFilters) -> dict:
        where: dict = {}
        if filters.student_id:
            where["student"] = {"id": filters.student_id}
        if filters.course_id:
            where["course"] = {"id": filters.course_id}
        elif filters.instructor_id:
            where["course"] = {"instructor": {"id": filters.instructor_id}}
        if filters.status:
            where["enrollmentStatus"] = filters.status.value
        return where


class CourseService(HygraphResource):
    model = COURSE

    def __init__(self, client: HygraphClient):
        super().__init__(client)
        self.enrollments = EnrollmentService(client)

    def build_where(self, filters: CourseFilters) -> dict:
        where: dict = {}
        if filters.category:
            where["category"] = filters.category
        if filters.instructor_id:
            where["instructor"] = {"id": filters.instructor_id}
        if filters.is_active is not None:
            where["isActive"] = filters.is_active
        clause = search_clause(filters.search, ("title", "description", "category", "instructorName"))
        if clause:
            where["OR"] = clause
        return where

    def create(self, data: dict, instructor: dict) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "description": data["description"].strip(),
            "syllabus": data["syllabus"].strip(),
            "category": data["category"].strip(),
            "duration": int(data.get("duration") or DEFAULT_DURATION_WEEKS),
            "maxStudents": int(data.get("maxStudents") or DEFAULT_MAX_STUDENTS),
            "instructorName": instructor.get("displayName"),
            "isActive": data.get("isActive") is not False,
            "instructor": connect(instructor["id"]),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_course(self, course_id: str, data: dict) -> dict:
        allowed = ("title", "description", "syllabus", "category", "duration", "maxStudents", "isActive")
        changes = {k: data[k] for k in allowed if k in data and data[k] is not None}
        changes["dateUpdated"] = utc_now_iso()
        return self.update(course_id, changes)

    def is_enrolled(self, student_id: str | None, course_id: str) -> bool:
        if not student_id:
            return False
        return self.enrollments.count(EnrollmentFilters(student_id=student_id, course_id=course_id)) > 0

    def enroll(self, student: dict | None, course_id: str) -> dict:
        if not student:
            raise NotFound("Student not found")
        course = self.get_by_id(course_id)
        if not course:
            raise NotFound("Course not found")
        if not course.get("isActive"):
            raise BadRequest("Course is not active")
        if self.is_enrolled(student["id"], course_id):
            raise Conflict("Student already enrolled in this course")
        active = self.enrollments.count(EnrollmentFilters(course_id=course_id, status=EnrollmentStatus.ACTIVE))
        if active >= int(course.get("maxStudents") or DEFAULT_MAX_STUDENTS):
            raise BadRequest("Course is full")
        now = utc_now_iso()
        return self.enrollments.create_record({
            "student": connect(student["id"]),
            "course": connect(course_id),
            "enrollmentStatus": EnrollmentStatus.ACTIVE.value,
            "progress": 0,
            "completedLessons": [],
            "isActive": True,
            "enrolledAt": now,
            "lastAccessedAt": now,
        })

    def update_progress(self, enrollment: dict, lesson_id: str) -> dict:
        """Mark a lesson complete: +10% per new lesson, capped at 100; COMPLETED once at 100."""
        lessons = list(enrollment.get("completedLessons") or [])
        progress = int(enrollment.get("progress") or 0)
        if lesson_id not in lessons:
            lessons.append(lesson_id)
            progress = min(progress + PROGRESS_STEP, 100)
        status = EnrollmentStatus.COMPLETED if progress >= 100 else EnrollmentStatus.ACTIVE
        return self.enrollments.update(enrollment["id"], {
            "completedLessons": lessons,
            "progress": progress,
            "enrollmentStatus": status.value,
            "lastAccessedAt": utc_now_iso(),
        })

    def get_stats(self, instructor_id: str | None = None) -> dict:
        course_filters = CourseFilters(instructor_id=instructor_id)
        enrollments = list(self.enrollments.iter_all(EnrollmentFilters(instructor_id=instructor_id)))
        students = {(e.get("student") or {}).get("id") for e in enrollments} - {None}
        total_progress = sum(int(e.get("progress") or 0) for e in enrollments)
        return {
            "totalCourses": self.count(course_filters),
            "activeCourses": self.count(CourseFilters(instructor_id=instructor_id, is_active=True)),
            "totalEnrollments": len(enrollments),
            "totalStudents": len(students),
            "completionRate": round(total_progress / len(enrollments), 2) if enrollments else 0,
        }
