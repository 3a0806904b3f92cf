"""
Course, enrollment, assignment and exam request schemas.
"""
from typing import Any

from pydantic import BaseModel


class CourseRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    syllabus: str | None = None
    category: str | None = None
    duration: int | None = None
    maxStudents: int | None = None
    isActive: bool | None = None
    # Admins may create a course on behalf of an instructor.
    instructorId: str | None = None


class ProgressRequest(BaseModel):
    lessonId: str | None = None


class AssignmentRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    instructions: str | None = None
    dueDate: str | None = None
    maxPoints: int | None = None
    isPublished: bool | None = None
    courseId: str | None = None


class ExamRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    date: str | None = None
    startTime: str | None = None
    durationMinutes: int | None = None
    totalPoints: int | None = None
    questions: Any = None
    courseId: str | None = None
