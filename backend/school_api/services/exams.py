"""
Course exams. Mutations are allowed to the course instructor and admins.
"""
from dataclasses import dataclass

from school_api.services.operations import EXAM
from school_api.services.resource import HygraphResource, add_range, connect, utc_now_iso


@dataclass
class ExamFilters:
    course_id: str | None = None
    date_from: str | None = None
    date_to: str | None = None


class ExamService(HygraphResource):
    model = EXAM

    def build_where(self, filters: ExamFilters) -> dict:
        where: dict = {}
        if filters.course_id:
            where["course"] = {"id": filters.course_id}
        add_range(where, "date", filters.date_from, filters.date_to)
        return where

    def create(self, data: dict, course_id: str) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "description": data.get("description"),
            "date": data["date"],
            "startTime": data.get("startTime"),
            "durationMinutes": data.get("durationMinutes"),
            "totalPoints": data.get("totalPoints"),
            "questions": data["questions"],
            "course": connect(course_id),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_exam(self, exam_id: str, data: dict) -> dict:
        allowed = ("title", "description", "date", "startTime", "durationMinutes", "totalPoints", "questions")
        changes = {k: data[k] for k in allowed if data.get(k) is not None}
        changes["dateUpdated"] = utc_now_iso()
        return self.update(exam_id, changes)

    def upcoming(self, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, ExamFilters(date_from=utc_now_iso()))

    def count_upcoming(self) -> int:
        return self.count(ExamFilters(date_from=utc_now_iso()))
