"""
Course assignments. Owned by the teacher who created them.
"""
from dataclasses import dataclass

from school_api.services.operations import ASSIGNMENT
from school_api.services.resource import HygraphResource, connect, utc_now_iso


@dataclass
class AssignmentFilters:
    course_id: str | None = None
    teacher_id: str | None = None
    is_published: bool | None = None


class AssignmentService(HygraphResource):
    model = ASSIGNMENT

    def build_where(self, filters: AssignmentFilters) -> dict:
        where: dict = {}
        if filters.course_id:
            where["course"] = {"id": filters.course_id}
        if filters.teacher_id:
            where["teacher"] = {"id": filters.teacher_id}
        if filters.is_published is not None:
            where["isPublished"] = filters.is_published
        return where

    def create(self, data: dict, course_id: str, teacher_id: str) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "description": data["description"].strip(),
            "instructions": data["instructions"].strip(),
            "dueDate": data["dueDate"],
            "maxPoints": int(data["maxPoints"]),
            "isPublished": data.get("isPublished") is not False,
            "course": connect(course_id),
            "teacher": connect(teacher_id),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_assignment(self, assignment_id: str, data: dict) -> dict:
        allowed = ("title", "description", "instructions", "dueDate", "maxPoints", "isPublished")
        changes = {k: data[k] for k in allowed if data.get(k) is not None}
        changes["dateUpdated"] = utc_now_iso()
        return self.update(assignment_id, changes)
