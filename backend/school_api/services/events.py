"""
School calendar events: listing/filters, visibility and registration toggles, attendee registration, stats.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone

from school_api.errors import BadRequest, NotFound
from school_api.schemas.common import EventType
from school_api.services.operations import EVENT
from school_api.services.resource import HygraphResource, add_range, connect, utc_now_iso
from school_api.services.validation import parse_datetime


def today_iso() -> str:
    return date.today().isoformat()


@dataclass
class EventFilters:
    event_type: EventType | None = None
    course_id: str | None = None
    creator_id: str | None = None
    is_active: bool | None = None
    is_public: bool | None = None
    requires_registration: bool | None = None
    date_from: str | None = None
    date_to: str | None = None
    location: str | None = None


class EventService(HygraphResource):
    model = EVENT

    def build_where(self, filters: EventFilters) -> dict:
        where: dict = {}
        if filters.event_type:
            where["eventType"] = filters.event_type.value
        if filters.course_id:
            where["course"] = {"id": filters.course_id}
        if filters.creator_id:
            where["eventCreator"] = {"id": filters.creator_id}
        if filters.is_active is not None:
            where["isActive"] = filters.is_active
        if filters.is_public is not None:
            where["isPublic"] = filters.is_public
        if filters.requires_registration is not None:
            where["requiresRegistration"] = filters.requires_registration
        if filters.location:
            where["location_contains"] = filters.location
        add_range(where, "date", filters.date_from, filters.date_to)
        return where

    def create(self, data: dict, creator_id: str) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "description": data["description"],
            "date": data["date"],
            "time": data["time"],
            "location": data.get("location"),
            "eventType": EventType(data["eventType"]).value,
            "isRecurring": bool(data.get("isRecurring", False)),
            "recurrencePattern": data.get("recurrencePattern") if data.get("isRecurring") else None,
            "recurrenceEndDate": data.get("recurrenceEndDate") if data.get("isRecurring") else None,
            "maxAttendees": data.get("maxAttendees"),
            "requiresRegistration": bool(data.get("requiresRegistration", False)),
            "registrationDeadline": data.get("registrationDeadline"),
            "isActive": True,
            "isPublic": bool(data.get("isPublic") or False),
            "eventCreator": connect(creator_id),
            "course": connect(data.get("courseId")),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_event(self, event_id: str, data: dict) -> dict:
        allowed = (
            "title", "description", "date", "time", "location", "eventType", "isRecurring", "recurrencePattern",
            "recurrenceEndDate", "maxAttendees", "requiresRegistration", "registrationDeadline", "isPublic",
        )
        changes = {k: data[k] for k in allowed if data.get(k) is not None}
        if data.get("courseId"):
            changes["course"] = connect(data["courseId"])
        changes["dateUpdated"] = utc_now_iso()
        return self.update(event_id, changes)

    def _set(self, event_id: str, field: str, value) -> dict:
        return self.update(event_id, {field: value, "dateUpdated": utc_now_iso()})

    def set_active(self, event_id: str, is_active: bool) -> dict:
        return self._set(event_id, "isActive", is_active)

    def set_public(self, event_id: str, is_public: bool) -> dict:
        return self._set(event_id, "isPublic", is_public)

    def set_registration_required(self, event_id: str, required: bool) -> dict:
        return self._set(event_id, "requiresRegistration", required)

    def set_registration_deadline(self, event_id: str, deadline: str) -> dict:
        return self._set(event_id, "registrationDeadline", deadline)

    def upcoming(self, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, EventFilters(is_active=True, date_from=today_iso()))

    def public(self, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, EventFilters(is_active=True, is_public=True))

    def by_type(self, event_type: EventType, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, EventFilters(event_type=event_type, is_active=True))

    def by_date_range(self, start: str, end: str, limit: int = 100) -> list[dict]:
        return self.list(limit, 0, EventFilters(is_active=True, date_from=start, date_to=end))

    def requiring_registration(self, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, EventFilters(is_active=True, requires_registration=True, date_from=today_iso()))

    def by_course(self, course_id: str, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.list(limit, offset, EventFilters(course_id=course_id))

    def register(self, event_id: str, attendee_id: str, now: datetime | None = None) -> dict:
        event = self.get_by_id(event_id)
        if not event:
            raise NotFound("Event not found")
        if not event.get("isActive"):
            raise BadRequest("Event is not active")
        attendees = event.get("attendees") or []
        if any(a.get("id") == attendee_id for a in attendees):
            return event
        if event.get("requiresRegistration"):
            deadline = parse_datetime(event.get("registrationDeadline"))
            if deadline and deadline < (now or datetime.now(timezone.utc)):
                raise BadRequest("Registration deadline has passed")
            max_attendees = event.get("maxAttendees")
            if max_attendees and len(attendees) >= int(max_attendees):
                raise BadRequest("Event is full")
        return self.update(event_id, {"attendees": {"connect": [{"where": {"id": attendee_id}}]}})

    def cancel_registration(self, event_id: str, attendee_id: str) -> dict:
        if not self.get_by_id(event_id):
            raise NotFound("Event not found")
        return self.update(event_id, {"attendees": {"disconnect": [{"id": attendee_id}]}})

    def _stats(self, base: EventFilters, include_registration: bool = False) -> dict:
        stats = {
            "totalEvents": self.count(base),
            "activeEvents": self.count(replace(base, is_active=True)),
            "upcomingEvents": self.count(replace(base, is_active=True, date_from=today_iso())),
            "eventsByType": {t.value: self.count(replace(base, event_type=t)) for t in EventType},
        }
        if base.course_id is None:
            stats["publicEvents"] = self.count(replace(base, is_public=True))
        if include_registration:
            stats["eventsRequiringRegistration"] = self.count(replace(base, requires_registration=True, is_active=True))
        return stats

    def get_stats(self) -> dict:
        return self._stats(EventFilters(), include_registration=True)

    def get_creator_stats(self, creator_id: str) -> dict:
        return self._stats(EventFilters(creator_id=creator_id))

    def get_course_stats(self, course_id: str) -> dict:
        return self._stats(EventFilters(course_id=course_id))
