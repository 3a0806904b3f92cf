"""
Events API: public calendar listings, attendee registration, and management by the event creator or an admin.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    fails_with,
    get_course_service,
    get_current_user,
    get_event_service,
    get_pagination,
    require_admin,
    require_fields,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest, Forbidden
from school_api.schemas.auth import CurrentUser
from school_api.schemas.common import EventType, RecurrencePattern
from school_api.schemas.events import ActiveRequest, DeadlineRequest, EventRequest, PublicRequest, RegistrationRequest
from school_api.services.authz import ensure_can_mutate, is_admin, owner_id_of
from school_api.services.courses import CourseService
from school_api.services.events import EventFilters, EventService, today_iso
from school_api.services.validation import Pagination, parse_datetime

router = APIRouter(prefix="/api/events", tags=["events"])

INVALID_EVENT_TYPE = "Invalid event type. Must be one of: " + ", ".join(EventType.values())
INVALID_PATTERN = "Invalid recurrence pattern. Must be one of: " + ", ".join(RecurrencePattern.values())
MANAGE_OWN = "You can only manage your own events"


def _parse_event_type(value: str | None) -> EventType | None:
    if not value:
        return None
    parsed = EventType.parse(value)
    if parsed is None:
        raise BadRequest(INVALID_EVENT_TYPE)
    return parsed


def _check_event_body(data: dict) -> None:
    if data.get("eventType") is not None:
        data["eventType"] = _parse_event_type(data["eventType"]).value
    if data.get("date") is not None and parse_datetime(data["date"]) is None:
        raise BadRequest("Invalid date format. Use YYYY-MM-DD")
    if data.get("isRecurring") and data.get("recurrencePattern") is None:
        raise BadRequest("Recurrence pattern is required when isRecurring is true")
    if data.get("recurrencePattern") is not None:
        pattern = RecurrencePattern.parse(data["recurrencePattern"])
        if pattern is None:
            raise BadRequest(INVALID_PATTERN)
        data["recurrencePattern"] = pattern.value
    if data.get("maxAttendees") is not None and data["maxAttendees"] < 1:
        raise BadRequest("Max attendees must be at least 1")


def _owned_event(events: EventService, event_id: str, user: CurrentUser, action: str, message: str) -> dict:
    event = events.require(event_id, "Event not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(event, "eventCreator"), action, message)
    return event


def _check_course_owner(courses: CourseService, course_id: str, user: CurrentUser, message: str) -> None:
    course = courses.require(course_id, "Course not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(course, "instructor"), "events.create", message)


def _paginated(message: str, events: EventService, rows: list[dict], filters: EventFilters, page: Pagination):
    return send_paginated(message, rows, page.page, page.limit, events.count(filters))


@router.get("/health")
def events_health():
    return send_success("Service is healthy")


@router.get("/upcoming")
@fails_with("Failed to retrieve upcoming events")
def upcoming_events(page: Pagination = Depends(get_pagination), events: EventService = Depends(get_event_service)):
    return _paginated(
        "Upcoming events retrieved successfully", events,
        events.upcoming(page.limit, page.offset), EventFilters(is_active=True, date_from=today_iso()), page,
    )


@router.get("/public")
@fails_with("Failed to retrieve public events")
def public_events(page: Pagination = Depends(get_pagination), events: EventService = Depends(get_event_service)):
    return _paginated(
        "Public events retrieved successfully", events,
        events.public(page.limit, page.offset), EventFilters(is_active=True, is_public=True), page,
    )


@router.get("/type/{event_type}")
@fails_with("Failed to retrieve events by type")
def events_by_type(
    event_type: str,
    page: Pagination = Depends(get_pagination),
    events: EventService = Depends(get_event_service),
):
    parsed = _parse_event_type(event_type)
    return _paginated(
        "Events by type retrieved successfully", events,
        events.by_type(parsed, page.limit, page.offset), EventFilters(event_type=parsed, is_active=True), page,
    )


@router.get("/date-range")
@fails_with("Failed to retrieve events by date range")
def events_by_date_range(
    startDate: str | None = Query(None),
    endDate: str | None = Query(None),
    events: EventService = Depends(get_event_service),
):
    if not startDate or not endDate:
        raise BadRequest("Start date and end date are required")
    start, end = parse_datetime(startDate), parse_datetime(endDate)
    if start is None or end is None:
        raise BadRequest("Invalid date format. Use YYYY-MM-DD")
    if start > end:
        raise BadRequest("Start date must be before end date")
    return send_success("Events by date range retrieved successfully", events.by_date_range(startDate, endDate))


@router.get("/registration-required")
@fails_with("Failed to retrieve events requiring registration")
def registration_required_events(
    page: Pagination = Depends(get_pagination),
    events: EventService = Depends(get_event_service),
):
    filters = EventFilters(is_active=True, requires_registration=True, date_from=today_iso())
    return _paginated(
        "Events requiring registration retrieved successfully", events,
        events.requiring_registration(page.limit, page.offset), filters, page,
    )


@router.get("/course/{course_id}")
@fails_with("Failed to retrieve course events")
def course_events(
    course_id: str,
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
    courses: CourseService = Depends(get_course_service),
):
    """Visible to students enrolled in the course, its instructor and admins."""
    course = courses.require(course_id, "Course not found")
    if not (
        is_admin(user.role)
        or owner_id_of(course, "instructor") == user.id
        or courses.is_enrolled(user.hygraph_id, course_id)
    ):
        raise Forbidden("You can only view events for courses you are enrolled in or teaching")
    return _paginated(
        "Course events retrieved successfully", events,
        events.by_course(course_id, page.limit, page.offset), EventFilters(course_id=course_id), page,
    )


@router.get("/stats/overview")
@fails_with("Failed to retrieve event statistics")
def event_stats(_: CurrentUser = Depends(require_admin), events: EventService = Depends(get_event_service)):
    return send_success("Event statistics retrieved successfully", events.get_stats())


@router.get("/stats/creator")
@fails_with("Failed to retrieve creator event statistics")
def creator_stats(user: CurrentUser = Depends(require_teacher_or_admin), events: EventService = Depends(get_event_service)):
    return send_success("Creator event statistics retrieved successfully", events.get_creator_stats(user.id))


@router.get("/course/{course_id}/stats")
@fails_with("Failed to retrieve course event statistics")
def course_event_stats(
    course_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
    courses: CourseService = Depends(get_course_service),
):
    course = courses.require(course_id, "Course not found")
    if not is_admin(user.role) and owner_id_of(course, "instructor") != user.id:
        raise Forbidden("You can only view statistics for your own courses")
    return send_success("Course event statistics retrieved successfully", events.get_course_stats(course_id))


@router.get("")
@fails_with("Failed to retrieve events")
def list_events(
    eventType: str | None = Query(None),
    dateFrom: str | None = Query(None),
    dateTo: str | None = Query(None),
    location: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    events: EventService = Depends(get_event_service),
):
    """Public calendar: active public events only."""
    filters = EventFilters(
        event_type=_parse_event_type(eventType),
        is_active=True,
        is_public=True,
        date_from=dateFrom,
        date_to=dateTo,
        location=location,
    )
    return _paginated("Events retrieved successfully", events, events.list(page.limit, page.offset, filters), filters, page)


@router.get("/admin")
@fails_with("Failed to retrieve events")
def admin_events(
    eventType: str | None = Query(None),
    courseId: str | None = Query(None),
    creatorId: str | None = Query(None),
    eventCreator: str | None = Query(None),
    isActive: bool | None = Query(None),
    isPublic: bool | None = Query(None),
    requiresRegistration: bool | None = Query(None),
    dateFrom: str | None = Query(None),
    dateTo: str | None = Query(None),
    location: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_admin),
    events: EventService = Depends(get_event_service),
):
    filters = EventFilters(
        event_type=_parse_event_type(eventType),
        course_id=courseId,
        creator_id=creatorId or eventCreator,
        is_active=isActive,
        is_public=isPublic,
        requires_registration=requiresRegistration,
        date_from=dateFrom,
        date_to=dateTo,
        location=location,
    )
    return _paginated("Events retrieved successfully", events, events.list(page.limit, page.offset, filters), filters, page)


@router.post("")
@fails_with("Failed to create event")
def create_event(
    data: EventRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
    courses: CourseService = Depends(get_course_service),
):
    payload = data.model_dump()
    require_fields(payload, ("title", "description", "date", "time", "eventType"))
    _check_event_body(payload)
    if data.courseId:
        _check_course_owner(courses, data.courseId, user, "You can only create events for your own courses")
    return send_created("Event created successfully", events.create(payload, user.id))


@router.get("/{event_id}")
@fails_with("Failed to retrieve event")
def get_event(event_id: str, events: EventService = Depends(get_event_service)):
    return send_success("Event retrieved successfully", events.require(event_id, "Event not found"))


@router.put("/{event_id}")
@fails_with("Failed to update event")
def update_event(
    event_id: str,
    data: EventRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
    courses: CourseService = Depends(get_course_service),
):
    changes = data.model_dump(exclude_none=True)
    _check_event_body(changes)
    _owned_event(events, event_id, user, "events.update", "You can only update your own events")
    if data.courseId:
        _check_course_owner(courses, data.courseId, user, "You can only update events for your own courses")
    return send_success("Event updated successfully", events.update_event(event_id, changes))


@router.delete("/{event_id}")
@fails_with("Failed to delete event")
def delete_event(
    event_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
):
    _owned_event(events, event_id, user, "events.delete", "You can only delete your own events")
    events.delete(event_id)
    return send_success("Event deleted successfully")


@router.post("/{event_id}/register")
@fails_with("Failed to register for event")
def register(event_id: str, user: CurrentUser = Depends(get_current_user), events: EventService = Depends(get_event_service)):
    if not user.hygraph_id:
        raise BadRequest("Create your profile before registering for events")
    return send_success("Successfully registered for event", events.register(event_id, user.hygraph_id))


@router.delete("/{event_id}/register")
@fails_with("Failed to cancel event registration")
def cancel_registration(
    event_id: str,
    user: CurrentUser = Depends(get_current_user),
    events: EventService = Depends(get_event_service),
):
    if not user.hygraph_id:
        raise BadRequest("Create your profile before registering for events")
    return send_success(
        "Successfully cancelled event registration",
        events.cancel_registration(event_id, user.hygraph_id),
    )


@router.patch("/{event_id}/active")
@fails_with("Failed to toggle active status")
def toggle_active(
    event_id: str,
    data: ActiveRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
):
    _owned_event(events, event_id, user, "events.update", MANAGE_OWN)
    message = "Event activated successfully" if data.isActive else "Event deactivated successfully"
    return send_success(message, events.set_active(event_id, data.isActive))


@router.patch("/{event_id}/public")
@fails_with("Failed to toggle public status")
def toggle_public(
    event_id: str,
    data: PublicRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
):
    _owned_event(events, event_id, user, "events.update", MANAGE_OWN)
    message = "Event made public successfully" if data.isPublic else "Event made private successfully"
    return send_success(message, events.set_public(event_id, data.isPublic))


@router.patch("/{event_id}/registration")
@fails_with("Failed to toggle registration requirement")
def toggle_registration(
    event_id: str,
    data: RegistrationRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
):
    _owned_event(events, event_id, user, "events.update", MANAGE_OWN)
    state = "enabled" if data.requiresRegistration else "disabled"
    return send_success(
        f"Registration requirement {state} successfully",
        events.set_registration_required(event_id, data.requiresRegistration),
    )


@router.patch("/{event_id}/registration-deadline")
@fails_with("Failed to set registration deadline")
def set_deadline(
    event_id: str,
    data: DeadlineRequest,
    user: CurrentUser = Depends(require_teacher_or_admin),
    events: EventService = Depends(get_event_service),
):
    if not data.deadline:
        raise BadRequest("Registration deadline is required")
    deadline = parse_datetime(data.deadline)
    if deadline is None:
        raise BadRequest("Invalid date format. Use YYYY-MM-DD")
    if deadline <= datetime.now(timezone.utc):
        raise BadRequest("Registration deadline must be in the future")
    _owned_event(events, event_id, user, "events.update", MANAGE_OWN)
    return send_success(
        "Registration deadline set successfully",
        events.set_registration_deadline(event_id, data.deadline),
    )
