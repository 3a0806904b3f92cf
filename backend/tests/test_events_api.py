"""
Events API: body checks, creator ownership, registration rules and course-scoped visibility.
"""
import pytest

FUTURE_DAY = "2099-05-01"
PAST_DAY = "2001-05-01"

EVENT_BODY = {
    "title": "Youth choir rehearsal",
    "description": "Mezmur practice for the feast.",
    "date": FUTURE_DAY,
    "time": "16:00",
    "eventType": "cultural",
    "location": "Main hall",
}


@pytest.fixture
def event(hygraph, users):
    return hygraph.add("Event", {
        "title": "Parents meeting",
        "description": "Term planning.",
        "date": FUTURE_DAY,
        "time": "18:00",
        "eventType": "ADMINISTRATIVE",
        "isActive": True,
        "isPublic": True,
        "requiresRegistration": True,
        "registrationDeadline": "2099-04-30T00:00:00Z",
        "maxAttendees": 2,
        "eventCreator": {"id": users["teacher"]["id"]},
    })


def test_create_normalizes_event_type(api, users):
    api.login(users["teacher"])
    response = api.post("/api/events", json={**EVENT_BODY, "isPublic": True})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["eventType"] == "CULTURAL"
    assert data["isPublic"] is True
    assert data["eventCreator"]["id"] == users["teacher"]["id"]


def test_create_rejects_bad_bodies(api, users):
    api.login(users["teacher"])
    assert api.post("/api/events", json={"title": "x"}).json()["message"] == (
        "Missing required fields: title, description, date, time, eventType"
    )
    bad_type = api.post("/api/events", json={**EVENT_BODY, "eventType": "party"})
    assert bad_type.json()["message"] == (
        "Invalid event type. Must be one of: ACADEMIC, SOCIAL, SPORTS, CULTURAL, ADMINISTRATIVE, EXAM, HOLIDAY"
    )
    recurring = api.post("/api/events", json={**EVENT_BODY, "isRecurring": True})
    assert recurring.json()["message"] == "Recurrence pattern is required when isRecurring is true"
    bad_date = api.post("/api/events", json={**EVENT_BODY, "date": "not-a-date"})
    assert bad_date.status_code == 400
    assert bad_date.json()["message"] == "Invalid date format. Use YYYY-MM-DD"
    capacity = api.post("/api/events", json={**EVENT_BODY, "maxAttendees": 0})
    assert capacity.json()["message"] == "Max attendees must be at least 1"


def test_students_cannot_create_events(api, users):
    api.login(users["student"])
    assert api.post("/api/events", json=EVENT_BODY).status_code == 403


def test_course_event_needs_course_ownership(api, users, hygraph):
    course = hygraph.add("Course", {"title": "Ge'ez", "isActive": True, "instructor": {"id": users["teacher"]["id"]}})
    api.login(users["other_teacher"])
    response = api.post("/api/events", json={**EVENT_BODY, "courseId": course["id"]})
    assert response.status_code == 403
    assert response.json()["message"] == "You can only create events for your own courses"


def test_register_and_cancel(api, users, event, hygraph):
    api.login(users["student"])
    url = f"/api/events/{event['id']}/register"
    response = api.post(url)
    assert response.status_code == 200
    assert response.json()["message"] == "Successfully registered for event"
    assert [a["id"] for a in hygraph.get("Event", event["id"])["attendees"]] == [users["student"]["id"]]
    # Registering twice is a no-op.
    api.post(url)
    assert len(hygraph.get("Event", event["id"])["attendees"]) == 1
    assert api.delete(url).json()["message"] == "Successfully cancelled event registration"
    assert hygraph.get("Event", event["id"])["attendees"] == []


def test_register_requires_profile(api, users, event):
    api.login({**users["student"], "id": None})
    response = api.post(f"/api/events/{event['id']}/register")
    assert response.status_code == 400
    assert response.json()["message"] == "Create your profile before registering for events"


def test_register_after_deadline(api, users, event, hygraph):
    hygraph.stores["Event"][event["id"]]["registrationDeadline"] = "2001-01-01T00:00:00Z"
    api.login(users["student"])
    response = api.post(f"/api/events/{event['id']}/register")
    assert response.status_code == 400
    assert response.json()["message"] == "Registration deadline has passed"


def test_register_when_full(api, users, event, hygraph):
    hygraph.stores["Event"][event["id"]]["attendees"] = [
        {"id": users["other_student"]["id"]},
        {"id": users["admin"]["id"]},
    ]
    api.login(users["student"])
    response = api.post(f"/api/events/{event['id']}/register")
    assert response.status_code == 400
    assert response.json()["message"] == "Event is full"


def test_only_creator_or_admin_updates(api, users, event, hygraph):
    url = f"/api/events/{event['id']}"
    api.login(users["other_teacher"])
    assert api.put(url, json={"title": "Changed"}).json()["message"] == "You can only update your own events"
    assert api.patch(f"{url}/active", json={"isActive": False}).status_code == 403
    api.login(users["teacher"])
    response = api.patch(f"{url}/active", json={"isActive": False})
    assert response.json()["message"] == "Event deactivated successfully"
    api.login(users["admin"])
    assert api.delete(url).status_code == 200
    assert hygraph.all("Event") == []


def test_registration_deadline_must_be_future(api, users, event):
    api.login(users["teacher"])
    url = f"/api/events/{event['id']}/registration-deadline"
    assert api.patch(url, json={}).json()["message"] == "Registration deadline is required"
    assert api.patch(url, json={"deadline": "2001-01-01T00:00:00Z"}).json()["message"] == (
        "Registration deadline must be in the future"
    )
    response = api.patch(url, json={"deadline": "2099-04-01T00:00:00Z"})
    assert response.status_code == 200
    assert response.json()["message"] == "Registration deadline set successfully"
    assert response.json()["data"]["registrationDeadline"] == "2099-04-01T00:00:00Z"
    assert api.patch(url, json={"registrationDeadline": "2099-04-02T00:00:00Z"}).status_code == 200


def test_public_listing_hides_private_and_inactive(api, users, event, hygraph):
    hygraph.add("Event", {"title": "Staff only", "date": FUTURE_DAY, "isActive": True, "isPublic": False})
    hygraph.add("Event", {"title": "Cancelled", "date": FUTURE_DAY, "isActive": False, "isPublic": True})
    body = api.get("/api/events").json()
    assert [e["title"] for e in body["data"]] == ["Parents meeting"]
    assert body["pagination"]["total"] == 1


def test_upcoming_excludes_past(api, event, hygraph):
    hygraph.add("Event", {"title": "Last year", "date": PAST_DAY, "isActive": True, "isPublic": True})
    assert [e["title"] for e in api.get("/api/events/upcoming").json()["data"]] == ["Parents meeting"]


def test_date_range_checks(api, event):
    assert api.get("/api/events/date-range").json()["message"] == "Start date and end date are required"
    assert api.get("/api/events/date-range", params={"startDate": "x", "endDate": "y"}).json()["message"] == (
        "Invalid date format. Use YYYY-MM-DD"
    )
    reversed_range = api.get("/api/events/date-range", params={"startDate": "2099-06-01", "endDate": "2099-01-01"})
    assert reversed_range.json()["message"] == "Start date must be before end date"
    found = api.get("/api/events/date-range", params={"startDate": "2099-01-01", "endDate": "2099-12-31"})
    assert [e["id"] for e in found.json()["data"]] == [event["id"]]


def test_course_events_need_enrollment(api, users, hygraph):
    course = hygraph.add("Course", {"title": "Ge'ez", "isActive": True, "instructor": {"id": users["teacher"]["id"]}})
    hygraph.add("Event", {"title": "Class trip", "date": FUTURE_DAY, "isActive": True, "course": {"id": course["id"]}})
    url = f"/api/events/course/{course['id']}"
    api.login(users["student"])
    response = api.get(url)
    assert response.status_code == 403
    assert response.json()["message"] == "You can only view events for courses you are enrolled in or teaching"
    hygraph.add("Enrollment", {
        "student": {"id": users["student"]["id"]},
        "course": {"id": course["id"]},
        "enrollmentStatus": "ACTIVE",
    })
    assert [e["title"] for e in api.get(url).json()["data"]] == ["Class trip"]


def test_new_events_are_private_by_default(api, users):
    api.login(users["teacher"])
    created = api.post("/api/events", json={**EVENT_BODY, "title": "Staff meeting"}).json()["data"]
    assert created["isPublic"] is False
    api.logout()
    assert [e["title"] for e in api.get("/api/content/events").json()["data"]] == []
    assert api.get("/api/events").json()["data"] == []


def test_update_rejects_bad_date(api, users, event):
    api.login(users["teacher"])
    response = api.put(f"/api/events/{event['id']}", json={"date": "31/12/2099"})
    assert response.status_code == 400
    assert response.json()["message"] == "Invalid date format. Use YYYY-MM-DD"


def test_toggle_messages(api, users, event):
    url = f"/api/events/{event['id']}"
    api.login(users["other_teacher"])
    forbidden = api.patch(f"{url}/public", json={"isPublic": False})
    assert forbidden.status_code == 403
    assert forbidden.json()["message"] == "You can only manage your own events"
    api.login(users["teacher"])
    assert api.patch(f"{url}/registration", json={"requiresRegistration": True}).json()["message"] == (
        "Registration requirement enabled successfully"
    )
    assert api.patch(f"{url}/registration", json={"requiresRegistration": False}).json()["message"] == (
        "Registration requirement disabled successfully"
    )
    assert api.patch(f"{url}/public", json={"isPublic": False}).json()["message"] == "Event made private successfully"


def test_listing_messages(api, users, event):
    assert api.get("/api/events/type/administrative").json()["message"] == "Events by type retrieved successfully"
    found = api.get("/api/events/date-range", params={"startDate": "2099-01-01", "endDate": "2099-12-31"})
    assert found.json()["message"] == "Events by date range retrieved successfully"
    api.login(users["teacher"])
    assert api.get("/api/events/stats/creator").json()["message"] == "Creator event statistics retrieved successfully"
