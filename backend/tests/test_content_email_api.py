"""
Public site content and the contact form. SMTP is replaced with a recording mailer.
"""
import smtplib

import pytest

try:
    from school_api.api.content import month_bounds
    from school_api.api.email import get_email_service
    from school_api.errors import BadRequest
    from school_api.main import app
    _DEPS_LOADED = True
except ImportError:
    _DEPS_LOADED = False

pytestmark = pytest.mark.skipif(not _DEPS_LOADED, reason="fastapi/httpx not installed (pip install -e .[test])")

CONTACT = {
    "name": "Hanna",
    "email": "hanna@example.com",
    "subject": "Enrollment",
    "message": "How do I enroll my son?",
}


class RecordingMailer:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.sent = []

    def send_contact_message(self, name, email, subject, message):
        if self.error:
            raise self.error
        self.sent.append((name, email, subject, message))
        return self.result


@pytest.fixture
def mailer(api):
    recorder = RecordingMailer()
    app.dependency_overrides[get_email_service] = lambda: recorder
    try:
        yield recorder
    finally:
        app.dependency_overrides.pop(get_email_service, None)


def test_month_bounds():
    assert month_bounds("2024-02") == ("2024-02-01", "2024-02-29")
    assert month_bounds("2023-12") == ("2023-12-01", "2023-12-31")
    with pytest.raises(BadRequest):
        month_bounds("Feb 2024")


def test_contact_sends_message(api, mailer):
    response = api.post("/api/email/contact", json=CONTACT)
    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "Message sent successfully!"}
    assert mailer.sent == [("Hanna", "hanna@example.com", "Enrollment", "How do I enroll my son?")]


def test_contact_validation(api, mailer):
    missing = api.post("/api/email/contact", json={**CONTACT, "message": ""})
    assert missing.status_code == 400
    assert missing.json()["message"] == "All fields are required."
    bad_email = api.post("/api/email/contact", json={**CONTACT, "email": "hanna"})
    assert bad_email.json()["message"] == "Invalid email format"
    assert mailer.sent == []


def test_contact_smtp_failure_is_500(api, mailer):
    mailer.error = smtplib.SMTPException("relay refused")
    response = api.post("/api/email/contact", json=CONTACT)
    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Failed to send message."}


def test_contact_unconfigured_smtp_is_500(api, mailer):
    mailer.result = False
    assert api.post("/api/email/contact", json=CONTACT).status_code == 500


def test_content_contact_uses_short_messages(api, mailer):
    assert api.post("/api/content/contact", json=CONTACT).json()["message"] == "Message sent"
    assert api.post("/api/content/contact", json={"name": "x"}).json()["message"] == "Missing fields"


def test_content_blog_shows_published_only(api, hygraph):
    hygraph.add("BlogPost", {"title": "Feast day", "content": "Join us", "status": "PUBLISHED", "category": "News"})
    hygraph.add("BlogPost", {"title": "Unfinished", "content": "TBD", "status": "DRAFT", "category": "News"})
    body = api.get("/api/content/blog").json()
    assert [p["title"] for p in body["data"]] == ["Feast day"]
    assert api.get("/api/content/blog", params={"q": "feast"}).json()["pagination"]["total"] == 1
    assert api.get("/api/content/blog", params={"q": "nothing"}).json()["data"] == []


def test_content_events_by_month(api, hygraph):
    hygraph.add("Event", {"title": "Meskel", "date": "2024-09-27", "isActive": True, "isPublic": True, "eventType": "CULTURAL"})
    hygraph.add("Event", {"title": "Genna", "date": "2025-01-07", "isActive": True, "isPublic": True, "eventType": "HOLIDAY"})
    hygraph.add("Event", {"title": "Staff", "date": "2024-09-10", "isActive": True, "isPublic": False, "eventType": "ADMINISTRATIVE"})
    body = api.get("/api/content/events", params={"month": "2024-09"}).json()
    assert [e["title"] for e in body["data"]] == ["Meskel"]
    assert [e["title"] for e in api.get("/api/content/events", params={"type": "holiday"}).json()["data"]] == ["Genna"]
    bad = api.get("/api/content/events", params={"month": "september"})
    assert bad.status_code == 400
    assert bad.json()["message"] == "Month must be in YYYY-MM format"
    bad_type = api.get("/api/content/events", params={"type": "party"})
    assert bad_type.status_code == 400
    assert bad_type.json()["message"].startswith("Invalid event type. Must be one of: ACADEMIC, SOCIAL")


def test_content_forum_reads_are_public(api, hygraph):
    thread = hygraph.add("ForumThread", {"title": "Welcome", "isActive": True, "category": "General"})
    hygraph.add("ForumPost", {"body": "Hello", "isActive": True, "thread": {"id": thread["id"]}})
    assert [t["id"] for t in api.get("/api/content/forum/threads").json()["data"]] == [thread["id"]]
    posts = api.get(f"/api/content/forum/threads/{thread['id']}/posts").json()
    assert [p["body"] for p in posts["data"]] == ["Hello"]


def test_content_forum_writes_need_sign_in(api, users, hygraph):
    thread = hygraph.add("ForumThread", {"title": "Welcome", "isActive": True, "isLocked": False})
    assert api.post("/api/content/forum/threads", json={"title": "Question", "body": "Where is the hall?"}).status_code == 401
    api.login(users["student"])
    created = api.post("/api/content/forum/threads", json={"title": "Question", "body": "Where is the main hall?"})
    assert created.status_code == 201
    assert created.json()["message"] == "Thread created"
    reply = api.post(f"/api/content/forum/threads/{thread['id']}/posts", json={"body": "Next to the church."})
    assert reply.status_code == 201
    assert reply.json()["data"]["thread"]["id"] == thread["id"]
