"""
Public content for the marketing site: published blog posts, public events, forum threads and the contact form.
Thread and post creation need a signed-in user and follow the same rules as /api/forum.
"""
import calendar
from datetime import datetime

from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    fails_with,
    get_blog_service,
    get_course_service,
    get_current_user,
    get_event_service,
    get_forum_service,
    get_pagination,
)
from school_api.api.email import deliver_contact, get_email_service
from school_api.api.forum import create_post_for, create_thread_for
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest
from school_api.schemas.auth import CurrentUser
from school_api.schemas.common import BlogStatus, EventType
from school_api.schemas.forum import PostRequest, ThreadRequest
from school_api.schemas.support import ContactRequest
from school_api.services.blog import BlogFilters, BlogService
from school_api.services.courses import CourseService
from school_api.services.email import EmailService
from school_api.services.events import EventFilters, EventService
from school_api.services.forum import ForumService, ThreadFilters
from school_api.services.validation import Pagination

router = APIRouter(prefix="/api/content", tags=["content"])


def month_bounds(month: str) -> tuple[str, str]:
    """'2024-02' -> ('2024-02-01', '2024-02-29')."""
    try:
        start = datetime.strptime(month, "%Y-%m")
    except ValueError:
        raise BadRequest("Month must be in YYYY-MM format")
    last_day = calendar.monthrange(start.year, start.month)[1]
    prefix = start.strftime("%Y-%m")
    return f"{prefix}-01", f"{prefix}-{last_day:02d}"


@router.get("/health")
def content_health():
    return send_success("Service is healthy")


@router.get("/blog")
@fails_with("Failed to get blog posts")
def list_blog(
    q: str | None = Query(None),
    category: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    blog: BlogService = Depends(get_blog_service),
):
    filters = BlogFilters(status=BlogStatus.PUBLISHED, category=category, search=q)
    return send_paginated(
        "Blog posts retrieved",
        blog.list(page.limit, page.offset, filters, order_by="publishedAt_DESC"),
        page.page, page.limit, blog.count(filters),
    )


@router.get("/events")
@fails_with("Failed to get events")
def list_events(
    type: str | None = Query(None),
    month: str | None = Query(None, description="YYYY-MM"),
    page: Pagination = Depends(get_pagination),
    events: EventService = Depends(get_event_service),
):
    event_type = EventType.parse(type) if type else None
    if type and event_type is None:
        raise BadRequest("Invalid event type. Must be one of: " + ", ".join(EventType.values()))
    filters = EventFilters(is_active=True, is_public=True, event_type=event_type)
    if month:
        filters.date_from, filters.date_to = month_bounds(month)
    return send_paginated(
        "Events retrieved",
        events.list(page.limit, page.offset, filters),
        page.page, page.limit, events.count(filters),
    )


@router.get("/forum/threads")
@fails_with("Failed to get threads")
def list_threads(
    category: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    forum: ForumService = Depends(get_forum_service),
):
    filters = ThreadFilters(is_active=True, category=category)
    return send_paginated(
        "Threads retrieved",
        forum.list(page.limit, page.offset, filters),
        page.page, page.limit, forum.count(filters),
    )


@router.get("/forum/threads/{thread_id}/posts")
@fails_with("Failed to get posts")
def list_posts(thread_id: str, page: Pagination = Depends(get_pagination), forum: ForumService = Depends(get_forum_service)):
    return send_paginated(
        "Posts retrieved",
        forum.list_posts(thread_id, page.limit, page.offset),
        page.page, page.limit, forum.count_posts(thread_id),
    )


@router.post("/contact")
def contact(data: ContactRequest, mailer: EmailService = Depends(get_email_service)):
    deliver_contact(data, mailer, "Missing fields", "Failed to send message")
    return send_success("Message sent")


@router.post("/forum/threads")
@fails_with("Failed to create thread")
def create_thread(
    data: ThreadRequest,
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
    courses: CourseService = Depends(get_course_service),
):
    return send_created("Thread created", create_thread_for(data, user, forum, courses))


@router.post("/forum/threads/{thread_id}/posts")
@fails_with("Failed to create post")
def create_post(
    thread_id: str,
    data: PostRequest,
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    data.threadId = thread_id
    return send_created("Post created", create_post_for(data, user, forum))
