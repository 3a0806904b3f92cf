"""
Forum API: threads and one-level replies. Every route requires a signed-in user.
Authors edit their own content; admins moderate (pin, lock, hide).
"""
from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    fails_with,
    get_course_service,
    get_current_user,
    get_forum_service,
    get_pagination,
    require_admin,
    require_fields,
    require_teacher_or_admin,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest, Forbidden
from school_api.schemas.auth import CurrentUser
from school_api.schemas.forum import LockRequest, PinRequest, PostRequest, ThreadActiveRequest, ThreadRequest
from school_api.services.authz import ensure_can_mutate, is_admin, owner_id_of
from school_api.services.courses import CourseService
from school_api.services.forum import ForumService, ThreadFilters
from school_api.services.validation import Pagination

router = APIRouter(prefix="/api/forum", tags=["forum"])


def check_course_access(courses: CourseService, course_id: str, user: CurrentUser, message: str) -> dict:
    """Course forums are open to enrolled students, the instructor and admins."""
    course = courses.require(course_id, "Course not found")
    if not (
        is_admin(user.role)
        or owner_id_of(course, "instructor") == user.id
        or courses.is_enrolled(user.hygraph_id, course_id)
    ):
        raise Forbidden(message)
    return course


def create_thread_for(data: ThreadRequest, user: CurrentUser, forum: ForumService, courses: CourseService) -> dict:
    """Validate and create a thread; shared with the public content router."""
    payload = data.model_dump()
    require_fields(payload, ("title", "body"))
    if data.courseId:
        check_course_access(
            courses, data.courseId, user, "You can only create threads for courses you are enrolled in or teaching",
        )
    return forum.create_thread(payload, user.id)


def create_post_for(data: PostRequest, user: CurrentUser, forum: ForumService) -> dict:
    """Reply to a thread; locked threads only accept posts from admins."""
    payload = data.model_dump()
    require_fields(payload, ("body", "threadId"))
    thread = forum.require(data.threadId, "Forum thread not found")
    if thread.get("isLocked") and not is_admin(user.role):
        raise Forbidden("Cannot post in locked thread")
    return forum.create_post(payload, user.id)


def _owned_thread(forum: ForumService, thread_id: str, user: CurrentUser, action: str, message: str) -> dict:
    thread = forum.require(thread_id, "Forum thread not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(thread, "author"), action, message)
    return thread


def _owned_post(forum: ForumService, post_id: str, user: CurrentUser, action: str, message: str) -> dict:
    post = forum.posts.require(post_id, "Forum post not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(post, "author"), action, message)
    return post


def _threads_page(message: str, forum: ForumService, filters: ThreadFilters, page: Pagination):
    return send_paginated(
        message,
        forum.list(page.limit, page.offset, filters),
        page.page, page.limit, forum.count(filters),
    )


@router.get("/health")
def forum_health():
    return send_success("Service is healthy")


@router.get("/threads/public")
@fails_with("Failed to retrieve public forum threads")
def public_threads(
    category: str | None = Query(None),
    search: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    filters = ThreadFilters(is_active=True, category=category, search=search)
    return _threads_page("Public forum threads retrieved successfully", forum, filters, page)


@router.get("/threads/pinned")
@fails_with("Failed to retrieve pinned forum threads")
def pinned_threads(
    limit: int = Query(10, ge=1, le=100),
    _: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    return send_success("Pinned forum threads retrieved successfully", forum.pinned(limit))


@router.get("/threads/search")
@fails_with("Failed to search forum threads")
def search_threads(
    searchTerm: str | None = Query(None),
    _: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    if not (searchTerm or "").strip():
        raise BadRequest("Search term is required")
    return send_success("Forum threads search results retrieved successfully", forum.search(searchTerm.strip()))


@router.get("/threads/course/{course_id}")
@fails_with("Failed to retrieve course forum threads")
def course_threads(
    course_id: str,
    page: Pagination = Depends(get_pagination),
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
    courses: CourseService = Depends(get_course_service),
):
    check_course_access(
        courses, course_id, user, "You can only view forum threads for courses you are enrolled in or teaching",
    )
    filters = ThreadFilters(course_id=course_id, is_active=True)
    return _threads_page("Course forum threads retrieved successfully", forum, filters, page)


@router.get("/threads/course/{course_id}/stats")
@fails_with("Failed to retrieve course forum statistics")
def course_stats(
    course_id: str,
    user: CurrentUser = Depends(require_teacher_or_admin),
    forum: ForumService = Depends(get_forum_service),
    courses: CourseService = Depends(get_course_service),
):
    course = courses.require(course_id, "Course not found")
    if not is_admin(user.role) and owner_id_of(course, "instructor") != user.id:
        raise Forbidden("You can only view statistics for your own courses")
    return send_success("Course forum statistics retrieved successfully", forum.get_course_stats(course_id))


@router.get("/threads")
@fails_with("Failed to retrieve forum threads")
def list_threads(
    category: str | None = Query(None),
    courseId: str | None = Query(None),
    authorId: str | None = Query(None),
    isPinned: bool | None = Query(None),
    isLocked: bool | None = Query(None),
    isActive: bool | None = Query(None),
    search: str | None = Query(None),
    dateFrom: str | None = Query(None),
    dateTo: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
):
    filters = ThreadFilters(
        category=category,
        course_id=courseId,
        author_id=authorId,
        is_pinned=isPinned,
        is_locked=isLocked,
        is_active=isActive,
        search=search,
        date_from=dateFrom,
        date_to=dateTo,
    )
    return _threads_page("Forum threads retrieved successfully", forum, filters, page)


@router.get("/stats/overview")
@fails_with("Failed to retrieve forum statistics")
def forum_stats(_: CurrentUser = Depends(require_admin), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum statistics retrieved successfully", forum.get_stats())


@router.get("/stats/author")
@fails_with("Failed to retrieve author forum statistics")
def author_stats(user: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Author forum statistics retrieved successfully", forum.get_author_stats(user.id))


@router.post("/threads")
@fails_with("Failed to create forum thread")
def create_thread(
    data: ThreadRequest,
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
    courses: CourseService = Depends(get_course_service),
):
    return send_created("Forum thread created successfully", create_thread_for(data, user, forum, courses))


@router.get("/threads/{thread_id}")
@fails_with("Failed to retrieve forum thread")
def get_thread(thread_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum thread retrieved successfully", forum.view_thread(thread_id))


@router.put("/threads/{thread_id}")
@fails_with("Failed to update forum thread")
def update_thread(
    thread_id: str,
    data: ThreadRequest,
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    changes = data.model_dump(exclude_none=True)
    _owned_thread(forum, thread_id, user, "forum.update", "You can only update your own forum threads")
    return send_success("Forum thread updated successfully", forum.update_thread(thread_id, changes))


@router.delete("/threads/{thread_id}")
@fails_with("Failed to delete forum thread")
def delete_thread(thread_id: str, user: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    _owned_thread(forum, thread_id, user, "forum.delete", "You can only delete your own forum threads")
    forum.delete(thread_id)
    return send_success("Forum thread deleted successfully")


@router.patch("/threads/{thread_id}/pin")
@fails_with("Failed to toggle pin status")
def pin_thread(
    thread_id: str,
    data: PinRequest,
    _: CurrentUser = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
):
    forum.require(thread_id, "Forum thread not found")
    message = "Forum thread pinned successfully" if data.isPinned else "Forum thread unpinned successfully"
    return send_success(message, forum.set_pinned(thread_id, data.isPinned))


@router.patch("/threads/{thread_id}/lock")
@fails_with("Failed to toggle lock status")
def lock_thread(
    thread_id: str,
    data: LockRequest,
    _: CurrentUser = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
):
    forum.require(thread_id, "Forum thread not found")
    message = "Forum thread locked successfully" if data.isLocked else "Forum thread unlocked successfully"
    return send_success(message, forum.set_locked(thread_id, data.isLocked))


@router.patch("/threads/{thread_id}/active")
@fails_with("Failed to toggle active status")
def toggle_thread_active(
    thread_id: str,
    data: ThreadActiveRequest,
    _: CurrentUser = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
):
    forum.require(thread_id, "Forum thread not found")
    message = "Forum thread activated successfully" if data.isActive else "Forum thread deactivated successfully"
    return send_success(message, forum.set_active(thread_id, data.isActive))


@router.post("/threads/{thread_id}/like")
@fails_with("Failed to like forum thread")
def like_thread(thread_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum thread liked successfully", forum.like_thread(thread_id))


@router.delete("/threads/{thread_id}/like")
@fails_with("Failed to unlike forum thread")
def unlike_thread(thread_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum thread unliked successfully", forum.unlike_thread(thread_id))


@router.get("/threads/{thread_id}/posts")
@fails_with("Failed to retrieve forum posts")
def thread_posts(
    thread_id: str,
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    forum.require(thread_id, "Forum thread not found")
    return send_paginated(
        "Forum posts retrieved successfully",
        forum.list_posts(thread_id, page.limit, page.offset),
        page.page, page.limit, forum.count_posts(thread_id),
    )


@router.post("/posts")
@fails_with("Failed to create forum post")
def create_post(data: PostRequest, user: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_created("Forum post created successfully", create_post_for(data, user, forum))


@router.get("/posts/{post_id}")
@fails_with("Failed to retrieve forum post")
def get_post(post_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum post retrieved successfully", forum.posts.require(post_id, "Forum post not found"))


@router.put("/posts/{post_id}")
@fails_with("Failed to update forum post")
def update_post(
    post_id: str,
    data: PostRequest,
    user: CurrentUser = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
):
    if not (data.body or "").strip():
        raise BadRequest("Post body is required")
    _owned_post(forum, post_id, user, "forum.update", "You can only update your own forum posts")
    return send_success("Forum post updated successfully", forum.update_post(post_id, {"body": data.body}))


@router.delete("/posts/{post_id}")
@fails_with("Failed to delete forum post")
def delete_post(post_id: str, user: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    _owned_post(forum, post_id, user, "forum.delete", "You can only delete your own forum posts")
    forum.delete_post(post_id)
    return send_success("Forum post deleted successfully")


@router.post("/posts/{post_id}/like")
@fails_with("Failed to like forum post")
def like_post(post_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum post liked successfully", forum.like_post(post_id))


@router.delete("/posts/{post_id}/like")
@fails_with("Failed to unlike forum post")
def unlike_post(post_id: str, _: CurrentUser = Depends(get_current_user), forum: ForumService = Depends(get_forum_service)):
    return send_success("Forum post unliked successfully", forum.unlike_post(post_id))
