"""
Blog API. Every route requires a signed-in user; authors manage their own posts, admins manage all.
"""
from fastapi import APIRouter, Depends, Query

from school_api.api.deps import (
    fails_with,
    get_blog_service,
    get_pagination,
    require_admin,
    require_auth,
    require_fields,
)
from school_api.api.responses import send_created, send_paginated, send_success
from school_api.errors import BadRequest, NotFound
from school_api.schemas.auth import CurrentUser
from school_api.schemas.blog import BlogPostRequest, CommentsRequest, FeaturedRequest
from school_api.schemas.common import BlogStatus, one_of
from school_api.services.authz import ensure_can_mutate, owner_id_of
from school_api.services.blog import BlogFilters, BlogService
from school_api.services.validation import Pagination

router = APIRouter(prefix="/api/blog", tags=["blog"])

INVALID_STATUS = f"Invalid status. Must be {one_of(BlogStatus)}"


def _check_post_body(data: dict) -> None:
    """Normalize status to its enum value; reject unknown statuses and non-list tags."""
    if data.get("status") is not None:
        status = BlogStatus.parse(data["status"])
        if status is None:
            raise BadRequest(INVALID_STATUS)
        data["status"] = status.value
    if data.get("tags") is not None and not isinstance(data["tags"], list):
        raise BadRequest("Tags must be an array")


def _owned_post(blog: BlogService, post_id: str, user: CurrentUser, action: str, message: str) -> dict:
    post = blog.require(post_id, "Blog post not found")
    ensure_can_mutate(user.role, user.id, owner_id_of(post, "author"), action, message)
    return post


@router.get("/health")
def blog_health():
    return send_success("Service is healthy")


@router.get("/posts/published")
@fails_with("Failed to retrieve published blog posts")
def published_posts(
    category: str | None = Query(None),
    tag: str | None = Query(None),
    search: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    filters = BlogFilters(status=BlogStatus.PUBLISHED, category=category, tags=[tag] if tag else None, search=search)
    return send_paginated(
        "Published blog posts retrieved successfully",
        blog.published(page.limit, page.offset, filters),
        page.page, page.limit, blog.count(filters),
    )


@router.get("/posts/featured")
@fails_with("Failed to retrieve featured blog posts")
def featured_posts(
    limit: int = Query(10, ge=1, le=100),
    _: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    return send_success("Featured blog posts retrieved successfully", blog.featured(limit))


@router.get("/posts/recent")
@fails_with("Failed to retrieve recent blog posts")
def recent_posts(
    limit: int = Query(20, ge=1, le=100),
    _: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    return send_success("Recent blog posts retrieved successfully", blog.recent(limit))


@router.get("/posts/category/{category}")
@fails_with("Failed to retrieve blog posts by category")
def posts_by_category(category: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog posts by category retrieved successfully", blog.by_category(category))


@router.get("/posts/tag/{tag}")
@fails_with("Failed to retrieve blog posts by tag")
def posts_by_tag(tag: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog posts by tag retrieved successfully", blog.by_tag(tag))


@router.get("/posts/search")
@fails_with("Failed to search blog posts")
def search_posts(
    searchTerm: str | None = Query(None),
    _: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    if not (searchTerm or "").strip():
        raise BadRequest("Search term is required")
    return send_success("Blog posts search results retrieved successfully", blog.search(searchTerm.strip()))


@router.get("/posts/slug/{slug}")
@fails_with("Failed to retrieve blog post")
def post_by_slug(slug: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    post = blog.get_by_slug(slug)
    if not post:
        raise NotFound("Blog post not found")
    return send_success("Blog post retrieved successfully", post)


@router.get("/stats/author")
@fails_with("Failed to retrieve author blog statistics")
def author_stats(user: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Author blog statistics retrieved successfully", blog.get_author_stats(user.id))


@router.get("/stats/overview")
@fails_with("Failed to retrieve blog statistics")
def blog_stats(_: CurrentUser = Depends(require_admin), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog statistics retrieved successfully", blog.get_stats())


@router.get("/posts")
@fails_with("Failed to retrieve blog posts")
def list_posts(
    status: str | None = Query(None),
    authorId: str | None = Query(None),
    category: str | None = Query(None),
    isFeatured: bool | None = Query(None),
    tags: str | None = Query(None),
    allowComments: bool | None = Query(None),
    search: str | None = Query(None),
    dateFrom: str | None = Query(None),
    dateTo: str | None = Query(None),
    publishedFrom: str | None = Query(None),
    publishedTo: str | None = Query(None),
    page: Pagination = Depends(get_pagination),
    _: CurrentUser = Depends(require_admin),
    blog: BlogService = Depends(get_blog_service),
):
    parsed_status = BlogStatus.parse(status) if status else None
    if status and parsed_status is None:
        raise BadRequest(INVALID_STATUS)
    filters = BlogFilters(
        status=parsed_status,
        author_id=authorId,
        category=category,
        is_featured=isFeatured,
        tags=[t.strip() for t in tags.split(",") if t.strip()] if tags else None,
        allow_comments=allowComments,
        search=search,
        date_from=dateFrom,
        date_to=dateTo,
        published_from=publishedFrom,
        published_to=publishedTo,
    )
    return send_paginated(
        "Blog posts retrieved successfully",
        blog.list(page.limit, page.offset, filters),
        page.page, page.limit, blog.count(filters),
    )


@router.post("/posts")
@fails_with("Failed to create blog post")
def create_post(
    data: BlogPostRequest,
    user: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    payload = data.model_dump()
    require_fields(payload, ("title", "content"))
    _check_post_body(payload)
    return send_created("Blog post created successfully", blog.create(payload, user.id))


@router.get("/posts/{post_id}")
@fails_with("Failed to retrieve blog post")
def get_post(post_id: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog post retrieved successfully", blog.get_published(post_id))


@router.put("/posts/{post_id}")
@fails_with("Failed to update blog post")
def update_post(
    post_id: str,
    data: BlogPostRequest,
    user: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    changes = data.model_dump(exclude_none=True)
    _check_post_body(changes)
    post = _owned_post(blog, post_id, user, "blog.update", "You can only update your own blog posts")
    return send_success("Blog post updated successfully", blog.update_post(post_id, changes, post))


@router.delete("/posts/{post_id}")
@fails_with("Failed to delete blog post")
def delete_post(post_id: str, user: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    _owned_post(blog, post_id, user, "blog.delete", "You can only delete your own blog posts")
    blog.delete(post_id)
    return send_success("Blog post deleted successfully")


@router.patch("/posts/{post_id}/publish")
@fails_with("Failed to publish blog post")
def publish_post(post_id: str, user: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    post = _owned_post(blog, post_id, user, "blog.update", "You can only publish your own blog posts")
    return send_success("Blog post published successfully", blog.publish(post_id, post))


@router.patch("/posts/{post_id}/unpublish")
@fails_with("Failed to unpublish blog post")
def unpublish_post(post_id: str, user: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    _owned_post(blog, post_id, user, "blog.update", "You can only unpublish your own blog posts")
    return send_success("Blog post unpublished successfully", blog.unpublish(post_id))


@router.patch("/posts/{post_id}/archive")
@fails_with("Failed to archive blog post")
def archive_post(post_id: str, user: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    _owned_post(blog, post_id, user, "blog.update", "You can only archive your own blog posts")
    return send_success("Blog post archived successfully", blog.archive(post_id))


@router.patch("/posts/{post_id}/featured")
@fails_with("Failed to toggle featured status")
def feature_post(
    post_id: str,
    data: FeaturedRequest,
    _: CurrentUser = Depends(require_admin),
    blog: BlogService = Depends(get_blog_service),
):
    blog.require(post_id, "Blog post not found")
    message = "Blog post featured successfully" if data.isFeatured else "Blog post unfeatured successfully"
    return send_success(message, blog.set_featured(post_id, data.isFeatured))


@router.patch("/posts/{post_id}/comments")
@fails_with("Failed to toggle comments")
def toggle_comments(
    post_id: str,
    data: CommentsRequest,
    user: CurrentUser = Depends(require_auth),
    blog: BlogService = Depends(get_blog_service),
):
    _owned_post(blog, post_id, user, "blog.update", "You can only manage comments for your own blog posts")
    message = "Comments enabled successfully" if data.allowComments else "Comments disabled successfully"
    return send_success(message, blog.set_comments(post_id, data.allowComments))


@router.post("/posts/{post_id}/like")
@fails_with("Failed to like blog post")
def like_post(post_id: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog post liked successfully", blog.like(post_id))


@router.delete("/posts/{post_id}/like")
@fails_with("Failed to unlike blog post")
def unlike_post(post_id: str, _: CurrentUser = Depends(require_auth), blog: BlogService = Depends(get_blog_service)):
    return send_success("Blog post unliked successfully", blog.unlike(post_id))
