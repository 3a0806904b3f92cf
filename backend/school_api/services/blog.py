"""
Blog posts: filtering, lifecycle (DRAFT / PUBLISHED / ARCHIVED), likes and views, statistics.
"""
import re
from collections import Counter
from dataclasses import dataclass

from school_api.errors import NotFound
from school_api.schemas.common import BlogStatus
from school_api.services.operations import BLOG_POST
from school_api.services.resource import HygraphResource, add_range, connect, search_clause, utc_now_iso

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9 -]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


def generate_slug(title: str) -> str:
    """'Hello, World!  Test' -> 'hello-world-test'."""
    slug = _NON_SLUG_CHARS.sub("", (title or "").lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


@dataclass
class BlogFilters:
    status: BlogStatus | None = None
    author_id: str | None = None
    category: str | None = None
    tags: list[str] | None = None
    is_featured: bool | None = None
    allow_comments: bool | None = None
    search: str | None = None
    date_from: str | None = None
    date_to: str | None = None
    published_from: str | None = None
    published_to: str | None = None


class BlogService(HygraphResource):
    model = BLOG_POST

    def build_where(self, filters: BlogFilters) -> dict:
        where: dict = {}
        if filters.status:
            where["status"] = filters.status.value
        if filters.author_id:
            where["author"] = {"id": filters.author_id}
        if filters.category:
            where["category"] = filters.category
        if filters.is_featured is not None:
            where["isFeatured"] = filters.is_featured
        if filters.allow_comments is not None:
            where["allowComments"] = filters.allow_comments
        if filters.tags:
            where["tags_contains_some"] = list(filters.tags)
        clause = search_clause(filters.search, ("title", "content", "excerpt"))
        if clause:
            where["OR"] = clause
        add_range(where, "dateCreated", filters.date_from, filters.date_to)
        add_range(where, "publishedAt", filters.published_from, filters.published_to)
        return where

    def get_by_slug(self, slug: str) -> dict | None:
        return self.find_one({"slug": slug}) if slug else None

    def create(self, data: dict, author_id: str) -> dict:
        status = data.get("status") or BlogStatus.DRAFT
        status = BlogStatus(status)
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "content": data["content"],
            "excerpt": data.get("excerpt"),
            "slug": data.get("slug") or generate_slug(data["title"]),
            "status": status.value,
            "featuredImage": data.get("featuredImage"),
            "tags": data.get("tags") or [],
            "category": data.get("category"),
            "likes": 0,
            "views": 0,
            "isFeatured": bool(data.get("isFeatured", False)),
            "allowComments": data.get("allowComments") is not False,
            "publishedAt": now if status == BlogStatus.PUBLISHED else None,
            "author": connect(author_id),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_post(self, post_id: str, data: dict, current: dict | None = None) -> dict:
        allowed = ("title", "content", "excerpt", "slug", "status", "featuredImage", "tags", "category", "isFeatured", "allowComments")
        changes = {k: data[k] for k in allowed if data.get(k) is not None}
        if "status" in changes:
            changes["status"] = BlogStatus(changes["status"]).value
            if changes["status"] == BlogStatus.PUBLISHED.value and not (current or {}).get("publishedAt"):
                changes["publishedAt"] = utc_now_iso()
        changes["dateUpdated"] = utc_now_iso()
        return self.update(post_id, changes)

    def set_status(self, post_id: str, status: BlogStatus, current: dict | None = None) -> dict:
        return self.update_post(post_id, {"status": status.value}, current)

    def publish(self, post_id: str, current: dict | None = None) -> dict:
        return self.set_status(post_id, BlogStatus.PUBLISHED, current)

    def unpublish(self, post_id: str) -> dict:
        return self.set_status(post_id, BlogStatus.DRAFT)

    def archive(self, post_id: str) -> dict:
        return self.set_status(post_id, BlogStatus.ARCHIVED)

    def set_featured(self, post_id: str, is_featured: bool) -> dict:
        return self.update(post_id, {"isFeatured": is_featured, "dateUpdated": utc_now_iso()})

    def set_comments(self, post_id: str, allow_comments: bool) -> dict:
        return self.update(post_id, {"allowComments": allow_comments, "dateUpdated": utc_now_iso()})

    def like(self, post_id: str) -> dict:
        return self.adjust_counter(post_id, "likes", 1)

    def unlike(self, post_id: str) -> dict:
        return self.adjust_counter(post_id, "likes", -1)

    def increment_views(self, post_id: str) -> dict:
        return self.adjust_counter(post_id, "views", 1)

    def published(self, limit: int = 10, offset: int = 0, filters: BlogFilters | None = None) -> list[dict]:
        filters = filters or BlogFilters()
        filters.status = BlogStatus.PUBLISHED
        return self.list(limit, offset, filters, order_by="publishedAt_DESC")

    def featured(self, limit: int = 10) -> list[dict]:
        return self.list(limit, 0, BlogFilters(status=BlogStatus.PUBLISHED, is_featured=True), order_by="publishedAt_DESC")

    def recent(self, limit: int = 20) -> list[dict]:
        return self.published(limit)

    def by_category(self, category: str, limit: int = 100) -> list[dict]:
        return self.list(limit, 0, BlogFilters(status=BlogStatus.PUBLISHED, category=category), order_by="publishedAt_DESC")

    def by_tag(self, tag: str, limit: int = 100) -> list[dict]:
        return self.list(limit, 0, BlogFilters(status=BlogStatus.PUBLISHED, tags=[tag]), order_by="publishedAt_DESC")

    def search(self, term: str, limit: int = 50) -> list[dict]:
        return self.list(limit, 0, BlogFilters(status=BlogStatus.PUBLISHED, search=term), order_by="publishedAt_DESC")

    def get_published(self, post_id: str) -> dict:
        """Fetch a post for reading; published posts count a view."""
        post = self.get_by_id(post_id)
        if not post:
            raise NotFound("Blog post not found")
        if post.get("status") == BlogStatus.PUBLISHED.value:
            post = self.increment_views(post_id)
        return post

    def _summarize(self, posts: list[dict]) -> dict:
        by_status = Counter(p.get("status") for p in posts)
        return {
            "totalPosts": len(posts),
            "publishedPosts": by_status[BlogStatus.PUBLISHED.value],
            "draftPosts": by_status[BlogStatus.DRAFT.value],
            "archivedPosts": by_status[BlogStatus.ARCHIVED.value],
            "featuredPosts": sum(1 for p in posts if p.get("isFeatured")),
            "totalLikes": sum(int(p.get("likes") or 0) for p in posts),
            "totalViews": sum(int(p.get("views") or 0) for p in posts),
        }

    def get_stats(self) -> dict:
        posts = list(self.iter_all(BlogFilters()))
        stats = self._summarize(posts)
        stats["postsByCategory"] = dict(Counter(p.get("category") or "Uncategorized" for p in posts))
        stats["postsByTag"] = dict(Counter(tag for p in posts for tag in (p.get("tags") or [])))
        return stats

    def get_author_stats(self, author_id: str) -> dict:
        return self._summarize(list(self.iter_all(BlogFilters(author_id=author_id))))
