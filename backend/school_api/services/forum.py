"""
Forum threads and posts. Replies are one level deep: a post's parent must be a top-level post of the same thread.
"""
from collections import Counter
from dataclasses import dataclass, replace

from school_api.errors import BadRequest, NotFound
from school_api.services.hygraph import HygraphClient
from school_api.services.operations import FORUM_POST, FORUM_THREAD
from school_api.services.resource import HygraphResource, add_range, connect, search_clause, utc_now_iso


@dataclass
class ThreadFilters:
    category: str | None = None
    course_id: str | None = None
    author_id: str | None = None
    is_pinned: bool | None = None
    is_locked: bool | None = None
    is_active: bool | None = None
    search: str | None = None
    date_from: str | None = None
    date_to: str | None = None


@dataclass
class PostFilters:
    thread_id: str | None = None
    author_id: str | None = None
    is_active: bool | None = None
    course_id: str | None = None


class ForumPostService(HygraphResource):
    model = FORUM_POST

    def build_where(self, filters: PostFilters) -> dict:
        where: dict = {}
        if filters.thread_id:
            where["thread"] = {"id": filters.thread_id}
        elif filters.course_id:
            where["thread"] = {"course": {"id": filters.course_id}}
        if filters.author_id:
            where["author"] = {"id": filters.author_id}
        if filters.is_active is not None:
            where["isActive"] = filters.is_active
        return where


class ForumService(HygraphResource):
    model = FORUM_THREAD

    def __init__(self, client: HygraphClient):
        super().__init__(client)
        self.posts = ForumPostService(client)

    def build_where(self, filters: ThreadFilters) -> dict:
        where: dict = {}
        if filters.category:
            where["category"] = filters.category
        if filters.course_id:
            where["course"] = {"id": filters.course_id}
        if filters.author_id:
            where["author"] = {"id": filters.author_id}
        for field, value in (("isPinned", filters.is_pinned), ("isLocked", filters.is_locked), ("isActive", filters.is_active)):
            if value is not None:
                where[field] = value
        clause = search_clause(filters.search, ("title", "body"))
        if clause:
            where["OR"] = clause
        add_range(where, "dateCreated", filters.date_from, filters.date_to)
        return where

    # ===== threads =====

    def create_thread(self, data: dict, author_id: str) -> dict:
        now = utc_now_iso()
        return self.create_record({
            "title": data["title"].strip(),
            "body": data["body"],
            "category": data.get("category") or "General",
            "isPinned": False,
            "isLocked": False,
            "isActive": True,
            "likes": 0,
            "views": 0,
            "author": connect(author_id),
            "course": connect(data.get("courseId")),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def update_thread(self, thread_id: str, data: dict) -> dict:
        changes = {k: data[k] for k in ("title", "body", "category") if data.get(k) is not None}
        changes["dateUpdated"] = utc_now_iso()
        return self.update(thread_id, changes)

    def _set(self, thread_id: str, field: str, value: bool) -> dict:
        return self.update(thread_id, {field: value, "dateUpdated": utc_now_iso()})

    def set_pinned(self, thread_id: str, value: bool) -> dict:
        return self._set(thread_id, "isPinned", value)

    def set_locked(self, thread_id: str, value: bool) -> dict:
        return self._set(thread_id, "isLocked", value)

    def set_active(self, thread_id: str, value: bool) -> dict:
        return self._set(thread_id, "isActive", value)

    def like_thread(self, thread_id: str) -> dict:
        return self.adjust_counter(thread_id, "likes", 1)

    def unlike_thread(self, thread_id: str) -> dict:
        return self.adjust_counter(thread_id, "likes", -1)

    def view_thread(self, thread_id: str) -> dict:
        """Fetch a thread and count the view."""
        if not self.get_by_id(thread_id):
            raise NotFound("Forum thread not found")
        return self.adjust_counter(thread_id, "views", 1)

    def pinned(self, limit: int = 10) -> list[dict]:
        return self.list(limit, 0, ThreadFilters(is_active=True, is_pinned=True))

    def search(self, term: str, limit: int = 50) -> list[dict]:
        return self.list(limit, 0, ThreadFilters(is_active=True, search=term))

    # ===== posts =====

    def create_post(self, data: dict, author_id: str) -> dict:
        thread_id = data["threadId"]
        parent_id = data.get("parentPostId")
        if parent_id:
            parent = self.posts.get_by_id(parent_id)
            if not parent or (parent.get("thread") or {}).get("id") != thread_id:
                raise NotFound("Parent post not found")
            if parent.get("parentPost"):
                raise BadRequest("Replies can only be made to top-level posts")
        now = utc_now_iso()
        return self.posts.create_record({
            "body": data["body"],
            "likes": 0,
            "isActive": True,
            "author": connect(author_id),
            "thread": connect(thread_id),
            "parentPost": connect(parent_id),
            "dateCreated": now,
            "dateUpdated": now,
        })

    def list_posts(self, thread_id: str, limit: int = 10, offset: int = 0) -> list[dict]:
        return self.posts.list(limit, offset, PostFilters(thread_id=thread_id, is_active=True))

    def count_posts(self, thread_id: str) -> int:
        return self.posts.count(PostFilters(thread_id=thread_id, is_active=True))

    def get_post(self, post_id: str) -> dict | None:
        return self.posts.get_by_id(post_id)

    def update_post(self, post_id: str, data: dict) -> dict:
        return self.posts.update(post_id, {"body": data.get("body"), "dateUpdated": utc_now_iso()})

    def delete_post(self, post_id: str) -> bool:
        return self.posts.delete(post_id)

    def like_post(self, post_id: str) -> dict:
        return self.posts.adjust_counter(post_id, "likes", 1)

    def unlike_post(self, post_id: str) -> dict:
        return self.posts.adjust_counter(post_id, "likes", -1)

    # ===== stats =====

    def get_stats(self) -> dict:
        base = ThreadFilters()
        threads = list(self.iter_all(base))
        return {
            "totalThreads": len(threads),
            "activeThreads": self.count(replace(base, is_active=True)),
            "pinnedThreads": self.count(replace(base, is_pinned=True)),
            "lockedThreads": self.count(replace(base, is_locked=True)),
            "totalPosts": self.posts.count(PostFilters()),
            "activePosts": self.posts.count(PostFilters(is_active=True)),
            "threadsByCategory": dict(Counter(t.get("category") or "General" for t in threads)),
        }

    def get_author_stats(self, author_id: str) -> dict:
        threads = list(self.iter_all(ThreadFilters(author_id=author_id)))
        posts = list(self.posts.iter_all(PostFilters(author_id=author_id)))
        return {
            "totalThreads": len(threads),
            "activeThreads": sum(1 for t in threads if t.get("isActive")),
            "totalPosts": len(posts),
            "activePosts": sum(1 for p in posts if p.get("isActive")),
            "totalLikes": sum(int(x.get("likes") or 0) for x in threads + posts),
        }

    def get_course_stats(self, course_id: str) -> dict:
        base = ThreadFilters(course_id=course_id)
        return {
            "totalThreads": self.count(base),
            "activeThreads": self.count(replace(base, is_active=True)),
            "pinnedThreads": self.count(replace(base, is_pinned=True)),
            "totalPosts": self.posts.count(PostFilters(course_id=course_id)),
        }
