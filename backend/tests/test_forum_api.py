"""
Forum API: thread rules, locked threads, one-level replies, course-scoped threads and moderation.
"""
import pytest


@pytest.fixture
def thread(hygraph, users):
    return hygraph.add("ForumThread", {
        "title": "Fasting season questions",
        "body": "What is the schedule for Hudade this year?",
        "category": "General",
        "isPinned": False,
        "isLocked": False,
        "isActive": True,
        "likes": 0,
        "views": 0,
        "dateCreated": "2024-03-01T00:00:00Z",
        "author": {"id": users["student"]["id"]},
    })


def test_forum_requires_sign_in(api, thread):
    assert api.get("/api/forum/threads/public").status_code == 401


def test_create_thread_needs_title_and_body_only(api, users):
    api.login(users["student"])
    missing = api.post("/api/forum/threads", json={"title": "Hello"})
    assert missing.status_code == 400
    assert missing.json()["message"] == "Missing required fields: title, body"
    short = api.post("/api/forum/threads", json={"title": "Hi", "body": "Thanks"})
    assert short.status_code == 201
    assert short.json()["data"]["title"] == "Hi"


def test_create_thread(api, users):
    api.login(users["student"])
    response = api.post("/api/forum/threads", json={"title": "Choir schedule", "body": "When is practice this week?"})
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["category"] == "General"
    assert data["author"]["id"] == users["student"]["id"]
    assert data["isLocked"] is False


def test_course_thread_needs_enrollment(api, users, hygraph):
    course = hygraph.add("Course", {"title": "Ge'ez", "isActive": True, "instructor": {"id": users["teacher"]["id"]}})
    body = {"title": "Homework help", "body": "Stuck on the second exercise.", "courseId": course["id"]}
    api.login(users["student"])
    response = api.post("/api/forum/threads", json=body)
    assert response.status_code == 403
    assert response.json()["message"] == "You can only create threads for courses you are enrolled in or teaching"
    api.login(users["teacher"])
    assert api.post("/api/forum/threads", json=body).status_code == 201


def test_viewing_thread_counts_views(api, users, thread, hygraph):
    api.login(users["other_student"])
    assert api.get(f"/api/forum/threads/{thread['id']}").json()["data"]["views"] == 1
    assert hygraph.get("ForumThread", thread["id"])["views"] == 1


def test_missing_thread_is_404(api, users):
    api.login(users["student"])
    response = api.get("/api/forum/threads/nope")
    assert response.status_code == 404
    assert response.json()["message"] == "Forum thread not found"


def test_only_author_updates_thread(api, users, thread):
    url = f"/api/forum/threads/{thread['id']}"
    api.login(users["other_student"])
    assert api.put(url, json={"title": "Hijacked title"}).json()["message"] == "You can only update your own forum threads"
    api.login(users["student"])
    assert api.put(url, json={"title": "Hi"}).status_code == 200
    assert api.put(url, json={"title": "Fasting season schedule"}).json()["data"]["title"] == "Fasting season schedule"


def test_locked_thread_blocks_non_admin_posts(api, users, thread, hygraph):
    hygraph.stores["ForumThread"][thread["id"]]["isLocked"] = True
    api.login(users["student"])
    response = api.post("/api/forum/posts", json={"threadId": thread["id"], "body": "One more question"})
    assert response.status_code == 403
    assert response.json()["message"] == "Cannot post in locked thread"
    api.login(users["admin"])
    assert api.post("/api/forum/posts", json={"threadId": thread["id"], "body": "Closing note"}).status_code == 201


def test_replies_are_one_level_deep(api, users, thread):
    api.login(users["other_student"])
    top = api.post("/api/forum/posts", json={"threadId": thread["id"], "body": "Starts Monday."}).json()["data"]
    reply = api.post("/api/forum/posts", json={
        "threadId": thread["id"], "body": "Thanks!", "parentPostId": top["id"],
    })
    assert reply.status_code == 201
    nested = api.post("/api/forum/posts", json={
        "threadId": thread["id"], "body": "Me too", "parentPostId": reply.json()["data"]["id"],
    })
    assert nested.status_code == 400
    assert nested.json()["message"] == "Replies can only be made to top-level posts"


def test_reply_parent_must_be_in_same_thread(api, users, thread, hygraph):
    other = hygraph.add("ForumThread", {"title": "Other thread", "isActive": True, "isLocked": False})
    parent = hygraph.add("ForumPost", {"body": "Elsewhere", "isActive": True, "thread": {"id": other["id"]}})
    api.login(users["student"])
    response = api.post("/api/forum/posts", json={"threadId": thread["id"], "body": "Hi", "parentPostId": parent["id"]})
    assert response.status_code == 404
    assert response.json()["message"] == "Parent post not found"


def test_thread_posts_are_paginated(api, users, thread, hygraph):
    for i in range(3):
        hygraph.add("ForumPost", {
            "body": f"Post {i}",
            "isActive": True,
            "thread": {"id": thread["id"]},
            "dateCreated": f"2024-03-0{i + 2}T00:00:00Z",
        })
    hygraph.add("ForumPost", {"body": "Hidden", "isActive": False, "thread": {"id": thread["id"]}})
    api.login(users["student"])
    body = api.get(f"/api/forum/threads/{thread['id']}/posts", params={"limit": 2}).json()
    assert [p["body"] for p in body["data"]] == ["Post 0", "Post 1"]
    assert body["pagination"]["total"] == 3


def test_post_edit_and_delete_by_author_only(api, users, thread, hygraph):
    post = hygraph.add("ForumPost", {
        "body": "Original",
        "isActive": True,
        "thread": {"id": thread["id"]},
        "author": {"id": users["student"]["id"]},
    })
    url = f"/api/forum/posts/{post['id']}"
    api.login(users["other_student"])
    assert api.put(url, json={"body": "Edited"}).status_code == 403
    assert api.delete(url).status_code == 403
    api.login(users["student"])
    assert api.put(url, json={"body": " "}).json()["message"] == "Post body is required"
    assert api.put(url, json={"body": "Edited"}).json()["data"]["body"] == "Edited"
    assert api.delete(url).status_code == 200


def test_moderation_is_admin_only(api, users, thread):
    url = f"/api/forum/threads/{thread['id']}"
    api.login(users["teacher"])
    assert api.patch(f"{url}/pin", json={"isPinned": True}).status_code == 403
    api.login(users["admin"])
    assert api.patch(f"{url}/pin", json={"isPinned": True}).json()["message"] == "Forum thread pinned successfully"
    assert api.patch(f"{url}/lock", json={"isLocked": True}).json()["data"]["isLocked"] is True
    pinned = api.get("/api/forum/threads/pinned").json()["data"]
    assert [t["id"] for t in pinned] == [thread["id"]]


def test_thread_like_counter(api, users, thread):
    api.login(users["other_student"])
    url = f"/api/forum/threads/{thread['id']}/like"
    liked = api.post(url).json()
    assert liked["message"] == "Forum thread liked successfully"
    assert liked["data"]["likes"] == 1
    unliked = api.delete(url).json()
    assert unliked["message"] == "Forum thread unliked successfully"
    assert unliked["data"]["likes"] == 0
    assert api.delete(url).json()["data"]["likes"] == 0


def test_stats_overview(api, users, thread, hygraph):
    hygraph.add("ForumThread", {"title": "Pinned", "category": "Events", "isActive": True, "isPinned": True})
    hygraph.add("ForumPost", {"body": "Reply", "isActive": True, "thread": {"id": thread["id"]}})
    api.login(users["admin"])
    stats = api.get("/api/forum/stats/overview").json()["data"]
    assert stats["totalThreads"] == 2
    assert stats["pinnedThreads"] == 1
    assert stats["totalPosts"] == 1
    assert stats["threadsByCategory"] == {"General": 1, "Events": 1}


def test_post_messages(api, users, thread, hygraph):
    post = hygraph.add("ForumPost", {
        "body": "Original",
        "likes": 0,
        "isActive": True,
        "thread": {"id": thread["id"]},
        "author": {"id": users["student"]["id"]},
    })
    url = f"/api/forum/posts/{post['id']}"
    api.login(users["other_student"])
    assert api.put(url, json={"body": "Edited"}).json()["message"] == "You can only update your own forum posts"
    assert api.delete(url).json()["message"] == "You can only delete your own forum posts"
    assert api.post(f"{url}/like").json()["message"] == "Forum post liked successfully"
    assert api.delete(f"{url}/like").json()["message"] == "Forum post unliked successfully"


def test_moderation_messages(api, users, thread):
    url = f"/api/forum/threads/{thread['id']}"
    api.login(users["admin"])
    assert api.patch(f"{url}/lock", json={"isLocked": True}).json()["message"] == "Forum thread locked successfully"
    assert api.patch(f"{url}/active", json={"isActive": False}).json()["message"] == (
        "Forum thread deactivated successfully"
    )
    assert api.get("/api/forum/threads/pinned").json()["message"] == "Pinned forum threads retrieved successfully"
    assert api.get("/api/forum/threads/public").json()["message"] == "Public forum threads retrieved successfully"
