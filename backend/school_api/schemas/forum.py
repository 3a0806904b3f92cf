"""
Forum request schemas.
"""
from pydantic import BaseModel


class ThreadRequest(BaseModel):
    title: str | None = None
    body: str | None = None
    category: str | None = None
    courseId: str | None = None


class PostRequest(BaseModel):
    body: str | None = None
    threadId: str | None = None
    parentPostId: str | None = None


class PinRequest(BaseModel):
    isPinned: bool = True


class LockRequest(BaseModel):
    isLocked: bool = True


class ThreadActiveRequest(BaseModel):
    isActive: bool = True
