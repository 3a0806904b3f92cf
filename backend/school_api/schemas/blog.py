"""
Blog request schemas.
"""
from typing import Any

from pydantic import BaseModel


class BlogPostRequest(BaseModel):
    title: str | None = None
    content: str | None = None
    excerpt: str | None = None
    slug: str | None = None
    status: str | None = None
    featuredImage: str | None = None
    # Any so a non-list value reaches the "Tags must be an array" check instead of a type error.
    tags: Any = None
    category: str | None = None
    isFeatured: bool | None = None
    allowComments: bool | None = None


class FeaturedRequest(BaseModel):
    isFeatured: bool = True


class CommentsRequest(BaseModel):
    allowComments: bool = True
