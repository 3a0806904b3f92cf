"""
Support ticket and contact-form request schemas.
"""
from pydantic import BaseModel


class TicketRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None
    priority: str | None = None
    category: str | None = None


class TicketUpdateRequest(BaseModel):
    subject: str | None = None
    message: str | None = None
    status: str | None = None
    priority: str | None = None
    category: str | None = None
    resolution: str | None = None
    assignedToId: str | None = None


class AssignRequest(BaseModel):
    assignedToId: str | None = None


class StatusRequest(BaseModel):
    status: str | None = None


class ResolveRequest(BaseModel):
    resolution: str | None = None


class PriorityRequest(BaseModel):
    priority: str | None = None


class CategoryRequest(BaseModel):
    category: str | None = None


class ContactRequest(BaseModel):
    name: str | None = None
    email: str | None = None
    subject: str | None = None
    message: str | None = None
