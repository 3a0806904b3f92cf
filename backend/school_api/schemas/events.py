"""
Event request schemas.
"""
from pydantic import AliasChoices, BaseModel, Field


class EventRequest(BaseModel):
    title: str | None = None
    description: str | None = None
    date: str | None = None
    time: str | None = None
    location: str | None = None
    eventType: str | None = None
    isRecurring: bool | None = None
    recurrencePattern: str | None = None
    recurrenceEndDate: str | None = None
    maxAttendees: int | None = None
    requiresRegistration: bool | None = None
    registrationDeadline: str | None = None
    isPublic: bool | None = None
    courseId: str | None = None


class ActiveRequest(BaseModel):
    isActive: bool = True


class PublicRequest(BaseModel):
    isPublic: bool = True


class RegistrationRequest(BaseModel):
    requiresRegistration: bool = True


class DeadlineRequest(BaseModel):
    deadline: str | None = Field(None, validation_alias=AliasChoices("deadline", "registrationDeadline"))
