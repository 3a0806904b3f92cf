"""
Enumerations shared by schemas, services and validation.
Values match the Hygraph enum names.
"""
from enum import Enum


class ChoiceEnum(str, Enum):
    @classmethod
    def parse(cls, value: str | None):
        """Case-insensitive lookup; None when the value is not a member."""
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None

    @classmethod
    def values(cls) -> list[str]:
        return [m.value for m in cls]


class UserRole(ChoiceEnum):
    STUDENT = "STUDENT"
    TEACHER = "TEACHER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"


class BlogStatus(ChoiceEnum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"


class EventType(ChoiceEnum):
    ACADEMIC = "ACADEMIC"
    SOCIAL = "SOCIAL"
    SPORTS = "SPORTS"
    CULTURAL = "CULTURAL"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    EXAM = "EXAM"
    HOLIDAY = "HOLIDAY"


class RecurrencePattern(ChoiceEnum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    YEARLY = "YEARLY"


class TicketStatus(ChoiceEnum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    RESOLVED = "RESOLVED"
    CLOSED = "CLOSED"


class TicketPriority(ChoiceEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    URGENT = "URGENT"


class TicketCategory(ChoiceEnum):
    TECHNICAL = "TECHNICAL"
    ACADEMIC = "ACADEMIC"
    ADMINISTRATIVE = "ADMINISTRATIVE"
    GENERAL = "GENERAL"
    BUG_REPORT = "BUG_REPORT"
    FEATURE_REQUEST = "FEATURE_REQUEST"


class EnrollmentStatus(ChoiceEnum):
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    DROPPED = "DROPPED"


def one_of(enum_cls: type[ChoiceEnum]) -> str:
    """'A, B, or C' for error messages."""
    values = enum_cls.values()
    if len(values) < 3:
        return " or ".join(values)
    return f"{', '.join(values[:-1])}, or {values[-1]}"
