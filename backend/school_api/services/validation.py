"""
Request validation rules: pure functions returning the list of failed-rule messages.
An empty list means the payload passed. Routers raise ValidationFailed with the list.
"""
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from school_api.errors import BadRequest
from school_api.schemas.common import UserRole

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def is_valid_email(value: Any) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value))


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _too_short(value: Any, minimum: int) -> bool:
    return len(_text(value)) < minimum


def _out_of_range(value: Any, low: int, high: int) -> bool:
    """True when value is present and not a number within [low, high]; fractions are accepted."""
    if value is None:
        return False
    try:
        n = float(value)
    except (TypeError, ValueError):
        return True
    return not (low <= n <= high)


def parse_datetime(value: Any) -> datetime | None:
    """Parse ISO-8601 strings (with or without time / Z suffix). Naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        raw = value.strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def validate_user_registration(data: dict) -> list[str]:
    errors = []
    if not is_valid_email(data.get("email")):
        errors.append("Valid email is required")
    if _too_short(data.get("displayName"), 2):
        errors.append("Display name must be at least 2 characters long")
    role = data.get("role")
    if role is not None and UserRole.parse(role) is None:
        errors.append("Invalid role specified")
    return errors


def validate_course_creation(data: dict) -> list[str]:
    errors = []
    if _too_short(data.get("title"), 3):
        errors.append("Course title must be at least 3 characters long")
    if _too_short(data.get("description"), 10):
        errors.append("Course description must be at least 10 characters long")
    if _too_short(data.get("syllabus"), 10):
        errors.append("Course syllabus must be at least 10 characters long")
    if _too_short(data.get("category"), 2):
        errors.append("Course category is required")
    if _out_of_range(data.get("duration"), 1, 52):
        errors.append("Duration must be between 1 and 52 weeks")
    if _out_of_range(data.get("maxStudents"), 1, 500):
        errors.append("Max students must be between 1 and 500")
    return errors


ASSIGNMENT_RULES = (
    ("title", 3, "Assignment title must be at least 3 characters long"),
    ("description", 10, "Assignment description must be at least 10 characters long"),
    ("instructions", 10, "Assignment instructions must be at least 10 characters long"),
)


def validate_assignment_creation(data: dict, now: datetime | None = None, partial: bool = False) -> list[str]:
    """Full check for creation; with partial=True only the fields present are checked (updates)."""
    errors = []
    for field, minimum, message in ASSIGNMENT_RULES:
        if partial and field not in data:
            continue
        if _too_short(data.get(field), minimum):
            errors.append(message)
    if not partial or "dueDate" in data:
        due = parse_datetime(data.get("dueDate"))
        if due is None:
            errors.append("Valid due date is required")
        elif due <= (now or datetime.now(timezone.utc)):
            errors.append("Due date must be in the future")
    if not partial or "maxPoints" in data:
        if data.get("maxPoints") is None or _out_of_range(data.get("maxPoints"), 1, 1000):
            errors.append("Max points must be between 1 and 1000")
    return errors


def validate_forum_post_creation(data: dict) -> list[str]:
    errors = []
    if _too_short(data.get("title"), 5):
        errors.append("Post title must be at least 5 characters long")
    if _too_short(data.get("content"), 10):
        errors.append("Post content must be at least 10 characters long")
    return errors


@dataclass(frozen=True)
class Pagination:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _as_int(value: Any, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def validate_pagination(page: Any = None, limit: Any = None) -> Pagination:
    """Normalize page/limit query values. Raises BadRequest when out of range."""
    p = _as_int(page, DEFAULT_PAGE)
    n = _as_int(limit, DEFAULT_LIMIT)
    if p < 1:
        raise BadRequest("Page number must be greater than 0")
    if n < 1 or n > MAX_LIMIT:
        raise BadRequest(f"Limit must be between 1 and {MAX_LIMIT}")
    return Pagination(page=p, limit=n)


def missing_fields(data: dict, fields: tuple[str, ...]) -> list[str]:
    """Names of required fields that are absent or blank."""
    out = []
    for f in fields:
        v = data.get(f)
        if v is None or (isinstance(v, str) and not v.strip()):
            out.append(f)
    return out
