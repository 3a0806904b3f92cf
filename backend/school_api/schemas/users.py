"""
User request schemas. Rule checks (email format, name length, role) run in services.validation
so failures come back as the 400 validation envelope.
"""
from pydantic import BaseModel


class CreateUserRequest(BaseModel):
    email: str | None = None
    displayName: str | None = None
    password: str | None = None
    role: str | None = None


class ProfileRequest(BaseModel):
    displayName: str | None = None
    # Accepted for compatibility with older clients; role changes are admin-only and this is ignored.
    role: str | None = None


class UpdateRoleRequest(BaseModel):
    role: str | None = None
