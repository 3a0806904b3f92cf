"""
Identity attached to every authenticated request.
"""
from pydantic import BaseModel

from school_api.schemas.common import UserRole


class CurrentUser(BaseModel):
    uid: str
    email: str | None = None
    role: UserRole = UserRole.STUDENT
    # Hygraph AppUser id; None until the user has created a profile.
    hygraph_id: str | None = None
    display_name: str | None = None

    @property
    def id(self) -> str:
        """Single identity key compared against resource owner ids."""
        return self.hygraph_id or self.uid

    def is_self(self, user_id: str | None) -> bool:
        return bool(user_id) and user_id in (self.uid, self.hygraph_id)
