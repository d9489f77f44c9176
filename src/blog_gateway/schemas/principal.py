"""Identity resolved from the shared session store."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Principal(BaseModel):
    """Authenticated identity for a single request.

    Built from the session record on every request and never stored except
    through the local user mirror.
    """

    id: str
    username: str | None = None
    email: str = ""
    role: str = "user"
    avatar_url: str | None = None
    external_id: str | None = None
    account_id: str | None = None

    model_config = ConfigDict(frozen=True)

    def has_role(self, *roles: str) -> bool:
        """Return True if the principal holds any of ``roles``."""
        return self.role in roles
