"""Auth API - session validity and logout."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .client import AdminClient


class AuthAPI:
    """Session endpoints of the backend auth service."""

    def __init__(self, client: "AdminClient"):
        self._client = client

    async def check_session(self, email: str) -> dict[str, Any]:
        """Check whether the user's session is still valid.

        Returns:
            {"valid": bool, "user": {...}}
        """
        return await self._client._get("/api/auth/check-session", email=email)

    async def logout(self, email: str) -> dict[str, Any]:
        """End the user's session on the server."""
        return await self._client._post("/api/auth/logout", {"email": email})
