"""Request dependencies.

The auth gateway in front of this service verifies credentials and forwards
the caller as X-User-Id / X-User-Role headers. Routes only turn those into an
Identity; they never check credentials themselves.
"""

from fastapi import Header

from app.services.errors import MAX_ID
from app.services.identity import Identity, Role


async def get_identity(
    x_user_id: int = Header(ge=1, le=MAX_ID, description="Authenticated user id"),
    x_user_role: Role = Header(description="Role of the authenticated user"),
) -> Identity:
    return Identity(id=x_user_id, role=x_user_role)
