"""Dashboard endpoint.

GET /v1/dashboard - role-specific payload for the caller.
"""

from fastapi import APIRouter, Depends

from app.routes.deps import get_identity
from app.schemas import AdminDashboard, StoreOwnerDashboard, UserDashboard
from app.services.dashboard import compose_dashboard
from app.services.identity import Identity

router = APIRouter()


@router.get("", response_model=AdminDashboard | StoreOwnerDashboard | UserDashboard)
async def get_dashboard(identity: Identity = Depends(get_identity)):
    return await compose_dashboard(identity)
