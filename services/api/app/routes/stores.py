"""Store listing endpoints (aggregates only, no rater identities).

GET /v1/stores          - filtered, sorted, paginated listing
GET /v1/stores/top      - best-rated stores (admin / user)
GET /v1/stores/{id}     - one store with its aggregate
"""

from fastapi import APIRouter, Depends, Query

from app.routes.deps import get_identity
from app.schemas import StorePage, StoreSummary, TopStore
from app.services.identity import Identity
from app.services.listings import get_store_summary, list_stores, list_top_stores

router = APIRouter()


@router.get("", response_model=StorePage)
async def get_stores(
    name: str | None = Query(default=None, max_length=60, description="Substring of the store name"),
    address: str | None = Query(default=None, max_length=400, description="Substring of the address"),
    sort_by: str = Query(default="name", alias="sortBy", examples=["name", "average", "created_at"]),
    sort_order: str = Query(default="asc", alias="sortOrder", examples=["asc", "desc"]),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    identity: Identity = Depends(get_identity),
) -> StorePage:
    return await list_stores(
        identity,
        name=name,
        address=address,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )


@router.get("/top", response_model=list[TopStore])
async def get_best_stores(
    n: int = Query(default=5, ge=1, le=50),
    identity: Identity = Depends(get_identity),
) -> list[TopStore]:
    return await list_top_stores(identity, n)


@router.get("/{store_id}", response_model=StoreSummary)
async def get_store(
    store_id: int,
    identity: Identity = Depends(get_identity),
) -> StoreSummary:
    return await get_store_summary(identity, store_id)
