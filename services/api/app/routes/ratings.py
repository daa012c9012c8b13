"""Rating endpoints.

POST   /v1/ratings                      - submit or update own rating (user)
DELETE /v1/ratings/{rating_id}          - delete (rater or admin)
GET    /v1/ratings                      - all ratings (admin)
GET    /v1/ratings/store/{id}           - ratings of one store (admin / owner)
GET    /v1/ratings/store/{id}/mine      - caller's rating on a store
GET    /v1/ratings/store/{id}/stats     - store statistics (owners: own stores only)

Routers are thin: call services for business logic.
"""

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status

from app.routes.deps import get_identity
from app.schemas import (
    MyRatingResponse,
    RatingOut,
    RatingPage,
    StoreRatingPage,
    StoreStats,
    SubmitRatingRequest,
    SubmitRatingResponse,
)
from app.services.identity import Identity
from app.services.listings import get_store_stats_for, list_all_ratings, list_store_ratings
from app.services.rating_store import delete_rating, get_user_rating, submit_rating

router = APIRouter()


@router.post("", response_model=SubmitRatingResponse)
async def post_rating(
    body: SubmitRatingRequest,
    response: Response,
    identity: Identity = Depends(get_identity),
) -> SubmitRatingResponse:
    """Submit a rating; resubmitting for the same store updates it."""
    rating, created = await submit_rating(identity, body.store_id, body.score)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return SubmitRatingResponse(
        message="Rating submitted successfully" if created else "Rating updated successfully",
        created=created,
        rating=RatingOut.model_validate(rating),
    )


@router.delete("/{rating_id}")
async def remove_rating(
    rating_id: str,
    identity: Identity = Depends(get_identity),
) -> dict[str, str]:
    await delete_rating(identity, rating_id)
    return {"message": "Rating deleted successfully"}


@router.get("", response_model=RatingPage)
async def get_all_ratings(
    sort_by: Literal["created_at", "score"] = Query(default="created_at", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query(default="desc", alias="sortOrder"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    identity: Identity = Depends(get_identity),
) -> RatingPage:
    return await list_all_ratings(
        identity, sort_by=sort_by, sort_order=sort_order, page=page, limit=limit
    )


@router.get("/store/{store_id}", response_model=StoreRatingPage)
async def get_store_ratings(
    store_id: int,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    identity: Identity = Depends(get_identity),
) -> StoreRatingPage:
    return await list_store_ratings(identity, store_id, page=page, limit=limit)


@router.get("/store/{store_id}/mine", response_model=MyRatingResponse)
async def get_my_rating(
    store_id: int,
    identity: Identity = Depends(get_identity),
) -> MyRatingResponse:
    rating = await get_user_rating(identity, store_id)
    return MyRatingResponse(rating=RatingOut.model_validate(rating) if rating else None)


@router.get("/store/{store_id}/stats", response_model=StoreStats)
async def get_store_rating_stats(
    store_id: int,
    identity: Identity = Depends(get_identity),
) -> StoreStats:
    return await get_store_stats_for(identity, store_id)
