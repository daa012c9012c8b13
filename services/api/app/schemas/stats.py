"""Schemas for derived statistics and store listings."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.common import Pagination


class StoreStats(BaseModel):
    """Count, 2-decimal average and 1..5 distribution of a rating set."""

    count: int = Field(ge=0)
    average: Decimal
    distribution: dict[int, int]


class DistributionBucket(BaseModel):
    """Number of ratings with a given score."""

    score: int = Field(ge=1, le=5)
    count: int = Field(ge=0)


class GlobalStats(BaseModel):
    """Platform-wide entity counts."""

    total_users: int = Field(alias="totalUsers")
    total_stores: int = Field(alias="totalStores")
    total_ratings: int = Field(alias="totalRatings")
    users_by_role: dict[str, int] = Field(alias="usersByRole")

    model_config = {"populate_by_name": True}


class TopStore(BaseModel):
    """A ranked store with its aggregate."""

    store_id: int = Field(alias="storeId")
    name: str
    email: str
    average: Decimal
    count: int

    model_config = {"populate_by_name": True}


class StoreSummary(BaseModel):
    """A store listing row: master data, aggregate and the caller's own score."""

    id: int
    name: str
    email: str
    address: str | None = None
    created_at: datetime = Field(alias="createdAt")
    average: Decimal
    count: int
    user_rating: int | None = Field(alias="userRating", default=None)

    model_config = {"populate_by_name": True}


class StorePage(BaseModel):
    """Paginated store listing."""

    stores: list[StoreSummary]
    pagination: Pagination
