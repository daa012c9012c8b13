"""Schemas for the role-specific dashboards (/v1/dashboard)."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from app.schemas.stats import DistributionBucket, GlobalStats, StoreStats, TopStore


class RecentUser(BaseModel):
    id: int
    name: str
    email: str
    role: str
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class RecentStore(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime = Field(alias="createdAt")

    model_config = {"populate_by_name": True}


class RecentRating(BaseModel):
    """A recent rating joined with store (and, where visible, rater) names."""

    rating_id: str = Field(alias="ratingId")
    score: int
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    store_id: int = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    user_name: str | None = Field(alias="userName", default=None)

    model_config = {"populate_by_name": True}


class RecentActivity(BaseModel):
    users: list[RecentUser]
    stores: list[RecentStore]
    ratings: list[RecentRating]


class AdminDashboard(BaseModel):
    stats: GlobalStats
    recent_activity: RecentActivity = Field(alias="recentActivity")
    rating_distribution: list[DistributionBucket] = Field(alias="ratingDistribution")
    top_stores: list[TopStore] = Field(alias="topStores")

    model_config = {"populate_by_name": True}


class OwnedStore(BaseModel):
    """One store of the owner with its statistics."""

    store_id: int = Field(alias="storeId")
    name: str
    email: str
    address: str | None = None
    created_at: datetime = Field(alias="createdAt")
    stats: StoreStats

    model_config = {"populate_by_name": True}


class OwnerOverall(BaseModel):
    """Aggregate across every store of one owner (weighted by rating count)."""

    total_stores: int = Field(alias="totalStores")
    average: Decimal
    total_ratings: int = Field(alias="totalRatings")

    model_config = {"populate_by_name": True}


class StoreRaters(BaseModel):
    store_id: int = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    unique_raters: int = Field(alias="uniqueRaters")
    rater_names: list[str] = Field(alias="raterNames", default_factory=list)

    model_config = {"populate_by_name": True}


class StoreOwnerDashboard(BaseModel):
    stores: list[OwnedStore]
    overall: OwnerOverall
    recent_ratings: list[RecentRating] = Field(alias="recentRatings")
    rating_distribution: list[DistributionBucket] = Field(alias="ratingDistribution")
    store_raters: list[StoreRaters] = Field(alias="storeRaters")

    model_config = {"populate_by_name": True}


class UserStats(BaseModel):
    total_ratings_given: int = Field(alias="totalRatingsGiven")
    average_rating_given: Decimal = Field(alias="averageRatingGiven")

    model_config = {"populate_by_name": True}


class RecommendedStore(BaseModel):
    store_id: int = Field(alias="storeId")
    name: str
    address: str | None = None
    average: Decimal
    count: int

    model_config = {"populate_by_name": True}


class NeedsRatingStore(BaseModel):
    store_id: int = Field(alias="storeId")
    name: str
    address: str | None = None
    count: int

    model_config = {"populate_by_name": True}


class UserDashboard(BaseModel):
    user_stats: UserStats = Field(alias="userStats")
    recent_ratings: list[RecentRating] = Field(alias="recentRatings")
    rating_distribution: list[DistributionBucket] = Field(alias="ratingDistribution")
    recommended_stores: list[RecommendedStore] = Field(alias="recommendedStores")
    needs_rating_stores: list[NeedsRatingStore] = Field(alias="needsRatingStores")

    model_config = {"populate_by_name": True}
