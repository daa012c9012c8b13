"""Pydantic schemas for API request/response validation."""

from app.schemas.common import ErrorDetail, ErrorResponse, Pagination
from app.schemas.dashboard import (
    AdminDashboard,
    NeedsRatingStore,
    OwnedStore,
    OwnerOverall,
    RecentActivity,
    RecentRating,
    RecentStore,
    RecentUser,
    RecommendedStore,
    StoreOwnerDashboard,
    StoreRaters,
    UserDashboard,
    UserStats,
)
from app.schemas.ratings import (
    MyRatingResponse,
    RatingEntry,
    RatingOut,
    RatingPage,
    StoreRatingEntry,
    StoreRatingPage,
    SubmitRatingRequest,
    SubmitRatingResponse,
)
from app.schemas.stats import (
    DistributionBucket,
    GlobalStats,
    StorePage,
    StoreStats,
    StoreSummary,
    TopStore,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "Pagination",
    "AdminDashboard",
    "NeedsRatingStore",
    "OwnedStore",
    "OwnerOverall",
    "RecentActivity",
    "RecentRating",
    "RecentStore",
    "RecentUser",
    "RecommendedStore",
    "StoreOwnerDashboard",
    "StoreRaters",
    "UserDashboard",
    "UserStats",
    "MyRatingResponse",
    "RatingEntry",
    "RatingOut",
    "RatingPage",
    "StoreRatingEntry",
    "StoreRatingPage",
    "SubmitRatingRequest",
    "SubmitRatingResponse",
    "DistributionBucket",
    "GlobalStats",
    "StorePage",
    "StoreStats",
    "StoreSummary",
    "TopStore",
]
