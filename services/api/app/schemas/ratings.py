"""Schemas for rating writes and rating listings (/v1/ratings)."""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import Pagination


class SubmitRatingRequest(BaseModel):
    """Body for POST /v1/ratings."""

    store_id: int = Field(alias="storeId", ge=1)
    score: int = Field(ge=1, le=5)

    model_config = {"populate_by_name": True}


class RatingOut(BaseModel):
    """A single rating as stored."""

    rating_id: str = Field(alias="ratingId")
    rater_id: int = Field(alias="raterId")
    store_id: int = Field(alias="storeId")
    score: int = Field(ge=1, le=5)
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")

    model_config = {"populate_by_name": True, "from_attributes": True}


class SubmitRatingResponse(BaseModel):
    """Result of a submit: the post-write rating and whether it was new."""

    message: str
    created: bool
    rating: RatingOut


class MyRatingResponse(BaseModel):
    """The caller's own rating on one store, if any."""

    rating: RatingOut | None = None


class StoreRatingEntry(BaseModel):
    """A rating on one store, including who submitted it."""

    rating_id: str = Field(alias="ratingId")
    score: int
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
    user_name: str = Field(alias="userName")
    user_email: str = Field(alias="userEmail")

    model_config = {"populate_by_name": True}


class RatingEntry(StoreRatingEntry):
    """A rating in the admin listing (adds the store it belongs to)."""

    store_id: int = Field(alias="storeId")
    store_name: str = Field(alias="storeName")
    store_email: str = Field(alias="storeEmail")


class StoreRatingPage(BaseModel):
    """Paginated ratings for one store."""

    ratings: list[StoreRatingEntry]
    pagination: Pagination


class RatingPage(BaseModel):
    """Paginated ratings across all stores."""

    ratings: list[RatingEntry]
    pagination: Pagination
