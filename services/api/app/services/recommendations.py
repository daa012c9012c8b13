"""Recommendation selector.

Two candidate lists per user, both restricted to stores the user has never
rated:

- recommended: enough ratings AND a high enough average
  (count >= 3 and average >= 4.0 by default), ranked average DESC,
  count DESC, store id ASC.
- needs rating: popular stores regardless of quality (count >= 5 by
  default), ranked count DESC, store id ASC.

The lists are computed independently and may overlap. Thresholds come from
settings (RecommendationPolicy); the filter shape is fixed.

The user's rated set is read in the same session as the aggregates, so a
rating written earlier in the same unit of work already excludes its store.
"""

from collections.abc import Collection, Iterable
from dataclasses import dataclass
from fractions import Fraction

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Rating
from app.schemas import NeedsRatingStore, RecommendedStore
from app.services.access import require_role
from app.services.aggregation import (
    StoreAggregate,
    fetch_store_aggregates,
    load_stores_by_id,
    ranking_key,
)
from app.services.errors import InvalidArgumentError
from app.services.identity import Identity, Role
from app.settings import Settings, get_settings
from app.stores.postgres import use_session


@dataclass(frozen=True)
class RecommendationPolicy:
    """Minimum sample size and quality bar for the candidate lists."""

    recommend_min_count: int = 3
    recommend_min_average: float = 4.0
    needs_rating_min_count: int = 5

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RecommendationPolicy":
        settings = settings or get_settings()
        return cls(
            recommend_min_count=settings.recommend_min_count,
            recommend_min_average=settings.recommend_min_average,
            needs_rating_min_count=settings.needs_rating_min_count,
        )


def _check_limit(limit: int) -> None:
    if limit < 0:
        raise InvalidArgumentError(f"Limit must be non-negative, got {limit}")


def select_recommended(
    aggregates: Iterable[StoreAggregate],
    rated_store_ids: Collection[int],
    limit: int,
    policy: RecommendationPolicy = RecommendationPolicy(),
) -> list[StoreAggregate]:
    """Unrated stores with count >= min_count and average >= min_average."""
    _check_limit(limit)
    min_average = Fraction(str(policy.recommend_min_average))
    candidates = [
        a
        for a in aggregates
        if a.store_id not in rated_store_ids
        and a.count >= policy.recommend_min_count
        and a.exact_average >= min_average
    ]
    return sorted(candidates, key=ranking_key)[:limit]


def select_needs_rating(
    aggregates: Iterable[StoreAggregate],
    rated_store_ids: Collection[int],
    limit: int,
    policy: RecommendationPolicy = RecommendationPolicy(),
) -> list[StoreAggregate]:
    """Unrated stores with count >= min_count, most-rated first."""
    _check_limit(limit)
    candidates = [
        a
        for a in aggregates
        if a.store_id not in rated_store_ids and a.count >= policy.needs_rating_min_count
    ]
    return sorted(candidates, key=lambda a: (-a.count, a.store_id))[:limit]


async def fetch_rated_store_ids(session: AsyncSession, user_id: int) -> frozenset[int]:
    result = await session.execute(select(Rating.store_id).where(Rating.rater_id == user_id))
    return frozenset(result.scalars().all())


async def get_recommended(
    identity: Identity,
    limit: int = 5,
    *,
    session: AsyncSession | None = None,
    policy: RecommendationPolicy | None = None,
) -> list[RecommendedStore]:
    """Recommended stores for a `user`-role caller."""
    require_role(identity, Role.USER)
    policy = policy or RecommendationPolicy.from_settings()

    async with use_session(session) as s:
        rated = await fetch_rated_store_ids(s, identity.id)
        picked = select_recommended(await fetch_store_aggregates(s), rated, limit, policy)
        stores = await load_stores_by_id(s, (a.store_id for a in picked))

    return [
        RecommendedStore(
            store_id=a.store_id,
            name=stores[a.store_id].name,
            address=stores[a.store_id].address,
            average=a.average,
            count=a.count,
        )
        for a in picked
        if a.store_id in stores
    ]


async def get_needs_rating(
    identity: Identity,
    limit: int = 5,
    *,
    session: AsyncSession | None = None,
    policy: RecommendationPolicy | None = None,
) -> list[NeedsRatingStore]:
    """Popular stores the `user`-role caller has not rated yet."""
    require_role(identity, Role.USER)
    policy = policy or RecommendationPolicy.from_settings()

    async with use_session(session) as s:
        rated = await fetch_rated_store_ids(s, identity.id)
        picked = select_needs_rating(await fetch_store_aggregates(s), rated, limit, policy)
        stores = await load_stores_by_id(s, (a.store_id for a in picked))

    return [
        NeedsRatingStore(
            store_id=a.store_id,
            name=stores[a.store_id].name,
            address=stores[a.store_id].address,
            count=a.count,
        )
        for a in picked
        if a.store_id in stores
    ]
