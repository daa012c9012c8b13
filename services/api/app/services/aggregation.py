"""Aggregation engine: statistics derived from the live rating set.

Nothing here is stored. Averages, counts and distributions are recomputed from
the ratings table on every read, so a write is visible to the very next read.

Pure functions (no I/O) do the math:
- summarize / store_stats: count, 2-decimal average, 1..5 distribution
- rating_distribution: 5..1 buckets, every level present
- rank_top_stores: average DESC, count DESC, store id ASC

Async readers fetch the scoped snapshot in the caller's session and feed the
pure functions.

Averages are Decimals quantized to 2 places (ROUND_HALF_UP); rankings compare
exact fractions so that 4.495 and 4.50 never tie by accident.
"""

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from fractions import Fraction

from sqlalchemy import Select, distinct, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Rating, Store, User
from app.schemas import (
    DistributionBucket,
    GlobalStats,
    RecentRating,
    RecentStore,
    RecentUser,
    StoreRaters,
    StoreStats,
    TopStore,
)
from app.services.access import Scope
from app.services.errors import InvalidArgumentError
from app.services.identity import Role

SCORE_LEVELS = (5, 4, 3, 2, 1)
TWO_PLACES = Decimal("0.01")
ZERO_AVERAGE = Decimal("0.00")


# ============================================================
# Pure computation
# ============================================================


@dataclass(frozen=True)
class StoreAggregate:
    """Rating count and score total of one store."""

    store_id: int
    count: int
    total: int

    @property
    def exact_average(self) -> Fraction:
        return Fraction(self.total, self.count) if self.count else Fraction(0)

    @property
    def average(self) -> Decimal:
        return format_average(self.total, self.count)


def format_average(total: int, count: int) -> Decimal:
    """Mean with fixed 2-decimal precision; 0.00 for an empty set."""
    if count == 0:
        return ZERO_AVERAGE
    return (Decimal(total) / Decimal(count)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _checked_counts(counts: Mapping[int, int]) -> dict[int, int]:
    unknown = [score for score in counts if score not in SCORE_LEVELS]
    if unknown:
        raise InvalidArgumentError(f"Scores outside 1-5 in rating set: {sorted(unknown)}")
    return {score: int(counts.get(score, 0)) for score in sorted(SCORE_LEVELS)}


def summarize(counts: Mapping[int, int]) -> StoreStats:
    """Statistics from a score -> count mapping."""
    distribution = _checked_counts(counts)
    count = sum(distribution.values())
    total = sum(score * n for score, n in distribution.items())
    return StoreStats(
        count=count,
        average=format_average(total, count),
        distribution=distribution,
    )


def store_stats(scores: Iterable[int]) -> StoreStats:
    """Statistics of a raw list of scores.

    >>> store_stats([5, 5, 4, 3, 1]).average
    Decimal('3.60')
    """
    return summarize(Counter(scores))


def rating_distribution(counts: Mapping[int, int]) -> list[DistributionBucket]:
    """Buckets ordered 5 -> 1, zero-count levels included."""
    distribution = _checked_counts(counts)
    return [DistributionBucket(score=score, count=distribution[score]) for score in SCORE_LEVELS]


def ranking_key(aggregate: StoreAggregate) -> tuple[Fraction, int, int]:
    """Sort key: average DESC, count DESC, store id ASC."""
    return (-aggregate.exact_average, -aggregate.count, aggregate.store_id)


def rank_top_stores(aggregates: Iterable[StoreAggregate], n: int) -> list[StoreAggregate]:
    """Best-rated stores; stores without ratings never rank."""
    if n < 0:
        raise InvalidArgumentError(f"Limit must be non-negative, got {n}")
    rated = [a for a in aggregates if a.count >= 1]
    return sorted(rated, key=ranking_key)[:n]


def weighted_average(aggregates: Iterable[StoreAggregate]) -> tuple[Decimal, int]:
    """Average over every rating of several stores, plus the total count."""
    items = list(aggregates)
    count = sum(a.count for a in items)
    total = sum(a.total for a in items)
    return format_average(total, count), count


# ============================================================
# Scoped reads
# ============================================================


def apply_scope(stmt: Select, scope: Scope) -> Select:
    """Narrow a statement over Rating to the given scope."""
    if scope.store_ids is not None:
        stmt = stmt.where(Rating.store_id.in_(sorted(scope.store_ids)))
    if scope.rater_id is not None:
        stmt = stmt.where(Rating.rater_id == scope.rater_id)
    return stmt


async def fetch_score_counts(session: AsyncSession, scope: Scope) -> dict[int, int]:
    """score -> number of ratings within scope."""
    stmt = apply_scope(
        select(Rating.score, func.count(Rating.id)).group_by(Rating.score),
        scope,
    )
    result = await session.execute(stmt)
    return {score: count for score, count in result.all()}


async def fetch_score_counts_by_store(
    session: AsyncSession,
    store_ids: Iterable[int],
) -> dict[int, dict[int, int]]:
    """store_id -> score -> count, in one grouped query."""
    ids = sorted(set(store_ids))
    counts: dict[int, dict[int, int]] = {store_id: {} for store_id in ids}
    if not ids:
        return counts
    result = await session.execute(
        select(Rating.store_id, Rating.score, func.count(Rating.id))
        .where(Rating.store_id.in_(ids))
        .group_by(Rating.store_id, Rating.score)
    )
    for store_id, score, count in result.all():
        counts[store_id][score] = count
    return counts


async def fetch_store_aggregates(
    session: AsyncSession,
    store_ids: Iterable[int] | None = None,
) -> list[StoreAggregate]:
    """Per-store count and score total, for stores with at least one rating."""
    stmt = select(
        Rating.store_id,
        func.count(Rating.id),
        func.sum(Rating.score),
    ).group_by(Rating.store_id)
    if store_ids is not None:
        stmt = stmt.where(Rating.store_id.in_(sorted(set(store_ids))))
    result = await session.execute(stmt)
    return [
        StoreAggregate(store_id=store_id, count=count, total=int(total or 0))
        for store_id, count, total in result.all()
    ]


async def load_stores_by_id(session: AsyncSession, store_ids: Iterable[int]) -> dict[int, Store]:
    ids = sorted(set(store_ids))
    if not ids:
        return {}
    result = await session.execute(select(Store).where(Store.id.in_(ids)))
    return {store.id: store for store in result.scalars().all()}


async def get_store_stats(session: AsyncSession, store_id: int) -> StoreStats:
    """Statistics of one store (existence/permission checks are the caller's)."""
    return summarize(await fetch_score_counts(session, Scope(store_ids=frozenset({store_id}))))


async def get_rating_distribution(session: AsyncSession, scope: Scope) -> list[DistributionBucket]:
    return rating_distribution(await fetch_score_counts(session, scope))


async def get_global_stats(session: AsyncSession) -> GlobalStats:
    """Plain entity counts; every role appears in usersByRole."""
    total_users = await session.scalar(select(func.count(User.id)))
    total_stores = await session.scalar(select(func.count(Store.id)))
    total_ratings = await session.scalar(select(func.count(Rating.id)))

    by_role = {role.value: 0 for role in Role}
    result = await session.execute(select(User.role, func.count(User.id)).group_by(User.role))
    for role, count in result.all():
        by_role[Role(role).value] = count

    return GlobalStats(
        total_users=total_users or 0,
        total_stores=total_stores or 0,
        total_ratings=total_ratings or 0,
        users_by_role=by_role,
    )


async def get_top_stores(session: AsyncSession, n: int) -> list[TopStore]:
    ranked = rank_top_stores(await fetch_store_aggregates(session), n)
    stores = await load_stores_by_id(session, (a.store_id for a in ranked))
    return [
        TopStore(
            store_id=a.store_id,
            name=stores[a.store_id].name,
            email=stores[a.store_id].email,
            average=a.average,
            count=a.count,
        )
        for a in ranked
        if a.store_id in stores
    ]


class RecentKind(str, Enum):
    """Entity kinds for recent-activity feeds."""

    USERS = "users"
    STORES = "stores"
    RATINGS = "ratings"


async def get_recent_entities(
    session: AsyncSession,
    kind: RecentKind,
    n: int,
) -> list[RecentUser] | list[RecentStore] | list[RecentRating]:
    """The n most recently created entities: created_at DESC, then id DESC."""
    if n < 0:
        raise InvalidArgumentError(f"Limit must be non-negative, got {n}")

    if kind is RecentKind.USERS:
        result = await session.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).limit(n)
        )
        return [
            RecentUser(
                id=u.id,
                name=u.name,
                email=u.email,
                role=u.role.value,
                created_at=u.created_at,
            )
            for u in result.scalars().all()
        ]

    if kind is RecentKind.STORES:
        result = await session.execute(
            select(Store).order_by(Store.created_at.desc(), Store.id.desc()).limit(n)
        )
        return [
            RecentStore(id=s.id, name=s.name, email=s.email, created_at=s.created_at)
            for s in result.scalars().all()
        ]

    return await get_recent_ratings(session, Scope(expose_raters=True), n)


async def get_recent_ratings(
    session: AsyncSession,
    scope: Scope,
    n: int,
    *,
    by_updated: bool = False,
) -> list[RecentRating]:
    """Recent ratings within scope, newest first (created_at or updated_at)."""
    order_column = Rating.updated_at if by_updated else Rating.created_at
    stmt = (
        select(Rating, Store.name, User.name)
        .join(Store, Store.id == Rating.store_id)
        .join(User, User.id == Rating.rater_id)
        .order_by(order_column.desc(), Rating.id.desc())
        .limit(n)
    )
    result = await session.execute(apply_scope(stmt, scope))
    return [
        RecentRating(
            rating_id=rating.rating_id,
            score=rating.score,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            store_id=rating.store_id,
            store_name=store_name,
            user_name=user_name if scope.expose_raters else None,
        )
        for rating, store_name, user_name in result.all()
    ]


async def get_store_raters(session: AsyncSession, stores: Sequence[Store]) -> list[StoreRaters]:
    """Distinct raters per store, most-rated first (ties by store id)."""
    if not stores:
        return []
    ids = [s.id for s in stores]

    counts_result = await session.execute(
        select(Rating.store_id, func.count(distinct(Rating.rater_id)))
        .where(Rating.store_id.in_(ids))
        .group_by(Rating.store_id)
    )
    unique_counts = dict(counts_result.all())

    # One name per distinct rater, so the list always matches unique_raters.
    names_result = await session.execute(
        select(Rating.store_id, User.name)
        .join(User, User.id == Rating.rater_id)
        .where(Rating.store_id.in_(ids))
        .order_by(User.name.asc(), User.id.asc())
    )
    names: dict[int, list[str]] = {store_id: [] for store_id in ids}
    for store_id, user_name in names_result.all():
        names[store_id].append(user_name)

    rows = [
        StoreRaters(
            store_id=s.id,
            store_name=s.name,
            unique_raters=unique_counts.get(s.id, 0),
            rater_names=names[s.id],
        )
        for s in stores
    ]
    rows.sort(key=lambda r: (-r.unique_raters, r.store_id))
    return rows
