"""Paginated listings: stores with aggregates, and ratings with their raters.

Every listing is narrowed by the access scope filter before it touches the
ratings table. Name/address filters are plain case-insensitive substring
matches.
"""

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.models import Rating, Store, User
from app.schemas import (
    Pagination,
    RatingEntry,
    RatingPage,
    StorePage,
    StoreRatingEntry,
    StoreRatingPage,
    StoreStats,
    StoreSummary,
    TopStore,
)
from app.services.access import (
    global_scope,
    resolve_aggregate_scope,
    resolve_store_ratings_scope,
    resolve_store_stats_scope,
    top_stores_scope,
)
from app.services.aggregation import format_average, get_store_stats, get_top_stores
from app.services.errors import MAX_ID, InvalidArgumentError
from app.services.identity import Identity
from app.stores.postgres import use_session

MAX_PAGE_SIZE = 100

STORE_SORT_COLUMNS = ("name", "address", "average", "created_at")


def _check_page(page: int, limit: int) -> int:
    """Validate paging and return the row offset."""
    if not 1 <= page <= MAX_ID:
        raise InvalidArgumentError(f"Page must be between 1 and {MAX_ID}, got {page}", {"field": "page"})
    if not 1 <= limit <= MAX_PAGE_SIZE:
        raise InvalidArgumentError(
            f"Limit must be between 1 and {MAX_PAGE_SIZE}, got {limit}",
            {"field": "limit"},
        )
    return (page - 1) * limit


def _is_desc(sort_order: str) -> bool:
    return sort_order.lower() == "desc"


async def list_stores(
    identity: Identity,
    *,
    name: str | None = None,
    address: str | None = None,
    sort_by: str = "name",
    sort_order: str = "asc",
    page: int = 1,
    limit: int = 10,
    session: AsyncSession | None = None,
) -> StorePage:
    """Stores visible to the caller with average, count and the caller's own score.

    Unknown sort columns/orders fall back to name ascending.
    """
    offset = _check_page(page, limit)
    if sort_by not in STORE_SORT_COLUMNS or sort_order.lower() not in ("asc", "desc"):
        sort_by, sort_order = "name", "asc"

    async with use_session(session) as s:
        scope = await resolve_aggregate_scope(s, identity)

        agg = (
            select(
                Rating.store_id.label("store_id"),
                func.count(Rating.id).label("count"),
                func.sum(Rating.score).label("total"),
                func.avg(Rating.score).label("average"),
            )
            .group_by(Rating.store_id)
            .subquery()
        )
        mine = aliased(Rating)

        filters = []
        if scope.store_ids is not None:
            filters.append(Store.id.in_(sorted(scope.store_ids)))
        if name:
            filters.append(Store.name.icontains(name, autoescape=True))
        if address:
            filters.append(Store.address.icontains(address, autoescape=True))

        sort_columns = {
            "name": Store.name,
            "address": Store.address,
            "created_at": Store.created_at,
            "average": func.coalesce(agg.c.average, 0),
        }
        sort_column = sort_columns[sort_by]
        order = sort_column.desc() if _is_desc(sort_order) else sort_column.asc()

        stmt = (
            select(
                Store,
                func.coalesce(agg.c.count, 0),
                func.coalesce(agg.c.total, 0),
                mine.score,
            )
            .outerjoin(agg, agg.c.store_id == Store.id)
            .outerjoin(mine, and_(mine.store_id == Store.id, mine.rater_id == identity.id))
            .where(*filters)
            .order_by(order, Store.id.asc())
            .offset(offset)
            .limit(limit)
        )
        result = await s.execute(stmt)
        rows = result.all()

        total = await s.scalar(select(func.count(Store.id)).where(*filters))

    stores = [
        StoreSummary(
            id=store.id,
            name=store.name,
            email=store.email,
            address=store.address,
            created_at=store.created_at,
            average=format_average(int(score_total), count),
            count=count,
            user_rating=user_rating,
        )
        for store, count, score_total, user_rating in rows
    ]
    return StorePage(stores=stores, pagination=Pagination.build(page, limit, total or 0))


async def get_store_summary(
    identity: Identity,
    store_id: int,
    *,
    session: AsyncSession | None = None,
) -> StoreSummary:
    """One store with its aggregate and the caller's own score."""
    async with use_session(session) as s:
        store, _ = await resolve_store_stats_scope(s, identity, store_id)
        stats = await get_store_stats(s, store.id)
        user_rating = await s.scalar(
            select(Rating.score).where(Rating.store_id == store.id, Rating.rater_id == identity.id)
        )

    return StoreSummary(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        created_at=store.created_at,
        average=stats.average,
        count=stats.count,
        user_rating=user_rating,
    )


async def get_store_stats_for(
    identity: Identity,
    store_id: int,
    *,
    session: AsyncSession | None = None,
) -> StoreStats:
    """Statistics of one store, owners limited to their own stores."""
    async with use_session(session) as s:
        store, _ = await resolve_store_stats_scope(s, identity, store_id)
        return await get_store_stats(s, store.id)


async def list_top_stores(
    identity: Identity,
    n: int = 5,
    *,
    session: AsyncSession | None = None,
) -> list[TopStore]:
    """Best-rated stores platform-wide (admin and user)."""
    top_stores_scope(identity)
    async with use_session(session) as s:
        return await get_top_stores(s, n)


async def list_store_ratings(
    identity: Identity,
    store_id: int,
    *,
    page: int = 1,
    limit: int = 10,
    session: AsyncSession | None = None,
) -> StoreRatingPage:
    """Individual ratings of one store (admin, or the store's owner)."""
    offset = _check_page(page, limit)

    async with use_session(session) as s:
        store, _ = await resolve_store_ratings_scope(s, identity, store_id)

        result = await s.execute(
            select(Rating, User.name, User.email)
            .join(User, User.id == Rating.rater_id)
            .where(Rating.store_id == store.id)
            .order_by(Rating.created_at.desc(), Rating.id.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = result.all()
        total = await s.scalar(select(func.count(Rating.id)).where(Rating.store_id == store.id))

    ratings = [
        StoreRatingEntry(
            rating_id=rating.rating_id,
            score=rating.score,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            user_name=user_name,
            user_email=user_email,
        )
        for rating, user_name, user_email in rows
    ]
    return StoreRatingPage(ratings=ratings, pagination=Pagination.build(page, limit, total or 0))


async def list_all_ratings(
    identity: Identity,
    *,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 10,
    session: AsyncSession | None = None,
) -> RatingPage:
    """Every rating on the platform (admin only)."""
    global_scope(identity)
    offset = _check_page(page, limit)
    sort_column = Rating.score if sort_by == "score" else Rating.created_at
    order = sort_column.asc() if sort_order.lower() == "asc" else sort_column.desc()

    async with use_session(session) as s:
        result = await s.execute(
            select(Rating, User.name, User.email, Store.name, Store.email)
            .join(User, User.id == Rating.rater_id)
            .join(Store, Store.id == Rating.store_id)
            .order_by(order, Rating.id.desc())
            .offset(offset)
            .limit(limit)
        )
        rows = result.all()
        total = await s.scalar(select(func.count(Rating.id)))

    ratings = [
        RatingEntry(
            rating_id=rating.rating_id,
            score=rating.score,
            created_at=rating.created_at,
            updated_at=rating.updated_at,
            user_name=user_name,
            user_email=user_email,
            store_id=rating.store_id,
            store_name=store_name,
            store_email=store_email,
        )
        for rating, user_name, user_email, store_name, store_email in rows
    ]
    return RatingPage(ratings=ratings, pagination=Pagination.build(page, limit, total or 0))
