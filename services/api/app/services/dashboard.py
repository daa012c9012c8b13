"""Dashboard composer: one read-only payload per role.

- admin: global counts, recent users/stores/ratings, global distribution,
  top stores
- store_owner: per-store stats, weighted overall average, recent ratings,
  distribution and unique raters across owned stores
- user: own totals, own recent ratings, own distribution, recommended and
  needs-rating stores

Each composition runs in one session but without snapshot isolation: a rating
committed between two sub-queries may show up in one section and not another.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Store
from app.schemas import (
    AdminDashboard,
    OwnedStore,
    OwnerOverall,
    RecentActivity,
    StoreOwnerDashboard,
    UserDashboard,
    UserStats,
)
from app.services.access import Scope, aggregate_scope, global_scope, own_ratings_scope, require_role
from app.services.aggregation import (
    RecentKind,
    fetch_score_counts,
    fetch_score_counts_by_store,
    fetch_store_aggregates,
    get_global_stats,
    get_rating_distribution,
    get_recent_entities,
    get_recent_ratings,
    get_store_raters,
    get_top_stores,
    rating_distribution,
    summarize,
    weighted_average,
)
from app.services.identity import Identity, Role
from app.services.recommendations import get_needs_rating, get_recommended
from app.settings import get_settings
from app.stores.postgres import use_session

logger = logging.getLogger("uvicorn.error")

DashboardPayload = AdminDashboard | StoreOwnerDashboard | UserDashboard


async def compose_admin_dashboard(
    identity: Identity,
    *,
    session: AsyncSession | None = None,
) -> AdminDashboard:
    scope = global_scope(identity)
    settings = get_settings()
    recent = settings.dashboard_recent_admin

    async with use_session(session) as s:
        return AdminDashboard(
            stats=await get_global_stats(s),
            recent_activity=RecentActivity(
                users=await get_recent_entities(s, RecentKind.USERS, recent),
                stores=await get_recent_entities(s, RecentKind.STORES, recent),
                ratings=await get_recent_entities(s, RecentKind.RATINGS, recent),
            ),
            rating_distribution=await get_rating_distribution(s, scope),
            top_stores=await get_top_stores(s, settings.dashboard_top_stores),
        )


async def compose_store_owner_dashboard(
    identity: Identity,
    *,
    session: AsyncSession | None = None,
) -> StoreOwnerDashboard:
    require_role(identity, Role.STORE_OWNER)
    settings = get_settings()

    async with use_session(session) as s:
        result = await s.execute(
            select(Store).where(Store.owner_id == identity.id).order_by(Store.name.asc(), Store.id.asc())
        )
        stores = list(result.scalars().all())
        scope = aggregate_scope(identity, frozenset(store.id for store in stores))
        # Ratings on owned stores carry rater names for the owner.
        rater_scope = Scope(store_ids=scope.store_ids, expose_raters=True)

        counts_by_store = await fetch_score_counts_by_store(s, scope.store_ids)
        owned = [
            OwnedStore(
                store_id=store.id,
                name=store.name,
                email=store.email,
                address=store.address,
                created_at=store.created_at,
                stats=summarize(counts_by_store[store.id]),
            )
            for store in stores
        ]

        average, total = weighted_average(await fetch_store_aggregates(s, scope.store_ids))

        return StoreOwnerDashboard(
            stores=owned,
            overall=OwnerOverall(total_stores=len(stores), average=average, total_ratings=total),
            recent_ratings=await get_recent_ratings(s, rater_scope, settings.dashboard_recent_owner),
            rating_distribution=await get_rating_distribution(s, scope),
            store_raters=await get_store_raters(s, stores),
        )


async def compose_user_dashboard(
    identity: Identity,
    *,
    session: AsyncSession | None = None,
) -> UserDashboard:
    require_role(identity, Role.USER)
    settings = get_settings()
    scope = own_ratings_scope(identity)

    async with use_session(session) as s:
        counts = await fetch_score_counts(s, scope)
        own = summarize(counts)
        return UserDashboard(
            user_stats=UserStats(total_ratings_given=own.count, average_rating_given=own.average),
            recent_ratings=await get_recent_ratings(
                s, scope, settings.dashboard_recent_user, by_updated=True
            ),
            rating_distribution=rating_distribution(counts),
            recommended_stores=await get_recommended(
                identity, settings.dashboard_suggestions, session=s
            ),
            needs_rating_stores=await get_needs_rating(
                identity, settings.dashboard_suggestions, session=s
            ),
        )


async def compose_dashboard(
    identity: Identity,
    *,
    session: AsyncSession | None = None,
) -> DashboardPayload:
    """Dispatch to the composition for the caller's role."""
    logger.debug(f"Composing {identity.role.value} dashboard for user={identity.id}")
    if identity.role is Role.ADMIN:
        return await compose_admin_dashboard(identity, session=session)
    if identity.role is Role.STORE_OWNER:
        return await compose_store_owner_dashboard(identity, session=session)
    return await compose_user_dashboard(identity, session=session)
