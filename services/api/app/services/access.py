"""Access scope filter.

Single place where role and ownership decide what a caller may see:

| Role        | Ratings on store S   | Own ratings | Aggregates of all stores |
|-------------|----------------------|-------------|--------------------------|
| admin       | any S                | yes         | yes                      |
| store_owner | only S it owns       | yes         | only owned stores        |
| user        | no                   | yes         | yes (no rater identities)|

Every check returns an explicit Scope or raises ForbiddenError. The pure
`*_scope` functions make the decision; the async `resolve_*` helpers load the
store/ownership facts they need first.
"""

from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Store
from app.services.errors import ForbiddenError, NotFoundError, require_positive_id
from app.services.identity import Identity, Role


@dataclass(frozen=True)
class Scope:
    """Subset of ratings/stores a caller may read.

    store_ids=None means every store; rater_id narrows to one rater's ratings.
    expose_raters says whether rater names/emails may be included.
    """

    store_ids: frozenset[int] | None = None
    rater_id: int | None = None
    expose_raters: bool = False

    @property
    def is_global(self) -> bool:
        return self.store_ids is None and self.rater_id is None


def require_role(identity: Identity, *roles: Role) -> None:
    """Raise ForbiddenError unless the caller holds one of `roles`."""
    if identity.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise ForbiddenError(
            f"Access denied. Requires role: {allowed}",
            {"role": identity.role.value},
        )


def global_scope(identity: Identity) -> Scope:
    """All ratings with rater identities (admin only)."""
    require_role(identity, Role.ADMIN)
    return Scope(expose_raters=True)


def own_ratings_scope(identity: Identity) -> Scope:
    """Ratings the caller submitted. Any role may read its own ratings."""
    return Scope(rater_id=identity.id, expose_raters=False)


def store_ratings_scope(identity: Identity, store: Store) -> Scope:
    """Individual ratings on one store."""
    if identity.role is Role.ADMIN:
        return Scope(store_ids=frozenset({store.id}), expose_raters=True)
    if identity.role is Role.STORE_OWNER:
        if store.owner_id != identity.id:
            raise ForbiddenError(
                "You can only view ratings for your own stores",
                {"storeId": store.id},
            )
        return Scope(store_ids=frozenset({store.id}), expose_raters=True)
    raise ForbiddenError("Access denied", {"storeId": store.id})


def aggregate_scope(identity: Identity, owned_store_ids: frozenset[int] = frozenset()) -> Scope:
    """Store aggregates (average/count/distribution) without rater identities."""
    if identity.role is Role.STORE_OWNER:
        return Scope(store_ids=owned_store_ids, expose_raters=False)
    return Scope(expose_raters=False)


def top_stores_scope(identity: Identity) -> Scope:
    """Ranking across every store; owners only see their own stores' aggregates."""
    scope = aggregate_scope(identity)
    if not scope.is_global:
        raise ForbiddenError(
            "Platform-wide rankings require access to every store",
            {"role": identity.role.value},
        )
    return scope


async def load_store(session: AsyncSession, store_id: int) -> Store:
    """Fetch a store or raise NotFoundError."""
    require_positive_id(store_id, "store id")
    store = await session.get(Store, store_id)
    if store is None:
        raise NotFoundError("Store not found", {"storeId": store_id})
    return store


async def owned_store_ids(session: AsyncSession, owner_id: int) -> frozenset[int]:
    """Ids of stores owned by `owner_id`."""
    result = await session.execute(select(Store.id).where(Store.owner_id == owner_id))
    return frozenset(result.scalars().all())


async def resolve_store_ratings_scope(
    session: AsyncSession,
    identity: Identity,
    store_id: int,
) -> tuple[Store, Scope]:
    """Existence first (NotFound), then role/ownership (Forbidden)."""
    store = await load_store(session, store_id)
    return store, store_ratings_scope(identity, store)


async def resolve_aggregate_scope(session: AsyncSession, identity: Identity) -> Scope:
    if identity.role is Role.STORE_OWNER:
        return aggregate_scope(identity, await owned_store_ids(session, identity.id))
    return aggregate_scope(identity)


async def resolve_store_stats_scope(
    session: AsyncSession,
    identity: Identity,
    store_id: int,
) -> tuple[Store, Scope]:
    """Aggregates of one store; owners are limited to their own stores."""
    store = await load_store(session, store_id)
    if identity.role is Role.STORE_OWNER and store.owner_id != identity.id:
        raise ForbiddenError(
            "You can only view statistics for your own stores",
            {"storeId": store.id},
        )
    return store, Scope(store_ids=frozenset({store.id}), expose_raters=False)
