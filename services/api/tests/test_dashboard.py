from decimal import Decimal

import pytest

from app.schemas import AdminDashboard, StoreOwnerDashboard, UserDashboard
from app.services.aggregation import fetch_score_counts_by_store
from app.services.dashboard import (
    compose_admin_dashboard,
    compose_dashboard,
    compose_store_owner_dashboard,
    compose_user_dashboard,
)
from app.services.errors import ForbiddenError
from app.services.identity import Role
from app.services.rating_store import submit_rating
from app.stores.postgres import get_session


async def test_admin_dashboard(make_user, make_store, rate_with_new_users):
    admin = await make_user(Role.ADMIN)
    owner = await make_user(Role.STORE_OWNER)
    good = await make_store(owner=owner, name="Good")
    poor = await make_store(name="Poor")
    await make_store(name="Empty")
    await rate_with_new_users(good, [5, 4])
    await rate_with_new_users(poor, [1])

    dashboard = await compose_admin_dashboard(admin)

    assert dashboard.stats.total_users == 5
    assert dashboard.stats.total_stores == 3
    assert dashboard.stats.total_ratings == 3
    assert dashboard.stats.users_by_role == {"admin": 1, "store_owner": 1, "user": 3}
    assert [(b.score, b.count) for b in dashboard.rating_distribution] == [
        (5, 1),
        (4, 1),
        (3, 0),
        (2, 0),
        (1, 1),
    ]
    assert [t.name for t in dashboard.top_stores] == ["Good", "Poor"]
    assert dashboard.top_stores[0].average == Decimal("4.50")
    assert [s.name for s in dashboard.recent_activity.stores] == ["Empty", "Poor", "Good"]
    assert all(r.user_name for r in dashboard.recent_activity.ratings)


async def test_admin_dashboard_requires_admin(make_user):
    user = await make_user(Role.USER)
    with pytest.raises(ForbiddenError):
        await compose_admin_dashboard(user)


async def test_store_owner_dashboard_covers_only_owned_stores(make_user, make_store, rate_with_new_users):
    owner = await make_user(Role.STORE_OWNER)
    other = await make_user(Role.STORE_OWNER)
    bakery = await make_store(owner=owner, name="Bakery")
    books = await make_store(owner=owner, name="Books")
    foreign = await make_store(owner=other, name="Foreign")
    await rate_with_new_users(bakery, [5])
    await rate_with_new_users(books, [2, 2, 3])
    await rate_with_new_users(foreign, [1, 1])

    dashboard = await compose_store_owner_dashboard(owner)

    assert [s.name for s in dashboard.stores] == ["Bakery", "Books"]
    assert dashboard.stores[1].stats.count == 3
    assert dashboard.overall.total_stores == 2
    assert dashboard.overall.total_ratings == 4
    # weighted by rating count: 12 / 4
    assert dashboard.overall.average == Decimal("3.00")
    assert {r.store_id for r in dashboard.recent_ratings} == {bakery, books}
    assert all(r.user_name for r in dashboard.recent_ratings)
    assert sum(b.count for b in dashboard.rating_distribution) == 4
    assert [(r.store_name, r.unique_raters) for r in dashboard.store_raters] == [("Books", 3), ("Bakery", 1)]


async def test_store_owner_without_stores(make_user):
    owner = await make_user(Role.STORE_OWNER)
    dashboard = await compose_store_owner_dashboard(owner)
    assert dashboard.stores == []
    assert dashboard.overall.total_ratings == 0
    assert dashboard.overall.average == Decimal("0.00")
    assert dashboard.store_raters == []


async def test_user_dashboard(make_user, make_store, rate_with_new_users):
    me = await make_user(Role.USER)
    liked = await make_store(name="Liked")
    popular = await make_store(name="Popular")
    mine = await make_store(name="Mine")
    await rate_with_new_users(liked, [5, 4, 4])
    await rate_with_new_users(popular, [2, 2, 3, 1, 2, 2])
    await rate_with_new_users(mine, [5, 5, 5, 5, 5])
    await submit_rating(me, mine, 3)

    dashboard = await compose_user_dashboard(me)

    assert dashboard.user_stats.total_ratings_given == 1
    assert dashboard.user_stats.average_rating_given == Decimal("3.00")
    assert [r.store_name for r in dashboard.recent_ratings] == ["Mine"]
    assert dashboard.recent_ratings[0].user_name is None
    assert [s.name for s in dashboard.recommended_stores] == ["Liked"]
    assert [s.name for s in dashboard.needs_rating_stores] == ["Popular"]


async def test_rating_in_same_session_excludes_store(make_user, make_store, rate_with_new_users):
    me = await make_user(Role.USER)
    store_id = await make_store()
    await rate_with_new_users(store_id, [5, 5, 5, 5, 5])

    async with get_session() as session:
        before = await compose_user_dashboard(me, session=session)
        await submit_rating(me, store_id, 4, session=session)
        after = await compose_user_dashboard(me, session=session)

    assert [s.store_id for s in before.recommended_stores] == [store_id]
    assert [s.store_id for s in before.needs_rating_stores] == [store_id]
    assert after.recommended_stores == []
    assert after.needs_rating_stores == []


@pytest.mark.parametrize(
    "role, payload",
    [
        (Role.ADMIN, AdminDashboard),
        (Role.STORE_OWNER, StoreOwnerDashboard),
        (Role.USER, UserDashboard),
    ],
)
async def test_compose_dashboard_dispatches_on_role(make_user, role, payload):
    identity = await make_user(role)
    assert isinstance(await compose_dashboard(identity), payload)


async def test_store_raters_keep_raters_sharing_a_name(make_user, make_store):
    owner = await make_user(Role.STORE_OWNER)
    store_id = await make_store(owner=owner, name="Bakery")
    for _ in range(2):
        sam = await make_user(Role.USER, name="Sam")
        await submit_rating(sam, store_id, 4)

    dashboard = await compose_store_owner_dashboard(owner)

    [raters] = dashboard.store_raters
    assert raters.unique_raters == 2
    assert raters.rater_names == ["Sam", "Sam"]


async def test_owner_store_stats_are_per_store(make_user, make_store, rate_with_new_users):
    owner = await make_user(Role.STORE_OWNER)
    rated = await make_store(owner=owner, name="A Rated")
    await make_store(owner=owner, name="B Unrated")
    await rate_with_new_users(rated, [5, 3])

    dashboard = await compose_store_owner_dashboard(owner)

    by_name = {s.name: s.stats for s in dashboard.stores}
    assert by_name["A Rated"].distribution == {1: 0, 2: 0, 3: 1, 4: 0, 5: 1}
    assert by_name["A Rated"].average == Decimal("4.00")
    assert by_name["B Unrated"].count == 0
    assert by_name["B Unrated"].average == Decimal("0.00")


async def test_score_counts_grouped_by_store(make_store, rate_with_new_users):
    first = await make_store()
    second = await make_store()
    await rate_with_new_users(first, [1, 1, 5])
    await rate_with_new_users(second, [2])

    async with get_session() as session:
        counts = await fetch_score_counts_by_store(session, [first, second, 999])

    assert counts == {first: {1: 2, 5: 1}, second: {2: 1}, 999: {}}
