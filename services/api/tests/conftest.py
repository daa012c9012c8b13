"""Shared fixtures: a throwaway SQLite database and row factories."""

import itertools

import pytest

from app.models import Store, User
from app.services.identity import Identity, Role
from app.services.rating_store import submit_rating
from app.stores import postgres
from app.stores.postgres import get_session


@pytest.fixture
async def db(tmp_path):
    """Fresh schema in a temporary SQLite file; torn down after the test."""
    await postgres.init_db(f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}")
    await postgres.create_tables()
    yield
    await postgres.close_db()


@pytest.fixture
def make_user(db):
    counter = itertools.count(1)

    async def _make(role: Role = Role.USER, name: str | None = None) -> Identity:
        n = next(counter)
        async with get_session() as session:
            user = User(name=name or f"{role.value}-{n}", email=f"{role.value}{n}@example.com", role=role)
            session.add(user)
            await session.flush()
            return Identity(id=user.id, role=role)

    return _make


@pytest.fixture
def make_store(db):
    counter = itertools.count(1)

    async def _make(
        owner: Identity | None = None,
        name: str | None = None,
        address: str | None = None,
    ) -> int:
        n = next(counter)
        async with get_session() as session:
            store = Store(
                name=name or f"Store {n}",
                email=f"store{n}@example.com",
                address=address or f"{n} Market Street",
                owner_id=owner.id if owner else None,
            )
            session.add(store)
            await session.flush()
            return store.id

    return _make


@pytest.fixture
def rate_with_new_users(make_user):
    """Submit one rating per score, each from a fresh user."""

    async def _rate(store_id: int, scores: list[int]) -> list[Identity]:
        raters = []
        for score in scores:
            rater = await make_user(Role.USER)
            await submit_rating(rater, store_id, score)
            raters.append(rater)
        return raters

    return _rate
