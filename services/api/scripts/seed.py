#!/usr/bin/env python3
"""Seed database with demo data.

Creates:
- One admin, two store owners and a handful of users
- Stores (some owned, one unowned)
- Ratings spread so that every dashboard section has something to show

Seed script is idempotent: users/stores are matched by email, ratings go
through the same upsert the API uses.

Usage:
    cd services/api
    python -m scripts.seed
"""

import asyncio
import os
import sys

# Add parent to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Store, User
from app.services.identity import Identity, Role
from app.services.rating_store import submit_rating
from app.stores.postgres import close_db, create_tables, get_session, init_db

load_dotenv()

USERS = [
    {"name": "Platform Administrator", "email": "admin@example.com", "role": Role.ADMIN},
    {"name": "Olivia Owner", "email": "olivia@example.com", "role": Role.STORE_OWNER},
    {"name": "Oscar Owner", "email": "oscar@example.com", "role": Role.STORE_OWNER},
    {"name": "Uma User", "email": "uma@example.com", "role": Role.USER},
    {"name": "Ulrich User", "email": "ulrich@example.com", "role": Role.USER},
    {"name": "Ursula User", "email": "ursula@example.com", "role": Role.USER},
    {"name": "Umar User", "email": "umar@example.com", "role": Role.USER},
    {"name": "Una User", "email": "una@example.com", "role": Role.USER},
    {"name": "Uriel User", "email": "uriel@example.com", "role": Role.USER},
]

STORES = [
    {"name": "Corner Bakery", "email": "bakery@example.com", "address": "1 Main St", "owner": "olivia@example.com"},
    {"name": "Book Nook", "email": "books@example.com", "address": "22 Elm Ave", "owner": "olivia@example.com"},
    {"name": "Hardware Hub", "email": "hardware@example.com", "address": "5 Forge Rd", "owner": "oscar@example.com"},
    {"name": "Night Market", "email": "market@example.com", "address": "80 Harbour Way", "owner": None},
]

# rater email -> {store email: score}
RATINGS = {
    "uma@example.com": {"bakery@example.com": 5, "books@example.com": 4, "hardware@example.com": 2},
    "ulrich@example.com": {"bakery@example.com": 4, "hardware@example.com": 1, "market@example.com": 3},
    "ursula@example.com": {"bakery@example.com": 5, "hardware@example.com": 3},
    "umar@example.com": {"books@example.com": 5, "hardware@example.com": 2, "market@example.com": 4},
    "una@example.com": {"hardware@example.com": 3, "market@example.com": 5},
    "uriel@example.com": {"books@example.com": 4, "hardware@example.com": 2},
}


async def seed_database() -> None:
    """Seed users, stores and ratings."""
    await init_db()
    await create_tables()
    try:
        async with get_session() as session:
            print("Seeding users...")
            user_map = await seed_users(session)

            print("Seeding stores...")
            store_map = await seed_stores(session, user_map)

            print("Seeding ratings...")
            await seed_ratings(session, user_map, store_map)
    finally:
        await close_db()
    print("Done.")


async def seed_users(session: AsyncSession) -> dict[str, User]:
    user_map: dict[str, User] = {}
    for u in USERS:
        result = await session.execute(select(User).where(User.email == u["email"]))
        user = result.scalar_one_or_none()
        if user:
            print(f"  - {u['email']} (exists)")
        else:
            user = User(name=u["name"], email=u["email"], role=u["role"])
            session.add(user)
            await session.flush()
            print(f"  + {u['email']} ({u['role'].value})")
        user_map[u["email"]] = user
    return user_map


async def seed_stores(session: AsyncSession, user_map: dict[str, User]) -> dict[str, Store]:
    store_map: dict[str, Store] = {}
    for s in STORES:
        result = await session.execute(select(Store).where(Store.email == s["email"]))
        store = result.scalar_one_or_none()
        if store:
            print(f"  - {s['name']} (exists)")
        else:
            owner = user_map.get(s["owner"]) if s["owner"] else None
            store = Store(
                name=s["name"],
                email=s["email"],
                address=s["address"],
                owner_id=owner.id if owner else None,
            )
            session.add(store)
            await session.flush()
            print(f"  + {s['name']}")
        store_map[s["email"]] = store
    return store_map


async def seed_ratings(
    session: AsyncSession,
    user_map: dict[str, User],
    store_map: dict[str, Store],
) -> None:
    for rater_email, scores in RATINGS.items():
        rater = Identity(id=user_map[rater_email].id, role=Role.USER)
        for store_email, score in scores.items():
            _, created = await submit_rating(rater, store_map[store_email].id, score, session=session)
            print(f"  {'+' if created else '~'} {rater_email} -> {store_email}: {score}")


if __name__ == "__main__":
    asyncio.run(seed_database())
